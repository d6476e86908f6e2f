"""CLI entrypoint for theory simulations and publication tables.

This module owns CLI argument parsing and subcommand dispatch. All domain
logic lives in the extracted modules:

- ``theory_sim.config``                  – configuration dataclasses
- ``theory_sim.theories``                – theory registry
- ``theory_sim.experiments.pub_tables``  – table builder and readers
- ``theory_sim.io``                      – JSON / Parquet persistence
- ``theory_sim.viz``                     – plots
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from collections.abc import Callable
from pathlib import Path

from theory_sim.config.types import PubTableConfig, SeedState, TheoryParameters
from theory_sim.domain.logmath import format_duration, log10_to_str, str_to_log10
from theory_sim.experiments.pub_tables import (
    DEFAULT_MULTIPLIER_EXPONENT,
    build_pub_table,
    compress_table,
    read_chain,
    resolve_config,
    step_range,
    table_diff,
)
from theory_sim.io.paths import pub_table_path, purchase_log_path, resolve_within_base, timeline_plot_path
from theory_sim.io.persistence import (
    load_pub_table,
    save_compressed_table,
    save_pub_table,
    write_purchase_log,
)
from theory_sim.theories import THEORIES, get_theory

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# CLI parsing helpers
# ---------------------------------------------------------------------------


def _parse_log_value(raw: object, key: str) -> float:
    """Parse ``"1.02e628"`` as a display number, a bare number as a log10 value."""
    if isinstance(raw, bool):
        raise ValueError(f"{key} must be a number")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if "e" in text.lower():
            return str_to_log10(text)
        try:
            return float(text)
        except ValueError as exc:
            raise ValueError(f"{key} must be a log10 value or <mantissa>e<exponent>") from exc
    raise ValueError(f"{key} must be a number")


def _parse_assignments(raw: object, key: str) -> dict[str, str]:
    """Parse ``NAME=VALUE`` pairs from a CLI list or a config-file mapping."""
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return {str(name): str(value) for name, value in raw.items()}
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        raise ValueError(f"{key} must be a list of NAME=VALUE pairs")
    pairs: dict[str, str] = {}
    for item in raw:
        name, sep, value = str(item).partition("=")
        if not sep or not name.strip():
            raise ValueError(f"{key} entries must use NAME=VALUE format, got {item!r}")
        pairs[name.strip()] = value.strip()
    return pairs


def _coerce_bool(raw: object, key: str) -> bool:
    """Coerce raw value to bool with strict string-check."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"{key} must be a boolean value")


def _coerce_int(raw: object, key: str) -> int:
    """Coerce raw value to int; rejects booleans and non-integer floats."""
    if isinstance(raw, bool):
        raise ValueError(f"{key} must be an integer value")
    if isinstance(raw, float):
        if raw != int(raw):
            raise ValueError(f"{key} must be an integer value, got {raw!r}")
        return int(raw)
    if isinstance(raw, (int, str)):
        try:
            return int(raw)
        except ValueError as exc:
            raise ValueError(f"{key} must be an integer value, got {raw!r}") from exc
    raise ValueError(f"{key} must be an integer value")


def _coerce_float(raw: object, key: str) -> float:
    """Coerce raw value to float; rejects booleans."""
    if isinstance(raw, bool):
        raise ValueError(f"{key} must be a float value")
    if isinstance(raw, (int, float, str)):
        try:
            return float(raw)
        except ValueError as exc:
            raise ValueError(f"{key} must be a float value, got {raw!r}") from exc
    raise ValueError(f"{key} must be a float value")


def _coerce_str(raw: object, key: str) -> str:
    """Coerce raw value to str; rejects booleans."""
    if isinstance(raw, bool):
        raise ValueError(f"{key} must be a string-coercible value")
    if isinstance(raw, (str, Path, int, float)):
        return str(raw)
    raise ValueError(f"{key} must be a string-coercible value")


def _get_val(cli_val: object, key: str, file_cfg: dict[str, object], default: object) -> object:
    """CLI > file > default resolution."""
    if cli_val is not None:
        return cli_val
    return file_cfg.get(key, default)


def _get_bool(cli_val: bool | None, key: str, file_cfg: dict[str, object], default: bool) -> bool:
    """CLI > file > default resolution for boolean flags."""
    return _coerce_bool(_get_val(cli_val, key, file_cfg, default), key)


def _get_int(cli_val: int | None, key: str, file_cfg: dict[str, object], default: int) -> int:
    """CLI > file > default resolution for integer values."""
    return _coerce_int(_get_val(cli_val, key, file_cfg, default), key)


def _get_float(
    cli_val: float | None, key: str, file_cfg: dict[str, object], default: float
) -> float:
    """CLI > file > default resolution for float values."""
    return _coerce_float(_get_val(cli_val, key, file_cfg, default), key)


def _get_str(cli_val: str | None, key: str, file_cfg: dict[str, object], default: str) -> str:
    """CLI > file > default resolution for string values."""
    return _coerce_str(_get_val(cli_val, key, file_cfg, default), key)


def _get_required(cli_val: object, key: str, file_cfg: dict[str, object]) -> object:
    value = _get_val(cli_val, key, file_cfg, None)
    if value is None:
        raise ValueError(f"{key} is required (CLI flag or config file)")
    return value


def _output_path(
    cli_val: Path | None,
    key: str,
    file_cfg: dict[str, object],
    out_dir: Path | None,
    default_path: Callable[[Path, str], Path],
    theory: str,
) -> Path | None:
    """Resolve an artifact path; under ``out_dir`` it defaults and is kept inside it."""
    raw = _get_val(cli_val, key, file_cfg, None)
    if out_dir is None:
        return None if raw is None else Path(_coerce_str(raw, key))
    if raw is None:
        return default_path(out_dir, theory)
    return resolve_within_base(Path(_coerce_str(raw, key)), out_dir)


def _build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Simulate idle-game theories and build publication tables")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON config file (CLI args override file values)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log fork creation at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Run one simulation to a goal")
    sim.add_argument("--theory", type=str, choices=sorted(THEORIES), default=None)
    sim.add_argument("--tau", type=str, default=None, help="log10 value or e.g. 1.02e628")
    sim.add_argument("--goal", type=str, default=None, help="log10 value or e.g. 1.4e630")
    sim.add_argument("--rho", type=str, default=None, help="starting rho (log10 or display)")
    sim.add_argument("--students", type=int, default=None)
    sim.add_argument("--level", action="append", default=None, metavar="NAME=LEVEL")
    sim.add_argument("--accumulator", action="append", default=None, metavar="NAME=VALUE")
    sim.add_argument("--setting", action="append", default=None, metavar="NAME=VALUE")
    sim.add_argument("--coasting", action=argparse.BooleanOptionalAction, default=None)
    sim.add_argument("--parquet-out", type=Path, default=None)
    sim.add_argument("--plot-out", type=Path, default=None)
    sim.add_argument("--out-dir", type=Path, default=None, help="Directory for the purchase log and timeline plot")

    build = sub.add_parser("build-table", help="Build or extend a publication table")
    build.add_argument("--theory", type=str, choices=sorted(THEORIES), default=None)
    build.add_argument("--table", type=Path, default=None)
    for name in ("grid", "start", "stop", "end", "min-step", "max-step", "students"):
        build.add_argument(f"--{name}", type=int, default=None)
    build.add_argument("--tau-ratio", type=float, default=None)
    build.add_argument("--margin", type=float, default=None)

    chain = sub.add_parser("chain", help="Walk a publication table from a starting rho")
    chain.add_argument("--table", type=Path, default=None)
    chain.add_argument("--rho", type=str, default=None)
    chain.add_argument("--grid", type=int, default=None)
    chain.add_argument("--exponent", type=float, default=None)
    chain.add_argument("--plot-out", type=Path, default=None)

    compress = sub.add_parser("compress", help="Reduce a table to index -> next")
    compress.add_argument("--source", type=Path, default=None)
    compress.add_argument("--dest", type=Path, default=None)

    span = sub.add_parser("range", help="Report the smallest and largest publication step")
    span.add_argument("--table", type=Path, default=None)
    span.add_argument("--end", type=int, default=None)

    diff = sub.add_parser("diff", help="List table entries in an index range")
    diff.add_argument("--table", type=Path, default=None)
    diff.add_argument("--start", type=int, default=None)
    diff.add_argument("--end", type=int, default=None)
    diff.add_argument("--grid", type=int, default=None)
    return parser


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _run_simulate(args: argparse.Namespace, file_cfg: dict[str, object]) -> dict[str, object]:
    theory = get_theory(_get_str(args.theory, "theory", file_cfg, "t1"))
    tau = _parse_log_value(_get_required(args.tau, "tau", file_cfg), "tau")
    goal = _parse_log_value(_get_required(args.goal, "goal", file_cfg), "goal")
    rho0 = _parse_log_value(_get_val(args.rho, "rho", file_cfg, 0.0), "rho")
    default_students = theory.pub_table.students if theory.pub_table is not None else 0
    students = _get_int(args.students, "students", file_cfg, default_students)

    levels = {
        name: _coerce_int(value, f"level {name}")
        for name, value in _parse_assignments(_get_val(args.level, "levels", file_cfg, None), "levels").items()
    }
    accumulators = {
        name: _parse_log_value(value, f"accumulator {name}")
        for name, value in _parse_assignments(
            _get_val(args.accumulator, "accumulators", file_cfg, None), "accumulators"
        ).items()
    }
    settings = {
        name: _coerce_float(value, f"setting {name}")
        for name, value in _parse_assignments(_get_val(args.setting, "settings", file_cfg, None), "settings").items()
    }
    seed = None
    if levels or accumulators or settings:
        seed = SeedState(levels=levels, accumulators=accumulators, settings=settings)

    raw_out_dir = _get_val(args.out_dir, "out_dir", file_cfg, None)
    out_dir = None if raw_out_dir is None else Path(_coerce_str(raw_out_dir, "out_dir"))
    parquet_out = _output_path(args.parquet_out, "parquet_out", file_cfg, out_dir, purchase_log_path, theory.name)
    plot_out = _output_path(args.plot_out, "plot_out", file_cfg, out_dir, timeline_plot_path, theory.name)

    sim = theory(TheoryParameters(tau=tau, scale=students, rho0=rho0), goal, seed)
    sim.coasting = _get_bool(args.coasting, "coasting", file_cfg, True)
    result = sim.simulate()
    purchases = result.purchases or ()

    summary: dict[str, object] = {
        "theory": theory.name,
        "tau": log10_to_str(tau),
        "goal": log10_to_str(goal),
        "students": students,
        "elapsed_seconds": result.elapsed,
        "elapsed": format_duration(result.elapsed),
        "purchases": [str(event) for event in purchases],
        "last_levels": {
            name: result.last_purchase_level(name)
            for name in theory.buy_order
            if result.last_purchase_level(name) is not None
        },
    }

    if parquet_out is not None:
        write_purchase_log(purchases, parquet_out)
        summary["parquet_out"] = str(parquet_out)
    if plot_out is not None and purchases:
        from theory_sim.viz.render import render_purchase_timeline

        render_purchase_timeline(purchases, plot_out, title=theory.name)
        summary["plot_out"] = str(plot_out)
    return summary


def _run_build_table(args: argparse.Namespace, file_cfg: dict[str, object]) -> dict[str, object]:
    theory = get_theory(_get_str(args.theory, "theory", file_cfg, "t1"))
    base = resolve_config(theory, None)
    config = PubTableConfig(
        grid=_get_int(args.grid, "grid", file_cfg, base.grid),
        start=_get_int(args.start, "start", file_cfg, base.start),
        stop=_get_int(args.stop, "stop", file_cfg, base.stop),
        end=_get_int(args.end, "end", file_cfg, base.end),
        min_step=_get_int(args.min_step, "min_step", file_cfg, base.min_step),
        max_step=_get_int(args.max_step, "max_step", file_cfg, base.max_step),
        tau_ratio=_get_float(args.tau_ratio, "tau_ratio", file_cfg, base.tau_ratio),
        students=_get_int(args.students, "students", file_cfg, base.students),
        margin=_get_float(args.margin, "margin", file_cfg, base.margin),
    )
    table_path = Path(_get_str(args.table, "table", file_cfg, str(pub_table_path(theory.name))))

    existing = load_pub_table(table_path)
    logger.info("Read %d entries from %s", len(existing), table_path)
    table = build_pub_table(theory, config, existing)
    save_pub_table(table, table_path)
    return {
        "theory": theory.name,
        "table": str(table_path),
        "config": dataclasses.asdict(config),
        "entries": len(table),
        "rebuilt": config.stop - config.start,
    }


def _run_chain(args: argparse.Namespace, file_cfg: dict[str, object]) -> dict[str, object]:
    table_path = Path(_coerce_str(_get_required(args.table, "table", file_cfg), "table"))
    rho = _parse_log_value(_get_required(args.rho, "rho", file_cfg), "rho")
    grid = _get_int(args.grid, "grid", file_cfg, 32)
    exponent = _get_float(args.exponent, "exponent", file_cfg, DEFAULT_MULTIPLIER_EXPONENT)

    steps = read_chain(load_pub_table(table_path), rho, grid, exponent)
    lines = [
        f"{log10_to_str(step.index / grid)} -> {log10_to_str(step.next / grid)}; "
        f"{format_duration(step.remaining)}; current pub: {format_duration(step.publication)}, "
        f"{step.multiplier:.3f}"
        for step in steps
    ]
    summary: dict[str, object] = {"table": str(table_path), "chain": lines}

    plot_out = _get_val(args.plot_out, "plot_out", file_cfg, None)
    if plot_out is not None and steps:
        from theory_sim.viz.render import render_pub_chain

        render_pub_chain(steps, grid, Path(_coerce_str(plot_out, "plot_out")))
        summary["plot_out"] = str(plot_out)
    return summary


def _run_compress(args: argparse.Namespace, file_cfg: dict[str, object]) -> dict[str, object]:
    source = Path(_coerce_str(_get_required(args.source, "source", file_cfg), "source"))
    dest = Path(_coerce_str(_get_required(args.dest, "dest", file_cfg), "dest"))
    table = load_pub_table(source)
    if not table:
        raise ValueError(f"publication table is empty or missing: {source}")
    save_compressed_table(compress_table(table), dest)
    return {"source": str(source), "dest": str(dest), "entries": len(table)}


def _run_range(args: argparse.Namespace, file_cfg: dict[str, object]) -> dict[str, object]:
    table_path = Path(_coerce_str(_get_required(args.table, "table", file_cfg), "table"))
    end = _coerce_int(_get_required(args.end, "end", file_cfg), "end")
    low, high = step_range(load_pub_table(table_path), end)
    return {"table": str(table_path), "min_step": low, "max_step": high}


def _run_diff(args: argparse.Namespace, file_cfg: dict[str, object]) -> dict[str, object]:
    table_path = Path(_coerce_str(_get_required(args.table, "table", file_cfg), "table"))
    start = _coerce_int(_get_required(args.start, "start", file_cfg), "start")
    end = _coerce_int(_get_required(args.end, "end", file_cfg), "end")
    grid = _get_int(args.grid, "grid", file_cfg, 32)
    lines = []
    for index, entry in table_diff(load_pub_table(table_path), start, end):
        if entry is None:
            lines.append(f"Entry not found for {index / grid}")
        else:
            lines.append(f"{index / grid} -> {entry.next / grid} diff {entry.next - index}")
    return {"table": str(table_path), "entries": lines}


COMMANDS = {
    "simulate": _run_simulate,
    "build-table": _run_build_table,
    "chain": _run_chain,
    "compress": _run_compress,
    "range": _run_range,
    "diff": _run_diff,
}

# ---------------------------------------------------------------------------
# Main CLI
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint.

    Supports ``--config path/to/config.json`` for reproducible runs. CLI
    arguments override config-file values; config-file values override
    built-in defaults.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    file_cfg: dict[str, object] = {}
    if args.config is not None:
        try:
            file_cfg = json.loads(Path(args.config).read_text())
        except FileNotFoundError:
            parser.error(f"Config file not found: {args.config}")
        except json.JSONDecodeError as exc:
            parser.error(f"Config file is not valid JSON: {args.config}: {exc}")
        if not isinstance(file_cfg, dict):
            parser.error(f"Config file must hold a JSON object: {args.config}")

    try:
        summary = COMMANDS[args.command](args, file_cfg)
    except ValueError as exc:
        parser.error(str(exc))
    print(json.dumps(summary, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
