"""Path construction helpers for publication tables and run artifacts.

Centralises the directory/file naming conventions used by the table builder
and the CLI.
"""

from __future__ import annotations

from pathlib import Path

from theory_sim.config.constants import DEFAULT_PUB_TABLE_DIR


def resolve_within_base(path: Path, base_dir: Path) -> Path:
    """Resolve *path* relative to *base_dir*; reject results outside it."""
    base = base_dir.resolve()
    resolved = (base / path).resolve()
    if not resolved.is_relative_to(base):
        raise ValueError(f"{path} resolves outside output directory {base}")
    return resolved


def pub_table_path(theory: str, data_dir: Path | None = None) -> Path:
    """Return the default JSON publication table path for *theory*."""
    base = Path(DEFAULT_PUB_TABLE_DIR) if data_dir is None else data_dir
    return base / f"{theory.lower()}.json"


def purchase_log_path(out_dir: Path, theory: str) -> Path:
    """Return path to the purchase log Parquet file of a run."""
    return out_dir / f"{theory.lower()}_purchases.parquet"


def timeline_plot_path(out_dir: Path, theory: str) -> Path:
    """Return path to the purchase timeline image of a run."""
    return out_dir / f"{theory.lower()}_timeline.png"
