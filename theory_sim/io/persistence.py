"""Persistence helpers for publication tables and purchase logs.

Publication tables are stored as pretty-printed JSON objects keyed by index,
``{"25600": {"next": 25712, "t": 81234.5}, ...}``, or as Parquet when the
path ends in ``.parquet``. Purchase logs are stored as Parquet.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from theory_sim.config.types import PubEntry, PurchaseEvent
from theory_sim.io.schemas import PUB_TABLE_SCHEMA, PURCHASE_LOG_SCHEMA

PubTable = dict[int, PubEntry]


def _is_parquet(path: Path) -> bool:
    return path.suffix.lower() == ".parquet"


def load_pub_table(path: Path) -> PubTable:
    """Read a publication table; a missing file yields an empty table.

    Raises :exc:`ValueError` if an entry is malformed.
    """
    if not path.exists():
        return {}
    if _is_parquet(path):
        rows = pq.read_table(path, columns=["index", "next", "t"]).to_pylist()
        return {int(row["index"]): PubEntry(int(row["next"]), float(row["t"])) for row in rows}

    raw = json.loads(path.read_text())
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object keyed by index")
    table: PubTable = {}
    for key, entry in raw.items():
        try:
            table[int(key)] = PubEntry(next=int(entry["next"]), t=float(entry["t"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"{path}: malformed entry for index {key!r}") from exc
    return table


def save_pub_table(table: Mapping[int, PubEntry], path: Path) -> None:
    """Write a publication table, sorted by index."""
    path.parent.mkdir(parents=True, exist_ok=True)
    indices = sorted(table)
    if _is_parquet(path):
        columns = {
            "index": indices,
            "next": [table[i].next for i in indices],
            "t": [table[i].t for i in indices],
        }
        pq.write_table(pa.Table.from_pydict(columns, schema=PUB_TABLE_SCHEMA), path)
        return
    payload = {str(i): {"next": table[i].next, "t": table[i].t} for i in indices}
    path.write_text(json.dumps(payload, indent=2))


def save_compressed_table(mapping: Mapping[int, int], path: Path) -> None:
    """Write an index -> next mapping as a JSON object."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {str(i): mapping[i] for i in sorted(mapping)}
    path.write_text(json.dumps(payload, indent=2))


def write_purchase_log(purchases: Iterable[PurchaseEvent], path: Path) -> None:
    """Write purchase events to Parquet with the fixed purchase-log schema."""
    events = list(purchases)
    columns = {
        "upgrade": [event.upgrade for event in events],
        "level": [event.level for event in events],
        "time": [event.time for event in events],
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(pa.Table.from_pydict(columns, schema=PURCHASE_LOG_SCHEMA), path)


def read_purchase_log(path: Path) -> tuple[PurchaseEvent, ...]:
    """Read purchase events written by :func:`write_purchase_log`."""
    rows = pq.read_table(path, columns=["upgrade", "level", "time"]).to_pylist()
    return tuple(PurchaseEvent(row["upgrade"], int(row["level"]), float(row["time"])) for row in rows)
