"""Parquet schema definitions for simulation artifacts.

Arrow schemas used for persisting purchase logs and flattened publication
tables are centralised here so readers and writers share one column contract.
"""

from __future__ import annotations

import pyarrow as pa

PURCHASE_LOG_SCHEMA = pa.schema(
    [
        ("upgrade", pa.string()),
        ("level", pa.int64()),
        ("time", pa.float64()),
    ]
)

PUB_TABLE_SCHEMA = pa.schema(
    [
        ("index", pa.int64()),
        ("next", pa.int64()),
        ("t", pa.float64()),
    ]
)
