"""Artifact IO: path conventions, Arrow schemas and table/log persistence."""

from theory_sim.io.paths import pub_table_path, purchase_log_path, resolve_within_base, timeline_plot_path
from theory_sim.io.persistence import (
    PubTable,
    load_pub_table,
    read_purchase_log,
    save_compressed_table,
    save_pub_table,
    write_purchase_log,
)
from theory_sim.io.schemas import PUB_TABLE_SCHEMA, PURCHASE_LOG_SCHEMA

__all__ = [
    "PUB_TABLE_SCHEMA",
    "PURCHASE_LOG_SCHEMA",
    "PubTable",
    "load_pub_table",
    "pub_table_path",
    "purchase_log_path",
    "read_purchase_log",
    "resolve_within_base",
    "save_compressed_table",
    "save_pub_table",
    "timeline_plot_path",
    "write_purchase_log",
]
