"""Experiment orchestration: publication tables and the command-line entrypoint."""

from theory_sim.experiments.pub_tables import (
    ChainStep,
    best_publication,
    build_pub_table,
    compress_table,
    read_chain,
    step_range,
    table_diff,
)

__all__ = [
    "ChainStep",
    "best_publication",
    "build_pub_table",
    "compress_table",
    "read_chain",
    "step_range",
    "table_diff",
]
