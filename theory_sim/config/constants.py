"""Centralized calibration constants for the simulation engine.

All magic numbers that are shared by the engine and every theory are defined
here. Theory-specific calibration lives in the theory module that uses it.
"""

from __future__ import annotations

INITIAL_DT = 1.5
"""Length of the first simulated tick, in seconds."""

DT_GROWTH = 1.0001
"""Default per-tick multiplier applied to ``dt`` (geometric step growth)."""

TIME_STEP_DIVISOR = 1.5
"""Elapsed time advances by ``dt / TIME_STEP_DIVISOR`` per tick."""

LOG10_CUTOFF = 40.0
"""Orders of magnitude beyond which the smaller log10 operand is ignored."""

UNCAPPED = 2**32 - 1
"""Level cap sentinel meaning "no cap" for an upgrade."""

MISSING_ENTRY_TIME = 1e100
"""Remaining time assumed for a publication index absent from the table."""

DEFAULT_RECORD_MARGIN = 5.0
"""Default distance below tau after which purchases are recorded."""

DEFAULT_PUB_TABLE_DIR = "data"
"""Default directory holding publication tables."""
