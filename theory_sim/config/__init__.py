"""Configuration layer: calibration constants and typed config dataclasses."""

from theory_sim.config.constants import (
    DT_GROWTH,
    INITIAL_DT,
    LOG10_CUTOFF,
    MISSING_ENTRY_TIME,
    TIME_STEP_DIVISOR,
    UNCAPPED,
)
from theory_sim.config.types import (
    PubEntry,
    PubTableConfig,
    PurchaseEvent,
    SeedState,
    SimulationResult,
    TheoryParameters,
)

__all__ = [
    "DT_GROWTH",
    "INITIAL_DT",
    "LOG10_CUTOFF",
    "MISSING_ENTRY_TIME",
    "PubEntry",
    "PubTableConfig",
    "PurchaseEvent",
    "SeedState",
    "SimulationResult",
    "TIME_STEP_DIVISOR",
    "TheoryParameters",
    "UNCAPPED",
]
