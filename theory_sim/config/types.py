"""Configuration dataclasses and result records for simulation runs.

All frozen dataclasses that parameterise a theory run, seed a run from a
saved position, describe its outcome, or configure a publication-table build
live here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

__all__ = [
    "PubEntry",
    "PubTableConfig",
    "PurchaseEvent",
    "SeedState",
    "SimulationResult",
    "TheoryParameters",
]

# ---------------------------------------------------------------------------
# Run inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TheoryParameters:
    """Immutable per-run configuration shared by a simulation and its forks.

    ``tau`` and ``rho0`` are log10 values; ``scale`` is the student count.
    """

    tau: float
    scale: int = 0
    rho0: float = 0.0

    def __post_init__(self) -> None:
        if isinstance(self.scale, bool) or not isinstance(self.scale, int):
            raise ValueError("scale must be an integer")
        if self.scale < 0:
            raise ValueError("scale must be >= 0")


@dataclass(frozen=True)
class SeedState:
    """Explicit starting position used to resume a run near its goal.

    ``levels`` maps upgrade names to levels, ``accumulators`` maps accumulator
    names to log10 values and ``settings`` carries theory-specific scalars.
    """

    levels: Mapping[str, int] = field(default_factory=dict)
    accumulators: Mapping[str, float] = field(default_factory=dict)
    settings: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name, level in self.levels.items():
            if isinstance(level, bool) or not isinstance(level, int) or level < 0:
                raise ValueError(f"level for {name} must be a non-negative integer")


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PurchaseEvent:
    """One recorded upgrade purchase."""

    upgrade: str
    level: int
    time: float

    def __str__(self) -> str:
        from theory_sim.domain.logmath import format_duration

        return f"{self.upgrade}: lvl {self.level}, {format_duration(self.time)}"


@dataclass(frozen=True)
class SimulationResult:
    """Elapsed time of a completed run and, optionally, its purchase log."""

    elapsed: float
    purchases: tuple[PurchaseEvent, ...] | None = None

    def last_purchase_level(self, upgrade: str) -> int | None:
        """Return the last recorded level bought for *upgrade*, if any."""
        for event in reversed(self.purchases or ()):
            if event.upgrade == upgrade:
                return event.level
        return None


# ---------------------------------------------------------------------------
# Publication tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PubEntry:
    """Recommended next publication index and cumulative remaining time."""

    next: int
    t: float


@dataclass(frozen=True)
class PubTableConfig:
    """Index range and search window for building a publication table.

    Indices are ``round(rho * grid)``. Start indices in ``[start, stop)`` are
    rebuilt from ``stop - 1`` down to ``start``; each tries publishing at
    ``start + min_step .. start + max_step`` (clipped to ``end``).
    """

    grid: int
    start: int
    stop: int
    end: int
    min_step: int
    max_step: int
    tau_ratio: float = 1.0
    students: int = 0
    margin: float = 0.0

    def __post_init__(self) -> None:
        if self.grid < 1:
            raise ValueError("grid must be >= 1")
        if self.start < 0:
            raise ValueError("start must be >= 0")
        if self.stop <= self.start:
            raise ValueError("stop must be > start")
        if self.end < self.stop:
            raise ValueError("end must be >= stop")
        if self.min_step < 1:
            raise ValueError("min_step must be >= 1")
        if self.max_step < self.min_step:
            raise ValueError("max_step must be >= min_step")
        if self.tau_ratio <= 0.0:
            raise ValueError("tau_ratio must be > 0")
        if self.students < 0:
            raise ValueError("students must be >= 0")
        if self.margin < 0.0:
            raise ValueError("margin must be >= 0")

    def rho_of(self, index: int) -> float:
        """Return the log10 rho represented by a table index."""
        return index / self.grid

    def index_of(self, rho: float) -> int:
        """Return the table index nearest to a log10 rho."""
        return int(round(rho * self.grid))
