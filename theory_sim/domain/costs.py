"""Cost models: map an upgrade level to its log10 purchase price.

Models are immutable and compose by wrapping. ``FirstFreeCost`` shifts the
level down by one before delegating, ``CompositeCost`` switches to a second
model at a fixed cutoff level.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol


class CostModel(Protocol):
    """Anything that prices a level as a log10 amount."""

    def cost(self, level: int) -> float: ...


@dataclass(frozen=True)
class ExponentialCost:
    """``base * exp**level``, stored as log10 terms."""

    log_base: float
    log_exp: float

    @classmethod
    def of(cls, base: float, exp: float) -> ExponentialCost:
        """Build from plain (non-log) base and growth ratio."""
        return cls(math.log10(base), math.log10(exp))

    @classmethod
    def from_log_base(cls, log_base: float, exp: float) -> ExponentialCost:
        """Build from an already log10-scaled base, for bases beyond float range."""
        return cls(log_base, math.log10(exp))

    def cost(self, level: int) -> float:
        return self.log_base + self.log_exp * level


@dataclass(frozen=True)
class FirstFreeCost:
    """Level 1 costs what level 0 of the wrapped model costs.

    Undefined for level 0; callers must not evaluate it there.
    """

    model: CostModel

    def cost(self, level: int) -> float:
        return self.model.cost(level - 1)


@dataclass(frozen=True)
class CompositeCost:
    """``below`` for levels under ``cutoff``, ``above`` from the cutoff on.

    ``above`` is evaluated at ``level - cutoff``. Continuity at the cutoff is
    up to whoever picks the parameters.
    """

    below: CostModel
    above: CostModel
    cutoff: int

    def cost(self, level: int) -> float:
        if level < self.cutoff:
            return self.below.cost(level)
        return self.above.cost(level - self.cutoff)
