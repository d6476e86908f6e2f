"""Value models: map an upgrade level to its contribution to growth.

Most models return a log10 amount. ``LinearValue`` is the exception: it
returns the plain number ``base * level + offset``, which theories use
directly as a multiplier or exponent.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

from theory_sim.domain.logmath import log10_add, log10_sub


class ValueModel(Protocol):
    """Anything that values a level."""

    def value(self, level: int) -> float: ...


@dataclass(frozen=True)
class EmptyValue:
    """Upgrade whose level is read directly by the theory; value is always 0."""

    def value(self, level: int) -> float:
        return 0.0


@dataclass(frozen=True)
class ExponentialValue:
    """``offset * base**level``, stored as log10 terms."""

    log_base: float
    log_offset: float = 0.0

    @classmethod
    def of(cls, base: float, offset: float = 1.0) -> ExponentialValue:
        return cls(math.log10(base), math.log10(offset))

    @classmethod
    def from_log_base(cls, log_base: float, log_offset: float = 0.0) -> ExponentialValue:
        return cls(log_base, log_offset)

    def value(self, level: int) -> float:
        return self.log_offset + self.log_base * level


@dataclass(frozen=True)
class LinearValue:
    """Plain ``base * level + offset`` (not a log10 amount)."""

    base: float
    offset: float

    def value(self, level: int) -> float:
        return self.base * level + self.offset


@dataclass(frozen=True)
class StepwiseValue:
    """Sum of per-level increments that grow by ``exp`` every ``length`` levels.

    Each level adds the current increment; after every ``length`` levels the
    increment is multiplied by ``exp``. The sum has the closed form
    ``(d + level mod length) * exp**(level div length) - d`` with
    ``d = length / (exp - 1)``. A non-zero ``offset`` is added to that sum.
    """

    exp: float
    length: int
    offset: float = 0.0

    def __post_init__(self) -> None:
        if self.length < 1:
            raise ValueError("length must be >= 1")
        if self.exp <= 1.0:
            raise ValueError("exp must be > 1")

    def value(self, level: int) -> float:
        cycles = level // self.length
        remainder = level - cycles * self.length
        d = self.length / (self.exp - 1.0)
        total = log10_sub(math.log10(d + remainder) + math.log10(self.exp) * cycles, math.log10(d))
        if self.offset:
            return log10_add(total, math.log10(self.offset))
        return total


@dataclass(frozen=True)
class ScaledValue:
    """Another model's value shifted by a constant log10 amount."""

    inner: ValueModel
    shift: float

    def value(self, level: int) -> float:
        return self.inner.value(level) + self.shift
