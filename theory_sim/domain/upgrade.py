"""Purchasable upgrade: a cost model, a value model and a current level."""

from __future__ import annotations

from theory_sim.domain.costs import CostModel
from theory_sim.domain.values import ValueModel


class Upgrade:
    """Level-gated contributor to growth with cached cost and value.

    ``buy`` and ``set`` are the only ways to change the level; both refresh
    the cached cost and value. Affordability is the caller's concern.
    """

    __slots__ = ("cost_model", "value_model", "_level", "_cost", "_value")

    def __init__(self, cost_model: CostModel, value_model: ValueModel, level: int = 1) -> None:
        self.cost_model = cost_model
        self.value_model = value_model
        self.set(level)

    @property
    def level(self) -> int:
        return self._level

    @property
    def cost(self) -> float:
        return self._cost

    @property
    def value(self) -> float:
        return self._value

    def buy(self) -> None:
        self.set(self._level + 1)

    def set(self, level: int) -> None:
        self._level = level
        self._cost = self.cost_model.cost(level)
        self._value = self.value_model.value(level)

    def clone(self) -> Upgrade:
        """Independent upgrade with the same models at the same level."""
        return Upgrade(self.cost_model, self.value_model, self._level)

    def __repr__(self) -> str:
        return f"Upgrade(level={self._level}, cost={self._cost:.4f}, value={self._value:.4f})"
