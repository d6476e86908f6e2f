"""Tests for the Upgrade container."""

from __future__ import annotations

from theory_sim.domain.costs import ExponentialCost
from theory_sim.domain.upgrade import Upgrade
from theory_sim.domain.values import ExponentialValue


def _upgrade(level: int = 1) -> Upgrade:
    return Upgrade(ExponentialCost.of(10.0, 2.0), ExponentialValue.of(2.0), level)


def test_defaults_to_level_one() -> None:
    upgrade = Upgrade(ExponentialCost.of(10.0, 2.0), ExponentialValue.of(2.0))
    assert upgrade.level == 1
    assert upgrade.cost == ExponentialCost.of(10.0, 2.0).cost(1)


def test_buy_matches_set_to_next_level() -> None:
    bought = _upgrade(4)
    bought.buy()
    assigned = _upgrade()
    assigned.set(5)
    assert bought.level == assigned.level == 5
    assert bought.cost == assigned.cost
    assert bought.value == assigned.value


def test_clone_is_independent() -> None:
    original = _upgrade(3)
    copy = original.clone()
    copy.buy()
    assert original.level == 3
    assert copy.level == 4
    assert copy.cost_model is original.cost_model
