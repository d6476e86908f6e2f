"""Theory 1: rho grows with q1*q2 and two rho-dependent terms c3, c4."""

from __future__ import annotations

import math

from theory_sim.config.types import PubTableConfig
from theory_sim.domain.costs import ExponentialCost, FirstFreeCost
from theory_sim.domain.logmath import log10_add, safe_log10
from theory_sim.domain.upgrade import Upgrade
from theory_sim.domain.values import ExponentialValue, StepwiseValue
from theory_sim.simulation.engine import BuyEval, Simulation

FREE_BUY_DEPTH = 50.0
"""Upgrades costing this many orders below tau are bought without evaluation."""

WEIGHT_EXPONENT = 0.3
PRIORITY_TOLERANCE = 0.0001


def _weighted_cost(cost: float, multiplier: float) -> float:
    """Cost adjusted by how much the upgrade's multiplier shortens the run."""
    if multiplier <= 1.0:
        return math.inf
    root = multiplier ** (1.0 / WEIGHT_EXPONENT)
    gain = (
        -1.0 / (multiplier * (root - 1.0) ** (1.0 - WEIGHT_EXPONENT))
        + 1.0 / (1.0 - 1.0 / root) ** (1.0 - WEIGHT_EXPONENT)
    ) / (1.0 - 1.0 / multiplier)
    return cost + (1.0 / (1.0 - WEIGHT_EXPONENT)) * math.log10(gain)


class T1(Simulation):
    name = "t1"
    uses_students = True
    buy_order = ("c4", "c3", "q2", "q1")
    pub_table = PubTableConfig(
        grid=32,
        start=800 * 32,
        stop=900 * 32,
        end=900 * 32,
        min_step=40,
        max_step=150,
        students=500,
        margin=6.0,
    )

    def build_upgrades(self) -> dict[str, Upgrade]:
        return {
            "q1": Upgrade(FirstFreeCost(ExponentialCost.of(5.0, 2.0)), StepwiseValue(2.0, 10)),
            "q2": Upgrade(ExponentialCost.of(100.0, 10.0), ExponentialValue.of(2.0)),
            "c3": Upgrade(ExponentialCost.of(1e4, 10.0**4.5), ExponentialValue.of(10.0)),
            "c4": Upgrade(ExponentialCost.of(1e10, 1e8), ExponentialValue.of(10.0)),
        }

    def compute_multiplier(self) -> float:
        return (
            self.params.tau * 0.164
            - math.log10(3.0)
            + 3.0 * safe_log10(self.params.scale / 20.0)
        )

    def grow(self, dt: float) -> None:
        u = self.upgrades
        c_terms = log10_add(u["c3"].value + self.rho * 0.2, u["c4"].value + self.rho * 0.3)
        self.rho = log10_add(
            self.rho,
            c_terms + u["q1"].value + u["q2"].value + self.multiplier + math.log10(dt),
        )

    def eval_ratio(self, name: str, cost: float) -> BuyEval:
        if cost < self.params.tau - FREE_BUY_DEPTH:
            return BuyEval.BUY

        u = self.upgrades
        c3_term = u["c3"].value + 0.2 * self.rho
        c4_term = u["c4"].value + 0.3 * self.rho
        term_sum = log10_add(c3_term, c4_term)
        c3_ratio = 10.0 ** (c3_term - term_sum)
        c4_ratio = 10.0 ** (c4_term - term_sum)
        q1_mod = u["q1"].level % 10
        multipliers = {
            "q1": (11.0 + q1_mod) / (10.0 + q1_mod),
            "q2": 2.0,
            "c3": 10.0 * c3_ratio + c4_ratio,
            "c4": c3_ratio + 10.0 * c4_ratio,
        }
        weighted = {key: _weighted_cost(u[key].cost, m) for key, m in multipliers.items()}

        if self.coasting and weighted[name] > self.goal:
            return BuyEval.SKIP

        payback = multipliers[name] ** (1.0 / WEIGHT_EXPONENT)
        if (
            weighted[name] < min(weighted.values()) + PRIORITY_TOLERANCE
            and self.rho > cost + math.log10(1.0 / (1.0 - 1.0 / payback))
        ):
            return BuyEval.BUY
        return BuyEval.SKIP
