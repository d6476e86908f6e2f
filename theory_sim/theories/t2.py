"""Theory 2: two chains of four layered accumulators feeding rho."""

from __future__ import annotations

import math
from typing import ClassVar

from theory_sim.domain.costs import ExponentialCost, FirstFreeCost
from theory_sim.domain.logmath import log10_add, safe_log10
from theory_sim.domain.upgrade import Upgrade
from theory_sim.domain.values import StepwiseValue
from theory_sim.simulation.engine import BuyEval, Simulation, coast_band

LAYER_EXPONENT = 1.15
COAST_FREE_DISTANCE = 7.0

# (lower, upper) coast band by layer depth 1..4
COAST_BANDS = {
    1: (1.1, 2.0),
    2: (1.8, 3.0),
    3: (2.9, 4.1),
    4: (4.9, 6.1),
}

# Per-depth weight of ``level mod 10`` in the priority comparison.
PRIORITY_WEIGHTS = {1: 0.24, 2: 0.18, 3: 0.12, 4: 0.05}
PRIORITY_HORIZON = 8.0


def _depth(name: str) -> int:
    return int(name[-1])


class T2(Simulation):
    name = "t2"
    uses_students = True
    buy_order = ("r4", "r3", "r2", "r1", "q4", "q3", "q2", "q1")
    accumulators = (
        "q1_amount",
        "q2_amount",
        "q3_amount",
        "q4_amount",
        "r1_amount",
        "r2_amount",
        "r3_amount",
        "r4_amount",
    )
    record_margin = 9.0

    use_ratio_priority: ClassVar[bool] = False
    """Buy only the upgrade with the lowest level-adjusted cost.

    Disabled by default; with it off every upgrade that passes the coast
    check is bought.
    """

    def build_upgrades(self) -> dict[str, Upgrade]:
        stepwise = StepwiseValue(2.0, 10)
        return {
            "q1": Upgrade(FirstFreeCost(ExponentialCost.of(10.0, 2.0)), stepwise),
            "q2": Upgrade(ExponentialCost.of(5e3, 2.0), stepwise),
            "q3": Upgrade(ExponentialCost.of(3e25, 3.0), stepwise),
            "q4": Upgrade(ExponentialCost.of(8e50, 4.0), stepwise),
            "r1": Upgrade(ExponentialCost.of(2e6, 2.0), stepwise),
            "r2": Upgrade(ExponentialCost.of(3e9, 2.0), stepwise),
            "r3": Upgrade(ExponentialCost.of(4e25, 3.0), stepwise),
            "r4": Upgrade(ExponentialCost.of(5e50, 4.0), stepwise),
        }

    def compute_multiplier(self) -> float:
        return 3.0 * safe_log10(self.params.scale / 20.0) + 0.198 * self.params.tau - 2.0

    def grow(self, dt: float) -> None:
        logdt = math.log10(dt)
        u = self.upgrades
        for chain in ("q", "r"):
            for depth in range(1, 5):
                layer = f"{chain}{depth}_amount"
                inflow = u[f"{chain}{depth}"].value + logdt
                if depth < 4:
                    inflow += getattr(self, f"{chain}{depth + 1}_amount")
                setattr(self, layer, log10_add(getattr(self, layer), inflow))

        self.rho = log10_add(
            self.rho,
            self.q1_amount * LAYER_EXPONENT + self.r1_amount * LAYER_EXPONENT + self.multiplier + logdt,
        )

    def eval_coast(self, name: str, cost: float) -> BuyEval:
        dist = self.goal - cost
        if dist > COAST_FREE_DISTANCE:
            return BuyEval.BUY
        lower, upper = COAST_BANDS[_depth(name)]
        return coast_band(dist, lower, upper)

    def eval_ratio(self, name: str, cost: float) -> BuyEval:
        if not self.use_ratio_priority or self.goal - self.maxrho < PRIORITY_HORIZON:
            return BuyEval.BUY

        adjusted = {}
        for key in ("q1", "q2", "q3", "q4", "r1", "r2", "r3", "r4"):
            upgrade = self.upgrades[key]
            weight = PRIORITY_WEIGHTS[_depth(key)]
            adjusted[key] = upgrade.cost + math.log10(1.0 + weight * (upgrade.level % 10))
        # min() keeps the first of equal costs
        best = min(adjusted, key=adjusted.__getitem__)
        return BuyEval.BUY if best == name else BuyEval.SKIP

    def should_record(self) -> bool:
        return self.maxrho > self.goal - self.record_margin
