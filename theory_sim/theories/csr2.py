"""Convergents to sqrt(2): q grows with the error term of the n-th convergent."""

from __future__ import annotations

import math

from theory_sim.config.types import PubTableConfig
from theory_sim.domain.costs import ExponentialCost, FirstFreeCost
from theory_sim.domain.logmath import log10_add
from theory_sim.domain.upgrade import Upgrade
from theory_sim.domain.values import ExponentialValue, LinearValue, StepwiseValue
from theory_sim.simulation.engine import BuyEval, Simulation, coast_band

COAST_FREE_DISTANCE = 3.0
COAST_BANDS = {
    "q1": (0.65, 1.45),
    "q2": (0.15, 0.5),
    "c1": (0.85, 1.65),
    "n": (0.0, 1.0),
    "c2": (0.0, 1.0),
}

SQRT8 = math.sqrt(8.0)


def convergent_error(n: float) -> float:
    """log10 of the inverse error of the n-th convergent to sqrt(2)."""
    return n * math.log10(SQRT8 + 3.0) - math.log10(SQRT8)


class CSR2(Simulation):
    name = "csr2"
    buy_order = ("c2", "n", "c1", "q2", "q1")
    accumulators = ("q",)
    pub_table = PubTableConfig(
        grid=16,
        start=500 * 16,
        stop=700 * 16,
        end=1500 * 16,
        min_step=8,
        max_step=80,
        tau_ratio=0.4,
        margin=1.8,
    )

    def build_upgrades(self) -> dict[str, Upgrade]:
        return {
            "q1": Upgrade(FirstFreeCost(ExponentialCost.of(10.0, 5.0)), StepwiseValue(2.0, 10)),
            "q2": Upgrade(ExponentialCost.of(15.0, 128.0), ExponentialValue.of(2.0)),
            "c1": Upgrade(ExponentialCost.of(1e6, 16.0), StepwiseValue(2.0, 10)),
            "n": Upgrade(ExponentialCost.of(50.0, 256.0**3.346), LinearValue(1.0, 1.0)),
            "c2": Upgrade(ExponentialCost.of(1e3, 10.0**5.65), ExponentialValue.of(2.0)),
        }

    def compute_multiplier(self) -> float:
        return self.params.tau * 0.55075 - math.log10(200.0)

    def grow(self, dt: float) -> None:
        u = self.upgrades
        bonus = self.multiplier + math.log10(dt)
        error = convergent_error(u["n"].value + u["c2"].level)
        self.q = log10_add(self.q, u["c1"].value + 2.0 * u["c2"].value + error + bonus)
        self.rho = log10_add(self.rho, u["q1"].value * 1.15 + u["q2"].value + self.q + bonus)

    def eval_coast(self, name: str, cost: float) -> BuyEval:
        dist = self.goal - cost
        if dist > COAST_FREE_DISTANCE:
            return BuyEval.BUY
        return coast_band(dist, *COAST_BANDS[name])

    def eval_ratio(self, name: str, cost: float) -> BuyEval:
        u = self.upgrades
        if name == "q1":
            worth = cost + math.log10(7.0 + u["q1"].level % 10) < min(
                u["q2"].cost, u["n"].cost, u["c2"].cost
            )
        elif name == "q2":
            worth = cost + math.log10(1.8) < u["c2"].cost
        elif name == "c1":
            worth = cost + math.log10(15.0 + u["c1"].level % 10) < min(
                u["q2"].cost, u["n"].cost, u["c2"].cost
            )
        elif name == "n":
            worth = cost + math.log10(1.2) < u["c2"].cost
        else:
            worth = True
        return BuyEval.BUY if worth else BuyEval.SKIP

    def should_record(self) -> bool:
        return self.maxrho > self.params.tau * 2.5 - 3.0
