"""Theory 7: two coupled currencies rho and rho2, sharing one q1 bonus."""

from __future__ import annotations

import math

from theory_sim.config.types import PubTableConfig
from theory_sim.domain.costs import ExponentialCost, FirstFreeCost
from theory_sim.domain.logmath import log10_add, safe_log10
from theory_sim.domain.upgrade import Upgrade
from theory_sim.domain.values import ExponentialValue, StepwiseValue
from theory_sim.simulation.engine import BuyEval, Simulation

FREE_BUY_DEPTH = 50.0
COAST_FREE_DISTANCE = 1.5

# Minimum distance to the goal below which buying no longer pays off.
COAST_LIMITS = {
    "q1": math.log10(8.0),
    "c5": math.log10(8.0),
    "c3": math.log10(20.0),
    "c4": math.log10(20.0),
    "c6": math.log10(2.0),
}

# Minimum cost gap to c6 for each upgrade to be worth buying.
RATIO_LIMITS = {
    "q1": math.log10(4.0),
    "c5": math.log10(4.0),
    "c3": 1.0,
    "c4": 1.0,
}

LOG_1_5 = math.log10(1.5)
LOG_0_5 = math.log10(0.5)


class T7(Simulation):
    name = "t7"
    uses_students = True
    buy_order = ("c6", "c5", "c4", "c3", "q1")
    accumulators = ("rho2", "drho13", "drho23")
    pub_table = PubTableConfig(
        grid=32,
        start=700 * 32,
        stop=800 * 32,
        end=800 * 32,
        min_step=40,
        max_step=128,
        students=500,
        margin=1.5,
    )

    def build_upgrades(self) -> dict[str, Upgrade]:
        return {
            "q1": Upgrade(FirstFreeCost(ExponentialCost.of(500.0, 1.51572)), StepwiseValue(2.0, 10)),
            "c3": Upgrade(ExponentialCost.of(1e5, 63.0), ExponentialValue.of(2.0)),
            "c4": Upgrade(ExponentialCost.of(10.0, 2.82), ExponentialValue.of(2.0)),
            "c5": Upgrade(ExponentialCost.of(1e8, 60.0), ExponentialValue.of(2.0)),
            "c6": Upgrade(ExponentialCost.of(100.0, 2.81), ExponentialValue.of(2.0)),
        }

    def compute_multiplier(self) -> float:
        return self.params.tau * 0.152 + 3.0 * safe_log10(self.params.scale / 20.0)

    def grow(self, dt: float) -> None:
        u = self.upgrades
        drho12 = LOG_1_5 + u["c3"].value + self.rho / 2.0
        drho22 = LOG_1_5 + u["c5"].value + self.rho2 / 2.0
        self.drho13 = min(
            LOG_0_5 + u["c6"].value + self.rho2 / 2.0 - self.rho / 2.0,
            self.drho13 + 2.0,
            self.rho + 2.0,
        )
        self.drho23 = min(
            LOG_0_5 + u["c6"].value + self.rho / 2.0 - self.rho2 / 2.0,
            self.drho23 + 2.0,
            self.rho2 + 2.0,
        )
        bonus = math.log10(dt) + u["q1"].value + self.multiplier
        self.rho = log10_add(self.rho, bonus + log10_add(drho12, self.drho13))
        self.rho2 = log10_add(self.rho2, bonus + log10_add(drho22, self.drho23))

    def eval_coast(self, name: str, cost: float) -> BuyEval:
        if cost < self.params.tau - FREE_BUY_DEPTH:
            return BuyEval.BUY
        dist = self.goal - cost
        if dist > COAST_FREE_DISTANCE:
            return BuyEval.BUY
        return BuyEval.SKIP if dist < COAST_LIMITS[name] else BuyEval.BUY

    def eval_ratio(self, name: str, cost: float) -> BuyEval:
        if cost < self.params.tau - FREE_BUY_DEPTH or name == "c6":
            return BuyEval.BUY
        dist = self.upgrades["c6"].cost - cost
        return BuyEval.SKIP if dist < RATIO_LIMITS[name] else BuyEval.BUY
