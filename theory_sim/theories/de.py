"""Differential equations: x grows towards a cap that rho pays to raise.

This theory never forks. Purchases are decided by ratio checks against the
next cap (``max_x``) purchase, or the goal when that comes first.
"""

from __future__ import annotations

import math

from theory_sim.config.types import PubTableConfig
from theory_sim.domain.costs import CompositeCost, ExponentialCost, FirstFreeCost
from theory_sim.domain.logmath import log10_add, safe_log10
from theory_sim.domain.upgrade import Upgrade
from theory_sim.domain.values import ExponentialValue, ScaledValue, StepwiseValue
from theory_sim.simulation.engine import BuyEval, Simulation

LOG_E = math.log10(math.e)
LN_10 = math.log(10.0)
LOG_2 = math.log10(2.0)
EARLY_A0_SECONDS = 60.0


class DE(Simulation):
    name = "de"
    buy_order = ("max_x", "a2", "a1", "a0", "m", "n")
    accumulators = ("tvar", "x", "q")
    ddt = 1.00001
    pub_table = PubTableConfig(
        grid=16,
        start=900 * 16,
        stop=950 * 16,
        end=1050 * 16,
        min_step=8,
        max_step=6 * 16 + 8,
        tau_ratio=0.4,
        margin=1.8,
    )

    def build_upgrades(self) -> dict[str, Upgrade]:
        return {
            "n": Upgrade(ExponentialCost.of(200.0, 2.2), ExponentialValue.of(2.0**0.3)),
            "m": Upgrade(
                ExponentialCost.from_log_base(200.0, 1000.0),
                ExponentialValue.from_log_base(LOG_2, -256.0 * LOG_2),
            ),
            "a0": Upgrade(
                FirstFreeCost(
                    CompositeCost(
                        ExponentialCost.of(3.0, 1.4),
                        ExponentialCost.from_log_base(640.0, 5.0),
                        4377,
                    )
                ),
                StepwiseValue(2.2, 5),
            ),
            "a1": Upgrade(ExponentialCost.of(50.0, 1.74), StepwiseValue(3.0, 7)),
            "a2": Upgrade(ExponentialCost.of(1e85, 20.0), ScaledValue(StepwiseValue(1.5, 11), -1.0)),
            "max_x": Upgrade(
                CompositeCost(
                    ExponentialCost.of(1e7, 2.0**12),
                    ExponentialCost.of(1e101, 2.0**19.5),
                    26,
                ),
                ExponentialValue.of(24.5, 1024.0),
            ),
        }

    def compute_multiplier(self) -> float:
        return self.params.tau * 0.4 - math.log10(4.0)

    def grow(self, dt: float) -> None:
        u = self.upgrades
        logdt = math.log10(dt)
        vn = u["n"].value * 1.2
        va0 = u["a0"].value * 3.0

        self.tvar = log10_add(self.tvar, self.multiplier + logdt)
        self.x = log10_add(
            self.x,
            u["n"].value + safe_log10(log10_add(LOG_E, va0 - vn) * LN_10) + logdt,
        )
        self.x = min(self.x, u["max_x"].value)
        self.q = log10_add(self.q, u["a1"].value + self.x + u["m"].value - self.tvar + logdt)

        rhodot = log10_add(LOG_2 + u["a1"].value + self.x, u["a0"].value) + u["n"].value + 0.1 * self.q
        self.rho = log10_add(self.rho, rhodot + self.multiplier + logdt)

    def eval_ratio(self, name: str, cost: float) -> BuyEval:
        u = self.upgrades
        next_coast = u["max_x"].cost
        if self.coasting:
            next_coast = min(next_coast, self.goal)

        if name == "n":
            worth = cost + math.log10(5.0) < next_coast
        elif name == "m":
            worth = cost + 1.0 < next_coast and self.maxrho * 0.4 < self.params.tau
        elif name == "a0":
            worth = self.t < EARLY_A0_SECONDS
        elif name == "a1":
            worth = cost + math.log10(5 + u["a1"].level % 7) < next_coast
        elif name == "a2":
            worth = False
        else:
            worth = True
        return BuyEval.BUY if worth else BuyEval.SKIP

    def should_record(self) -> bool:
        return self.maxrho > self.params.tau * 2.5 - self.record_margin
