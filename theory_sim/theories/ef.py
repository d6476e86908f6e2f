"""Euler's formula: rho, plus real and imaginary currencies unlocked by milestones.

Milestones are earned at fixed points of ``max(maxrho, tau / 1.6)`` and are
distributed in order over five milestone groups. Group 0 unlocks the real
(b1, b2) and imaginary (c1, c2) currencies, group 1 unlocks the a-terms,
group 2 raises the a exponent and groups 3 and 4 raise the bases of b2 and
c2. Whenever a new milestone is earned every coasting cap is lifted.
"""

from __future__ import annotations

import logging
import math

from theory_sim.config.types import PubTableConfig
from theory_sim.domain.costs import ExponentialCost, FirstFreeCost
from theory_sim.domain.logmath import log10_add, safe_log10
from theory_sim.domain.upgrade import Upgrade
from theory_sim.domain.values import ExponentialValue, LinearValue, StepwiseValue
from theory_sim.simulation.engine import BuyEval, Simulation, coast_band

logger = logging.getLogger(__name__)

TAU_RATIO = 1.6
MILESTONE_POINTS = (10.0, 20.0, 30.0, 40.0, 50.0, 70.0, 90.0, 110.0, 130.0, 150.0, 250.0, 275.0, 300.0, 325.0)
MILESTONE_MAX = (2, 3, 5, 2, 2)
MILESTONE_CHECK_LIMIT = 375.0
"""Milestones are no longer re-evaluated once the next one lies beyond this."""

MAX_TDOT_LEVEL = 4
COAST_FREE_DISTANCE = 3.0
COAST_BANDS = {
    "q1": (0.6, 1.8),
    "q2": (0.2, 1.5),
    "a1": (0.3, 1.5),
}

# Each upgrade's (milestone group, required count).
UNLOCKS = {
    "b1": (0, 1),
    "b2": (0, 1),
    "c1": (0, 2),
    "c2": (0, 2),
    "a1": (1, 1),
    "a2": (1, 2),
    "a3": (1, 3),
}

CURRENCIES = {
    "b1": "re",
    "b2": "re",
    "a2": "re",
    "c1": "im",
    "c2": "im",
    "a3": "im",
}

B2_COST = ExponentialCost.of(100.0, 2.0)
C2_COST = ExponentialCost.of(100.0, 2.0)


def distribute_milestones(stage: int) -> tuple[int, ...]:
    """Fill the milestone groups in order up to their maxima."""
    counts = []
    for limit in MILESTONE_MAX:
        taken = min(limit, stage)
        counts.append(taken)
        stage -= taken
    return tuple(counts)


def next_milestone_point(rho: float) -> float:
    """First milestone point above ``rho``, or inf when all are reached."""
    for point in MILESTONE_POINTS:
        if rho < point:
            return point
    return math.inf


class EF(Simulation):
    name = "ef"
    buy_order = ("a3", "a2", "a1", "c2", "c1", "b2", "b1", "q2", "q1", "tdot")
    accumulators = ("re", "im", "tvar", "q")
    fork_log_depth = 25
    pub_table = PubTableConfig(
        grid=32,
        start=0,
        stop=5 * 32,
        end=375 * 32,
        min_step=8,
        max_step=175,
        tau_ratio=TAU_RATIO,
        margin=2.0,
    )

    def build_upgrades(self) -> dict[str, Upgrade]:
        growth = 2.0**2.2
        return {
            "tdot": Upgrade(ExponentialCost.of(1e6, 1e6), LinearValue(0.2, 0.2)),
            "q1": Upgrade(FirstFreeCost(ExponentialCost.of(10.0, 1.61328)), StepwiseValue(2.0, 10)),
            "q2": Upgrade(ExponentialCost.of(5.0, 60.0), ExponentialValue.of(2.0)),
            "b1": Upgrade(FirstFreeCost(ExponentialCost.of(20.0, 200.0)), StepwiseValue(2.0, 10, 1.0)),
            "b2": Upgrade(B2_COST, ExponentialValue.of(1.1)),
            "c1": Upgrade(FirstFreeCost(ExponentialCost.of(20.0, 200.0)), StepwiseValue(2.0, 10, 1.0)),
            "c2": Upgrade(C2_COST, ExponentialValue.of(1.1)),
            "a1": Upgrade(FirstFreeCost(ExponentialCost.of(2000.0, growth)), StepwiseValue(2.0, 10, 1.0)),
            "a2": Upgrade(ExponentialCost.of(500.0, growth), StepwiseValue(40.0, 10, 1.0)),
            "a3": Upgrade(ExponentialCost.of(500.0, growth), ExponentialValue.of(2.0)),
        }

    def reset_state(self) -> None:
        super().reset_state()
        self.milestones = (0, 0, 0, 0, 0)
        self.next_milestone_cost = math.inf

    def after_seed(self) -> None:
        self.update_milestones()

    def compute_multiplier(self) -> float:
        return self.params.tau * 0.09675

    def update_milestones(self) -> None:
        """Recount milestones and swap the b2/c2 value bases when they grow."""
        rho = max(self.maxrho, self.params.tau / TAU_RATIO)
        previous = self.milestones
        stage = sum(1 for point in MILESTONE_POINTS if rho >= point)
        if stage < len(MILESTONE_POINTS):
            self.next_milestone_cost = MILESTONE_POINTS[stage]
        else:
            self.next_milestone_cost = math.inf
        self.milestones = distribute_milestones(stage)

        if self.milestones[3] > previous[3]:
            self._rebase("b2", 1.1 + 0.01 * self.milestones[3])
        if self.milestones[4] > previous[4]:
            self._rebase("c2", 1.1 + 0.0125 * self.milestones[4])

    def _rebase(self, name: str, base: float) -> None:
        current = self.upgrades[name]
        self.upgrades[name] = Upgrade(current.cost_model, ExponentialValue.of(base), current.level)

    def grow(self, dt: float) -> None:
        u = self.upgrades
        ms = self.milestones
        logbonus = math.log10(dt) + self.multiplier

        self.q = log10_add(self.q, u["q1"].value + u["q2"].value + logbonus)
        self.tvar += dt * u["tdot"].value

        a = u["a1"].value
        if self.is_available("a2"):
            a += u["a2"].value
        if self.is_available("a3"):
            a += u["a3"].value
        a *= 1.0 + 0.1 * ms[2]

        if ms[0] >= 1:
            self.re = log10_add(
                self.re,
                logbonus + 2.0 * (u["b1"].value + u["b2"].value + safe_log10(abs(math.cos(self.tvar)))),
            )
        if ms[0] >= 2:
            self.im = log10_add(
                self.im,
                logbonus + 2.0 * (u["c1"].value + u["c2"].value + safe_log10(abs(math.sin(self.tvar)))),
            )

        t_term = math.log10(self.tvar) + 2.0 * self.q
        if ms[0] == 0:
            self.rho = log10_add(self.rho, logbonus + t_term / 2.0)
        elif ms[0] == 1:
            self.rho = log10_add(self.rho, logbonus + log10_add(t_term, self.re * 2.0) / 2.0)
        else:
            self.rho = log10_add(
                self.rho,
                logbonus + a + log10_add(t_term, log10_add(self.re * 2.0, self.im * 2.0)) / 2.0,
            )

    def after_tick(self) -> None:
        previous = self.next_milestone_cost
        if self.next_milestone_cost < MILESTONE_CHECK_LIMIT:
            self.update_milestones()
        if self.next_milestone_cost > previous:
            logger.debug("Milestone reached: next at %s (was %s)", self.next_milestone_cost, previous)
            self.caps.clear()

    def currency_of(self, name: str) -> str:
        return CURRENCIES.get(name, "rho")

    def is_available(self, name: str) -> bool:
        if name == "tdot":
            return self.upgrades["tdot"].level < MAX_TDOT_LEVEL
        if name in UNLOCKS:
            group, required = UNLOCKS[name]
            return self.milestones[group] >= required
        return True

    def eval_coast(self, name: str, cost: float) -> BuyEval:
        dist = min(self.goal, self.next_milestone_cost) - cost
        if dist > COAST_FREE_DISTANCE or name not in COAST_BANDS:
            return BuyEval.BUY
        return coast_band(dist, *COAST_BANDS[name])

    def eval_ratio(self, name: str, cost: float) -> BuyEval:
        u = self.upgrades
        recovery = self.maxrho < self.params.tau / TAU_RATIO
        early = self.milestones[1] < 2
        log5 = math.log10(5.0)

        if name == "q1":
            worth = cost + math.log10(10.0 + u["q1"].level % 10) < u["q2"].cost
        elif name in ("b1", "b2"):
            worth = cost + log5 < u["a2"].cost or early or recovery
        elif name in ("c1", "c2"):
            worth = cost + log5 < u["a3"].cost or early or recovery
        elif name == "a1":
            q2 = u["q2"]
            worth = (
                cost + math.log10(4.0 + (u["a1"].level % 10) / 2.0) < q2.cost
                or self.caps.get("q2", math.inf) <= q2.level
            )
        else:
            worth = True
        return BuyEval.BUY if worth else BuyEval.SKIP

    def should_record(self) -> bool:
        return self.maxrho > self.params.tau / TAU_RATIO - self.record_margin

    @classmethod
    def pub_step_bounds(cls, start: int, config: PubTableConfig) -> tuple[int, int]:
        """Early starts always publish past the first milestones."""
        if start >= 15 * config.grid:
            return super().pub_step_bounds(start, config)
        low = max(1, 10 * config.grid - start)
        high = max(low, 13 * config.grid - start)
        return low, high

    @classmethod
    def pub_base_goal(cls, start: int, end: int, config: PubTableConfig) -> float:
        """Keep the non-coasting run below the next milestone."""
        milestone = next_milestone_point(config.rho_of(start))
        return min(config.rho_of(end), milestone) - config.margin
