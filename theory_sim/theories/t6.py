"""Theory 6: rho is an integral of q and r, with tolerance-scaled ratio forks.

The ratio checks compare the cost of the candidate against the costs of the
other upgrades. Each comparison yields BUY, FORK or SKIP and the verdict is
the worst of them (any SKIP wins, then any FORK). The comparison windows
widen with ``tol`` scaled by how far the run has progressed towards its goal.
"""

from __future__ import annotations

import math

from theory_sim.domain.costs import ExponentialCost, FirstFreeCost
from theory_sim.domain.logmath import log10_add, log10_sub, safe_log10
from theory_sim.domain.upgrade import Upgrade
from theory_sim.domain.values import ExponentialValue, StepwiseValue
from theory_sim.simulation.engine import BuyEval, Simulation

DEFAULT_TOLERANCE = 1.0
SCALE_START = -2.0
SCALE_END = 2.0
COAST_FREE_DISTANCE = 2.0


def ratio_band(ratio: float, lower: float, upper: float) -> BuyEval:
    """BUY at or above ``upper``, FORK strictly between, SKIP at or below ``lower``."""
    if ratio >= upper:
        return BuyEval.BUY
    if ratio > lower:
        return BuyEval.FORK
    return BuyEval.SKIP


def _combine(evals: list[BuyEval]) -> BuyEval:
    if BuyEval.SKIP in evals:
        return BuyEval.SKIP
    if BuyEval.FORK in evals:
        return BuyEval.FORK
    return BuyEval.BUY


class T6(Simulation):
    name = "t6"
    uses_students = True
    buy_order = ("c5", "r2", "r1", "q2", "q1")
    accumulators = ("q", "r")
    settings = ("tol",)
    fork_log_depth = 3

    def build_upgrades(self) -> dict[str, Upgrade]:
        return {
            "q1": Upgrade(FirstFreeCost(ExponentialCost.of(15.0, 3.0)), StepwiseValue(2.0, 10)),
            "q2": Upgrade(ExponentialCost.of(500.0, 100.0), ExponentialValue.of(2.0)),
            "r1": Upgrade(ExponentialCost.of(1e25, 1e5), StepwiseValue(2.0, 10)),
            "r2": Upgrade(ExponentialCost.of(1e30, 1e10), ExponentialValue.of(2.0)),
            "c1": Upgrade(ExponentialCost.of(10.0, 2.0), StepwiseValue(2.0, 10)),
            "c2": Upgrade(ExponentialCost.of(100.0, 5.0), ExponentialValue.of(2.0)),
            "c5": Upgrade(ExponentialCost.of(15.0, 3.9), ExponentialValue.of(2.0)),
        }

    def reset_state(self) -> None:
        super().reset_state()
        self.tol = DEFAULT_TOLERANCE

    def compute_multiplier(self) -> float:
        return 3.0 * safe_log10(self.params.scale / 20.0) + 0.196 * self.params.tau - math.log10(50.0)

    def pub_progress(self) -> float:
        """Fraction of the way from just below tau to just below the goal."""
        rho_start = self.params.tau + SCALE_START
        rho_end = self.goal - SCALE_END
        if self.maxrho <= rho_start:
            return 0.0
        if self.maxrho >= rho_end:
            return 1.0
        return (self.maxrho - rho_start) / (rho_end - rho_start)

    def integral(self) -> float:
        u = self.upgrades
        term1 = u["c1"].value * 1.15 + u["c2"].value + self.q + self.r
        term2 = u["c5"].value + self.q + 2.0 * self.r - math.log10(2.0)
        return self.multiplier + log10_add(term1, term2)

    def grow(self, dt: float) -> None:
        logdt = math.log10(dt)
        u = self.upgrades
        constant = log10_sub(self.integral(), self.rho)
        self.q = log10_add(self.q, u["q1"].value + u["q2"].value + logdt)
        self.r = log10_add(self.r, u["r1"].value + u["r2"].value + logdt - 3.0)
        new_rho = self.integral()
        self.rho = log10_sub(new_rho, min(new_rho, constant))

    def eval_coast(self, name: str, cost: float) -> BuyEval:
        dist = self.goal - cost
        if dist > COAST_FREE_DISTANCE:
            return BuyEval.BUY
        if name in ("q1", "r1"):
            return BuyEval.SKIP if dist < math.log10(5.0) else BuyEval.FORK
        if name in ("q2", "r2"):
            return BuyEval.SKIP if dist < math.log10(2.0) else BuyEval.FORK
        if name == "c5":
            if dist < math.log10(1.5):
                return BuyEval.SKIP
            if dist < math.log10(2.5):
                return BuyEval.FORK
            return BuyEval.BUY
        return BuyEval.SKIP

    def eval_ratio(self, name: str, cost: float) -> BuyEval:
        prog = self.pub_progress()
        tol = self.tol * prog
        cost_of = {key: upgrade.cost for key, upgrade in self.upgrades.items()}

        if name == "q1":
            mod10 = self.upgrades["q1"].level % 10
            base = math.log10(7.0 + mod10)
            c5_base = math.log10(5.0 + 0.5 * mod10)
            return _combine([
                ratio_band(cost_of["q2"] - cost, max(base - 0.1 * tol, 0.0), base + 0.25 * tol),
                ratio_band(cost_of["r2"] - cost, max(base - 0.05 * tol, 0.0), base + 0.6 * tol),
                ratio_band(
                    cost_of["c5"] - cost,
                    max(c5_base - (0.4 - 0.3 * prog**2) * tol, 0.0),
                    c5_base + 0.35 * prog**2 * tol,
                ),
            ])

        if name == "q2":
            evals = [ratio_band(cost_of["r2"] - cost, 0.1 - 0.1 * tol, 0.1 + 0.2 * tol)]
            if "c5" not in self.skipped and prog >= 0.7:
                evals.append(ratio_band(cost_of["c5"] - cost, 0.0, 0.5 * tol * prog))
            return _combine(evals)

        if name == "r1":
            mod10 = self.upgrades["r1"].level % 10
            base = math.log10(3.0 + 0.5 * mod10)
            return _combine([
                ratio_band(cost_of["q2"] - cost, max(base - 0.1 * tol, 0.0), base + 0.1 * tol),
                BuyEval.BUY if cost_of["r2"] + 1.0 > cost else BuyEval.SKIP,
                ratio_band(
                    cost_of["c5"] - cost,
                    max(base - (0.25 + 0.25 * prog**2) * tol, 0.0),
                    base + 0.25 * prog**2 * tol,
                ),
            ])

        if name == "c5":
            evals = [ratio_band(cost_of["r2"] - cost, 0.0, 0.3 * tol)]
            if "q2" not in self.skipped and prog <= 0.7:
                evals.insert(0, ratio_band(cost_of["q2"] - cost, 0.0, 0.15 * tol))
            return _combine(evals)

        return BuyEval.BUY
