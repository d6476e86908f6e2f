"""Fractal patterns: growth driven by cell counts of three toothpick-like patterns.

T(n), U(n) and S(n) count the cells of the patterns after ``n`` stages. They
depend only on the level of ``n``, so they are cached and refreshed after
every ``n`` purchase.
"""

from __future__ import annotations

import functools
import math
from dataclasses import dataclass

from theory_sim.config.types import PubTableConfig
from theory_sim.domain.costs import CompositeCost, ExponentialCost, FirstFreeCost
from theory_sim.domain.logmath import log10_add, log10_sub
from theory_sim.domain.upgrade import Upgrade
from theory_sim.domain.values import EmptyValue, ExponentialValue, StepwiseValue
from theory_sim.simulation.engine import BuyEval, Simulation, coast_band

TAU_RATIO = 0.3
MAX_STAGE = 20000
R_MILESTONE_RHO = 1500.0
COAST_FREE_DISTANCE = 3.0
COAST_BANDS = {
    "c1": (0.3, 1.5),
    "c2": (0.15, 0.5),
    "q1": (0.3, 1.5),
    "q2": (0.3, 1.0),
    "r1": (0.1, 1.5),
    "n": (0.0, 1.5),
}

LOG_2 = math.log10(2.0)
LOG_3 = math.log10(3.0)


def stepwise_sum(level: int, base: int, length: int) -> int:
    """Total of a step sequence whose increment grows by ``base`` every ``length`` levels."""
    if level <= length:
        return level
    level -= length
    cycles = level // length
    modpart = level - cycles * length
    return int(base * (cycles + 1) * (length * cycles / 2.0 + modpart)) + length + level


@functools.lru_cache(maxsize=None)
def pattern_t(n: int) -> float:
    """T(n): cells of the toothpick pattern after n stages."""
    if n == 0:
        return 0.0
    log2n = n.bit_length() - 1
    if n & (n - 1) == 0:
        return (1.0 + 2.0 ** (2 * log2n + 1)) / 3.0
    i = n - (1 << log2n)
    return pattern_t(1 << log2n) + 2.0 * pattern_t(i) + pattern_t(i + 1) - 1.0


@functools.lru_cache(maxsize=None)
def pattern_v(n: int) -> float:
    if n == 0:
        return 0.0
    log2n = n.bit_length() - 1
    if n & (n - 1) == 0:
        return 2.0 ** (2 * log2n)
    return 2.0 ** (2 * log2n) + 3.0 * pattern_v(n - (1 << log2n))


def pattern_u(n: int) -> float:
    """U(n): cells of the square pattern after n stages."""
    return (4.0 / 3.0) * pattern_v(n) - 1.0 / 3.0


def pattern_s(n: int) -> float:
    """log10 S(n): cells of the triangle pattern after n stages."""
    return math.log10(1.0 / 3.0) + log10_sub(LOG_2 + LOG_3 * n, LOG_3)


def approx_q2(level: int) -> float:
    return math.log10(1.0 / 6.0) + log10_add(LOG_2 * 2.0 * (level + 1), LOG_2)


@dataclass(frozen=True)
class PenalisedStepwiseValue:
    """Stepwise value divided by ``1 + numerator / level**power``."""

    inner: StepwiseValue
    numerator: float
    power: float

    def value(self, level: int) -> float:
        if level == 0:
            return -math.inf
        return self.inner.value(level) - math.log10(1.0 + self.numerator / level**self.power)


@dataclass(frozen=True)
class SExponentValue:
    """Plain exponent bonus of ``s``; the per-level step changes at 32 and 39."""

    def value(self, level: int) -> float:
        if level < 32:
            return 1.0 + level * 0.15
        if level < 39:
            return self.value(31) + 0.15 + (level - 32) * 0.2
        return self.value(38) + 0.2 + (level - 39) * 0.15


@dataclass(frozen=True)
class PatternCache:
    n: int = 1
    tn: float = 0.0
    un: float = 0.0
    sn: float = 0.0

    @classmethod
    def for_level(cls, level: int) -> PatternCache:
        n = min(
            MAX_STAGE,
            1
            + stepwise_sum(level, 1, 40)
            + stepwise_sum(max(level - 30, 0), 1, 35) * 2
            + math.floor(stepwise_sum(max(level - 69, 0), 1, 30) * 2.4 + 0.001),
        )
        return cls(
            n=n,
            tn=pattern_t(n),
            un=pattern_u(n),
            sn=pattern_s(math.floor(math.sqrt(n + 0.001))),
        )


class FP(Simulation):
    name = "fp"
    buy_order = ("s", "n", "r1", "q2", "q1", "c2", "c1")
    accumulators = ("tvar", "q", "r")
    fork_log_depth = 10
    pub_table = PubTableConfig(
        grid=8,
        start=1200 * 8,
        stop=1300 * 8,
        end=2000 * 8,
        min_step=40,
        max_step=350,
        tau_ratio=TAU_RATIO,
        margin=1.8,
    )

    def build_upgrades(self) -> dict[str, Upgrade]:
        return {
            "c1": Upgrade(FirstFreeCost(ExponentialCost.of(10.0, 1.4)), StepwiseValue(150.0, 100)),
            "c2": Upgrade(
                CompositeCost(ExponentialCost.of(1e15, 40.0), ExponentialCost.of(1e37, 16.42), 15),
                ExponentialValue.of(2.0),
            ),
            "q1": Upgrade(
                FirstFreeCost(ExponentialCost.of(1e35, 12.0)),
                PenalisedStepwiseValue(StepwiseValue(10.0, 10), 1000.0, 1.5),
            ),
            "q2": Upgrade(ExponentialCost.of(1e76, 1e3), EmptyValue()),
            "r1": Upgrade(
                FirstFreeCost(
                    CompositeCost(
                        ExponentialCost.of(1e80, 25.0),
                        ExponentialCost.from_log_base(480.0, 150.0),
                        285,
                    )
                ),
                PenalisedStepwiseValue(StepwiseValue(2.0, 5), 1e9, 4),
            ),
            "n": Upgrade(ExponentialCost.of(1e4, 3e6), EmptyValue()),
            "s": Upgrade(ExponentialCost.from_log_base(730.0, 1e30), SExponentValue()),
        }

    def reset_state(self) -> None:
        super().reset_state()
        self.cache = PatternCache()
        self.cache_stale = True
        self.rmilestone = False

    def compute_multiplier(self) -> float:
        return self.params.tau * 0.331 + math.log10(5.0)

    def grow(self, dt: float) -> None:
        if max(self.rho, self.params.tau / TAU_RATIO) >= R_MILESTONE_RHO:
            self.rmilestone = True
        if self.cache_stale:
            self.cache = PatternCache.for_level(self.upgrades["n"].level)
            self.cache_stale = False

        u = self.upgrades
        cache = self.cache
        logdt = math.log10(dt)
        log_tn = math.log10(cache.tn)
        log_un = math.log10(cache.un)

        self.tvar += dt
        self.q = log10_add(
            self.q,
            u["q1"].value + approx_q2(u["q2"].level) + log_un * (7.0 + u["s"].value) - 3.0 + logdt,
        )
        if self.rmilestone:
            r_exponent = math.log10(cache.un * 2.0) / 2.0
        else:
            r_exponent = math.log10(cache.n)
        self.r = log10_add(
            self.r,
            u["r1"].value + (log_tn + log_un) * r_exponent + cache.sn * 2.8 + logdt,
        )
        self.rho = log10_add(
            self.rho,
            self.multiplier
            + u["c1"].value
            + u["c2"].value
            + log_tn * (5.0 + u["s"].value)
            + math.log10(self.tvar)
            + logdt
            + self.q
            + self.r,
        )

    def on_purchase(self, name: str) -> None:
        if name == "n":
            self.cache_stale = True

    def eval_coast(self, name: str, cost: float) -> BuyEval:
        dist = self.goal - cost
        if dist > COAST_FREE_DISTANCE or name == "s":
            return BuyEval.BUY
        return coast_band(dist, *COAST_BANDS[name])

    def eval_ratio(self, name: str, cost: float) -> BuyEval:
        u = self.upgrades
        if name == "c1":
            mod100 = u["c1"].level % 100
            remaining_cost = cost + math.log10((1.4 ** (101 - mod100) - 1.0) / 0.4)
            worth = (
                mod100 > 85
                and remaining_cost < u["c2"].cost + 0.1
                and remaining_cost < u["s"].cost
            ) or cost + math.log10(mod100 + 1.0) < min(u["c2"].cost, u["s"].cost)
        elif name == "c2":
            worth = cost + 0.1 < u["s"].cost
        elif name == "q1":
            worth = cost + 1.5 * math.log10(u["q1"].level % 10 + 1.0) < u["q2"].cost
        elif name == "q2":
            worth = cost + 0.1 < u["s"].cost
        else:
            worth = True
        return BuyEval.BUY if worth else BuyEval.SKIP

    def should_record(self) -> bool:
        return self.maxrho > self.params.tau / TAU_RATIO - self.record_margin
