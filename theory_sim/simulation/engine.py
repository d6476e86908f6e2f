"""Core simulation engine: tick/buy loop with forking coasting search.

A ``Simulation`` advances time in geometrically growing ticks, grows its
log10 accumulators with a theory-specific formula and buys upgrades in a
fixed priority order. When a theory reports that a purchase is ambiguous
(``BuyEval.FORK``) the engine forks the whole simulation, caps the upgrade at
its current level in the fork, runs the fork to the goal and keeps whichever
of the two futures reaches the goal first.

Theories subclass ``Simulation`` and supply ``build_upgrades``, ``grow`` and,
as needed, the evaluation and eligibility hooks. Theory state attributes must
hold immutable values (floats, ints, bools, tuples, frozen dataclasses): a
fork copies them by reference and only re-creates the mutable containers the
engine owns (upgrades, caps, skip flags and the purchase log).
"""

from __future__ import annotations

import copy
import logging
from enum import Enum
from typing import ClassVar, TypeVar

from theory_sim.config.constants import (
    DEFAULT_RECORD_MARGIN,
    DT_GROWTH,
    INITIAL_DT,
    TIME_STEP_DIVISOR,
    UNCAPPED,
)
from theory_sim.config.types import (
    PubTableConfig,
    PurchaseEvent,
    SeedState,
    SimulationResult,
    TheoryParameters,
)
from theory_sim.domain.logmath import log10_sub
from theory_sim.domain.upgrade import Upgrade

logger = logging.getLogger(__name__)

SimulationT = TypeVar("SimulationT", bound="Simulation")


class BuyEval(Enum):
    """Outcome of a purchase evaluation."""

    BUY = "buy"
    FORK = "fork"
    SKIP = "skip"


def coast_band(dist: float, lower: float, upper: float) -> BuyEval:
    """BUY above ``upper``, FORK between the bounds, SKIP at or below ``lower``."""
    if dist > upper:
        return BuyEval.BUY
    if dist > lower:
        return BuyEval.FORK
    return BuyEval.SKIP


class Simulation:
    """One simulation run of a theory towards a log10 ``goal``."""

    name: ClassVar[str] = ""
    """Registry name of the theory."""

    buy_order: ClassVar[tuple[str, ...]] = ()
    """Upgrade names in the order they are offered each tick."""

    accumulators: ClassVar[tuple[str, ...]] = ()
    """Theory accumulator attributes (besides ``rho``) a seed may set."""

    settings: ClassVar[tuple[str, ...]] = ()
    """Theory scalar settings a seed may override."""

    ddt: ClassVar[float] = DT_GROWTH
    record_margin: ClassVar[float] = DEFAULT_RECORD_MARGIN
    fork_log_depth: ClassVar[int] = 2
    pub_table: ClassVar[PubTableConfig | None] = None
    uses_students: ClassVar[bool] = False
    """Whether the multiplier depends on the student count in ``params.scale``."""

    def __init__(
        self,
        params: TheoryParameters,
        goal: float,
        seed: SeedState | None = None,
    ) -> None:
        if self.uses_students and params.scale <= 0:
            raise ValueError(f"theory {self.name} needs a positive student count, got {params.scale}")
        self.params = params
        self.goal = goal
        self.coasting = True
        self.record = True

        self.upgrades: dict[str, Upgrade] = self.build_upgrades()
        self.caps: dict[str, int] = {}
        self.skipped: set[str] = set()
        self.purchases: list[PurchaseEvent] = []
        self.best_result: SimulationResult | None = None

        self.rho = 0.0
        self.maxrho = 0.0
        self.t = 0.0
        self.dt = INITIAL_DT
        self.depth = 0

        self.reset_state()
        if seed is not None:
            self.apply_seed(seed)
        self.rho = params.rho0
        self.multiplier = self.compute_multiplier()
        self.after_seed()

    # ------------------------------------------------------------------
    # Theory plug-in interface
    # ------------------------------------------------------------------

    def build_upgrades(self) -> dict[str, Upgrade]:
        """Return a fresh upgrade set keyed by name."""
        raise NotImplementedError

    def reset_state(self) -> None:
        """Initialise theory accumulators and settings to their defaults."""
        for name in self.accumulators:
            setattr(self, name, 0.0)

    def after_seed(self) -> None:
        """Hook run once the seed, rho and multiplier are in place."""

    def compute_multiplier(self) -> float:
        return 0.0

    def grow(self, dt: float) -> None:
        """Update ``rho`` and the theory accumulators for one tick of length ``dt``."""
        raise NotImplementedError

    def after_tick(self) -> None:
        """Hook run between growth and purchases each tick."""

    def currency_of(self, name: str) -> str:
        """Attribute name of the accumulator that pays for upgrade ``name``."""
        return "rho"

    def is_available(self, name: str) -> bool:
        """Whether upgrade ``name`` may currently be bought (milestone gating)."""
        return True

    def eval_coast(self, name: str, cost: float) -> BuyEval:
        """Is it worth holding this purchase to let the accumulator grow first?"""
        return BuyEval.BUY

    def eval_ratio(self, name: str, cost: float) -> BuyEval:
        """Is this upgrade currently the most cost-effective one to buy?"""
        return BuyEval.BUY

    def on_purchase(self, name: str) -> None:
        """Hook run after each purchase of upgrade ``name``."""

    def should_record(self) -> bool:
        return self.maxrho > self.params.tau - self.record_margin

    @classmethod
    def pub_step_bounds(cls, start: int, config: PubTableConfig) -> tuple[int, int]:
        """Smallest and largest publication step tried from ``start``, in grid units."""
        remaining = config.end - start
        return min(config.min_step, remaining), min(config.max_step, remaining)

    @classmethod
    def pub_base_goal(cls, start: int, end: int, config: PubTableConfig) -> float:
        """Goal of the non-coasting run that precedes a publication at ``end``."""
        return config.rho_of(end) - config.margin

    # ------------------------------------------------------------------
    # Engine
    # ------------------------------------------------------------------

    def apply_seed(self, seed: SeedState) -> None:
        """Set levels, accumulators and settings from a saved position."""
        for name, level in seed.levels.items():
            if name not in self.upgrades:
                raise ValueError(f"unknown upgrade {name!r} for theory {self.name}")
            self.upgrades[name].set(level)
        for name, value in seed.accumulators.items():
            if name not in self.accumulators:
                raise ValueError(f"unknown accumulator {name!r} for theory {self.name}")
            setattr(self, name, float(value))
        for name, value in seed.settings.items():
            if name not in self.settings:
                raise ValueError(f"unknown setting {name!r} for theory {self.name}")
            setattr(self, name, value)

    def levels(self) -> dict[str, int]:
        return {name: upgrade.level for name, upgrade in self.upgrades.items()}

    def tick(self) -> None:
        """Grow accumulators, track the peak and advance the step schedule."""
        self.grow(self.dt)
        self.maxrho = max(self.maxrho, self.rho)
        self.t += self.dt / TIME_STEP_DIVISOR
        self.dt *= self.ddt

    def buy(self) -> None:
        """Offer every upgrade in priority order while its currency covers the cost."""
        for name in self.buy_order:
            upgrade = self.upgrades[name]
            if name in self.skipped or upgrade.level >= self.caps.get(name, UNCAPPED):
                continue
            if not self.is_available(name):
                continue
            currency = self.currency_of(name)
            cost = upgrade.cost
            while getattr(self, currency) > cost and self.is_available(name):
                coast = self.eval_coast(name, cost) if self.coasting else BuyEval.BUY
                if coast is BuyEval.SKIP:
                    self.caps[name] = upgrade.level
                    break
                ratio = self.eval_ratio(name, cost)
                if ratio is BuyEval.SKIP:
                    break
                if coast is BuyEval.FORK:
                    self._explore(name, "coasting", cap=upgrade.level)
                if ratio is BuyEval.FORK:
                    self._explore(name, "ratio", skip=True)

                setattr(self, currency, log10_sub(getattr(self, currency), cost))
                upgrade.buy()
                cost = upgrade.cost
                self.skipped.clear()
                self.on_purchase(name)
                if self.record and self.should_record():
                    self.purchases.append(PurchaseEvent(name, upgrade.level, self.t))

    def fork(self: SimulationT) -> SimulationT:
        """Independent copy of this run one level deeper in the search tree."""
        child = copy.copy(self)
        child.upgrades = {name: upgrade.clone() for name, upgrade in self.upgrades.items()}
        child.caps = dict(self.caps)
        child.skipped = set(self.skipped)
        child.purchases = list(self.purchases)
        child.best_result = None
        child.depth = self.depth + 1
        return child

    def _explore(self, name: str, kind: str, cap: int | None = None, skip: bool = False) -> None:
        """Simulate the branch that stops buying ``name`` here and keep it if faster."""
        child = self.fork()
        if cap is not None:
            child.caps[name] = cap
        if skip:
            child.skipped.add(name)
        if self.depth <= self.fork_log_depth:
            logger.debug(
                "Depth %d; creating %s fork for %s lvl %d",
                self.depth,
                kind,
                name,
                self.upgrades[name].level,
            )
        result = child.simulate()
        if self.depth <= self.fork_log_depth:
            logger.debug("Depth %d; %s fork for %s finished at t=%.1f", self.depth, kind, name, result.elapsed)
        if self.best_result is None or result.elapsed < self.best_result.elapsed:
            self.best_result = result

    def simulate(self) -> SimulationResult:
        """Run until ``maxrho`` reaches the goal; return the fastest branch found."""
        while self.maxrho < self.goal:
            self.tick()
            self.after_tick()
            self.buy()

        if self.best_result is None or self.t < self.best_result.elapsed:
            return SimulationResult(
                elapsed=self.t,
                purchases=tuple(self.purchases) if self.record else None,
            )
        return self.best_result
