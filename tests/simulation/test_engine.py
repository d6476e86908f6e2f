"""Tests for the simulation engine using small synthetic theories."""

from __future__ import annotations

import math

import pytest

from theory_sim.config.types import PurchaseEvent, SeedState, SimulationResult, TheoryParameters
from theory_sim.domain.costs import ExponentialCost
from theory_sim.domain.logmath import log10_add
from theory_sim.domain.upgrade import Upgrade
from theory_sim.domain.values import EmptyValue, ExponentialValue
from theory_sim.simulation.engine import BuyEval, Simulation, coast_band


class Doubling(Simulation):
    """rho grows at 2**level per second; one upgrade doubles the rate."""

    name = "doubling"
    buy_order = ("x",)
    accumulators = ("spare",)
    settings = ("knob",)

    def build_upgrades(self) -> dict[str, Upgrade]:
        return {"x": Upgrade(ExponentialCost.of(10.0, 2.0), ExponentialValue.of(2.0))}

    def grow(self, dt: float) -> None:
        self.rho = log10_add(self.rho, self.upgrades["x"].value + math.log10(dt))


class FixedIncrement(Doubling):
    """rho gains exactly 1 per tick; the upgrade contributes nothing."""

    name = "fixed-increment"

    def build_upgrades(self) -> dict[str, Upgrade]:
        return {"x": Upgrade(ExponentialCost.of(10.0, 2.0), EmptyValue())}

    def grow(self, dt: float) -> None:
        self.rho = log10_add(self.rho, 0.0)


class ForkNearGoal(Doubling):
    """Forks every purchase within one order of magnitude of the goal."""

    name = "fork-near-goal"

    def eval_coast(self, name: str, cost: float) -> BuyEval:
        return coast_band(self.goal - cost, -math.inf, 1.0)


class AlwaysCoast(Doubling):
    name = "always-coast"

    def eval_coast(self, name: str, cost: float) -> BuyEval:
        return BuyEval.SKIP


class TwoUpgrades(Doubling):
    name = "two-upgrades"
    buy_order = ("y", "x")

    def build_upgrades(self) -> dict[str, Upgrade]:
        upgrades = super().build_upgrades()
        upgrades["y"] = Upgrade(ExponentialCost.of(10.0, 2.0), ExponentialValue.of(2.0))
        return upgrades


class Wasteful(Simulation):
    """Fixed income of 1 per second; the upgrade only burns rho."""

    name = "wasteful"
    buy_order = ("x",)

    def build_upgrades(self) -> dict[str, Upgrade]:
        return {"x": Upgrade(ExponentialCost.of(10.0, 2.0), EmptyValue())}

    def grow(self, dt: float) -> None:
        self.rho = log10_add(self.rho, math.log10(dt))

    def eval_coast(self, name: str, cost: float) -> BuyEval:
        return BuyEval.FORK


class RatioForkOnce(Simulation):
    """Two doubling upgrades; the first top-level offer of ``x`` is a ratio fork."""

    name = "ratio-fork-once"
    buy_order = ("y", "x")

    def build_upgrades(self) -> dict[str, Upgrade]:
        return {
            "x": Upgrade(ExponentialCost.of(10.0, 2.0), ExponentialValue.of(2.0)),
            "y": Upgrade(ExponentialCost.of(10.0, 2.0), ExponentialValue.of(2.0)),
        }

    def grow(self, dt: float) -> None:
        u = self.upgrades
        self.rho = log10_add(self.rho, u["x"].value + u["y"].value + math.log10(dt))

    def eval_ratio(self, name: str, cost: float) -> BuyEval:
        if name == "x" and self.depth == 0 and self.upgrades["x"].level == 1:
            return BuyEval.FORK
        return BuyEval.BUY


def _params(tau: float = 0.0) -> TheoryParameters:
    return TheoryParameters(tau=tau)


def test_coast_band() -> None:
    assert coast_band(2.0, 0.5, 1.5) is BuyEval.BUY
    assert coast_band(1.0, 0.5, 1.5) is BuyEval.FORK
    assert coast_band(1.5, 0.5, 1.5) is BuyEval.FORK
    assert coast_band(0.5, 0.5, 1.5) is BuyEval.SKIP


class TestTick:
    def test_time_and_peak_are_monotone(self) -> None:
        sim = Doubling(_params(), goal=10.0)
        previous_t, previous_max = sim.t, sim.maxrho
        for _ in range(200):
            sim.tick()
            assert sim.t > previous_t
            assert sim.maxrho >= previous_max
            previous_t, previous_max = sim.t, sim.maxrho

    def test_first_tick_uses_initial_step(self) -> None:
        sim = Doubling(_params(), goal=10.0)
        sim.tick()
        assert sim.t == pytest.approx(1.0)
        assert sim.dt == pytest.approx(1.5 * 1.0001)


class TestSimulate:
    def test_reaches_goal_with_ordered_purchases(self) -> None:
        sim = Doubling(_params(), goal=6.0)
        result = sim.simulate()
        assert sim.maxrho >= 6.0
        assert result.elapsed == sim.t
        assert result.purchases
        levels = [event.level for event in result.purchases]
        times = [event.time for event in result.purchases]
        assert levels == sorted(levels)
        assert len(set(levels)) == len(levels)
        assert times == sorted(times)

    def test_fixed_increment_buys_levels_in_sequence(self) -> None:
        result = FixedIncrement(_params(), goal=3.0).simulate()
        assert result.purchases
        levels = [event.level for event in result.purchases]
        assert levels == list(range(2, 2 + len(levels)))
        times = [event.time for event in result.purchases]
        assert all(a <= b for a, b in zip(times, times[1:]))

    def test_goal_already_met_returns_immediately(self) -> None:
        sim = Doubling(TheoryParameters(tau=0.0, rho0=3.0), goal=-1.0)
        result = sim.simulate()
        assert result.elapsed == 0.0
        assert result.purchases == ()

    def test_record_disabled_returns_no_purchases(self) -> None:
        sim = Doubling(_params(), goal=4.0)
        sim.record = False
        assert sim.simulate().purchases is None

    def test_purchases_below_record_margin_are_dropped(self) -> None:
        sim = Doubling(_params(tau=100.0), goal=4.0)
        assert sim.simulate().purchases == ()

    def test_forking_never_slower_than_linear_path(self) -> None:
        linear = Doubling(_params(), goal=6.0).simulate()
        forked = ForkNearGoal(_params(), goal=6.0).simulate()
        assert forked.elapsed <= linear.elapsed

    def test_coasting_disabled_ignores_coast_hook(self) -> None:
        sim = AlwaysCoast(_params(), goal=4.0)
        sim.coasting = False
        sim.simulate()
        assert sim.upgrades["x"].level > 1
        assert sim.caps == {}


class TestForkSelection:
    def test_faster_fork_replaces_own_result(self) -> None:
        sim = Wasteful(_params(), goal=3.0)
        result = sim.simulate()
        assert sim.purchases
        assert result is sim.best_result
        assert result.elapsed < sim.t
        # the first fork is capped before any purchase and never spends rho
        assert result.purchases == ()

    def test_tie_resolves_to_fork(self) -> None:
        elapsed = Doubling(_params(), goal=5.0).simulate().elapsed
        sim = Doubling(_params(), goal=5.0)
        tied = SimulationResult(elapsed=elapsed, purchases=(PurchaseEvent("x", 99, 0.0),))
        sim.best_result = tied
        assert sim.simulate() is tied

    def test_slower_fork_is_ignored(self) -> None:
        elapsed = Doubling(_params(), goal=5.0).simulate().elapsed
        sim = Doubling(_params(), goal=5.0)
        sim.best_result = SimulationResult(elapsed=elapsed + 1.0, purchases=())
        result = sim.simulate()
        assert result.elapsed == elapsed
        assert result.purchases == tuple(sim.purchases)


class TestRatioFork:
    def test_fork_starts_with_upgrade_skipped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        skipped_at_start = []
        simulate = RatioForkOnce.simulate

        def recording_simulate(self: RatioForkOnce) -> SimulationResult:
            if self.depth:
                skipped_at_start.append(set(self.skipped))
            return simulate(self)

        monkeypatch.setattr(RatioForkOnce, "simulate", recording_simulate)
        RatioForkOnce(_params(), goal=4.0).simulate()
        assert skipped_at_start == [{"x"}]

    def test_parent_buys_and_fork_waits_for_next_purchase(self) -> None:
        sim = RatioForkOnce(_params(), goal=4.0)
        sim.simulate()
        assert sim.skipped == set()
        parent_x = [event for event in sim.purchases if event.upgrade == "x"]
        assert parent_x[0].level == 2
        fork_time = parent_x[0].time

        forked = sim.best_result
        assert forked is not None
        child_x = next(event for event in forked.purchases if event.upgrade == "x")
        assert child_x.level == 2
        assert child_x.time > fork_time
        assert any(
            event.upgrade == "y" and fork_time < event.time <= child_x.time for event in forked.purchases
        )


class TestBuy:
    def test_coast_skip_caps_upgrade(self) -> None:
        sim = AlwaysCoast(TheoryParameters(tau=0.0, rho0=5.0), goal=10.0)
        sim.buy()
        assert sim.caps == {"x": 1}
        assert sim.upgrades["x"].level == 1

    def test_capped_upgrade_is_not_offered(self) -> None:
        sim = Doubling(TheoryParameters(tau=0.0, rho0=5.0), goal=10.0)
        sim.caps["x"] = 1
        sim.buy()
        assert sim.upgrades["x"].level == 1
        assert sim.rho == 5.0

    def test_buys_until_unaffordable(self) -> None:
        sim = Doubling(TheoryParameters(tau=0.0, rho0=3.0), goal=10.0)
        sim.buy()
        assert sim.upgrades["x"].level > 2
        assert sim.rho < sim.upgrades["x"].cost

    def test_purchase_clears_skip_flags(self) -> None:
        sim = TwoUpgrades(TheoryParameters(tau=0.0, rho0=5.0), goal=10.0)
        sim.skipped.add("x")
        sim.buy()
        assert sim.upgrades["y"].level > 1
        assert sim.upgrades["x"].level > 1
        assert sim.skipped == set()

    def test_skipped_upgrade_is_not_offered(self) -> None:
        sim = Doubling(TheoryParameters(tau=0.0, rho0=5.0), goal=10.0)
        sim.skipped.add("x")
        sim.buy()
        assert sim.upgrades["x"].level == 1


class TestFork:
    def test_fork_is_independent(self) -> None:
        sim = Doubling(TheoryParameters(tau=0.0, rho0=5.0), goal=10.0)
        sim.caps["x"] = 9
        child = sim.fork()
        child.upgrades["x"].buy()
        child.caps["x"] = 1
        child.skipped.add("x")
        child.rho = 0.0
        assert sim.upgrades["x"].level == 1
        assert sim.caps == {"x": 9}
        assert sim.skipped == set()
        assert sim.rho == 5.0
        assert child.depth == sim.depth + 1
        assert child.params is sim.params


class TestSeed:
    def test_seed_sets_levels_accumulators_and_settings(self) -> None:
        seed = SeedState(levels={"x": 7}, accumulators={"spare": 3.5}, settings={"knob": 0.25})
        sim = Doubling(_params(), goal=10.0, seed=seed)
        assert sim.upgrades["x"].level == 7
        assert sim.spare == 3.5
        assert sim.knob == 0.25

    def test_unseeded_accumulators_start_at_zero(self) -> None:
        assert Doubling(_params(), goal=10.0).spare == 0.0

    @pytest.mark.parametrize(
        ("seed", "message"),
        [
            (SeedState(levels={"nope": 1}), "unknown upgrade"),
            (SeedState(accumulators={"nope": 1.0}), "unknown accumulator"),
            (SeedState(settings={"nope": 1.0}), "unknown setting"),
        ],
    )
    def test_unknown_names_are_rejected(self, seed: SeedState, message: str) -> None:
        with pytest.raises(ValueError, match=message):
            Doubling(_params(), goal=10.0, seed=seed)
