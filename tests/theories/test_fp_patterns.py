"""Tests for the fractal pattern helpers and value models of FP."""

from __future__ import annotations

import math

import pytest

from theory_sim.config.types import TheoryParameters
from theory_sim.domain.values import StepwiseValue
from theory_sim.theories.fp import (
    FP,
    PatternCache,
    PenalisedStepwiseValue,
    SExponentValue,
    pattern_s,
    pattern_t,
    pattern_u,
    pattern_v,
    stepwise_sum,
)


def test_stepwise_sum() -> None:
    assert stepwise_sum(0, 1, 40) == 0
    assert stepwise_sum(40, 1, 40) == 40
    assert stepwise_sum(45, 1, 40) == 50


@pytest.mark.parametrize(("n", "expected"), [(0, 0.0), (1, 1.0), (2, 3.0), (3, 7.0), (4, 11.0), (5, 15.0)])
def test_pattern_t_matches_toothpick_counts(n: int, expected: float) -> None:
    assert pattern_t(n) == expected


def test_pattern_v_and_u() -> None:
    assert [pattern_v(n) for n in range(1, 4)] == [1.0, 4.0, 7.0]
    assert pattern_u(1) == pytest.approx(1.0)
    assert pattern_u(2) == pytest.approx(5.0)


def test_pattern_s_is_log10() -> None:
    assert pattern_s(1) == pytest.approx(0.0)
    assert pattern_s(2) == pytest.approx(math.log10(5.0))


def test_pattern_cache_for_first_level() -> None:
    cache = PatternCache.for_level(1)
    assert cache.n == 2
    assert cache.tn == 3.0
    assert cache.un == pytest.approx(5.0)


def test_penalised_stepwise_value() -> None:
    model = PenalisedStepwiseValue(StepwiseValue(10.0, 10), 1000.0, 1.5)
    assert model.value(0) == -math.inf
    assert model.value(1) == pytest.approx(-math.log10(1001.0))


def test_s_exponent_steps() -> None:
    model = SExponentValue()
    assert model.value(0) == 1.0
    assert model.value(32) == pytest.approx(model.value(31) + 0.15)
    assert model.value(33) == pytest.approx(model.value(32) + 0.2)
    assert model.value(40) == pytest.approx(model.value(39) + 0.15)


def test_buying_n_refreshes_pattern_cache() -> None:
    sim = FP(TheoryParameters(tau=0.0), goal=1.0)
    sim.tick()
    assert not sim.cache_stale
    assert sim.cache.n == 2
    sim.upgrades["n"].buy()
    sim.on_purchase("n")
    assert sim.cache_stale
    sim.tick()
    assert sim.cache.n == PatternCache.for_level(2).n
