"""Tests for log-domain arithmetic helpers."""

from __future__ import annotations

import math

import pytest

from theory_sim.domain.logmath import (
    format_duration,
    log10_add,
    log10_sub,
    log10_to_str,
    safe_log10,
    str_to_log10,
)


class TestLog10Add:
    def test_equal_operands_double(self) -> None:
        assert log10_add(2.0, 2.0) == pytest.approx(2.0 + math.log10(2.0))

    def test_matches_direct_sum(self) -> None:
        assert log10_add(3.0, 1.5) == pytest.approx(math.log10(1000.0 + 10.0**1.5))

    def test_is_symmetric(self) -> None:
        assert log10_add(7.3, 5.1) == log10_add(5.1, 7.3)

    def test_negative_infinity_is_identity(self) -> None:
        assert log10_add(4.2, -math.inf) == 4.2
        assert log10_add(-math.inf, 4.2) == 4.2

    def test_far_apart_operands_return_larger(self) -> None:
        assert log10_add(100.0, 50.0) == 100.0

    def test_huge_exponents_stay_finite(self) -> None:
        assert log10_add(5000.0, 4999.0) == pytest.approx(5000.0 + math.log10(1.1))


class TestLog10Sub:
    def test_matches_direct_difference(self) -> None:
        assert log10_sub(3.0, 2.0) == pytest.approx(math.log10(900.0))

    def test_equal_operands_give_negative_infinity(self) -> None:
        assert log10_sub(2.5, 2.5) == -math.inf

    def test_operand_order_does_not_matter(self) -> None:
        assert log10_sub(2.0, 3.0) == log10_sub(3.0, 2.0)

    def test_far_apart_operands_return_larger(self) -> None:
        assert log10_sub(100.0, 50.0) == 100.0


@pytest.mark.parametrize(
    ("a", "b"),
    [
        (5.0, 3.0),
        (2.0, 2.0),
        (12.3, 11.9),
        (10.5, 0.25),
        (45.0, 10.0),
        (40.5, 0.5),
        # whole parts more than 40 orders apart
        (41.5, 0.5),
        (100.0, 50.0),
    ],
)
def test_sub_undoes_add(a: float, b: float) -> None:
    assert log10_sub(log10_add(a, b), b) == pytest.approx(a)


def test_safe_log10_edge_inputs() -> None:
    assert safe_log10(100.0) == pytest.approx(2.0)
    assert safe_log10(0.0) == -math.inf
    assert math.isnan(safe_log10(-1.0))


def test_log10_to_str_rounds_mantissa() -> None:
    assert log10_to_str(628.0 + math.log10(1.02)) == "1.02e628"
    assert log10_to_str(3.0) == "1e3"


def test_str_to_log10_parses_display_values() -> None:
    assert str_to_log10("1.02e628") == pytest.approx(628.0 + math.log10(1.02))
    assert str_to_log10("100") == pytest.approx(2.0)
    assert str_to_log10(" 5E3 ") == pytest.approx(3.0 + math.log10(5.0))


@pytest.mark.parametrize("text", ["abc", "0e5", "-1e3", "1eX"])
def test_str_to_log10_rejects_invalid(text: str) -> None:
    with pytest.raises(ValueError):
        str_to_log10(text)


def test_format_duration() -> None:
    assert format_duration(0.0) == "0d 0h 0min"
    assert format_duration(90061.0) == "1d 1h 1min"
    assert format_duration(59.9) == "0d 0h 0min"
