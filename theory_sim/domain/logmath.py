"""Arithmetic on numbers stored as their base-10 logarithm.

Resource amounts span thousands of orders of magnitude, so every amount in
the engine is a log10 value. Addition and subtraction split each operand into
an integer floor and a fractional part and only exponentiate the fractional
part, which keeps intermediates bounded. When the operands differ by more
than ``LOG10_CUTOFF`` orders of magnitude the larger one is returned as-is.
"""

from __future__ import annotations

import math

from theory_sim.config.constants import LOG10_CUTOFF

__all__ = [
    "format_duration",
    "log10_add",
    "log10_sub",
    "log10_to_str",
    "safe_log10",
    "str_to_log10",
]


def safe_log10(x: float) -> float:
    """log10 that maps 0 to -inf and negative inputs to nan instead of raising."""
    if x > 0.0:
        return math.log10(x)
    if x == 0.0:
        return -math.inf
    return math.nan


def log10_add(a: float, b: float) -> float:
    """Return log10(10**a + 10**b)."""
    hi, lo = (a, b) if a >= b else (b, a)
    if lo == -math.inf:
        return hi
    whole_hi = math.floor(hi)
    whole_lo = math.floor(lo)
    if whole_hi > whole_lo + LOG10_CUTOFF:
        return hi
    frac_hi = 10.0 ** (hi - whole_hi)
    frac_lo = 10.0 ** (lo - whole_lo)
    return whole_hi + safe_log10(frac_hi + frac_lo / 10.0 ** (whole_hi - whole_lo))


def log10_sub(a: float, b: float) -> float:
    """Return log10(10**a - 10**b).

    Callers must guarantee ``a >= b``; the result is not meaningful otherwise.
    """
    hi, lo = (a, b) if a >= b else (b, a)
    if lo == -math.inf:
        return hi
    whole_hi = math.floor(hi)
    whole_lo = math.floor(lo)
    if whole_hi > whole_lo + LOG10_CUTOFF:
        return hi
    frac_hi = 10.0 ** (hi - whole_hi)
    frac_lo = 10.0 ** (lo - whole_lo)
    return whole_hi + safe_log10(frac_hi - frac_lo / 10.0 ** (whole_hi - whole_lo))


def log10_to_str(x: float) -> str:
    """Render a log10 value as ``"<mantissa>e<exponent>"`` with 2 decimals."""
    exponent = math.floor(x)
    mantissa = round(100.0 * 10.0 ** (x - exponent)) / 100.0
    return f"{mantissa:g}e{exponent}"


def str_to_log10(text: str) -> float:
    """Parse ``"1.02e628"`` (or a plain positive number) into its log10."""
    raw = text.strip().lower()
    mantissa_raw, sep, exponent_raw = raw.partition("e")
    try:
        mantissa = float(mantissa_raw)
        exponent = float(exponent_raw) if sep else 0.0
    except ValueError as exc:
        raise ValueError(f"cannot parse {text!r} as <mantissa>e<exponent>") from exc
    if mantissa <= 0.0:
        raise ValueError(f"mantissa of {text!r} must be positive")
    return exponent + math.log10(mantissa)


def format_duration(seconds: float) -> str:
    """Format a simulated duration as ``"<d>d <h>h <m>min"``."""
    minutes = math.floor(seconds / 60.0)
    hours = math.floor(minutes / 60.0)
    minutes -= 60 * hours
    days = math.floor(hours / 24.0)
    hours -= 24 * days
    return f"{days}d {hours}h {minutes}min"
