"""Domain layer: log-domain arithmetic, cost/value models and upgrades."""

from theory_sim.domain.costs import CompositeCost, CostModel, ExponentialCost, FirstFreeCost
from theory_sim.domain.logmath import (
    format_duration,
    log10_add,
    log10_sub,
    log10_to_str,
    safe_log10,
    str_to_log10,
)
from theory_sim.domain.upgrade import Upgrade
from theory_sim.domain.values import (
    EmptyValue,
    ExponentialValue,
    LinearValue,
    ScaledValue,
    StepwiseValue,
    ValueModel,
)

__all__ = [
    "CompositeCost",
    "CostModel",
    "EmptyValue",
    "ExponentialCost",
    "ExponentialValue",
    "FirstFreeCost",
    "LinearValue",
    "ScaledValue",
    "StepwiseValue",
    "Upgrade",
    "ValueModel",
    "format_duration",
    "log10_add",
    "log10_sub",
    "log10_to_str",
    "safe_log10",
    "str_to_log10",
]
