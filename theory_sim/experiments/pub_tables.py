"""Publication lookup tables: build them by simulation and walk the result.

A publication table maps a starting index ``round(rho * grid)`` to the best
index to publish at next and the total remaining time of the optimal chain
of publications from there to the table end. Tables are built backwards:
every start reuses the already-optimal remaining times of later indices.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np

from theory_sim.config.constants import MISSING_ENTRY_TIME
from theory_sim.config.types import PubEntry, PubTableConfig, TheoryParameters
from theory_sim.domain.logmath import format_duration
from theory_sim.simulation.engine import Simulation

logger = logging.getLogger(__name__)

DEFAULT_MULTIPLIER_EXPONENT = 0.152
"""Exponent of the tau ratio in the per-publication multiplier shown in chains."""


@dataclass(frozen=True)
class ChainStep:
    """One publication along a chain read from a table."""

    index: int
    next: int
    remaining: float
    """Total time from ``index`` to the end of the table."""
    publication: float
    """Time spent on this publication alone (0 when ``next`` is not in the table)."""
    multiplier: float


def resolve_config(theory: type[Simulation], config: PubTableConfig | None) -> PubTableConfig:
    """Use *config* if given, else the theory's default table configuration."""
    if config is not None:
        return config
    if theory.pub_table is None:
        raise ValueError(f"theory {theory.name} has no default publication table configuration")
    return theory.pub_table


def best_publication(
    theory: type[Simulation],
    config: PubTableConfig,
    start: int,
    table: Mapping[int, PubEntry],
) -> PubEntry:
    """Find the publication index after *start* minimising total remaining time.

    A single non-coasting base run is advanced from one candidate's goal to
    the next; each candidate forks it, switches coasting on and finishes at
    the candidate index.
    """
    low, high = theory.pub_step_bounds(start, config)
    params = TheoryParameters(
        tau=config.rho_of(start) * config.tau_ratio,
        scale=config.students,
    )
    base = theory(params, theory.pub_base_goal(start, start + low, config))
    base.coasting = False
    base.record = False

    best = PubEntry(next=0, t=math.inf)
    for end in range(start + low, start + high + 1):
        base.goal = theory.pub_base_goal(start, end, config)
        base.simulate()

        sim = base.fork()
        sim.coasting = True
        sim.goal = config.rho_of(end)
        elapsed = sim.simulate().elapsed

        later = table.get(end)
        total = elapsed + (later.t if later is not None else MISSING_ENTRY_TIME)
        if total < best.t:
            best = PubEntry(next=end, t=total)
    return best


def build_pub_table(
    theory: type[Simulation],
    config: PubTableConfig | None = None,
    table: Mapping[int, PubEntry] | None = None,
) -> dict[int, PubEntry]:
    """Rebuild the entries in ``[config.start, config.stop)``, highest start first.

    Returns a new table; *table* is not modified. Entries outside the range
    are carried over unchanged.
    """
    config = resolve_config(theory, config)
    result: dict[int, PubEntry] = dict(table or {})
    for start in range(config.stop - 1, config.start - 1, -1):
        logger.info("Starting pub tables for %s", config.rho_of(start))
        entry = best_publication(theory, config, start, result)
        result[start] = entry
        logger.info(
            "Best next: %s; total time remaining: %s; index diff: %d",
            config.rho_of(entry.next),
            format_duration(entry.t),
            entry.next - start,
        )
    return result


def read_chain(
    table: Mapping[int, PubEntry],
    rho: float,
    grid: int,
    exponent: float = DEFAULT_MULTIPLIER_EXPONENT,
) -> list[ChainStep]:
    """Follow ``next`` links from the index nearest *rho*.

    The walk stops after an entry with zero remaining time, at an index with
    no entry, or when an index repeats. Raises :exc:`ValueError` if the
    starting index itself has no entry.
    """
    index = int(round(rho * grid))
    if index not in table:
        raise ValueError(f"no publication table entry for index {index} (rho {index / grid})")

    steps: list[ChainStep] = []
    seen: set[int] = set()
    while index in table and index not in seen:
        seen.add(index)
        entry = table[index]
        following = table.get(entry.next)
        publication = entry.t - following.t if following is not None else 0.0
        steps.append(
            ChainStep(
                index=index,
                next=entry.next,
                remaining=entry.t,
                publication=publication,
                multiplier=10.0 ** ((entry.next - index) / grid * exponent),
            )
        )
        if entry.t <= 0.0:
            break
        index = entry.next
    if index not in table:
        logger.info("No entry for %s", index / grid)
    return steps


def compress_table(table: Mapping[int, PubEntry]) -> dict[int, int]:
    """Drop remaining times, keeping only index -> next."""
    return {index: entry.next for index, entry in table.items()}


def step_range(table: Mapping[int, PubEntry], end: int) -> tuple[int, int]:
    """Smallest and largest publication step in the table, ignoring *end*."""
    steps = np.fromiter(
        (entry.next - index for index, entry in table.items() if index != end),
        dtype=np.int64,
    )
    if steps.size == 0:
        raise ValueError("publication table has no entries besides the end index")
    return int(steps.min()), int(steps.max())


def table_diff(table: Mapping[int, PubEntry], start: int, end: int) -> list[tuple[int, PubEntry | None]]:
    """Entries for every index in ``[start, end]``, ``None`` where missing."""
    return [(index, table.get(index)) for index in range(start, end + 1)]
