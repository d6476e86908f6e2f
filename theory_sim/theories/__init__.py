"""Theory plug-ins and the name -> simulation class registry."""

from __future__ import annotations

from theory_sim.simulation.engine import Simulation
from theory_sim.theories.csr2 import CSR2
from theory_sim.theories.de import DE
from theory_sim.theories.ef import EF
from theory_sim.theories.fp import FP
from theory_sim.theories.t1 import T1
from theory_sim.theories.t2 import T2
from theory_sim.theories.t6 import T6
from theory_sim.theories.t7 import T7

THEORIES: dict[str, type[Simulation]] = {
    cls.name: cls for cls in (T1, T2, T6, T7, CSR2, EF, DE, FP)
}


def get_theory(name: str) -> type[Simulation]:
    """Look up a theory class by its registry name (case-insensitive)."""
    try:
        return THEORIES[name.lower()]
    except KeyError:
        known = ", ".join(sorted(THEORIES))
        raise ValueError(f"unknown theory {name!r}; expected one of: {known}") from None


__all__ = ["CSR2", "DE", "EF", "FP", "T1", "T2", "T6", "T7", "THEORIES", "get_theory"]
