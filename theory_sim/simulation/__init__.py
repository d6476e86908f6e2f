"""Simulation engine: tick/buy loop and forking coasting search."""

from theory_sim.simulation.engine import BuyEval, Simulation, coast_band

__all__ = [
    "BuyEval",
    "Simulation",
    "coast_band",
]
