"""Visualization layer: purchase timelines and publication chains."""

from theory_sim.viz.render import render_pub_chain, render_purchase_timeline

__all__ = ["render_pub_chain", "render_purchase_timeline"]
