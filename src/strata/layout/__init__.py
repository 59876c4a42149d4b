"""Layered layout of compound, possibly cyclic directed graphs."""

from __future__ import annotations

from strata.layout.engine import PHASES, build_layout_graph, layout, run_layout, update_input_graph

__all__ = [
    "PHASES",
    "build_layout_graph",
    "layout",
    "run_layout",
    "update_input_graph",
]
