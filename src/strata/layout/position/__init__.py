"""Coordinate assignment: y from the ranks, x from Brandes-Köpf."""

from __future__ import annotations

from strata.ir.graph import Graph
from strata.layout.position.bk import position_x
from strata.layout.util import as_non_compound_graph, build_layer_matrix


def position_y(g: Graph) -> None:
    """Stack ranks top to bottom, centring each node vertically in its rank."""
    layering = build_layer_matrix(g)
    rank_sep = g.graph().ranksep
    prev_y = 0.0
    for layer in layering:
        max_height = max((g.node(v).height for v in layer), default=0)
        for v in layer:
            g.node(v).y = prev_y + max_height / 2
        prev_y += max_height + rank_sep


def position(g: Graph) -> None:
    position_y(as_non_compound_graph(g))
    for v, x in position_x(g).items():
        g.node(v).x = x


__all__ = ["position", "position_x", "position_y"]
