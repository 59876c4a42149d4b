"""Rank-direction transforms.

The core phases always lay out top-to-bottom. ``adjust`` rotates sizes into
that frame before positioning and ``undo`` maps the result back to the
requested ``rankdir``.
"""

from __future__ import annotations

from typing import Any

from strata.ir.graph import Graph


def adjust(g: Graph) -> None:
    rankdir = g.graph().rankdir.lower()
    if rankdir in ("lr", "rl"):
        _swap_width_height(g)


def undo(g: Graph) -> None:
    rankdir = g.graph().rankdir.lower()
    if rankdir in ("bt", "rl"):
        _reverse_y(g)

    if rankdir in ("lr", "rl"):
        _swap_xy(g)
        _swap_width_height(g)


def _swap_width_height(g: Graph) -> None:
    for v in g.nodes():
        _swap_width_height_one(g.node(v))
    for e in g.edges():
        _swap_width_height_one(g.edge(e))


def _swap_width_height_one(attrs: Any) -> None:
    attrs.width, attrs.height = attrs.height, attrs.width


def _reverse_y(g: Graph) -> None:
    for v in g.nodes():
        _reverse_y_one(g.node(v))

    for e in g.edges():
        edge = g.edge(e)
        for point in edge.points:
            _reverse_y_one(point)
        if edge.y is not None:
            _reverse_y_one(edge)


def _reverse_y_one(attrs: Any) -> None:
    if attrs.y is not None:
        attrs.y = -attrs.y


def _swap_xy(g: Graph) -> None:
    for v in g.nodes():
        _swap_xy_one(g.node(v))

    for e in g.edges():
        edge = g.edge(e)
        for point in edge.points:
            _swap_xy_one(point)
        if edge.x is not None:
            _swap_xy_one(edge)


def _swap_xy_one(attrs: Any) -> None:
    attrs.x, attrs.y = attrs.y, attrs.x
