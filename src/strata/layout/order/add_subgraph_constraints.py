"""Carry subgraph ordering from one layer to the next."""

from __future__ import annotations

from collections.abc import Hashable, Iterable

from strata.ir.graph import Graph


def add_subgraph_constraints(g: Graph, cg: Graph, vs: Iterable[Hashable]) -> None:
    """Record in ``cg`` that sibling subgraphs must keep the left-to-right order seen in ``vs``.

    For each node the hierarchy is climbed until a sibling subgraph that
    appeared earlier is found; one edge from that sibling is added and the
    climb stops.
    """
    prev: dict[Hashable, Hashable] = {}
    root_prev: Hashable | None = None

    for v in vs:
        child = g.parent(v)
        while child is not None:
            parent = g.parent(child)
            if parent is not None:
                prev_child = prev.get(parent)
                prev[parent] = child
            else:
                prev_child = root_prev
                root_prev = child
            if prev_child is not None and prev_child != child:
                cg.set_edge(prev_child, child)
                break
            child = parent
