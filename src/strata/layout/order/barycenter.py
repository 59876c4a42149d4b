"""Weighted barycenters of movable nodes over their fixed neighbours."""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass

from strata.ir.graph import Graph


@dataclass
class BarycenterEntry:
    """A node and, when it has weighted in-edges, its barycenter and total weight."""

    v: Hashable
    barycenter: float | None = None
    weight: float | None = None


def barycenter(g: Graph, movable: Iterable[Hashable]) -> list[BarycenterEntry]:
    entries = []
    for v in movable:
        in_edges = g.in_edges(v)
        total = 0.0
        weight = 0.0
        for e in in_edges:
            edge = g.edge(e)
            total += edge.weight * g.node(e.v).order
            weight += edge.weight

        if not weight:
            entries.append(BarycenterEntry(v))
        else:
            entries.append(BarycenterEntry(v, barycenter=total / weight, weight=weight))
    return entries
