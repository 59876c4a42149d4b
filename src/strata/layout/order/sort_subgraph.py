"""Recursive barycenter sort of one subgraph's children within a layer graph."""

from __future__ import annotations

from collections.abc import Hashable

from strata.ir.graph import Graph
from strata.layout.order.barycenter import BarycenterEntry, barycenter
from strata.layout.order.build_layer_graph import LayerSubgraph
from strata.layout.order.resolve_conflicts import ResolvedEntry, resolve_conflicts
from strata.layout.order.sort import SortResult, sort


def sort_subgraph(g: Graph, v: Hashable, cg: Graph, bias_right: bool = False) -> SortResult:
    """Order the children of ``v``, sorting nested subgraphs first.

    Nested subgraphs are sorted bottom-up and move as one block whose
    barycenter is folded into the parent's entry. A subgraph's own border
    nodes are pinned to the two ends of the result.
    """
    movable = g.children(v)
    node = g.node(v)
    bl = br = None
    if isinstance(node, LayerSubgraph):
        bl, br = node.border_left, node.border_right
    subgraphs: dict[Hashable, SortResult] = {}

    if bl is not None:
        movable = [w for w in movable if w != bl and w != br]

    barycenters = barycenter(g, movable)
    for entry in barycenters:
        if g.children(entry.v):
            subgraph_result = sort_subgraph(g, entry.v, cg, bias_right)
            subgraphs[entry.v] = subgraph_result
            if subgraph_result.barycenter is not None:
                _merge_barycenters(entry, subgraph_result)

    entries = resolve_conflicts(barycenters, cg)
    _expand_subgraphs(entries, subgraphs)

    result = sort(entries, bias_right)

    if bl is not None:
        result.vs = [bl, *result.vs, br]
        if g.predecessors(bl):
            bl_pred = g.node(g.predecessors(bl)[0])
            br_pred = g.node(g.predecessors(br)[0])
            if result.barycenter is None:
                result.barycenter = 0
                result.weight = 0
            result.barycenter = (result.barycenter * result.weight + bl_pred.order + br_pred.order) / (result.weight + 2)
            result.weight += 2

    return result


def _expand_subgraphs(entries: list[ResolvedEntry], subgraphs: dict[Hashable, SortResult]) -> None:
    for entry in entries:
        expanded: list[Hashable] = []
        for v in entry.vs:
            if v in subgraphs:
                expanded.extend(subgraphs[v].vs)
            else:
                expanded.append(v)
        entry.vs = expanded


def _merge_barycenters(target: BarycenterEntry, other: SortResult) -> None:
    if target.barycenter is not None:
        target.barycenter = (target.barycenter * target.weight + other.barycenter * other.weight) / (
            target.weight + other.weight
        )
        target.weight += other.weight
    else:
        target.barycenter = other.barycenter
        target.weight = other.weight
