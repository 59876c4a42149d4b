"""Crossing minimization.

Applies barycenter sweeps to reduce edge crossings and stores the best
ordering found as ``order`` on each node.

Pre-conditions:
  1. The graph is a DAG.
  2. Nodes have a ``rank``; subgraph nodes have ``min_rank``/``max_rank``.
  3. Edges have a ``weight``.

Post-conditions:
  1. Every non-subgraph node has an ``order`` within its rank.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Hashable, Iterable, Sequence

from strata.ir.graph import Graph
from strata.layout.order.add_subgraph_constraints import add_subgraph_constraints
from strata.layout.order.build_layer_graph import Relationship, build_layer_graph
from strata.layout.order.cross_count import cross_count
from strata.layout.order.init_order import init_order
from strata.layout.order.sort_subgraph import sort_subgraph
from strata.layout.util import build_layer_matrix, max_rank

# Sweeps without improvement before giving up
MAX_NON_IMPROVING_SWEEPS = 4


def order(g: Graph) -> None:
    top = max(max_rank(g) or 0, 0)
    down_layer_graphs = _build_layer_graphs(g, range(1, top + 1), "in_edges")
    up_layer_graphs = _build_layer_graphs(g, range(top - 1, -1, -1), "out_edges")

    layering = init_order(g)
    _assign_order(g, layering)

    best_cc = math.inf
    best = layering

    i = 0
    last_best = 0
    while last_best < MAX_NON_IMPROVING_SWEEPS:
        _sweep_layer_graphs(down_layer_graphs if i % 2 else up_layer_graphs, i % 4 >= 2)

        layering = build_layer_matrix(g)
        cc = cross_count(g, layering)
        if cc < best_cc:
            last_best = 0
            best = copy.deepcopy(layering)
            best_cc = cc

        i += 1
        last_best += 1

    _assign_order(g, best)


def _build_layer_graphs(g: Graph, ranks: Iterable[int], relationship: Relationship) -> list[Graph]:
    return [build_layer_graph(g, rank, relationship) for rank in ranks]


def _sweep_layer_graphs(layer_graphs: Sequence[Graph], bias_right: bool) -> None:
    cg = Graph()
    for lg in layer_graphs:
        root = lg.graph().root
        sorted_result = sort_subgraph(lg, root, cg, bias_right)
        for i, v in enumerate(sorted_result.vs):
            lg.node(v).order = i
        add_subgraph_constraints(lg, cg, sorted_result.vs)


def _assign_order(g: Graph, layering: Sequence[Sequence[Hashable]]) -> None:
    for layer in layering:
        for i, v in enumerate(layer):
            g.node(v).order = i
