"""Feasible (tight) spanning tree construction.

The structure is derived from Gansner, et al., "A Technique for Drawing
Directed Graphs."
"""

from __future__ import annotations

import math
from collections.abc import Hashable

from strata.ir.graph import Edge, Graph
from strata.layout.rank.util import slack
from strata.layout.types import TreeEdge, TreeNode


def _tight_tree(t: Graph, g: Graph) -> int:
    """Grow ``t`` with tight edges of ``g`` and return its node count."""
    for start in t.nodes():
        stack = [(start, iter(g.node_edges(start)))]
        while stack:
            v, pending = stack[-1]
            for e in pending:
                w = e.w if v == e.v else e.v
                if not t.has_node(w) and not slack(g, e):
                    t.set_node(w, TreeNode())
                    t.set_edge(v, w, TreeEdge())
                    stack.append((w, iter(g.node_edges(w))))
                    break
            else:
                stack.pop()
    return t.node_count()


def _find_min_slack_edge(t: Graph, g: Graph) -> Edge | None:
    """Return the edge with the smallest slack that has exactly one endpoint in ``t``."""
    min_edge = None
    min_value = math.inf
    for e in g.edges():
        if t.has_node(e.v) != t.has_node(e.w):
            edge_slack = slack(g, e)
            if edge_slack < min_value:
                min_edge = e
                min_value = edge_slack
    return min_edge


def _shift_ranks(t: Graph, g: Graph, delta: int) -> None:
    for v in t.nodes():
        g.node(v).rank += delta


def feasible_tree(g: Graph) -> Graph:
    """Build a spanning tree of tight edges, adjusting ranks to make edges tight.

    Pre-conditions:
      1. The graph is a connected DAG with at least one node.
      2. Nodes have ranks that respect every edge's ``minlen``.

    Post-conditions:
      - Node ranks are adjusted so that every tree edge is tight.

    Returns an undirected tree built only from tight edges.
    """
    t = Graph(directed=False)
    start: Hashable = g.nodes()[0]
    size = g.node_count()
    t.set_node(start, TreeNode())

    while _tight_tree(t, g) < size:
        edge = _find_min_slack_edge(t, g)
        delta = slack(g, edge) if t.has_node(edge.v) else -slack(g, edge)
        _shift_ranks(t, g, delta)
    return t
