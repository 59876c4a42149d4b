"""Nesting graph construction for compound graphs.

A nesting graph creates dummy nodes for the tops and bottoms of subgraphs,
adds edges that keep every cluster's nodes between those borders, and makes
the graph connected. Through ``minlen`` it also keeps nodes and subgraph
border nodes off each other's ranks.

The idea comes from Sander, "Layout of Compound Directed Graphs."

Pre-conditions:
  1. The input graph is a DAG.
  2. Edges carry a ``minlen`` attribute.

Post-conditions:
  1. The graph is connected.
  2. Every subgraph has top and bottom border nodes.
  3. Edge ``minlen`` values are scaled so nodes and borders use distinct ranks.
"""

from __future__ import annotations

from collections.abc import Hashable

from strata.ir.graph import Graph
from strata.layout.types import BORDER_BOTTOM_PREFIX, BORDER_TOP_PREFIX, ROOT_PREFIX, EdgeLabel, RootDummy
from strata.layout.util import add_border_node, add_dummy_node


def tree_depths(g: Graph) -> dict[Hashable, int]:
    """Depth of every node in the compound hierarchy, top-level nodes at 1."""
    depths: dict[Hashable, int] = {}
    stack = [(v, 1) for v in reversed(g.children())]
    while stack:
        v, depth = stack.pop()
        depths[v] = depth
        stack.extend((child, depth + 1) for child in reversed(g.children(v)))
    return depths


def _sum_weights(g: Graph) -> float:
    return sum(g.edge(e).weight for e in g.edges())


def _connect(
    g: Graph, root: Hashable, node_sep: int, weight: float, height: int, depths: dict[Hashable, int], top_level: Hashable
) -> None:
    """Add borders for ``top_level`` and its descendant subgraphs, children before parents."""
    # (node, children already expanded)
    stack: list[tuple[Hashable, bool]] = [(top_level, False)]
    while stack:
        v, expanded = stack.pop()
        children = g.children(v)
        if not children:
            if v != root:
                g.set_edge(root, v, EdgeLabel(weight=0, minlen=node_sep))
            continue

        label = g.node(v)
        if not expanded:
            top = add_border_node(g, BORDER_TOP_PREFIX)
            bottom = add_border_node(g, BORDER_BOTTOM_PREFIX)
            g.set_parent(top, v)
            label.border_top = top
            g.set_parent(bottom, v)
            label.border_bottom = bottom
            stack.append((v, True))
            stack.extend((child, False) for child in reversed(children))
            continue

        for child in children:
            if child in (label.border_top, label.border_bottom):
                continue
            child_label = g.node(child)
            child_top = child_label.border_top if child_label.border_top is not None else child
            child_bottom = child_label.border_bottom if child_label.border_bottom is not None else child
            this_weight = weight if child_label.border_top is not None else 2 * weight
            minlen = 1 if child_top != child_bottom else height - depths[v] + 1

            g.set_edge(label.border_top, child_top, EdgeLabel(weight=this_weight, minlen=minlen, nesting_edge=True))
            g.set_edge(child_bottom, label.border_bottom, EdgeLabel(weight=this_weight, minlen=minlen, nesting_edge=True))

        if g.parent(v) is None:
            g.set_edge(root, label.border_top, EdgeLabel(weight=0, minlen=height + depths[v]))


def run(g: Graph) -> None:
    graph_label = g.graph()
    root = add_dummy_node(g, RootDummy(), ROOT_PREFIX)
    depths = tree_depths(g)
    height = max(depths.values()) - 1
    node_sep = 2 * height + 1

    graph_label.nesting_root = root

    # Multiply minlen by node_sep to align nodes on non-border ranks.
    for e in g.edges():
        g.edge(e).minlen *= node_sep

    # A weight large enough to keep subgraphs vertically compact
    weight = _sum_weights(g) + 1

    for child in g.children():
        _connect(g, root, node_sep, weight, height, depths, child)

    # Kept so that empty border ranks can be removed after ranking.
    graph_label.node_rank_factor = node_sep


def cleanup(g: Graph) -> None:
    graph_label = g.graph()
    g.remove_node(graph_label.nesting_root)
    graph_label.nesting_root = None
    for e in g.edges():
        if g.edge(e).nesting_edge:
            g.remove_edge(e)
