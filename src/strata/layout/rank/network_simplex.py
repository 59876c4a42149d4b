"""Network simplex ranking.

The network simplex algorithm assigns ranks to each node in the input graph
and iteratively improves the ranking to reduce the length of edges.

Pre-conditions:
  1. The input graph is a connected DAG.
  2. Every node has a label object.
  3. Every edge has ``minlen`` and ``weight`` attributes.

Post-conditions:
  1. Every node has a ``rank`` optimized by network simplex (ranks are not
     normalized; see :func:`strata.layout.util.normalize_ranks`).

Outline:
  1. Assign initial ranks with the longest path algorithm, which pushes nodes
     to the lowest rank possible and leaves edges unnecessarily long.
  2. Build a feasible tight tree, shortening edges to their ``minlen``.
  3. Repeatedly swap a tree edge with a negative cut value for the non-tree
     edge with the least slack that reconnects the tree.

Most of the algorithms here are derived from Gansner, et al., "A Technique
for Drawing Directed Graphs."
"""

from __future__ import annotations

import math
from collections.abc import Hashable

from strata.ir.graph import Edge, Graph, postorder, preorder
from strata.layout.rank.feasible_tree import feasible_tree
from strata.layout.rank.util import longest_path, slack
from strata.layout.types import TreeEdge, TreeNode
from strata.layout.util import simplify


def network_simplex(g: Graph) -> None:
    graph = simplify(g)
    longest_path(graph)
    t = feasible_tree(graph)
    init_low_lim_values(t)
    init_cut_values(t, graph)

    while (e := leave_edge(t)) is not None:
        f = enter_edge(t, graph, e)
        exchange_edges(t, graph, e, f)


# ─── Cut values ──────────────────────────────────────────────────────────────


def init_cut_values(t: Graph, g: Graph) -> None:
    """Compute the cut value of every tree edge, children before parents."""
    vs = postorder(t, t.nodes()[0])
    for v in vs[:-1]:
        _assign_cut_value(t, g, v)


def _assign_cut_value(t: Graph, g: Graph, child: Hashable) -> None:
    parent = t.node(child).parent
    t.edge(child, parent).cutvalue = calc_cut_value(t, g, child)


def calc_cut_value(t: Graph, g: Graph, child: Hashable) -> float:
    """Cut value of the tree edge between ``child`` and its parent.

    Relies on the cut values of the child's own tree edges being known.
    """
    parent = t.node(child).parent
    # True if the child is on the tail end of the edge in the directed graph
    child_is_tail = True
    graph_edge = g.edge(child, parent)

    if graph_edge is None:
        child_is_tail = False
        graph_edge = g.edge(parent, child)

    cut_value = graph_edge.weight

    for e in g.node_edges(child):
        is_out_edge = e.v == child
        other = e.w if is_out_edge else e.v

        if other != parent:
            points_to_head = is_out_edge == child_is_tail
            other_weight = g.edge(e).weight

            cut_value += other_weight if points_to_head else -other_weight
            if t.has_edge(child, other):
                other_cut_value = t.edge(child, other).cutvalue
                cut_value += -other_cut_value if points_to_head else other_cut_value

    return cut_value


# ─── Low / lim numbering ─────────────────────────────────────────────────────


def init_low_lim_values(tree: Graph, root: Hashable | None = None) -> None:
    """Number the tree in postorder so ancestry checks take constant time."""
    if root is None:
        root = tree.nodes()[0]

    visited = {root}
    next_lim = 1
    # (node, parent, low, pending neighbors)
    stack = [(root, None, next_lim, iter(tree.neighbors(root)))]
    while stack:
        v, parent, low, pending = stack[-1]
        for w in pending:
            if w not in visited:
                visited.add(w)
                stack.append((w, v, next_lim, iter(tree.neighbors(w))))
                break
        else:
            stack.pop()
            label = tree.node(v)
            label.low = low
            label.lim = next_lim
            label.parent = parent
            next_lim += 1


def _is_descendant(v_label: TreeNode, root_label: TreeNode) -> bool:
    """True if the node labelled ``v_label`` lies in the subtree of ``root_label``."""
    return root_label.low <= v_label.lim <= root_label.lim


# ─── Pivoting ────────────────────────────────────────────────────────────────


def leave_edge(tree: Graph) -> Edge | None:
    """Return a tree edge with a negative cut value, if any."""
    for e in tree.edges():
        if tree.edge(e).cutvalue < 0:
            return e
    return None


def enter_edge(t: Graph, g: Graph, edge: Edge) -> Edge | None:
    """Find the non-tree edge with the least slack that reconnects the tree cut by ``edge``."""
    v, w = edge.v, edge.w

    # Treat v as the tail and w as the head from here on.
    if not g.has_edge(v, w):
        v, w = w, v

    v_label = t.node(v)
    w_label = t.node(w)
    tail_label = v_label
    flip = False

    # When the root is in the tail component the head/tail checks invert.
    if v_label.lim > w_label.lim:
        tail_label = w_label
        flip = True

    result = None
    min_value = math.inf
    for e in g.edges():
        if flip == _is_descendant(t.node(e.v), tail_label) and flip != _is_descendant(t.node(e.w), tail_label):
            edge_slack = slack(g, e)
            if edge_slack < min_value:
                result = e
                min_value = edge_slack
    return result


def exchange_edges(t: Graph, g: Graph, e: Edge, f: Edge) -> None:
    t.remove_edge(e.v, e.w)
    t.set_edge(f.v, f.w, TreeEdge())
    init_low_lim_values(t)
    init_cut_values(t, g)
    _update_ranks(t, g)


def _update_ranks(t: Graph, g: Graph) -> None:
    root = next(v for v in t.nodes() if t.node(v).parent is None)
    for v in preorder(t, root)[1:]:
        parent = t.node(v).parent
        edge = g.edge(v, parent)
        flipped = False

        if edge is None:
            edge = g.edge(parent, v)
            flipped = True

        g.node(v).rank = g.node(parent).rank + (edge.minlen if flipped else -edge.minlen)
