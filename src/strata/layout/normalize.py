"""Long-edge normalization.

Breaks every edge spanning more than one rank into a chain of unit-length
edges through dummy nodes, and later folds the chain back into bend points.

Pre-conditions:
  1. The input graph is a DAG.
  2. Each node in the graph has a ``rank``.

Post-conditions:
  1. All edges in the graph have length 1.
  2. Dummy nodes are added where edges have been split into segments.
  3. The graph gains ``dummy_chains``, the first dummy of each chain.
"""

from __future__ import annotations

from strata.ir.graph import Edge, Graph
from strata.layout.types import DUMMY_PREFIX, EdgeDummy, EdgeLabel, EdgeLabelDummy, Point
from strata.layout.util import add_dummy_node


def run(g: Graph) -> None:
    g.graph().dummy_chains = []
    for edge in g.edges():
        _normalize_edge(g, edge)


def _normalize_edge(g: Graph, e: Edge) -> None:
    v = e.v
    v_rank = g.node(v).rank
    w = e.w
    w_rank = g.node(w).rank
    edge_label = g.edge(e)
    label_rank = edge_label.label_rank

    if w_rank == v_rank + 1:
        return

    g.remove_edge(e)

    for i, rank in enumerate(range(v_rank + 1, w_rank)):
        edge_label.points = []
        if rank == label_rank:
            attrs: EdgeDummy = EdgeLabelDummy(
                width=edge_label.width,
                height=edge_label.height,
                labelpos=edge_label.labelpos,
            )
        else:
            attrs = EdgeDummy()
        attrs.edge_label = edge_label
        attrs.edge_obj = e
        attrs.rank = rank

        dummy = add_dummy_node(g, attrs, DUMMY_PREFIX)
        g.set_edge(v, dummy, EdgeLabel(weight=edge_label.weight), e.name)
        if i == 0:
            g.graph().dummy_chains.append(dummy)
        v = dummy

    g.set_edge(v, w, EdgeLabel(weight=edge_label.weight), e.name)


def undo(g: Graph) -> None:
    """Replace each dummy chain with its original edge, collecting bend points."""
    for v in g.graph().dummy_chains:
        node = g.node(v)
        orig_label = node.edge_label
        g.set_edge(node.edge_obj, orig_label)
        while node is not None and node.dummy is not None:
            w = g.successors(v)[0]
            g.remove_node(v)
            orig_label.points.append(Point(node.x, node.y))
            if isinstance(node, EdgeLabelDummy):
                orig_label.x = node.x
                orig_label.y = node.y
                orig_label.width = node.width
                orig_label.height = node.height
            v = w
            node = g.node(v)
