"""Per-rank graphs used to sort one layer at a time."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import Literal

from strata.ir.graph import Graph
from strata.layout.types import ROOT_PREFIX, EdgeLabel

Relationship = Literal["in_edges", "out_edges"]


@dataclass
class LayerGraphLabel:
    root: Hashable


@dataclass
class LayerSubgraph:
    """A subgraph as seen from one rank: its left and right border nodes there."""

    border_left: Hashable | None
    border_right: Hashable | None


def _create_root_node(g: Graph) -> str:
    v = g.graph().unique_id(ROOT_PREFIX)
    while g.has_node(v):
        v = g.graph().unique_id(ROOT_PREFIX)
    return v


def build_layer_graph(g: Graph, rank: int, relationship: Relationship) -> Graph:
    """Build a graph for sorting the nodes of ``rank``.

    The result holds every base and subgraph node of the rank in its
    original hierarchy, with top-level nodes parented to a fresh root named
    in the graph label. Neighbours selected by ``relationship`` are added
    without hierarchy, and the edges to them are copied with their weights
    aggregated, always pointing at the movable node.

    Base nodes share their labels with ``g`` so orders written here are
    visible there.

    Pre-conditions:
      1. ``g`` is a DAG with only short edges.
      2. Base nodes have a ``rank``; subgraph nodes have ``min_rank`` and
         ``max_rank``.
    """
    root = _create_root_node(g)
    result = Graph(compound=True)
    result.set_graph(LayerGraphLabel(root=root))
    result.set_default_node_label(g.node)

    for v in g.nodes():
        node = g.node(v)
        parent = g.parent(v)

        if node.rank == rank or (node.min_rank is not None and node.min_rank <= rank <= node.max_rank):
            result.set_node(v)
            result.set_parent(v, parent if parent is not None else root)

            for e in getattr(g, relationship)(v):
                u = e.w if e.v == v else e.v
                edge = result.edge(u, v)
                weight = edge.weight if edge is not None else 0
                result.set_edge(u, v, EdgeLabel(weight=(g.edge(e).weight or 1) + weight))

            if node.min_rank is not None:
                result.set_node(
                    v,
                    LayerSubgraph(border_left=node.border_left.get(rank), border_right=node.border_right.get(rank)),
                )

    return result
