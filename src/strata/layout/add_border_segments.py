"""Left and right border chains for subgraphs.

Every subgraph gets one left and one right border node on each rank it
spans, linked top to bottom, so ordering and positioning keep its members
between the two chains.
"""

from __future__ import annotations

from collections.abc import Hashable

from strata.ir.graph import Graph
from strata.layout.types import BORDER_LEFT_PREFIX, BORDER_RIGHT_PREFIX, BorderDummy, BorderType, EdgeLabel, NodeLabel
from strata.layout.util import add_dummy_node


def add_border_segments(g: Graph) -> None:
    for top in g.children():
        stack = [(top, iter(g.children(top)))]
        while stack:
            v, pending = stack[-1]
            child = next(pending, None)
            if child is not None:
                stack.append((child, iter(g.children(child))))
                continue
            stack.pop()

            node = g.node(v)
            if node.min_rank is not None:
                node.border_left = {}
                node.border_right = {}
                for rank in range(node.min_rank, node.max_rank + 1):
                    _add_border_node(g, BorderType.LEFT, BORDER_LEFT_PREFIX, v, node, rank)
                    _add_border_node(g, BorderType.RIGHT, BORDER_RIGHT_PREFIX, v, node, rank)


def _add_border_node(
    g: Graph, border_type: BorderType, prefix: str, sg: Hashable, sg_node: NodeLabel, rank: int
) -> None:
    borders = sg_node.border_left if border_type is BorderType.LEFT else sg_node.border_right
    prev = borders.get(rank - 1)
    curr = add_dummy_node(g, BorderDummy(rank=rank, border_type=border_type), prefix)
    borders[rank] = curr
    g.set_parent(curr, sg)
    if prev is not None:
        g.set_edge(prev, curr, EdgeLabel(weight=1))
