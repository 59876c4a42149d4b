"""Initial ordering.

Assigns an initial order to each node with a depth-first walk that starts
from the nodes of the first rank; a node takes the next free slot in its
rank when it is first visited. The approach comes from Gansner, et al.,
"A Technique for Drawing Directed Graphs."
"""

from __future__ import annotations

from collections.abc import Hashable

from strata.ir.graph import Graph


def init_order(g: Graph) -> list[list[Hashable]]:
    """Return a layering matrix with one list per rank, in visiting order.

    Subgraph nodes are skipped.
    """
    visited: set[Hashable] = set()
    simple_nodes = [v for v in g.nodes() if not g.children(v)]
    max_rank = max((g.node(v).rank for v in simple_nodes), default=-1)
    layers: list[list[Hashable]] = [[] for _ in range(max_rank + 1)]

    for start in sorted(simple_nodes, key=lambda v: g.node(v).rank):
        if start in visited:
            continue
        visited.add(start)
        layers[g.node(start).rank].append(start)
        stack = [iter(g.successors(start))]
        while stack:
            w = next(stack[-1], None)
            if w is None:
                stack.pop()
            elif w not in visited:
                visited.add(w)
                layers[g.node(w).rank].append(w)
                stack.append(iter(g.successors(w)))

    return layers
