"""Ranking helpers: the longest-path initial ranking and edge slack."""

from __future__ import annotations

import math
from collections.abc import Hashable

from strata.ir.graph import Edge, Graph


def longest_path(g: Graph) -> None:
    """Assign an initial, un-normalized rank to every node.

    Nodes are pushed to the lowest rank possible, which leaves the bottom
    ranks wide and edges longer than necessary. It is fast, so it seeds the
    other rankers; callers using it on its own should normalize afterwards.

    Pre-conditions:
      1. The graph is a DAG.
      2. Node labels accept a ``rank`` attribute.
    """
    visited: set[Hashable] = set()

    for source in g.sources():
        if source in visited:
            continue
        visited.add(source)
        stack = [(source, iter(g.out_edges(source)))]
        while stack:
            v, pending = stack[-1]
            for e in pending:
                if e.w not in visited:
                    visited.add(e.w)
                    stack.append((e.w, iter(g.out_edges(e.w))))
                    break
            else:
                stack.pop()
                rank = min((g.node(e.w).rank - g.edge(e).minlen for e in g.out_edges(v)), default=math.inf)
                g.node(v).rank = 0 if rank == math.inf else rank


def slack(g: Graph, e: Edge) -> int:
    """Difference between the length of ``e`` and its minimum length."""
    return g.node(e.w).rank - g.node(e.v).rank - g.edge(e).minlen
