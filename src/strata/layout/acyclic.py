"""Cycle removal by reversing a feedback arc set, reversibly."""

from __future__ import annotations

import logging
from collections.abc import Hashable

from strata.ir.graph import Edge, Graph
from strata.layout.greedy_fas import greedy_fas
from strata.layout.types import REVERSED_PREFIX

logger = logging.getLogger(__name__)


def dfs_fas(g: Graph) -> list[Edge]:
    """Collect the back edges found by a depth-first search from every node."""
    fas: list[Edge] = []
    on_stack: set[Hashable] = set()
    visited: set[Hashable] = set()

    for start in g.nodes():
        if start in visited:
            continue
        visited.add(start)
        on_stack.add(start)
        stack = [(start, iter(g.out_edges(start)))]
        while stack:
            v, pending = stack[-1]
            for e in pending:
                if e.w in on_stack:
                    fas.append(e)
                elif e.w not in visited:
                    visited.add(e.w)
                    on_stack.add(e.w)
                    stack.append((e.w, iter(g.out_edges(e.w))))
                    break
            else:
                on_stack.discard(v)
                stack.pop()
    return fas


def run(g: Graph) -> None:
    """Reverse a feedback arc set so that ``g`` becomes a DAG."""
    acyclicer = g.graph().acyclicer
    if acyclicer == "greedy":
        fas = greedy_fas(g, lambda e: g.edge(e).weight)
    else:
        if acyclicer is not None:
            logger.debug("Unknown acyclicer %r, using depth-first search", acyclicer)
        fas = dfs_fas(g)

    for e in fas:
        label = g.edge(e)
        g.remove_edge(e)
        label.forward_name = e.name
        label.reversed = True
        g.set_edge(e.w, e.v, label, g.graph().unique_id(REVERSED_PREFIX))


def undo(g: Graph) -> None:
    """Restore every edge reversed by :func:`run` to its original orientation."""
    for e in g.edges():
        label = g.edge(e)
        if label.reversed:
            g.remove_edge(e)
            forward_name = label.forward_name
            label.reversed = False
            label.forward_name = None
            g.set_edge(e.w, e.v, label, forward_name)
