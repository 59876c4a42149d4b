"""Greedy feedback arc set heuristic.

The algorithm comes from P. Eades, X. Lin and W. F. Smyth, "A fast and
effective heuristic for the feedback arc set problem", adjusted to handle
weighted edges and multi-edges.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass

from strata.ir.graph import Edge, Graph


def _unit_weight(e: Edge) -> float:
    return 1


@dataclass(eq=False)
class _FasEntry:
    v: Hashable
    in_weight: float = 0
    out_weight: float = 0
    bucket: int | None = None


class _Buckets:
    """FIFO buckets of nodes indexed by ``out - in`` weight, sinks first and sources last."""

    def __init__(self, size: int, zero_idx: int) -> None:
        self._buckets: list[OrderedDict[Hashable, _FasEntry]] = [OrderedDict() for _ in range(size)]
        self._zero_idx = zero_idx

    def __len__(self) -> int:
        return len(self._buckets)

    def assign(self, entry: _FasEntry) -> None:
        if entry.bucket is not None:
            self._buckets[entry.bucket].pop(entry.v, None)
        if not entry.out_weight:
            idx = 0
        elif not entry.in_weight:
            idx = len(self._buckets) - 1
        else:
            idx = int(entry.out_weight - entry.in_weight) + self._zero_idx
        entry.bucket = idx
        self._buckets[idx][entry.v] = entry

    def dequeue(self, idx: int) -> _FasEntry | None:
        bucket = self._buckets[idx]
        if not bucket:
            return None
        _, entry = bucket.popitem(last=False)
        entry.bucket = None
        return entry


def _build_state(g: Graph, weight_fn: Callable[[Edge], float]) -> tuple[Graph, _Buckets]:
    fas_graph = Graph()
    max_in = 0.0
    max_out = 0.0

    for v in g.nodes():
        fas_graph.set_node(v, _FasEntry(v))

    # Sum the weights of parallel edges into a single edge of the FAS graph.
    for e in g.edges():
        weight = weight_fn(e)
        fas_graph.set_edge(e.v, e.w, (fas_graph.edge(e.v, e.w) or 0) + weight)
        tail = fas_graph.node(e.v)
        head = fas_graph.node(e.w)
        tail.out_weight += weight
        head.in_weight += weight
        max_out = max(max_out, tail.out_weight)
        max_in = max(max_in, head.in_weight)

    buckets = _Buckets(int(max_out + max_in) + 3, int(max_in) + 1)
    for v in fas_graph.nodes():
        buckets.assign(fas_graph.node(v))
    return fas_graph, buckets


def _remove_node(
    g: Graph, buckets: _Buckets, entry: _FasEntry, collect_predecessors: bool = False
) -> list[tuple[Hashable, Hashable]]:
    results: list[tuple[Hashable, Hashable]] = []
    if not g.has_node(entry.v):
        # A self-loop re-queued the node while it was being removed.
        return results

    for e in g.in_edges(entry.v):
        u_entry = g.node(e.v)
        if collect_predecessors:
            results.append((e.v, e.w))
        u_entry.out_weight -= g.edge(e)
        buckets.assign(u_entry)

    for e in g.out_edges(entry.v):
        w_entry = g.node(e.w)
        w_entry.in_weight -= g.edge(e)
        buckets.assign(w_entry)

    g.remove_node(entry.v)
    return results


def _do_greedy_fas(g: Graph, buckets: _Buckets) -> list[tuple[Hashable, Hashable]]:
    results: list[tuple[Hashable, Hashable]] = []
    sinks = 0
    sources = len(buckets) - 1

    while g.node_count():
        while (entry := buckets.dequeue(sinks)) is not None:
            _remove_node(g, buckets, entry)
        while (entry := buckets.dequeue(sources)) is not None:
            _remove_node(g, buckets, entry)
        if g.node_count():
            for i in range(len(buckets) - 2, 0, -1):
                entry = buckets.dequeue(i)
                if entry is not None:
                    results.extend(_remove_node(g, buckets, entry, collect_predecessors=True))
                    break

    return results


def greedy_fas(g: Graph, weight_fn: Callable[[Edge], float] | None = None) -> list[Edge]:
    """Return a set of edges whose removal makes ``g`` acyclic."""
    if g.node_count() <= 1:
        return []
    fas_graph, buckets = _build_state(g, weight_fn or _unit_weight)
    results = _do_greedy_fas(fas_graph, buckets)

    # Expand the aggregated edges back into the original multi-edges.
    return [e for v, w in results for e in g.out_edges(v, w)]
