"""Reconcile barycenter order with the subgraph constraint graph.

If the barycenters of two entries would violate a constraint edge, the
entries are coalesced into one that respects the constraint and carries the
combined barycenter and weight.

Based on Forster, "A Fast and Simple Heuristic for Constrained Two-Level
Crossing Reduction," though it differs in some details.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field

from strata.ir.graph import Graph
from strata.layout.order.barycenter import BarycenterEntry


@dataclass
class ResolvedEntry:
    """Nodes that must stay together, in order, and the lowest input index ``i`` among them."""

    vs: list[Hashable]
    i: int
    barycenter: float | None = None
    weight: float | None = None


@dataclass(eq=False)
class _ConflictEntry:
    vs: list[Hashable]
    i: int
    barycenter: float | None = None
    weight: float | None = None
    indegree: int = 0
    in_: list[_ConflictEntry] = field(default_factory=list)
    out: list[_ConflictEntry] = field(default_factory=list)
    merged: bool = False


def resolve_conflicts(entries: Sequence[BarycenterEntry], cg: Graph) -> list[ResolvedEntry]:
    mapped: dict[Hashable, _ConflictEntry] = {}
    for i, entry in enumerate(entries):
        tmp = _ConflictEntry(vs=[entry.v], i=i)
        if entry.barycenter is not None:
            tmp.barycenter = entry.barycenter
            tmp.weight = entry.weight
        mapped[entry.v] = tmp

    for e in cg.edges():
        entry_v = mapped.get(e.v)
        entry_w = mapped.get(e.w)
        if entry_v is not None and entry_w is not None:
            entry_w.indegree += 1
            entry_v.out.append(entry_w)

    source_set = [entry for entry in mapped.values() if not entry.indegree]
    return _do_resolve_conflicts(source_set)


def _do_resolve_conflicts(source_set: list[_ConflictEntry]) -> list[ResolvedEntry]:
    entries = []

    while source_set:
        entry = source_set.pop()
        entries.append(entry)

        for u_entry in reversed(entry.in_):
            if u_entry.merged:
                continue
            if u_entry.barycenter is None or entry.barycenter is None or u_entry.barycenter >= entry.barycenter:
                _merge_entries(entry, u_entry)

        for w_entry in entry.out:
            w_entry.in_.append(entry)
            w_entry.indegree -= 1
            if w_entry.indegree == 0:
                source_set.append(w_entry)

    return [
        ResolvedEntry(vs=entry.vs, i=entry.i, barycenter=entry.barycenter, weight=entry.weight)
        for entry in entries
        if not entry.merged
    ]


def _merge_entries(target: _ConflictEntry, source: _ConflictEntry) -> None:
    total = 0.0
    weight = 0.0

    if target.weight:
        total += target.barycenter * target.weight
        weight += target.weight

    if source.weight:
        total += source.barycenter * source.weight
        weight += source.weight

    target.vs = source.vs + target.vs
    # Two entries without barycenters stay unsortable together.
    if weight:
        target.barycenter = total / weight
        target.weight = weight
    else:
        target.barycenter = None
        target.weight = None
    target.i = min(source.i, target.i)
    source.merged = True
