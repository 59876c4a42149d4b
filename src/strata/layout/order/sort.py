"""Order resolved entries by barycenter, keeping unsortable entries in place."""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass

from strata.layout.order.resolve_conflicts import ResolvedEntry
from strata.layout.util import partition


@dataclass
class SortResult:
    vs: list[Hashable]
    barycenter: float | None = None
    weight: float | None = None


def sort(entries: Sequence[ResolvedEntry], bias_right: bool = False) -> SortResult:
    """Sort entries with barycenters; entries without one keep their index ``i``.

    Ties between equal barycenters go to the lower ``i`` first, or the higher
    one when ``bias_right`` is set.
    """
    sortable, unsortable = partition(entries, lambda entry: entry.barycenter is not None)
    unsortable.sort(key=lambda entry: -entry.i)
    vs: list[Hashable] = []
    total = 0.0
    weight = 0.0

    sortable.sort(key=lambda entry: (entry.barycenter, -entry.i if bias_right else entry.i))

    vs_index = _consume_unsortable(vs, unsortable, 0)

    for entry in sortable:
        vs_index += len(entry.vs)
        vs.extend(entry.vs)
        total += entry.barycenter * entry.weight
        weight += entry.weight
        vs_index = _consume_unsortable(vs, unsortable, vs_index)

    result = SortResult(vs=vs)
    if weight:
        result.barycenter = total / weight
        result.weight = weight
    return result


def _consume_unsortable(vs: list[Hashable], unsortable: list[ResolvedEntry], index: int) -> int:
    while unsortable and unsortable[-1].i <= index:
        vs.extend(unsortable.pop().vs)
        index += 1
    return index
