"""Shared helpers for the layout phases."""

from __future__ import annotations

import logging
import math
import time as _time
from collections import defaultdict
from collections.abc import Callable, Hashable, Iterable
from typing import Any, Protocol, TypeVar

from strata.ir.graph import Graph
from strata.layout.types import BorderDummy, EdgeLabel, NodeLabel, Point

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Box(Protocol):
    x: Any
    y: Any
    width: float
    height: float


class _Located(Protocol):
    x: Any
    y: Any


def add_dummy_node(g: Graph, label: NodeLabel, prefix: str) -> str:
    """Add ``label`` under a fresh id starting with ``prefix`` and return the id."""
    v = g.graph().unique_id(prefix)
    while g.has_node(v):
        v = g.graph().unique_id(prefix)
    g.set_node(v, label)
    return v


def add_border_node(g: Graph, prefix: str, rank: int | None = None, order: int | None = None) -> str:
    return add_dummy_node(g, BorderDummy(rank=rank, order=order), prefix)


def simplify(g: Graph) -> Graph:
    """Return a simple-graph copy of ``g``, summing weights and keeping the largest minlen of multi-edges."""
    simplified = Graph()
    simplified.set_graph(g.graph())
    for v in g.nodes():
        simplified.set_node(v, g.node(v))
    for e in g.edges():
        simple_label = simplified.edge(e.v, e.w) or EdgeLabel(weight=0, minlen=1)
        label = g.edge(e)
        simplified.set_edge(
            e.v,
            e.w,
            EdgeLabel(weight=simple_label.weight + label.weight, minlen=max(simple_label.minlen, label.minlen)),
        )
    return simplified


def as_non_compound_graph(g: Graph) -> Graph:
    """Return a flat view of ``g`` without subgraph nodes; labels are shared."""
    simplified = Graph(multigraph=g.is_multigraph())
    simplified.set_graph(g.graph())
    for v in g.nodes():
        if not g.children(v):
            simplified.set_node(v, g.node(v))
    for e in g.edges():
        simplified.set_edge(e, g.edge(e))
    return simplified


def successor_weights(g: Graph) -> dict[Hashable, dict[Hashable, float]]:
    result: dict[Hashable, dict[Hashable, float]] = {}
    for v in g.nodes():
        weights: dict[Hashable, float] = defaultdict(float)
        for e in g.out_edges(v):
            weights[e.w] += g.edge(e).weight
        result[v] = dict(weights)
    return result


def predecessor_weights(g: Graph) -> dict[Hashable, dict[Hashable, float]]:
    result: dict[Hashable, dict[Hashable, float]] = {}
    for v in g.nodes():
        weights: dict[Hashable, float] = defaultdict(float)
        for e in g.in_edges(v):
            weights[e.v] += g.edge(e).weight
        result[v] = dict(weights)
    return result


def intersect_rect(rect: _Box, point: _Located) -> Point:
    """Find where a line from ``point`` towards the centre of ``rect`` crosses its border.

    Raises:
        ValueError: If ``point`` is the centre of ``rect``.
    """
    x, y = rect.x, rect.y
    dx = point.x - x
    dy = point.y - y
    w = rect.width / 2
    h = rect.height / 2

    if not dx and not dy:
        raise ValueError("Not possible to find intersection inside of the rectangle")

    # A point straight above or below also lands here when the rect has no size.
    if not dx or abs(dy) * w > abs(dx) * h:
        # Intersection is top or bottom of rect.
        if dy < 0:
            h = -h
        sx = h * dx / dy
        sy = h
    else:
        # Intersection is left or right of rect.
        if dx < 0:
            w = -w
        sx = w
        sy = w * dy / dx

    return Point(x=x + sx, y=y + sy)


def min_rank(g: Graph) -> int | None:
    ranks = [label.rank for label in map(g.node, g.nodes()) if label.rank is not None]
    return min(ranks, default=None)


def max_rank(g: Graph) -> int | None:
    ranks = [label.rank for label in map(g.node, g.nodes()) if label.rank is not None]
    return max(ranks, default=None)


def build_layer_matrix(g: Graph) -> list[list[Hashable]]:
    """Group ranked nodes into one list per rank, each sorted by ``order``."""
    top = max_rank(g)
    if top is None:
        return []
    slots: list[list[tuple[int, Hashable]]] = [[] for _ in range(top + 1)]
    for v in g.nodes():
        label = g.node(v)
        if label.rank is not None:
            slots[label.rank].append((label.order if label.order is not None else 0, v))
    return [[v for _, v in sorted(layer, key=lambda item: item[0])] for layer in slots]


def normalize_ranks(g: Graph) -> None:
    """Shift ranks so that the smallest assigned rank is 0."""
    lowest = min_rank(g)
    if lowest is None:
        return
    for v in g.nodes():
        label = g.node(v)
        if label.rank is not None:
            label.rank -= lowest


def remove_empty_ranks(g: Graph) -> None:
    """Drop empty ranks that are not multiples of ``node_rank_factor``."""
    offset = min_rank(g) or 0
    layers: dict[int, list[Hashable]] = defaultdict(list)
    for v in g.nodes():
        rank = g.node(v).rank
        if rank is not None:
            layers[rank - offset].append(v)

    delta = 0
    factor = g.graph().node_rank_factor
    for i in range(max(layers, default=-1) + 1):
        vs = layers.get(i)
        if vs is None and i % factor != 0:
            delta -= 1
        elif delta and vs:
            for v in vs:
                g.node(v).rank += delta


def partition(collection: Iterable[T], fn: Callable[[T], bool]) -> tuple[list[T], list[T]]:
    """Split ``collection`` into entries for which ``fn`` is true and the rest."""
    lhs: list[T] = []
    rhs: list[T] = []
    for value in collection:
        (lhs if fn(value) else rhs).append(value)
    return lhs, rhs


def time(name: str, fn: Callable[[], T]) -> T:
    """Run ``fn`` and log how long it took."""
    start = _time.perf_counter()
    try:
        return fn()
    finally:
        logger.info("%s time: %dms", name, math.floor((_time.perf_counter() - start) * 1000))


def notime(name: str, fn: Callable[[], T]) -> T:
    return fn()
