"""Label types shared across the layout phases.

Every node, edge and graph in the working layout graph carries one of these
dataclasses as its label. Synthetic ("dummy") nodes use a dedicated subclass
per kind so that kind-specific fields are always present where they matter.
"""

from __future__ import annotations

import itertools
from collections.abc import Hashable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

from strata.ir.graph import Edge


class Dummy(str, Enum):
    """Kinds of synthetic nodes inserted by the pipeline."""

    EDGE = "edge"
    EDGE_LABEL = "edge-label"
    EDGE_PROXY = "edge-proxy"
    BORDER = "border"
    SELF_EDGE = "selfedge"
    ROOT = "root"


class BorderType(str, Enum):
    LEFT = "borderLeft"
    RIGHT = "borderRight"
    TOP = "borderTop"
    BOTTOM = "borderBottom"


@dataclass
class Point:
    """A 2D point in layout coordinates."""

    x: float
    y: float


# ─── Graph label ─────────────────────────────────────────────────────────────


@dataclass
class GraphLabel:
    """Graph-level options, pipeline scratch fields and outputs."""

    rankdir: str = "tb"
    align: str | None = None
    nodesep: float = 50
    edgesep: float = 20
    ranksep: float = 50
    marginx: float = 0
    marginy: float = 0
    acyclicer: str | None = None
    ranker: str | None = None

    dummy_chains: list[Hashable] = field(default_factory=list)
    nesting_root: Hashable | None = None
    node_rank_factor: int = 1
    max_rank: int = 0

    width: float | None = None
    height: float | None = None

    _ids: Iterator[int] = field(default_factory=lambda: itertools.count(1), repr=False, compare=False)

    def unique_id(self, prefix: str = "") -> str:
        """Return a fresh id from this layout's own counter."""
        return f"{prefix}{next(self._ids)}"


# ─── Edge label ──────────────────────────────────────────────────────────────


@dataclass
class EdgeLabel:
    minlen: int = 1
    weight: float = 1
    width: float = 0
    height: float = 0
    labelpos: str = "r"
    labeloffset: float = 10
    points: list[Point] = field(default_factory=list)
    x: float | None = None
    y: float | None = None
    label_rank: int | None = None
    reversed: bool = False
    forward_name: Hashable | None = None
    nesting_edge: bool = False


@dataclass
class SelfEdge:
    """A self-loop stashed on its node while the rest of the graph is laid out."""

    edge: Edge
    label: EdgeLabel


# ─── Node labels ─────────────────────────────────────────────────────────────


@dataclass
class NodeLabel:
    """A real node, or a subgraph node when it has children.

    Subgraph nodes get ``min_rank``/``max_rank`` and their border node ids
    (``border_left[rank]``/``border_right[rank]`` per occupied rank).
    """

    dummy: ClassVar[Dummy | None] = None

    width: float = 0
    height: float = 0
    rank: int | None = None
    order: int | None = None
    x: float | None = None
    y: float | None = None

    min_rank: int | None = None
    max_rank: int | None = None
    border_top: Hashable | None = None
    border_bottom: Hashable | None = None
    border_left: dict[int, Hashable] = field(default_factory=dict)
    border_right: dict[int, Hashable] = field(default_factory=dict)
    self_edges: list[SelfEdge] = field(default_factory=list)


@dataclass
class EdgeDummy(NodeLabel):
    """One rank-hop of a long edge."""

    dummy: ClassVar[Dummy | None] = Dummy.EDGE

    edge_obj: Edge | None = None
    edge_label: EdgeLabel | None = None


@dataclass
class EdgeLabelDummy(EdgeDummy):
    """The hop of a long edge that carries the edge's label box."""

    dummy: ClassVar[Dummy | None] = Dummy.EDGE_LABEL

    labelpos: str = "r"


@dataclass
class EdgeProxy(NodeLabel):
    """Temporary marker recording which rank an edge label falls on."""

    dummy: ClassVar[Dummy | None] = Dummy.EDGE_PROXY

    edge_obj: Edge | None = None


@dataclass
class BorderDummy(NodeLabel):
    dummy: ClassVar[Dummy | None] = Dummy.BORDER

    border_type: BorderType | None = None


@dataclass
class SelfEdgeDummy(NodeLabel):
    """Placeholder that reserves horizontal room for a self-loop."""

    dummy: ClassVar[Dummy | None] = Dummy.SELF_EDGE

    edge_obj: Edge | None = None
    edge_label: EdgeLabel | None = None


@dataclass
class RootDummy(NodeLabel):
    dummy: ClassVar[Dummy | None] = Dummy.ROOT


# ─── Ranking tree labels ─────────────────────────────────────────────────────


@dataclass
class TreeNode:
    """Postorder numbering of a spanning-tree node; ``parent`` is unset for the root."""

    low: int | None = None
    lim: int | None = None
    parent: Hashable | None = None


@dataclass
class TreeEdge:
    cutvalue: float = 0


# Prefix constants for dummy ids
DUMMY_PREFIX = "_d"
EDGE_PROXY_PREFIX = "_ep"
SELF_EDGE_PREFIX = "_se"
ROOT_PREFIX = "_root"
BORDER_TOP_PREFIX = "_bt"
BORDER_BOTTOM_PREFIX = "_bb"
BORDER_LEFT_PREFIX = "_bl"
BORDER_RIGHT_PREFIX = "_br"
REVERSED_PREFIX = "rev"
