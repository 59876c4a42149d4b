"""Centralized configuration for strata layouts.

The attribute whitelists decide which keys of the caller's labels can
influence a layout; everything else is ignored and never copied back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

GRAPH_NUM_ATTRS = ("nodesep", "edgesep", "ranksep", "marginx", "marginy")
GRAPH_DEFAULTS: dict[str, Any] = {"ranksep": 50, "edgesep": 20, "nodesep": 50, "rankdir": "tb"}
GRAPH_ATTRS = ("acyclicer", "ranker", "rankdir", "align")

NODE_NUM_ATTRS = ("width", "height")
NODE_DEFAULTS: dict[str, Any] = {"width": 0, "height": 0}

EDGE_NUM_ATTRS = ("minlen", "weight", "width", "height", "labeloffset")
EDGE_DEFAULTS: dict[str, Any] = {
    "minlen": 1,
    "weight": 1,
    "width": 0,
    "height": 0,
    "labeloffset": 10,
    "labelpos": "r",
}
EDGE_ATTRS = ("labelpos",)

RANKDIRS = ("tb", "bt", "lr", "rl")
ALIGNMENTS = ("ul", "ur", "dl", "dr")
ACYCLICERS = ("greedy",)
RANKERS = ("network-simplex", "tight-tree", "longest-path")


@dataclass
class LayoutConfig:
    """Options for one layout call that are not part of the graph itself."""

    debug_timing: bool = False
