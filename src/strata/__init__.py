"""strata: layered (Sugiyama-style) layout for compound directed graphs."""

from strata.config import LayoutConfig
from strata.ir.graph import Edge, Graph
from strata.layout import layout
from strata.serialize import graph_from_document, graph_to_document

__all__ = [
    "Edge",
    "Graph",
    "LayoutConfig",
    "graph_from_document",
    "graph_to_document",
    "layout",
]
