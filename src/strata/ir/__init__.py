"""Intermediate representation: the compound multigraph shared by all layout phases."""

from strata.ir.graph import DEFAULT_EDGE_NAME, Edge, Graph, find_cycles, postorder, preorder

__all__ = [
    "DEFAULT_EDGE_NAME",
    "Edge",
    "Graph",
    "find_cycles",
    "postorder",
    "preorder",
]
