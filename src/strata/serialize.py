"""JSON graph documents.

A document is a mapping with an optional ``graph`` label, a ``nodes`` list
and an ``edges`` list::

    {
      "graph": {"rankdir": "LR"},
      "nodes": [{"id": "a", "width": 40, "height": 20}, {"id": "b", "parent": "g"}],
      "edges": [{"v": "a", "w": "b", "name": "x", "minlen": 2}]
    }

Every key other than ``id``/``parent`` on a node and ``v``/``w``/``name``
on an edge becomes part of that element's label.
"""

from __future__ import annotations

import json
from collections.abc import Hashable, Mapping
from typing import Any

from strata.ir.graph import Graph

_NODE_KEYS = ("id", "parent")
_EDGE_KEYS = ("v", "w", "name")


def _require(entry: Any, key: str, kind: str) -> Hashable:
    if not isinstance(entry, Mapping):
        raise ValueError(f"Each {kind} must be an object, got {entry!r}")
    if entry.get(key) is None:
        raise ValueError(f"{kind.capitalize()} {dict(entry)!r} is missing '{key}'")
    value = entry[key]
    if not isinstance(value, (str, int, float)):
        raise ValueError(f"{kind.capitalize()} '{key}' must be a string or number, got {value!r}")
    return value


def graph_from_document(doc: Mapping[str, Any]) -> Graph:
    """Build a compound multigraph from a graph document.

    Raises:
        ValueError: If the document is not shaped like a graph document.
    """
    if not isinstance(doc, Mapping):
        raise ValueError("A graph document must be a JSON object")

    g = Graph(multigraph=True, compound=True)
    graph_label = doc.get("graph") or {}
    if not isinstance(graph_label, Mapping):
        raise ValueError("'graph' must be an object")
    g.set_graph(dict(graph_label))

    nodes = doc.get("nodes") or []
    for entry in nodes:
        v = _require(entry, "id", "node")
        g.set_node(v, {k: val for k, val in entry.items() if k not in _NODE_KEYS})

    # Parents may be declared after their children.
    for entry in nodes:
        if entry.get("parent") is not None:
            parent = _require(entry, "parent", "node")
            if not g.has_node(parent):
                g.set_node(parent, {})
            g.set_parent(entry["id"], parent)

    for entry in doc.get("edges") or []:
        v = _require(entry, "v", "edge")
        w = _require(entry, "w", "edge")
        label = {k: val for k, val in entry.items() if k not in _EDGE_KEYS}
        g.set_edge(v, w, label, entry.get("name"))

    return g


def graph_to_document(g: Graph) -> dict[str, Any]:
    """Inverse of :func:`graph_from_document`."""
    nodes = []
    for v in g.nodes():
        entry: dict[str, Any] = {"id": v}
        parent = g.parent(v)
        if parent is not None:
            entry["parent"] = parent
        entry.update(g.node(v) or {})
        nodes.append(entry)

    edges = []
    for e in g.edges():
        entry = {"v": e.v, "w": e.w}
        if e.name is not None:
            entry["name"] = e.name
        entry.update(g.edge(e) or {})
        edges.append(entry)

    return {"graph": dict(g.graph() or {}), "nodes": nodes, "edges": edges}


def loads(text: str) -> Graph:
    """Parse a JSON graph document.

    Raises:
        ValueError: If ``text`` is not JSON or not a graph document.
    """
    return graph_from_document(json.loads(text))


def dumps(g: Graph, indent: int | None = 2) -> str:
    return json.dumps(graph_to_document(g), indent=indent)
