"""Graph IR: a labeled, optionally compound multigraph backed by networkx.

This module owns the canonical graph data structure used by every layout
phase. Nodes and edges carry arbitrary label objects; edges are addressed by
``Edge(v, w, name)`` so parallel edges can coexist in multigraphs. Compound
graphs additionally keep a parent/child forest over node ids.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from typing import Any, NamedTuple

import networkx as nx

# networkx needs a concrete key for every multi-edge; the unnamed edge between
# two nodes is stored under this sentinel.
DEFAULT_EDGE_NAME = "\x00"

_ROOT = object()


class Edge(NamedTuple):
    """Identity of one edge: tail ``v``, head ``w`` and an optional name."""

    v: Hashable
    w: Hashable
    name: Hashable | None = None


def _key(name: Hashable | None) -> Hashable:
    return DEFAULT_EDGE_NAME if name is None else name


class Graph:
    """A directed or undirected, optionally multi-edge, optionally compound graph.

    Wraps a networkx ``MultiDiGraph`` (or ``MultiGraph``) and layers
    hierarchy bookkeeping and default-label factories on top of it.
    """

    def __init__(self, directed: bool = True, multigraph: bool = False, compound: bool = False) -> None:
        self._directed = directed
        self._multigraph = multigraph
        self._compound = compound
        self._nx: nx.MultiDiGraph | nx.MultiGraph = nx.MultiDiGraph() if directed else nx.MultiGraph()
        self._label: Any = None
        self._default_node_label: Callable[[Hashable], Any] = lambda v: None
        self._default_edge_label: Callable[[Hashable, Hashable, Hashable | None], Any] = lambda v, w, name: None
        self._parent: dict[Hashable, Any] = {}
        self._children: dict[Any, dict[Hashable, None]] = {_ROOT: {}}

    def __repr__(self) -> str:
        return f"Graph(nodes={self.node_count()}, edges={self.edge_count()})"

    # ─── Flags and graph label ──────────────────────────────────────────────

    def is_directed(self) -> bool:
        return self._directed

    def is_multigraph(self) -> bool:
        return self._multigraph

    def is_compound(self) -> bool:
        return self._compound

    def graph(self) -> Any:
        """Return the graph-level label."""
        return self._label

    def set_graph(self, label: Any) -> None:
        self._label = label

    def set_default_node_label(self, factory: Callable[[Hashable], Any]) -> None:
        """Use ``factory(v)`` to build labels for nodes created without one."""
        self._default_node_label = factory

    def set_default_edge_label(self, factory: Callable[[Hashable, Hashable, Hashable | None], Any]) -> None:
        """Use ``factory(v, w, name)`` to build labels for edges created without one."""
        self._default_edge_label = factory

    # ─── Nodes ──────────────────────────────────────────────────────────────

    def nodes(self) -> list[Hashable]:
        return list(self._nx.nodes)

    def node_count(self) -> int:
        return self._nx.number_of_nodes()

    def has_node(self, v: Hashable) -> bool:
        return v in self._nx

    def node(self, v: Hashable) -> Any:
        """Return the label of ``v`` or ``None`` when the node is absent."""
        attrs = self._nx.nodes.get(v)
        return attrs["label"] if attrs is not None else None

    def set_node(self, v: Hashable, label: Any = ..., /) -> None:
        """Create ``v`` or replace its label.

        Without an explicit label an existing node keeps its label and a new
        node gets one from the default node label factory.
        """
        if v in self._nx:
            if label is not ...:
                self._nx.nodes[v]["label"] = label
            return
        self._nx.add_node(v, label=self._default_node_label(v) if label is ... else label)
        if self._compound:
            self._parent[v] = _ROOT
            self._children[v] = {}
            self._children[_ROOT][v] = None

    def set_nodes(self, vs: Iterable[Hashable], label: Any = ...) -> None:
        for v in vs:
            self.set_node(v, label)

    def remove_node(self, v: Hashable) -> None:
        if v not in self._nx:
            return
        if self._compound:
            del self._children[self._parent.pop(v)][v]
            for child in list(self._children[v]):
                self.set_parent(child)
            del self._children[v]
        self._nx.remove_node(v)

    def sources(self) -> list[Hashable]:
        return [v for v in self._nx.nodes if not self._in_degree(v)]

    def sinks(self) -> list[Hashable]:
        return [v for v in self._nx.nodes if not self._out_degree(v)]

    def _in_degree(self, v: Hashable) -> int:
        return self._nx.in_degree(v) if self._directed else self._nx.degree(v)

    def _out_degree(self, v: Hashable) -> int:
        return self._nx.out_degree(v) if self._directed else self._nx.degree(v)

    # ─── Hierarchy ──────────────────────────────────────────────────────────

    def parent(self, v: Hashable) -> Hashable | None:
        if not self._compound:
            return None
        parent = self._parent.get(v, _ROOT)
        return None if parent is _ROOT else parent

    def children(self, v: Hashable | None = None) -> list[Hashable]:
        """Children of ``v``, or the top-level nodes when ``v`` is ``None``."""
        if self._compound:
            key = _ROOT if v is None else v
            return list(self._children.get(key, ()))
        if v is None:
            return self.nodes()
        return []

    def set_parent(self, v: Hashable, parent: Hashable | None = None) -> None:
        """Nest ``v`` under ``parent`` (or move it to the top level)."""
        if not self._compound:
            raise ValueError("Cannot set parent in a non-compound graph")
        if parent is None:
            parent_key: Any = _ROOT
        else:
            ancestor: Any = parent
            while ancestor is not None:
                if ancestor == v:
                    raise ValueError(f"Setting {parent!r} as parent of {v!r} would create a cycle")
                ancestor = self.parent(ancestor)
            self.set_node(parent)
            parent_key = parent
        self.set_node(v)
        del self._children[self._parent[v]][v]
        self._parent[v] = parent_key
        self._children[parent_key][v] = None

    # ─── Edges ──────────────────────────────────────────────────────────────

    def edges(self) -> list[Edge]:
        return [data["edge"] for _, _, data in self._nx.edges(data=True)]

    def edge_count(self) -> int:
        return self._nx.number_of_edges()

    def _resolve(self, v: Hashable | Edge, w: Hashable | None, name: Hashable | None) -> tuple[Any, Any, Any]:
        if isinstance(v, Edge):
            return v.v, v.w, v.name
        return v, w, name

    def has_edge(self, v: Hashable | Edge, w: Hashable | None = None, name: Hashable | None = None) -> bool:
        v, w, name = self._resolve(v, w, name)
        return self._nx.has_edge(v, w, key=_key(name))

    def edge(self, v: Hashable | Edge, w: Hashable | None = None, name: Hashable | None = None) -> Any:
        """Return the label of an edge or ``None`` when the edge is absent."""
        v, w, name = self._resolve(v, w, name)
        data = self._nx.get_edge_data(v, w, key=_key(name))
        return data["label"] if data is not None else None

    def set_edge(
        self,
        v: Hashable | Edge,
        w: Any = None,
        label: Any = ...,
        name: Hashable | None = None,
    ) -> None:
        """Create or relabel an edge, creating missing endpoints.

        Accepts either ``set_edge(v, w, label, name)`` or
        ``set_edge(Edge(...), label)``.
        """
        if isinstance(v, Edge):
            if w is not None:
                label = w
            v, w, name = v
        if name is not None and not self._multigraph:
            raise ValueError("Cannot set a named edge when the graph is not a multigraph")
        key = _key(name)
        data = self._nx.get_edge_data(v, w, key=key)
        if data is not None:
            if label is not ...:
                data["label"] = label
            return
        self.set_node(v)
        self.set_node(w)
        if label is ...:
            label = self._default_edge_label(v, w, name)
        self._nx.add_edge(v, w, key=key, edge=Edge(v, w, name), label=label)

    def set_path(self, vs: Iterable[Hashable], label: Any = ...) -> None:
        """Add an edge between each consecutive pair in ``vs``."""
        prev = None
        for i, v in enumerate(vs):
            if i:
                self.set_edge(prev, v, label)
            prev = v

    def remove_edge(self, v: Hashable | Edge, w: Hashable | None = None, name: Hashable | None = None) -> None:
        v, w, name = self._resolve(v, w, name)
        key = _key(name)
        if self._nx.has_edge(v, w, key=key):
            self._nx.remove_edge(v, w, key=key)

    # ─── Adjacency ──────────────────────────────────────────────────────────

    def predecessors(self, v: Hashable) -> list[Hashable]:
        if not self._directed:
            return self.neighbors(v)
        return list(self._nx.pred[v])

    def successors(self, v: Hashable) -> list[Hashable]:
        if not self._directed:
            return self.neighbors(v)
        return list(self._nx.succ[v])

    def neighbors(self, v: Hashable) -> list[Hashable]:
        if not self._directed:
            return list(self._nx.adj[v])
        seen = dict.fromkeys(self._nx.pred[v])
        seen.update(dict.fromkeys(self._nx.succ[v]))
        return list(seen)

    def in_edges(self, v: Hashable, u: Hashable | None = None) -> list[Edge]:
        """Edges pointing at ``v``, optionally only those coming from ``u``."""
        if not self._directed:
            return self.node_edges(v, u)
        adjacency = self._nx.pred[v]
        sources = adjacency if u is None else ([u] if u in adjacency else [])
        return [data["edge"] for src in sources for data in adjacency[src].values()]

    def out_edges(self, v: Hashable, w: Hashable | None = None) -> list[Edge]:
        """Edges leaving ``v``, optionally only those pointing at ``w``."""
        if not self._directed:
            return self.node_edges(v, w)
        adjacency = self._nx.succ[v]
        targets = adjacency if w is None else ([w] if w in adjacency else [])
        return [data["edge"] for tgt in targets for data in adjacency[tgt].values()]

    def node_edges(self, v: Hashable, w: Hashable | None = None) -> list[Edge]:
        """All edges incident on ``v`` (optionally only those shared with ``w``)."""
        if self._directed:
            return self.in_edges(v, w) + self.out_edges(v, w)
        adjacency = self._nx.adj[v]
        others = adjacency if w is None else ([w] if w in adjacency else [])
        return [data["edge"] for other in others for data in adjacency[other].values()]


def preorder(g: Graph, root: Hashable) -> list[Hashable]:
    """Depth-first preorder of the nodes reachable from ``root``."""
    return list(nx.dfs_preorder_nodes(g._nx, root))


def postorder(g: Graph, root: Hashable) -> list[Hashable]:
    """Depth-first postorder of the nodes reachable from ``root``."""
    return list(nx.dfs_postorder_nodes(g._nx, root))


def find_cycles(g: Graph) -> list[list[Hashable]]:
    """Return every cycle-bearing strongly connected component of ``g``."""
    view = nx.DiGraph()
    view.add_nodes_from(g.nodes())
    view.add_edges_from((e.v, e.w) for e in g.edges())
    return [
        list(component)
        for component in nx.strongly_connected_components(view)
        if len(component) > 1 or any(view.has_edge(v, v) for v in component)
    ]
