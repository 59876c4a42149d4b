"""Layout engine: the full layered-layout pipeline.

``layout`` copies the whitelisted attributes of a caller's graph into a
typed working graph, runs every phase over it in order and writes the
resulting coordinates back onto the caller's labels.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, MutableMapping
from typing import Any, TypeVar

from strata import config as defaults
from strata.config import LayoutConfig
from strata.ir.graph import Graph
from strata.layout import acyclic, coordinate_system, nesting_graph, normalize
from strata.layout.add_border_segments import add_border_segments
from strata.layout.order import order
from strata.layout.parent_dummy_chains import parent_dummy_chains
from strata.layout.position import position
from strata.layout.rank import rank
from strata.layout.types import (
    EDGE_PROXY_PREFIX,
    SELF_EDGE_PREFIX,
    Dummy,
    EdgeLabel,
    EdgeProxy,
    GraphLabel,
    NodeLabel,
    Point,
    SelfEdge,
    SelfEdgeDummy,
)
from strata.layout.util import (
    add_dummy_node,
    as_non_compound_graph,
    build_layer_matrix,
    intersect_rect,
    normalize_ranks,
    notime,
    remove_empty_ranks,
    time,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
TimeFn = Callable[[str, Callable[[], T]], T]


# ─── Label preparation ───────────────────────────────────────────────────────


def _make_space_for_edge_labels(g: Graph) -> None:
    """Split each rank in half so edge labels can sit between node ranks.

    This idea comes from the Gansner paper: doubling ``minlen`` and halving
    ``ranksep`` leaves a mid-rank for every label. Labels not centred on the
    edge are padded by ``labeloffset`` to keep them clear of the line.
    """
    graph = g.graph()
    graph.ranksep /= 2
    for e in g.edges():
        edge = g.edge(e)
        edge.minlen *= 2
        if edge.labelpos != "c":
            if graph.rankdir.lower() in ("tb", "bt"):
                edge.width += edge.labeloffset
            else:
                edge.height += edge.labeloffset


def _remove_self_edges(g: Graph) -> None:
    for e in g.edges():
        if e.v == e.w:
            g.node(e.v).self_edges.append(SelfEdge(edge=e, label=g.edge(e)))
            g.remove_edge(e)


def _inject_edge_label_proxies(g: Graph) -> None:
    """Pin the rank of each sized edge label with a temporary node.

    Empty ranks can then be removed without losing the mid-rank a label
    will occupy.
    """
    for e in g.edges():
        edge = g.edge(e)
        if edge.width and edge.height:
            v = g.node(e.v)
            w = g.node(e.w)
            label = EdgeProxy(rank=(w.rank - v.rank) // 2 + v.rank, edge_obj=e)
            add_dummy_node(g, label, EDGE_PROXY_PREFIX)


def _assign_rank_min_max(g: Graph) -> None:
    max_rank = 0
    for v in g.nodes():
        node = g.node(v)
        if node.border_top is not None:
            node.min_rank = g.node(node.border_top).rank or 0
            node.max_rank = g.node(node.border_bottom).rank or 0
            max_rank = max(max_rank, node.max_rank)
    g.graph().max_rank = max_rank


def _remove_edge_label_proxies(g: Graph) -> None:
    for v in g.nodes():
        node = g.node(v)
        if node.dummy is Dummy.EDGE_PROXY:
            g.edge(node.edge_obj).label_rank = node.rank
            g.remove_node(v)


# ─── Self edges ──────────────────────────────────────────────────────────────


def _insert_self_edges(g: Graph) -> None:
    """Reserve a slot to the right of each node for each of its self-loops."""
    for layer in build_layer_matrix(g):
        order_shift = 0
        for i, v in enumerate(layer):
            node = g.node(v)
            node.order = i + order_shift
            for self_edge in node.self_edges:
                order_shift += 1
                add_dummy_node(
                    g,
                    SelfEdgeDummy(
                        width=self_edge.label.width,
                        height=self_edge.label.height,
                        rank=node.rank,
                        order=i + order_shift,
                        edge_obj=self_edge.edge,
                        edge_label=self_edge.label,
                    ),
                    SELF_EDGE_PREFIX,
                )
            node.self_edges = []


def _position_self_edges(g: Graph) -> None:
    """Turn each self-loop placeholder into a loop drawn on the right of its node."""
    for v in g.nodes():
        node = g.node(v)
        if node.dummy is Dummy.SELF_EDGE:
            self_node = g.node(node.edge_obj.v)
            x = self_node.x + self_node.width / 2
            y = self_node.y
            dx = node.x - x
            dy = self_node.height / 2
            g.set_edge(node.edge_obj, node.edge_label)
            g.remove_node(v)
            node.edge_label.points = [
                Point(x + 2 * dx / 3, y - dy),
                Point(x + 5 * dx / 6, y - dy),
                Point(x + dx, y),
                Point(x + 5 * dx / 6, y + dy),
                Point(x + 2 * dx / 3, y + dy),
            ]
            node.edge_label.x = node.x
            node.edge_label.y = node.y


# ─── Finishing ───────────────────────────────────────────────────────────────


def _remove_border_nodes(g: Graph) -> None:
    """Size each subgraph from its border nodes, then drop the border nodes."""
    for v in g.nodes():
        if g.children(v):
            node = g.node(v)
            top = g.node(node.border_top)
            bottom = g.node(node.border_bottom)
            left = g.node(node.border_left[max(node.border_left)])
            right = g.node(node.border_right[max(node.border_right)])

            node.width = abs(right.x - left.x)
            node.height = abs(bottom.y - top.y)
            node.x = left.x + node.width / 2
            node.y = top.y + node.height / 2

    for v in g.nodes():
        if g.node(v).dummy is Dummy.BORDER:
            g.remove_node(v)


def _fixup_edge_label_coords(g: Graph) -> None:
    for e in g.edges():
        edge = g.edge(e)
        if edge.x is not None:
            if edge.labelpos in ("l", "r"):
                edge.width -= edge.labeloffset
            if edge.labelpos == "l":
                edge.x -= edge.width / 2 + edge.labeloffset
            elif edge.labelpos == "r":
                edge.x += edge.width / 2 + edge.labeloffset


def _translate_graph(g: Graph) -> None:
    """Move the drawing so its top-left corner sits at the margins."""
    min_x = min_y = float("inf")
    max_x = max_y = 0.0
    graph_label = g.graph()
    margin_x = graph_label.marginx or 0
    margin_y = graph_label.marginy or 0

    def get_extremes(attrs: Any) -> None:
        nonlocal min_x, max_x, min_y, max_y
        x, y = attrs.x, attrs.y
        w, h = attrs.width, attrs.height
        min_x = min(min_x, x - w / 2)
        max_x = max(max_x, x + w / 2)
        min_y = min(min_y, y - h / 2)
        max_y = max(max_y, y + h / 2)

    for v in g.nodes():
        get_extremes(g.node(v))
    for e in g.edges():
        edge = g.edge(e)
        if edge.x is not None:
            get_extremes(edge)

    # An empty drawing is just its margins.
    if min_x == float("inf"):
        min_x = min_y = 0.0

    min_x -= margin_x
    min_y -= margin_y

    for v in g.nodes():
        node = g.node(v)
        node.x -= min_x
        node.y -= min_y

    for e in g.edges():
        edge = g.edge(e)
        for p in edge.points:
            p.x -= min_x
            p.y -= min_y
        if edge.x is not None:
            edge.x -= min_x
        if edge.y is not None:
            edge.y -= min_y

    graph_label.width = max_x - min_x + margin_x
    graph_label.height = max_y - min_y + margin_y


def _assign_node_intersects(g: Graph) -> None:
    """Clip both ends of every edge to the borders of its endpoint nodes."""
    for e in g.edges():
        edge = g.edge(e)
        node_v = g.node(e.v)
        node_w = g.node(e.w)
        if not edge.points:
            p1, p2 = node_w, node_v
        else:
            p1, p2 = edge.points[0], edge.points[-1]
        edge.points.insert(0, intersect_rect(node_v, p1))
        edge.points.append(intersect_rect(node_w, p2))


def _reverse_points_for_reversed_edges(g: Graph) -> None:
    for e in g.edges():
        edge = g.edge(e)
        if edge.reversed:
            edge.points.reverse()


# ─── Pipeline ────────────────────────────────────────────────────────────────


def _rank(g: Graph) -> None:
    rank(as_non_compound_graph(g))


PHASES: list[tuple[str, Callable[[Graph], None]]] = [
    ("make_space_for_edge_labels", _make_space_for_edge_labels),
    ("remove_self_edges", _remove_self_edges),
    ("acyclic", acyclic.run),
    ("nesting_graph.run", nesting_graph.run),
    ("rank", _rank),
    ("inject_edge_label_proxies", _inject_edge_label_proxies),
    ("remove_empty_ranks", remove_empty_ranks),
    ("nesting_graph.cleanup", nesting_graph.cleanup),
    ("normalize_ranks", normalize_ranks),
    ("assign_rank_min_max", _assign_rank_min_max),
    ("remove_edge_label_proxies", _remove_edge_label_proxies),
    ("normalize.run", normalize.run),
    ("parent_dummy_chains", parent_dummy_chains),
    ("add_border_segments", add_border_segments),
    ("order", order),
    ("insert_self_edges", _insert_self_edges),
    ("adjust_coordinate_system", coordinate_system.adjust),
    ("position", position),
    ("position_self_edges", _position_self_edges),
    ("remove_border_nodes", _remove_border_nodes),
    ("normalize.undo", normalize.undo),
    ("fixup_edge_label_coords", _fixup_edge_label_coords),
    ("undo_coordinate_system", coordinate_system.undo),
    ("translate_graph", _translate_graph),
    ("assign_node_intersects", _assign_node_intersects),
    ("reverse_points", _reverse_points_for_reversed_edges),
    ("acyclic.undo", acyclic.undo),
]


def run_layout(g: Graph, time_fn: TimeFn = notime) -> None:
    """Run every phase over the working graph ``g`` in place."""
    for name, phase in PHASES:
        time_fn(name, lambda: phase(g))


# ─── Input / output ──────────────────────────────────────────────────────────


def _canonicalize(attrs: Mapping[str, Any] | None) -> dict[str, Any]:
    return {str(k).lower(): v for k, v in (attrs or {}).items()}


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    number = float(value)
    return int(number) if number.is_integer() else number


def _select_number_attrs(obj: Mapping[str, Any], attrs: tuple[str, ...]) -> dict[str, float]:
    return {k: _to_number(obj[k]) for k in attrs if isinstance(obj.get(k), (int, float)) or obj.get(k)}


def _select_attrs(obj: Mapping[str, Any], attrs: tuple[str, ...]) -> dict[str, Any]:
    return {k: obj[k] for k in attrs if obj.get(k) is not None}


def build_layout_graph(input_graph: Graph) -> Graph:
    """Build the typed working graph from the caller's graph.

    Only whitelisted attributes are copied, so this is where to look to see
    which attributes can influence a layout. Keys match case-insensitively.
    """
    g = Graph(multigraph=True, compound=True)
    graph = _canonicalize(input_graph.graph())
    g.set_graph(
        GraphLabel(
            **{
                **defaults.GRAPH_DEFAULTS,
                **_select_number_attrs(graph, defaults.GRAPH_NUM_ATTRS),
                **_select_attrs(graph, defaults.GRAPH_ATTRS),
            }
        )
    )

    for v in input_graph.nodes():
        node = _canonicalize(input_graph.node(v))
        g.set_node(v, NodeLabel(**{**defaults.NODE_DEFAULTS, **_select_number_attrs(node, defaults.NODE_NUM_ATTRS)}))
        g.set_parent(v, input_graph.parent(v))

    for e in input_graph.edges():
        edge = _canonicalize(input_graph.edge(e))
        edge_label = EdgeLabel(
            **{
                **defaults.EDGE_DEFAULTS,
                **_select_number_attrs(edge, defaults.EDGE_NUM_ATTRS),
                **_select_attrs(edge, defaults.EDGE_ATTRS),
            }
        )
        # Every later phase compares labelpos in lower case.
        edge_label.labelpos = str(edge_label.labelpos).lower()
        g.set_edge(e, edge_label)

    return g


def _writable(label: MutableMapping[str, Any] | None, replace: Callable[[dict[str, Any]], None]) -> MutableMapping[str, Any]:
    if label is None:
        label = {}
        replace(label)
    return label


def update_input_graph(input_graph: Graph, layout_graph: Graph) -> None:
    """Copy coordinates from the working graph back onto the caller's labels.

    Nodes get ``x``/``y`` (subgraphs also ``width``/``height``), edges get
    ``points`` and, when they carry a label, ``x``/``y``, and the graph gets
    its ``width``/``height``.
    """
    for v in input_graph.nodes():
        input_label = _writable(input_graph.node(v), lambda label, v=v: input_graph.set_node(v, label))
        layout_label = layout_graph.node(v)

        input_label["x"] = layout_label.x
        input_label["y"] = layout_label.y

        if layout_graph.children(v):
            input_label["width"] = layout_label.width
            input_label["height"] = layout_label.height

    for e in input_graph.edges():
        input_label = _writable(input_graph.edge(e), lambda label, e=e: input_graph.set_edge(e, label))
        layout_label = layout_graph.edge(e)

        input_label["points"] = [{"x": p.x, "y": p.y} for p in layout_label.points]
        if layout_label.x is not None:
            input_label["x"] = layout_label.x
            input_label["y"] = layout_label.y

    graph_label = _writable(input_graph.graph(), input_graph.set_graph)
    graph_label["width"] = layout_graph.graph().width
    graph_label["height"] = layout_graph.graph().height


def _layout(g: Graph, time_fn: TimeFn) -> None:
    layout_graph: Graph = time_fn("build_layout_graph", lambda: build_layout_graph(g))
    time_fn("run_layout", lambda: run_layout(layout_graph, time_fn))
    time_fn("update_input_graph", lambda: update_input_graph(g, layout_graph))


def layout(g: Graph, config: LayoutConfig | None = None) -> None:
    """Lay out ``g`` in place.

    Node labels are mappings with optional ``width``/``height``; edge labels
    may set ``minlen``, ``weight``, ``width``, ``height``, ``labelpos`` and
    ``labeloffset``; the graph label may set ``rankdir``, ``align``,
    ``nodesep``, ``edgesep``, ``ranksep``, ``marginx``, ``marginy``,
    ``acyclicer`` and ``ranker``.

    Raises:
        ValueError: If an edge endpoint cannot be clipped because a point
            lies at the centre of its node.
    """
    config = config or LayoutConfig()
    time_fn: TimeFn = time if config.debug_timing else notime
    logger.debug("Laying out %d nodes and %d edges", g.node_count(), g.edge_count())
    time_fn("layout", lambda: _layout(g, time_fn))
