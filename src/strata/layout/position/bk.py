"""Horizontal coordinate assignment.

Based on Brandes and Köpf, "Fast and Simple Horizontal Coordinate
Assignment." Four candidate placements are computed (aligning up or down,
biased left or right) and then balanced into one.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Hashable, Sequence

from strata.config import ALIGNMENTS
from strata.ir.graph import Graph
from strata.layout.types import BorderDummy, BorderType, Dummy, EdgeLabelDummy
from strata.layout.util import build_layer_matrix

Conflicts = set[frozenset]
Layering = Sequence[Sequence[Hashable]]
XCoords = dict[Hashable, float]

logger = logging.getLogger(__name__)


def _is_dummy(g: Graph, v: Hashable) -> bool:
    return g.node(v).dummy is not None


def _find_other_inner_segment_node(g: Graph, v: Hashable) -> Hashable | None:
    if _is_dummy(g, v):
        return next((u for u in g.predecessors(v) if _is_dummy(g, u)), None)
    return None


# ─── Conflicts ───────────────────────────────────────────────────────────────


def add_conflict(conflicts: Conflicts, v: Hashable, w: Hashable) -> None:
    """Record an unordered conflict between ``v`` and ``w``."""
    conflicts.add(frozenset((v, w)))


def has_conflict(conflicts: Conflicts, v: Hashable, w: Hashable) -> bool:
    return frozenset((v, w)) in conflicts


def find_type1_conflicts(g: Graph, layering: Layering) -> Conflicts:
    """Find edges where a non-inner segment crosses an inner segment.

    An inner segment is an edge whose endpoints are both dummy nodes. Layers
    are scanned left to right from the second one down; whenever a node on
    an inner segment (or the last node) is reached, the predecessors of the
    nodes scanned since the previous stop are checked against the span of
    the two inner segments. A dummy node is assumed to have at most one
    neighbour in the previous layer.
    """
    conflicts: Conflicts = set()

    for prev_layer, layer in zip(layering, layering[1:]):
        # Order of the last node in the previous layer on an inner segment
        k0 = 0
        # Next node in this layer to scan for crossings
        scan_pos = 0
        last_node = layer[-1] if layer else None

        for i, v in enumerate(layer):
            w = _find_other_inner_segment_node(g, v)
            k1 = g.node(w).order if w is not None else len(prev_layer)

            if w is not None or v == last_node:
                for scan_node in layer[scan_pos : i + 1]:
                    for u in g.predecessors(scan_node):
                        u_label = g.node(u)
                        u_pos = u_label.order
                        if (u_pos < k0 or k1 < u_pos) and not (
                            u_label.dummy is not None and _is_dummy(g, scan_node)
                        ):
                            add_conflict(conflicts, u, scan_node)
                scan_pos = i + 1
                k0 = k1

    return conflicts


def find_type2_conflicts(g: Graph, layering: Layering) -> Conflicts:
    """Find inner segments that cross the border segments of a subgraph."""
    conflicts: Conflicts = set()

    def scan(south: Sequence[Hashable], south_pos: int, south_end: int, prev_north_border: int, next_north_border: int) -> None:
        for v in south[south_pos:south_end]:
            if _is_dummy(g, v):
                for u in g.predecessors(v):
                    u_node = g.node(u)
                    if u_node.dummy is not None and (
                        u_node.order < prev_north_border or u_node.order > next_north_border
                    ):
                        add_conflict(conflicts, u, v)

    for north, south in zip(layering, layering[1:]):
        prev_north_pos = -1
        next_north_pos = None
        south_pos = 0

        for south_lookahead, v in enumerate(south):
            if g.node(v).dummy is Dummy.BORDER:
                predecessors = g.predecessors(v)
                if predecessors:
                    next_north_pos = g.node(predecessors[0]).order
                    scan(south, south_pos, south_lookahead, prev_north_pos, next_north_pos)
                    south_pos = south_lookahead
                    prev_north_pos = next_north_pos

        if next_north_pos is not None:
            scan(south, south_pos, len(south), next_north_pos, len(north))

    return conflicts


# ─── Alignment ───────────────────────────────────────────────────────────────


def vertical_alignment(
    g: Graph,
    layering: Layering,
    conflicts: Conflicts,
    neighbor_fn: Callable[[Hashable], list[Hashable]],
) -> tuple[dict[Hashable, Hashable], dict[Hashable, Hashable]]:
    """Group nodes into vertical blocks by aligning each with a median neighbour.

    A neighbour is skipped when the connecting edge has a type-1 conflict, or
    when an earlier node already aligned with something further right, since
    the blocks would then cross. Returns ``(root, align)``.
    """
    root: dict[Hashable, Hashable] = {}
    align: dict[Hashable, Hashable] = {}
    pos: dict[Hashable, int] = {}

    # Positions come from the layering, which may be flipped relative to the
    # orders stored on the graph.
    for layer in layering:
        for order, v in enumerate(layer):
            root[v] = v
            align[v] = v
            pos[v] = order

    for layer in layering:
        prev_idx = -1
        for v in layer:
            ws = neighbor_fn(v)
            if not ws:
                continue
            ws = sorted(ws, key=lambda w: pos[w])
            mp = (len(ws) - 1) / 2
            for i in range(math.floor(mp), math.ceil(mp) + 1):
                w = ws[i]
                if align[v] == v and prev_idx < pos[w] and not has_conflict(conflicts, v, w):
                    align[w] = v
                    align[v] = root[w]
                    root[v] = root[w]
                    prev_idx = pos[w]

    return root, align


def _label_shift(label, sign: int) -> float:
    if isinstance(label, EdgeLabelDummy):
        labelpos = label.labelpos.lower()
        if labelpos == "l":
            return -sign * label.width / 2
        if labelpos == "r":
            return sign * label.width / 2
    return 0


def _sep(node_sep: float, edge_sep: float, reverse_sep: bool) -> Callable[[Graph, Hashable, Hashable], float]:
    def sep(g: Graph, v: Hashable, w: Hashable) -> float:
        v_label = g.node(v)
        w_label = g.node(w)
        total = 0.0

        total += v_label.width / 2
        delta = _label_shift(v_label, 1)
        total += delta if reverse_sep else -delta

        total += (edge_sep if v_label.dummy is not None else node_sep) / 2
        total += (edge_sep if w_label.dummy is not None else node_sep) / 2

        total += w_label.width / 2
        delta = _label_shift(w_label, -1)
        total += delta if reverse_sep else -delta

        return total

    return sep


def _build_block_graph(g: Graph, layering: Layering, root: dict[Hashable, Hashable], reverse_sep: bool) -> Graph:
    block_graph = Graph()
    graph_label = g.graph()
    sep_fn = _sep(graph_label.nodesep, graph_label.edgesep, reverse_sep)

    for layer in layering:
        u = None
        for i, v in enumerate(layer):
            v_root = root[v]
            block_graph.set_node(v_root)
            if i:
                u_root = root[u]
                prev_max = block_graph.edge(u_root, v_root)
                block_graph.set_edge(u_root, v_root, max(sep_fn(g, v, u), prev_max or 0))
            u = v

    return block_graph


def horizontal_compaction(
    g: Graph,
    layering: Layering,
    root: dict[Hashable, Hashable],
    align: dict[Hashable, Hashable],
    reverse_sep: bool = False,
) -> XCoords:
    """Assign x coordinates to aligned blocks.

    Builds a graph of blocks with separation constraints and sweeps it twice:
    first placing blocks at the smallest coordinates allowed, then pulling
    them towards the greatest coordinates allowed to remove unused space.
    """
    xs: XCoords = {}
    block_g = _build_block_graph(g, layering, root, reverse_sep)
    border_type = BorderType.LEFT if reverse_sep else BorderType.RIGHT

    def iterate(set_xs: Callable[[Hashable], None], next_nodes: Callable[[Hashable], list[Hashable]]) -> None:
        stack = block_g.nodes()
        visited: set[Hashable] = set()
        while stack:
            elem = stack.pop()
            if elem in visited:
                set_xs(elem)
            else:
                visited.add(elem)
                stack.append(elem)
                stack.extend(next_nodes(elem))

    def pass1(elem: Hashable) -> None:
        """Smallest coordinate that keeps every block to the left separated."""
        xs[elem] = max((xs[e.v] + block_g.edge(e) for e in block_g.in_edges(elem)), default=0)

    def pass2(elem: Hashable) -> None:
        """Largest coordinate that keeps every block to the right separated."""
        min_x = min((xs[e.w] - block_g.edge(e) for e in block_g.out_edges(elem)), default=math.inf)
        node = g.node(elem)
        if min_x != math.inf and not (isinstance(node, BorderDummy) and node.border_type == border_type):
            xs[elem] = max(xs[elem], min_x)

    iterate(pass1, block_g.predecessors)
    iterate(pass2, block_g.successors)

    # Assign x coordinates to all nodes
    for v in align:
        xs[v] = xs[root[v]]

    return xs


# ─── Combining the four alignments ───────────────────────────────────────────


def find_smallest_width_alignment(g: Graph, xss: dict[str, XCoords]) -> XCoords:
    """Return the alignment with the smallest overall width."""
    min_value = math.inf
    min_xs: XCoords = {}
    for xs in xss.values():
        max_x = -math.inf
        min_x = math.inf
        for v, x in xs.items():
            half_width = g.node(v).width / 2
            max_x = max(x + half_width, max_x)
            min_x = min(x - half_width, min_x)
        if max_x - min_x < min_value:
            min_value = max_x - min_x
            min_xs = xs
    return min_xs


def align_coordinates(xss: dict[str, XCoords], align_to: XCoords) -> None:
    """Shift each alignment to line up with ``align_to``.

    Left-biased alignments share its minimum coordinate and right-biased ones
    share its maximum.
    """
    align_to_min = min(align_to.values(), default=0)
    align_to_max = max(align_to.values(), default=0)

    for alignment in ALIGNMENTS:
        xs = xss[alignment]
        if xs is align_to or not xs:
            continue

        if alignment[1] == "l":
            delta = align_to_min - min(xs.values())
        else:
            delta = align_to_max - max(xs.values())

        if delta:
            xss[alignment] = {v: x + delta for v, x in xs.items()}


def balance(xss: dict[str, XCoords], align: str | None = None) -> XCoords:
    """Pick one alignment by name, or average the two median candidates per node.

    An ``align`` that names no alignment is treated as unset.
    """
    if align and align.lower() not in ALIGNMENTS:
        logger.debug("Unknown align %r, balancing all alignments", align)
        align = None

    result: XCoords = {}
    for v in xss["ul"]:
        if align:
            result[v] = xss[align.lower()][v]
        else:
            xs = sorted(candidate[v] for candidate in xss.values())
            result[v] = (xs[1] + xs[2]) / 2
    return result


def position_x(g: Graph) -> XCoords:
    layering = build_layer_matrix(g)
    conflicts = find_type1_conflicts(g, layering) | find_type2_conflicts(g, layering)

    xss: dict[str, XCoords] = {}
    for vert in ("u", "d"):
        adjusted_layering = layering if vert == "u" else layering[::-1]
        for horiz in ("l", "r"):
            if horiz == "r":
                adjusted_layering = [layer[::-1] for layer in adjusted_layering]

            neighbor_fn = g.predecessors if vert == "u" else g.successors
            root, align = vertical_alignment(g, adjusted_layering, conflicts, neighbor_fn)
            xs = horizontal_compaction(g, adjusted_layering, root, align, horiz == "r")
            if horiz == "r":
                xs = {v: -x for v, x in xs.items()}
            xss[vert + horiz] = xs

    smallest_width = find_smallest_width_alignment(g, xss)
    align_coordinates(xss, smallest_width)
    return balance(xss, g.graph().align)
