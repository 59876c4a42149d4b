"""Weighted edge-crossing count of a layering.

Derived from Barth, et al., "Bilayer Cross Counting."
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence

from strata.ir.graph import Graph


def _two_layer_cross_count(g: Graph, north_layer: Sequence[Hashable], south_layer: Sequence[Hashable]) -> float:
    # Sort the edges between the layers by their north position and then
    # their south position, keeping only the position of the head.
    south_pos = {v: i for i, v in enumerate(south_layer)}
    south_entries: list[tuple[int, float]] = []
    for v in north_layer:
        south_entries.extend(
            sorted(
                ((south_pos[e.w], g.edge(e).weight or 1) for e in g.out_edges(v)),
                key=lambda entry: entry[0],
            )
        )

    # Build the accumulator tree
    first_index = 1
    while first_index < len(south_layer):
        first_index <<= 1
    tree_size = 2 * first_index - 1
    first_index -= 1
    tree = [0.0] * tree_size

    # Calculate the weighted crossings
    cc = 0.0
    for pos, weight in south_entries:
        index = pos + first_index
        tree[index] += weight
        weight_sum = 0.0
        while index > 0:
            if index % 2:
                weight_sum += tree[index + 1]
            index = (index - 1) >> 1
            tree[index] += weight
        cc += weight * weight_sum

    return cc


def cross_count(g: Graph, layering: Sequence[Sequence[Hashable]]) -> float:
    """Count weighted crossings between every pair of adjacent layers.

    The graph and the layering are left unchanged; edges must only connect
    adjacent ranks.
    """
    cc = 0.0
    for i in range(1, len(layering)):
        cc += _two_layer_cross_count(g, layering[i - 1], layering[i])
    return cc
