"""Assign each dummy node of a long edge to the subgraph it passes through.

The chain of an edge from ``v`` to ``w`` climbs from ``v``'s subgraph up to
the lowest common ancestor of both endpoints and then descends towards
``w``. Each dummy is parented to the deepest subgraph on that path whose
rank span covers the dummy's rank.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass

from strata.ir.graph import Graph


@dataclass
class _PostorderNum:
    low: int
    lim: int


def parent_dummy_chains(g: Graph) -> None:
    postorder_nums = _postorder(g)

    for v in g.graph().dummy_chains:
        node = g.node(v)
        edge_obj = node.edge_obj
        path, lca = _find_path(g, postorder_nums, edge_obj.v, edge_obj.w)
        path_idx = 0
        path_v = path[path_idx]
        ascending = True

        while v != edge_obj.w:
            node = g.node(v)

            if ascending:
                while (path_v := path[path_idx]) != lca and g.node(path_v).max_rank < node.rank:
                    path_idx += 1
                if path_v == lca:
                    ascending = False

            if not ascending:
                while path_idx < len(path) - 1 and g.node(path[path_idx + 1]).min_rank <= node.rank:
                    path_idx += 1
                path_v = path[path_idx]

            if path_v is not None:
                g.set_parent(v, path_v)
            v = g.successors(v)[0]


def _find_path(
    g: Graph, postorder_nums: dict[Hashable, _PostorderNum], v: Hashable, w: Hashable
) -> tuple[list[Hashable | None], Hashable | None]:
    """Return the hierarchy path from ``v`` up to the LCA and down to ``w``, plus the LCA."""
    v_path: list[Hashable | None] = []
    w_path: list[Hashable | None] = []
    low = min(postorder_nums[v].low, postorder_nums[w].low)
    lim = max(postorder_nums[v].lim, postorder_nums[w].lim)

    # Traverse up from v to find the LCA
    parent: Hashable | None = v
    while True:
        parent = g.parent(parent)
        v_path.append(parent)
        if parent is None or not (postorder_nums[parent].low > low or lim > postorder_nums[parent].lim):
            break
    lca = parent

    # Traverse from w to the LCA
    parent = g.parent(w)
    while parent != lca:
        w_path.append(parent)
        parent = g.parent(parent)

    return v_path + w_path[::-1], lca


def _postorder(g: Graph) -> dict[Hashable, _PostorderNum]:
    result: dict[Hashable, _PostorderNum] = {}
    lim = 0
    for top in g.children():
        stack = [(top, lim, iter(g.children(top)))]
        while stack:
            v, low, pending = stack[-1]
            child = next(pending, None)
            if child is not None:
                stack.append((child, lim, iter(g.children(child))))
            else:
                stack.pop()
                result[v] = _PostorderNum(low=low, lim=lim)
                lim += 1
    return result
