"""Rank assignment.

Assigns a rank to each node in the input graph that respects the ``minlen``
constraint of every edge.

Pre-conditions:
  1. The graph is a connected DAG.
  2. Every edge label has ``weight`` and ``minlen``.

Post-conditions:
  1. Every node has a ``rank`` such that for each edge ``(v, w)``,
     ``rank(w) - rank(v) >= minlen``. Ranks may be negative until
     normalized.
"""

from __future__ import annotations

import logging

from strata.ir.graph import Graph
from strata.layout.rank.feasible_tree import feasible_tree
from strata.layout.rank.network_simplex import network_simplex
from strata.layout.rank.util import longest_path

logger = logging.getLogger(__name__)


def rank(g: Graph) -> None:
    """Rank ``g`` with the ranker named in its graph label.

    Unknown ranker names fall back to network simplex.
    """
    if not g.node_count():
        return

    ranker = g.graph().ranker
    if ranker == "tight-tree":
        _tight_tree_ranker(g)
    elif ranker == "longest-path":
        longest_path(g)
    else:
        if ranker not in (None, "network-simplex"):
            logger.debug("Unknown ranker %r, using network simplex", ranker)
        network_simplex(g)


def _tight_tree_ranker(g: Graph) -> None:
    longest_path(g)
    feasible_tree(g)


__all__ = ["feasible_tree", "longest_path", "network_simplex", "rank"]
