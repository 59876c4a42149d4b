"""Tests for strata.layout.acyclic: reversing a feedback arc set and restoring it."""

import pytest

from strata.ir.graph import Edge, Graph, find_cycles
from strata.layout import acyclic
from strata.layout.types import EdgeLabel, GraphLabel


def make_graph(acyclicer, weight=1):
    g = Graph(multigraph=True)
    g.set_graph(GraphLabel(acyclicer=acyclicer))
    g.set_default_edge_label(lambda v, w, name: EdgeLabel(minlen=1, weight=weight))
    return g


@pytest.fixture(params=["greedy", "dfs", "unknown-should-still-work"])
def g(request):
    return make_graph(request.param)


class TestRun:
    def test_acyclic_graph_is_unchanged(self, g):
        g.set_path(["a", "b", "d"])
        g.set_path(["a", "c", "d"])
        acyclic.run(g)
        assert sorted(g.edges()) == [Edge("a", "b"), Edge("a", "c"), Edge("b", "d"), Edge("c", "d")]

    def test_breaks_cycles(self, g):
        g.set_path(["a", "b", "c", "d", "a"])
        acyclic.run(g)
        assert find_cycles(g) == []

    def test_creates_multi_edge_where_necessary(self, g):
        g.set_path(["a", "b", "a"])
        acyclic.run(g)
        assert find_cycles(g) == []
        if g.has_edge("a", "b"):
            assert len(g.out_edges("a", "b")) == 2
        else:
            assert len(g.out_edges("b", "a")) == 2
        assert g.edge_count() == 2

    def test_reversed_edge_is_marked(self, g):
        g.set_path(["a", "b", "a"])
        acyclic.run(g)
        reversed_edges = [e for e in g.edges() if g.edge(e).reversed]
        assert len(reversed_edges) == 1
        assert reversed_edges[0].name is not None


class TestUndo:
    def test_acyclic_edges_are_unchanged(self, g):
        g.set_edge("a", "b", EdgeLabel(minlen=2, weight=3))
        acyclic.run(g)
        acyclic.undo(g)
        assert g.edge("a", "b") == EdgeLabel(minlen=2, weight=3)
        assert len(g.edges()) == 1

    def test_restores_reversed_edges(self, g):
        g.set_edge("a", "b", EdgeLabel(minlen=2, weight=3))
        g.set_edge("b", "a", EdgeLabel(minlen=3, weight=4))
        acyclic.run(g)
        acyclic.undo(g)
        assert g.edge("a", "b") == EdgeLabel(minlen=2, weight=3)
        assert g.edge("b", "a") == EdgeLabel(minlen=3, weight=4)
        assert len(g.edges()) == 2

    def test_restores_edge_names(self, g):
        g.set_edge("a", "b", EdgeLabel(), "x")
        g.set_edge("b", "a", EdgeLabel(), "y")
        acyclic.run(g)
        acyclic.undo(g)
        assert sorted(g.edges()) == [Edge("a", "b", "x"), Edge("b", "a", "y")]


def test_greedy_prefers_low_weight_edges():
    g = make_graph("greedy", weight=2)
    g.set_path(["a", "b", "c", "d", "a"])
    g.set_edge("c", "d", EdgeLabel(weight=1))
    acyclic.run(g)
    assert find_cycles(g) == []
    assert not g.has_edge("c", "d")
