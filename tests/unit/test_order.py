"""Tests for strata.layout.order: initial ordering, barycenter sorting and crossing reduction."""

import pytest

from strata.ir.graph import Edge, Graph
from strata.layout.order import order
from strata.layout.order.add_subgraph_constraints import add_subgraph_constraints
from strata.layout.order.barycenter import BarycenterEntry, barycenter
from strata.layout.order.build_layer_graph import LayerSubgraph, build_layer_graph
from strata.layout.order.cross_count import cross_count
from strata.layout.order.init_order import init_order
from strata.layout.order.resolve_conflicts import ResolvedEntry, resolve_conflicts
from strata.layout.order.sort import SortResult, sort
from strata.layout.order.sort_subgraph import sort_subgraph
from strata.layout.types import EdgeLabel, GraphLabel, NodeLabel
from strata.layout.util import build_layer_matrix


def make_graph(**kwargs):
    g = Graph(**kwargs)
    g.set_graph(GraphLabel())
    g.set_default_node_label(lambda v: NodeLabel())
    g.set_default_edge_label(lambda v, w, name: EdgeLabel(weight=1))
    return g


def set_ranks(g, ranks):
    for v, rank in ranks.items():
        g.set_node(v, NodeLabel(rank=rank))


# ─── init_order ──────────────────────────────────────────────────────────────


class TestInitOrder:
    def test_tree(self):
        g = make_graph(compound=True)
        set_ranks(g, {"a": 0, "b": 1, "c": 2, "d": 2, "e": 1})
        g.set_path(["a", "b", "c"])
        g.set_edge("b", "d")
        g.set_edge("a", "e")

        layering = init_order(g)
        assert layering[0] == ["a"]
        assert sorted(layering[1]) == ["b", "e"]
        assert sorted(layering[2]) == ["c", "d"]

    def test_dag(self):
        g = make_graph(compound=True)
        set_ranks(g, {"a": 0, "b": 1, "c": 1, "d": 2})
        g.set_path(["a", "b", "d"])
        g.set_path(["a", "c", "d"])

        layering = init_order(g)
        assert layering[0] == ["a"]
        assert sorted(layering[1]) == ["b", "c"]
        assert layering[2] == ["d"]

    def test_skips_subgraph_nodes(self):
        g = make_graph(compound=True)
        g.set_node("a", NodeLabel(rank=0))
        g.set_node("sg1", NodeLabel())
        g.set_parent("a", "sg1")
        assert init_order(g) == [["a"]]


# ─── barycenter ──────────────────────────────────────────────────────────────


class TestBarycenter:
    def test_no_predecessors(self):
        g = make_graph()
        g.set_node("x")
        assert barycenter(g, ["x"]) == [BarycenterEntry("x")]

    def test_sole_predecessor(self):
        g = make_graph()
        g.set_node("a", NodeLabel(order=2))
        g.set_edge("a", "x")
        assert barycenter(g, ["x"]) == [BarycenterEntry("x", barycenter=2, weight=1)]

    def test_average_of_predecessors(self):
        g = make_graph()
        g.set_node("a", NodeLabel(order=2))
        g.set_node("b", NodeLabel(order=4))
        g.set_edge("a", "x")
        g.set_edge("b", "x")
        assert barycenter(g, ["x"]) == [BarycenterEntry("x", barycenter=3, weight=2)]

    def test_edge_weights(self):
        g = make_graph()
        g.set_node("a", NodeLabel(order=2))
        g.set_node("b", NodeLabel(order=4))
        g.set_edge("a", "x", EdgeLabel(weight=3))
        g.set_edge("b", "x")
        assert barycenter(g, ["x"]) == [BarycenterEntry("x", barycenter=2.5, weight=4)]

    def test_whole_movable_layer(self):
        g = make_graph()
        g.set_node("a", NodeLabel(order=1))
        g.set_node("b", NodeLabel(order=2))
        g.set_node("c", NodeLabel(order=4))
        g.set_edge("a", "x")
        g.set_edge("b", "x")
        g.set_node("y")
        g.set_edge("a", "z", EdgeLabel(weight=2))
        g.set_edge("c", "z")

        assert barycenter(g, ["x", "y", "z"]) == [
            BarycenterEntry("x", barycenter=1.5, weight=2),
            BarycenterEntry("y"),
            BarycenterEntry("z", barycenter=2, weight=3),
        ]


# ─── resolve_conflicts ───────────────────────────────────────────────────────


def by_vs(entries):
    return sorted(entries, key=lambda entry: entry.vs)


class TestResolveConflicts:
    @pytest.fixture
    def cg(self):
        return Graph()

    @pytest.fixture
    def two_entries(self):
        return [BarycenterEntry("a", barycenter=2, weight=3), BarycenterEntry("b", barycenter=1, weight=2)]

    def test_no_constraints(self, cg, two_entries):
        assert by_vs(resolve_conflicts(two_entries, cg)) == [
            ResolvedEntry(["a"], 0, barycenter=2, weight=3),
            ResolvedEntry(["b"], 1, barycenter=1, weight=2),
        ]

    def test_no_conflicts(self, cg, two_entries):
        cg.set_edge("b", "a")
        assert by_vs(resolve_conflicts(two_entries, cg)) == [
            ResolvedEntry(["a"], 0, barycenter=2, weight=3),
            ResolvedEntry(["b"], 1, barycenter=1, weight=2),
        ]

    def test_coalesces_conflicting_entries(self, cg, two_entries):
        cg.set_edge("a", "b")
        assert resolve_conflicts(two_entries, cg) == [
            ResolvedEntry(["a", "b"], 0, barycenter=(3 * 2 + 2 * 1) / (3 + 2), weight=3 + 2),
        ]

    def test_coalesces_a_chain(self, cg):
        entries = [BarycenterEntry(v, barycenter=bc, weight=1) for v, bc in zip("abcd", (4, 3, 2, 1))]
        cg.set_path(["a", "b", "c", "d"])
        assert resolve_conflicts(entries, cg) == [
            ResolvedEntry(["a", "b", "c", "d"], 0, barycenter=(4 + 3 + 2 + 1) / 4, weight=4),
        ]

    def test_several_constraints_on_one_target(self, cg):
        entries = [BarycenterEntry(v, barycenter=bc, weight=1) for v, bc in zip("abc", (4, 3, 2))]
        cg.set_edge("a", "c")
        cg.set_edge("b", "c")
        results = resolve_conflicts(entries, cg)
        assert len(results) == 1
        vs = results[0].vs
        assert vs.index("c") > vs.index("a")
        assert vs.index("c") > vs.index("b")
        assert results[0].i == 0
        assert results[0].barycenter == (4 + 3 + 2) / 3
        assert results[0].weight == 3

    def test_several_constraints_on_one_target_with_chain(self, cg):
        entries = [BarycenterEntry(v, barycenter=bc, weight=1) for v, bc in zip("abcd", (4, 3, 2, 1))]
        cg.set_edge("a", "c")
        cg.set_edge("a", "d")
        cg.set_edge("b", "c")
        cg.set_edge("c", "d")
        results = resolve_conflicts(entries, cg)
        assert len(results) == 1
        vs = results[0].vs
        assert vs.index("c") > vs.index("a")
        assert vs.index("c") > vs.index("b")
        assert vs.index("d") > vs.index("c")
        assert results[0].i == 0
        assert results[0].barycenter == (4 + 3 + 2 + 1) / 4
        assert results[0].weight == 4

    def test_entry_without_barycenter_or_constraint(self, cg):
        entries = [BarycenterEntry("a"), BarycenterEntry("b", barycenter=1, weight=2)]
        assert by_vs(resolve_conflicts(entries, cg)) == [
            ResolvedEntry(["a"], 0),
            ResolvedEntry(["b"], 1, barycenter=1, weight=2),
        ]

    def test_entry_without_barycenter_always_conflicts(self, cg):
        entries = [BarycenterEntry("a"), BarycenterEntry("b", barycenter=1, weight=2)]
        cg.set_edge("a", "b")
        assert resolve_conflicts(entries, cg) == [ResolvedEntry(["a", "b"], 0, barycenter=1, weight=2)]

    def test_entry_without_barycenter_always_conflicts_reversed(self, cg):
        entries = [BarycenterEntry("a"), BarycenterEntry("b", barycenter=1, weight=2)]
        cg.set_edge("b", "a")
        assert resolve_conflicts(entries, cg) == [ResolvedEntry(["b", "a"], 0, barycenter=1, weight=2)]

    def test_merged_entries_without_barycenters_stay_unsortable(self, cg):
        entries = [BarycenterEntry("a"), BarycenterEntry("b")]
        cg.set_edge("a", "b")
        assert resolve_conflicts(entries, cg) == [ResolvedEntry(["a", "b"], 0)]

    def test_ignores_unrelated_constraints(self, cg, two_entries):
        cg.set_edge("c", "d")
        assert by_vs(resolve_conflicts(two_entries, cg)) == [
            ResolvedEntry(["a"], 0, barycenter=2, weight=3),
            ResolvedEntry(["b"], 1, barycenter=1, weight=2),
        ]


# ─── sort ────────────────────────────────────────────────────────────────────


class TestSort:
    def test_sorts_by_barycenter(self):
        entries = [
            ResolvedEntry(["a"], 0, barycenter=2, weight=3),
            ResolvedEntry(["b"], 1, barycenter=1, weight=2),
        ]
        assert sort(entries) == SortResult(["b", "a"], barycenter=(2 * 3 + 1 * 2) / 5, weight=5)

    def test_can_sort_super_nodes(self):
        entries = [
            ResolvedEntry(["a", "c", "d"], 0, barycenter=2, weight=3),
            ResolvedEntry(["b"], 1, barycenter=1, weight=2),
        ]
        assert sort(entries).vs == ["b", "a", "c", "d"]

    def test_unsortable_entries_keep_their_index(self):
        entries = [
            ResolvedEntry(["a"], 0, barycenter=2, weight=1),
            ResolvedEntry(["b"], 1),
            ResolvedEntry(["c"], 2, barycenter=0, weight=1),
        ]
        assert sort(entries).vs == ["c", "b", "a"]

    def test_unsortable_entries_only(self):
        entries = [ResolvedEntry(["b"], 1), ResolvedEntry(["a"], 0)]
        assert sort(entries) == SortResult(["a", "b"])

    def test_ties_go_left_by_default(self):
        entries = [
            ResolvedEntry(["a"], 0, barycenter=1, weight=1),
            ResolvedEntry(["b"], 1, barycenter=1, weight=1),
        ]
        assert sort(entries).vs == ["a", "b"]
        assert sort(entries, bias_right=True).vs == ["b", "a"]


# ─── sort_subgraph ───────────────────────────────────────────────────────────


class TestSortSubgraph:
    @pytest.fixture
    def g(self):
        g = make_graph(compound=True)
        for v in range(5):
            g.set_node(v, NodeLabel(order=v))
        return g

    @pytest.fixture
    def cg(self):
        return Graph()

    def _movable(self, g, vs, parent="movable"):
        for v in vs:
            g.set_parent(v, parent)

    def test_flat_subgraph(self, g, cg):
        g.set_edge(3, "x")
        g.set_edge(1, "y", EdgeLabel(weight=2))
        g.set_edge(4, "y")
        self._movable(g, ["x", "y"])
        assert sort_subgraph(g, "movable", cg).vs == ["y", "x"]

    def test_keeps_position_of_node_without_neighbors(self, g, cg):
        g.set_edge(3, "x")
        g.set_node("y")
        g.set_edge(1, "z", EdgeLabel(weight=2))
        g.set_edge(4, "z")
        self._movable(g, ["x", "y", "z"])
        assert sort_subgraph(g, "movable", cg).vs == ["z", "y", "x"]

    def test_left_bias(self, g, cg):
        g.set_edge(1, "x")
        g.set_edge(1, "y")
        self._movable(g, ["x", "y"])
        assert sort_subgraph(g, "movable", cg).vs == ["x", "y"]

    def test_right_bias(self, g, cg):
        g.set_edge(1, "x")
        g.set_edge(1, "y")
        self._movable(g, ["x", "y"])
        assert sort_subgraph(g, "movable", cg, bias_right=True).vs == ["y", "x"]

    def test_aggregates_stats(self, g, cg):
        g.set_edge(3, "x")
        g.set_edge(1, "y", EdgeLabel(weight=2))
        g.set_edge(4, "y")
        self._movable(g, ["x", "y"])
        result = sort_subgraph(g, "movable", cg)
        assert result.barycenter == 2.25
        assert result.weight == 4

    def test_nested_subgraph_without_barycenter(self, g, cg):
        g.set_nodes(["a", "b", "c"])
        self._movable(g, ["a", "b", "c"], "y")
        g.set_edge(0, "x")
        g.set_edge(1, "z")
        g.set_edge(2, "y")
        self._movable(g, ["x", "y", "z"])
        assert sort_subgraph(g, "movable", cg).vs == ["x", "z", "a", "b", "c"]

    def test_nested_subgraph_with_barycenter(self, g, cg):
        g.set_nodes(["a", "b", "c"])
        self._movable(g, ["a", "b", "c"], "y")
        g.set_edge(0, "a", EdgeLabel(weight=3))
        g.set_edge(0, "x")
        g.set_edge(1, "z")
        g.set_edge(2, "y")
        self._movable(g, ["x", "y", "z"])
        assert sort_subgraph(g, "movable", cg).vs == ["x", "a", "b", "c", "z"]

    def test_nested_subgraph_without_in_edges(self, g, cg):
        g.set_nodes(["a", "b", "c"])
        self._movable(g, ["a", "b", "c"], "y")
        g.set_edge(0, "a")
        g.set_edge(1, "b")
        g.set_edge(0, "x")
        g.set_edge(1, "z")
        self._movable(g, ["x", "y", "z"])
        assert sort_subgraph(g, "movable", cg).vs == ["x", "a", "b", "c", "z"]

    def test_border_nodes_go_to_the_ends(self, g, cg):
        g.set_edge(0, "x")
        g.set_edge(1, "y")
        g.set_edge(2, "z")
        g.set_node("sg1", LayerSubgraph(border_left="bl", border_right="br"))
        self._movable(g, ["x", "y", "z", "bl", "br"], "sg1")
        assert sort_subgraph(g, "sg1", cg).vs == ["bl", "x", "y", "z", "br"]

    def test_barycenter_from_previous_border_nodes(self, g, cg):
        g.set_node("bl1", NodeLabel(order=0))
        g.set_node("br1", NodeLabel(order=1))
        g.set_edge("bl1", "bl2")
        g.set_edge("br1", "br2")
        self._movable(g, ["bl2", "br2"], "sg")
        g.set_node("sg", LayerSubgraph(border_left="bl2", border_right="br2"))
        assert sort_subgraph(g, "sg", cg) == SortResult(["bl2", "br2"], barycenter=0.5, weight=2)


# ─── add_subgraph_constraints ────────────────────────────────────────────────


class TestAddSubgraphConstraints:
    @pytest.fixture
    def g(self):
        return Graph(compound=True)

    @pytest.fixture
    def cg(self):
        return Graph()

    def test_flat_nodes(self, g, cg):
        vs = ["a", "b", "c", "d"]
        g.set_nodes(vs)
        add_subgraph_constraints(g, cg, vs)
        assert cg.node_count() == 0
        assert cg.edge_count() == 0

    def test_contiguous_subgraph_nodes(self, g, cg):
        vs = ["a", "b", "c"]
        for v in vs:
            g.set_parent(v, "sg")
        add_subgraph_constraints(g, cg, vs)
        assert cg.node_count() == 0
        assert cg.edge_count() == 0

    def test_different_parents(self, g, cg):
        g.set_parent("a", "sg1")
        g.set_parent("b", "sg2")
        add_subgraph_constraints(g, cg, ["a", "b"])
        assert cg.edges() == [Edge("sg1", "sg2")]

    def test_multiple_levels(self, g, cg):
        vs = ["a", "b", "c", "d", "e", "f", "g", "h"]
        g.set_nodes(vs)
        g.set_parent("b", "sg2")
        g.set_parent("sg2", "sg1")
        g.set_parent("c", "sg1")
        g.set_parent("d", "sg3")
        g.set_parent("sg3", "sg1")
        g.set_parent("f", "sg4")
        g.set_parent("g", "sg5")
        g.set_parent("sg5", "sg4")
        add_subgraph_constraints(g, cg, vs)
        assert sorted(cg.edges(), key=lambda e: e.v) == [Edge("sg1", "sg4"), Edge("sg2", "sg3")]


# ─── cross_count ─────────────────────────────────────────────────────────────


class TestCrossCount:
    @pytest.fixture
    def g(self):
        return make_graph()

    def test_empty_layering(self, g):
        assert cross_count(g, []) == 0

    def test_no_crossings(self, g):
        g.set_edge("a1", "b1")
        g.set_edge("a2", "b2")
        assert cross_count(g, [["a1", "a2"], ["b1", "b2"]]) == 0

    def test_one_crossing(self, g):
        g.set_edge("a1", "b1")
        g.set_edge("a2", "b2")
        assert cross_count(g, [["a1", "a2"], ["b2", "b1"]]) == 1

    def test_weighted_crossings(self, g):
        g.set_edge("a1", "b1", EdgeLabel(weight=2))
        g.set_edge("a2", "b2", EdgeLabel(weight=3))
        assert cross_count(g, [["a1", "a2"], ["b2", "b1"]]) == 6

    def test_crossings_across_layers(self, g):
        g.set_path(["a1", "b1", "c1"])
        g.set_path(["a2", "b2", "c2"])
        assert cross_count(g, [["a1", "a2"], ["b2", "b1"], ["c1", "c2"]]) == 2

    def test_shared_endpoints_do_not_cross(self, g):
        g.set_path(["a", "b", "c"])
        g.set_path(["d", "e", "c"])
        g.set_path(["a", "f", "i"])
        g.set_edge("a", "e")
        assert cross_count(g, [["a", "d"], ["b", "e", "f"], ["c", "i"]]) == 1
        assert cross_count(g, [["d", "a"], ["e", "b", "f"], ["c", "i"]]) == 0


# ─── build_layer_graph ───────────────────────────────────────────────────────


class TestBuildLayerGraph:
    @pytest.fixture
    def g(self):
        g = make_graph(multigraph=True, compound=True)
        set_ranks(g, {"a": 1, "b": 1, "c": 2, "d": 3})
        return g

    def test_movable_nodes_hang_off_the_root(self, g):
        lg = build_layer_graph(g, 1, "in_edges")
        root = lg.graph().root
        assert lg.has_node(root)
        assert sorted(lg.children(root)) == ["a", "b"]

    def test_copies_nodes_of_the_rank(self, g):
        lg1 = build_layer_graph(g, 1, "in_edges")
        lg2 = build_layer_graph(g, 2, "in_edges")
        lg3 = build_layer_graph(g, 3, "in_edges")
        assert lg1.has_node("a") and lg1.has_node("b")
        assert lg2.has_node("c")
        assert lg3.has_node("d")

    def test_shares_node_labels(self, g):
        lg = build_layer_graph(g, 1, "in_edges")
        assert lg.node("a") is g.node("a")

    def test_copies_in_edges(self, g):
        g.set_edge("a", "c", EdgeLabel(weight=2))
        g.set_edge("b", "c", EdgeLabel(weight=3))
        g.set_edge("c", "d", EdgeLabel(weight=4))

        lg1 = build_layer_graph(g, 1, "in_edges")
        assert lg1.edge_count() == 0

        lg2 = build_layer_graph(g, 2, "in_edges")
        assert lg2.edge_count() == 2
        assert lg2.edge("a", "c") == EdgeLabel(weight=2)
        assert lg2.edge("b", "c") == EdgeLabel(weight=3)

        lg3 = build_layer_graph(g, 3, "in_edges")
        assert lg3.edge_count() == 1
        assert lg3.edge("c", "d") == EdgeLabel(weight=4)

    def test_copies_out_edges_pointing_at_movable_nodes(self, g):
        g.set_edge("a", "c", EdgeLabel(weight=2))
        g.set_edge("b", "c", EdgeLabel(weight=3))
        g.set_edge("c", "d", EdgeLabel(weight=4))

        lg1 = build_layer_graph(g, 1, "out_edges")
        assert lg1.edge_count() == 2
        assert lg1.edge("c", "a") == EdgeLabel(weight=2)
        assert lg1.edge("c", "b") == EdgeLabel(weight=3)

        lg2 = build_layer_graph(g, 2, "out_edges")
        assert lg2.edge_count() == 1
        assert lg2.edge("d", "c") == EdgeLabel(weight=4)

        lg3 = build_layer_graph(g, 3, "out_edges")
        assert lg3.edge_count() == 0

    def test_collapses_multi_edges(self, g):
        g.set_edge("a", "c", EdgeLabel(weight=2))
        g.set_edge("a", "c", EdgeLabel(weight=3), "multi")
        lg = build_layer_graph(g, 2, "in_edges")
        assert lg.edge("a", "c") == EdgeLabel(weight=5)

    def test_keeps_hierarchy_of_the_rank(self):
        g = make_graph(compound=True)
        for v in ("a", "b", "c"):
            g.set_node(v, NodeLabel(rank=0))
        g.set_node("sg", NodeLabel(min_rank=0, max_rank=0, border_left={0: "bl"}, border_right={0: "br"}))
        g.set_parent("a", "sg")
        g.set_parent("b", "sg")

        lg = build_layer_graph(g, 0, "in_edges")
        root = lg.graph().root
        assert sorted(lg.children(root)) == ["c", "sg"]
        assert lg.parent("a") == "sg"
        assert lg.parent("b") == "sg"
        assert lg.node("sg") == LayerSubgraph(border_left="bl", border_right="br")


# ─── order ───────────────────────────────────────────────────────────────────


class TestOrder:
    @pytest.fixture
    def g(self):
        return make_graph()

    def test_tree_has_no_crossings(self, g):
        g.set_node("a", NodeLabel(rank=1))
        for v in ("b", "e"):
            g.set_node(v, NodeLabel(rank=2))
        for v in ("c", "d", "f"):
            g.set_node(v, NodeLabel(rank=3))
        g.set_path(["a", "b", "c"])
        g.set_edge("b", "d")
        g.set_path(["a", "e", "f"])
        order(g)
        assert cross_count(g, build_layer_matrix(g)) == 0

    def test_simple_graph(self, g):
        for v in ("a", "d"):
            g.set_node(v, NodeLabel(rank=1))
        for v in ("b", "f", "e"):
            g.set_node(v, NodeLabel(rank=2))
        for v in ("c", "g"):
            g.set_node(v, NodeLabel(rank=3))
        order(g)
        assert cross_count(g, build_layer_matrix(g)) == 0

    def test_keeps_crossing_free_layering(self, g):
        set_ranks(g, {"a1": 0, "a2": 0, "b1": 1, "b2": 1})
        g.set_edge("a1", "b2")
        g.set_edge("a2", "b1")
        g.set_edge("a1", "b1", EdgeLabel(weight=5))
        order(g)
        assert cross_count(g, build_layer_matrix(g)) == 0

    def test_assigns_distinct_orders_per_rank(self, g):
        set_ranks(g, {"a": 0, "b": 1, "c": 1, "d": 1})
        g.set_edge("a", "b")
        g.set_edge("a", "c")
        g.set_edge("a", "d")
        order(g)
        assert sorted(g.node(v).order for v in ("b", "c", "d")) == [0, 1, 2]
        assert g.node("a").order == 0
