"""Tests for graph.py — arena lookup, linking (endpoint resolution + adjacency),
the row adapter and networkx export.
"""

from __future__ import annotations

import math

import networkx as nx
import pytest

from sankey_layout.errors import InvalidGraphError, LinkResolutionError, SankeyError
from sankey_layout.graph import SankeyGraph, link_graph
from sankey_layout.types import SankeyLink, SankeyNode

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_graph(names: str, *links: tuple[int, int, float]) -> SankeyGraph:
    """Build a graph with one node per character of ``names`` and index links."""
    return SankeyGraph(
        nodes=[SankeyNode(name=name) for name in names],
        links=[SankeyLink(source=s, target=t, value=v) for s, t, v in links],
    )


# ─── Linking ──────────────────────────────────────────────────────────────────


class TestLinkGraph:
    def test_index_endpoints_build_adjacency(self):
        """A→B, B→C, A→C — outgoing/incoming hold link indices in link order."""
        g = make_graph("ABC", (0, 1, 10), (1, 2, 6), (0, 2, 4))
        link_graph(g)
        a, b, c = g.nodes
        assert a.outgoing == [0, 2]
        assert a.incoming == []
        assert b.outgoing == [1]
        assert b.incoming == [0]
        assert c.outgoing == []
        assert c.incoming == [1, 2]

    def test_node_endpoints_resolved_to_indices(self):
        """Links given with SankeyNode endpoints are rewritten to arena indices."""
        a, b = SankeyNode("A"), SankeyNode("B")
        link = SankeyLink(source=a, target=b, value=3)
        g = SankeyGraph(nodes=[a, b], links=[link])
        link_graph(g)
        assert link.source == 0
        assert link.target == 1
        assert g.source_of(link) is a
        assert g.target_of(link) is b

    def test_node_endpoints_match_by_identity(self):
        """Two nodes with the same name stay distinct endpoints."""
        first, second = SankeyNode("X"), SankeyNode("X")
        link = SankeyLink(source=second, target=first, value=1)
        g = SankeyGraph(nodes=[first, second], links=[link])
        link_graph(g)
        assert (link.source, link.target) == (1, 0)

    def test_relinking_does_not_duplicate_adjacency(self):
        """Linking twice rebuilds adjacency instead of appending to it."""
        g = make_graph("AB", (0, 1, 1))
        link_graph(g)
        link_graph(g)
        assert g.nodes[0].outgoing == [0]
        assert g.nodes[1].incoming == [0]

    def test_index_out_of_range(self):
        """Target index past the end of the node list is rejected."""
        g = make_graph("AB", (0, 5, 1))
        with pytest.raises(LinkResolutionError) as excinfo:
            link_graph(g)
        assert excinfo.value.link_index == 0
        assert "out of range" in str(excinfo.value)

    def test_negative_index_rejected(self):
        """Negative indices are not treated as Python negative indexing."""
        g = make_graph("AB", (-1, 1, 1))
        with pytest.raises(LinkResolutionError):
            link_graph(g)

    def test_foreign_node_rejected(self):
        """A SankeyNode endpoint that is not in the arena is rejected."""
        a = SankeyNode("A")
        g = SankeyGraph(nodes=[a], links=[SankeyLink(source=a, target=SankeyNode("elsewhere"), value=1)])
        with pytest.raises(LinkResolutionError):
            link_graph(g)

    def test_bool_endpoint_rejected(self):
        """True is not accepted as index 1."""
        g = make_graph("AB", (0, True, 1))
        with pytest.raises(LinkResolutionError):
            link_graph(g)

    def test_self_loop_rejected(self):
        """A link from a node to itself is invalid."""
        g = make_graph("A", (0, 0, 1))
        with pytest.raises(InvalidGraphError):
            link_graph(g)

    def test_negative_value_rejected(self):
        """Negative flow values are invalid."""
        g = make_graph("AB", (0, 1, -2))
        with pytest.raises(InvalidGraphError):
            link_graph(g)

    def test_nan_value_rejected(self):
        """NaN flow values are invalid."""
        g = make_graph("AB", (0, 1, math.nan))
        with pytest.raises(InvalidGraphError):
            link_graph(g)

    def test_errors_are_value_errors(self):
        """Every graph error is a ValueError subclass via SankeyError."""
        assert issubclass(LinkResolutionError, SankeyError)
        assert issubclass(InvalidGraphError, SankeyError)
        assert issubclass(SankeyError, ValueError)

    def test_empty_graph(self):
        """Linking an empty graph is a no-op."""
        g = SankeyGraph()
        link_graph(g)
        assert g.nodes == []
        assert g.links == []


# ─── Lookup ───────────────────────────────────────────────────────────────────


class TestLookup:
    def test_index_by_name(self):
        g = make_graph("ABC")
        assert g.index_of("B") == 1
        assert g.index_of("C") == 2

    def test_unknown_name_raises_key_error(self):
        g = make_graph("AB")
        with pytest.raises(KeyError):
            g.index_of("Z")

    def test_endpoint_accessors_require_linking(self):
        """source_of on an unresolved link raises LinkResolutionError."""
        a = SankeyNode("A")
        link = SankeyLink(source=a, target=SankeyNode("B"), value=1)
        g = SankeyGraph(nodes=[a], links=[link])
        with pytest.raises(LinkResolutionError):
            g.source_of(link)

    def test_is_linked(self):
        a, b = SankeyNode("A"), SankeyNode("B")
        g = SankeyGraph(nodes=[a, b], links=[SankeyLink(source=a, target=b, value=1)])
        assert not g.is_linked()
        link_graph(g)
        assert g.is_linked()

    def test_index_endpoints_without_adjacency_not_linked(self):
        """Int endpoints alone are not enough; the adjacency lists must be built too."""
        g = make_graph("ABC", (0, 2, 5), (1, 2, 5))
        assert not g.is_linked()
        link_graph(g)
        assert g.is_linked()

    def test_stale_adjacency_not_linked(self):
        """A link appended after linking is missing from adjacency."""
        g = make_graph("AB", (0, 1, 1))
        link_graph(g)
        g.links.append(SankeyLink(source=1, target=0, value=1))
        assert not g.is_linked()

    def test_columns_grouped_by_breadth(self):
        """columns() groups nodes by breadth, left to right, arena order within."""
        g = make_graph("ABCD")
        for node, breadth in zip(g.nodes, (1, 0, 1, 2)):
            node.breadth = breadth
        columns = [[n.name for n in column] for column in g.columns()]
        assert columns == [["B"], ["A", "C"], ["D"]]


# ─── Row Adapter ──────────────────────────────────────────────────────────────


class TestFromRows:
    def test_nodes_deduplicated_in_first_seen_order(self):
        g = SankeyGraph.from_rows([("A", "B", 10), ("B", "C", 6), ("A", "C", 4)])
        assert [n.name for n in g.nodes] == ["A", "B", "C"]
        assert [(l.source, l.target, l.value) for l in g.links] == [(0, 1, 10.0), (1, 2, 6.0), (0, 2, 4.0)]

    def test_row_index_recorded(self):
        """Each link remembers the index of the row it came from."""
        g = SankeyGraph.from_rows([("A", "B", 1), ("A", "A", 1), ("B", "C", 2)])
        assert [l.row for l in g.links] == [0, 2]

    def test_self_loops_skipped(self):
        g = SankeyGraph.from_rows([("A", "A", 5)])
        assert g.links == []
        assert g.nodes == []

    def test_negative_and_missing_values_skipped(self):
        rows = [("A", "B", -1), ("A", "B", None), ("A", "B", "n/a"), ("A", "B", ""), ("A", "B", "nan")]
        g = SankeyGraph.from_rows(rows)
        assert g.links == []

    def test_missing_endpoints_skipped(self):
        g = SankeyGraph.from_rows([(None, "B", 1), ("A", None, 1)])
        assert g.links == []

    def test_short_rows_skipped(self):
        g = SankeyGraph.from_rows([("A", "B"), ("A", "B", "3")])
        assert len(g.links) == 1
        assert g.links[0].row == 1

    def test_header_row_skipped(self):
        """A CSV header has a non-numeric value column and is dropped."""
        g = SankeyGraph.from_rows([("source", "target", "value"), ("A", "B", "2.5")])
        assert [n.name for n in g.nodes] == ["A", "B"]
        assert g.links[0].value == 2.5

    def test_names_stringified(self):
        """Non-string names become strings, so 1 and "1" are the same node."""
        g = SankeyGraph.from_rows([(1, 2, 1), ("1", "3", 1)])
        assert [n.name for n in g.nodes] == ["1", "2", "3"]

    def test_zero_value_kept(self):
        g = SankeyGraph.from_rows([("A", "B", 0)])
        assert len(g.links) == 1

    def test_result_links_cleanly(self):
        """Adapter output always passes the linker."""
        g = SankeyGraph.from_rows([("A", "B", 1), ("B", "A", 1), ("C", "C", 1), ("C", "D", -3)])
        link_graph(g)
        assert g.nodes[0].outgoing == [0]


# ─── networkx Export ──────────────────────────────────────────────────────────


class TestToNetworkx:
    def test_parallel_links_preserved(self):
        """Two A→B links become two MultiDiGraph edges keyed by link index."""
        g = make_graph("AB", (0, 1, 3), (0, 1, 4))
        link_graph(g)
        nxg = g.to_networkx()
        assert isinstance(nxg, nx.MultiDiGraph)
        assert nxg.number_of_edges(0, 1) == 2
        assert nxg.edges[0, 1, 1]["value"] == 4

    def test_node_attributes(self):
        g = make_graph("AB", (0, 1, 3))
        link_graph(g)
        nxg = g.to_networkx()
        assert nxg.nodes[0]["name"] == "A"
        assert set(nxg.nodes) == {0, 1}

    def test_isolated_nodes_included(self):
        g = make_graph("ABC", (0, 1, 1))
        link_graph(g)
        assert g.to_networkx().number_of_nodes() == 3
