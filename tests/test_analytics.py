"""Tests for the analytics bridge."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from insightmap.graph.analytics import NetworkXGraphAnalyzer, apply_analytics, merge_analytics
from insightmap.graph.models import NodeAnalytics, VisualizationEdge, VisualizationNode


def _node(node_id: str) -> VisualizationNode:
    return VisualizationNode(id=node_id, kind="entity", label=node_id.upper())


def _edge(source: str, target: str, weight: float | None = 1.0, rel: str = "CO_OCCURS") -> VisualizationEdge:
    return VisualizationEdge(
        id=f"{source}-{target}-{rel}",
        source=source,
        target=target,
        relationship_type=rel,
        weight=weight,
    )


@pytest.fixture
def two_triangles() -> tuple[list[VisualizationNode], list[VisualizationEdge]]:
    """Two dense triangles joined by a single bridge c-d."""
    nodes = [_node(n) for n in "abcdef"]
    edges = [
        _edge("a", "b"),
        _edge("b", "c"),
        _edge("a", "c"),
        _edge("d", "e"),
        _edge("e", "f"),
        _edge("d", "f"),
        _edge("c", "d"),
    ]
    return nodes, edges


class TestNetworkXGraphAnalyzer:
    """Test community and centrality computation."""

    def test_every_node_analyzed(self, two_triangles) -> None:
        nodes, edges = two_triangles
        analytics = NetworkXGraphAnalyzer().compute_analytics(nodes, edges)

        assert set(analytics) == {n.id for n in nodes}
        assert analytics["c"].degree == 3
        assert analytics["a"].degree == 2

    def test_bridge_nodes_have_highest_betweenness(self, two_triangles) -> None:
        nodes, edges = two_triangles
        analytics = NetworkXGraphAnalyzer().compute_analytics(nodes, edges)

        top = sorted(analytics, key=lambda n: analytics[n].betweenness, reverse=True)[:2]
        assert set(top) == {"c", "d"}

    def test_triangles_form_communities(self, two_triangles) -> None:
        nodes, edges = two_triangles
        analytics = NetworkXGraphAnalyzer().compute_analytics(nodes, edges)

        assert analytics["a"].community == analytics["b"].community == analytics["c"].community
        assert analytics["d"].community == analytics["e"].community == analytics["f"].community
        assert analytics["a"].community != analytics["d"].community

    def test_deterministic(self, two_triangles) -> None:
        nodes, edges = two_triangles
        first = NetworkXGraphAnalyzer().compute_analytics(nodes, edges)
        second = NetworkXGraphAnalyzer().compute_analytics(nodes, edges)
        assert first == second

    def test_parallel_edges_summed(self) -> None:
        edges = [_edge("a", "b", 2.0, "MENTIONS"), _edge("b", "a", None, "SIMILAR_TO")]
        graph = NetworkXGraphAnalyzer.build_graph([_node("a"), _node("b")], edges)

        assert graph.number_of_edges() == 1
        assert graph["a"]["b"]["weight"] == 3.0

    def test_isolated_nodes_get_own_community(self) -> None:
        analytics = NetworkXGraphAnalyzer().compute_analytics([_node("a"), _node("b")], [])
        assert analytics["a"].community != analytics["b"].community
        assert analytics["a"].degree == 0

    def test_empty_graph(self) -> None:
        assert NetworkXGraphAnalyzer().compute_analytics([], []) == {}

    def test_page_rank_is_a_distribution(self, two_triangles) -> None:
        nodes, edges = two_triangles
        analytics = NetworkXGraphAnalyzer().compute_analytics(nodes, edges)

        scores = [entry.page_rank for entry in analytics.values()]
        assert all(score > 0 for score in scores)
        assert sum(scores) == pytest.approx(1.0)


class TestMergeAnalytics:
    """Test the left-join onto nodes."""

    def test_left_join(self) -> None:
        nodes = [_node("a"), _node("b")]
        merged = merge_analytics(
            nodes, {"a": NodeAnalytics(community=1, betweenness=0.5, page_rank=0.2, degree=3)}
        )

        assert merged[0].community == 1
        assert merged[0].page_rank == 0.2
        assert merged[0].label == "A"
        assert merged[1] == nodes[1]
        # Input nodes are not mutated
        assert nodes[0].community is None


class TestApplyAnalytics:
    """Test analytics failure isolation."""

    def test_applied(self, two_triangles) -> None:
        nodes, edges = two_triangles
        enriched, applied = apply_analytics(nodes, edges, NetworkXGraphAnalyzer())

        assert applied is True
        assert all(node.degree is not None for node in enriched)

    def test_failure_returns_nodes_unchanged(self, two_triangles) -> None:
        nodes, edges = two_triangles
        analyzer = MagicMock()
        analyzer.compute_analytics.side_effect = RuntimeError("boom")

        result, applied = apply_analytics(nodes, edges, analyzer)

        assert applied is False
        assert result == nodes
