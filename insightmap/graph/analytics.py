"""
Graph analytics bridge: community detection and centrality per node.

The analytics collaborator receives the assembled graph and returns a
per-node analytics map. Merging is a pure left-join onto the node list.
Analytics are optional: any failure leaves the assembled graph intact
and simply skips the join.

The default collaborator uses NetworkX on an undirected view of the graph:
- Louvain communities (seed=42 for reproducible grouping)
- Betweenness centrality (bridging entities)
- PageRank (influence)
- Degree (connections)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Protocol

import networkx as nx  # type: ignore[import-untyped]

from insightmap.graph.models import NodeAnalytics, VisualizationEdge, VisualizationNode

logger = logging.getLogger(__name__)


class GraphAnalyzer(Protocol):
    """Computes per-node analytics for an assembled graph. May raise."""

    def compute_analytics(
        self,
        nodes: Sequence[VisualizationNode],
        edges: Sequence[VisualizationEdge],
    ) -> dict[str, NodeAnalytics]: ...


class NetworkXGraphAnalyzer:
    """
    GraphAnalyzer backed by NetworkX.

    Parallel edges between the same pair (different relationship types)
    are collapsed into one undirected edge whose weight is the sum of
    their weights.
    """

    def __init__(self, seed: int = 42) -> None:
        self.seed = seed

    @staticmethod
    def build_graph(
        nodes: Sequence[VisualizationNode],
        edges: Sequence[VisualizationEdge],
    ) -> nx.Graph:
        """Build an undirected weighted graph from visualization records."""
        graph = nx.Graph()
        graph.add_nodes_from(node.id for node in nodes)

        for edge in edges:
            weight = edge.weight if edge.weight and edge.weight > 0 else 1.0
            if graph.has_edge(edge.source, edge.target):
                graph[edge.source][edge.target]["weight"] += weight
            else:
                graph.add_edge(edge.source, edge.target, weight=weight)
        return graph

    def compute_analytics(
        self,
        nodes: Sequence[VisualizationNode],
        edges: Sequence[VisualizationEdge],
    ) -> dict[str, NodeAnalytics]:
        graph = self.build_graph(nodes, edges)
        if graph.number_of_nodes() == 0:
            return {}

        communities = self._detect_communities(graph)
        betweenness = nx.betweenness_centrality(graph)
        try:
            pagerank = nx.pagerank(graph, weight="weight")
        except nx.PowerIterationFailedConvergence:
            logger.warning("PageRank did not converge, reporting zero scores")
            pagerank = {node_id: 0.0 for node_id in graph.nodes}

        return {
            node_id: NodeAnalytics(
                community=communities.get(node_id),
                betweenness=float(betweenness.get(node_id, 0.0)),
                page_rank=float(pagerank.get(node_id, 0.0)),
                degree=int(graph.degree(node_id)),
            )
            for node_id in graph.nodes
        }

    def _detect_communities(self, graph: nx.Graph) -> dict[str, int]:
        """
        Assign a community index to every node.

        Communities are numbered by size (largest first), ties broken by
        their smallest node ID. Graphs without edges put every node in its
        own community.
        """
        if graph.number_of_edges() == 0:
            groups = [{node_id} for node_id in graph.nodes]
        else:
            groups = nx.community.louvain_communities(
                graph, weight="weight", seed=self.seed
            )

        ordered = sorted(groups, key=lambda group: (-len(group), min(group)))
        return {
            node_id: index for index, group in enumerate(ordered) for node_id in group
        }


def merge_analytics(
    nodes: Sequence[VisualizationNode],
    analytics: Mapping[str, NodeAnalytics],
) -> list[VisualizationNode]:
    """
    Left-join analytics onto nodes.

    Nodes without an analytics entry pass through unchanged; the others
    are copied with community, betweenness, pageRank and degree set.
    """
    merged: list[VisualizationNode] = []
    for node in nodes:
        entry = analytics.get(node.id)
        if entry is None:
            merged.append(node)
            continue
        merged.append(
            node.model_copy(
                update={
                    "community": entry.community,
                    "betweenness": entry.betweenness,
                    "page_rank": entry.page_rank,
                    "degree": entry.degree,
                }
            )
        )
    return merged


def apply_analytics(
    nodes: Sequence[VisualizationNode],
    edges: Sequence[VisualizationEdge],
    analyzer: GraphAnalyzer,
) -> tuple[list[VisualizationNode], bool]:
    """
    Compute analytics and merge them into the nodes.

    Failure policy: any error raised by the analyzer is logged and the
    nodes are returned unchanged. The graph stays valid without analytics.

    Returns:
        Tuple of (nodes, applied) where applied is False if the analyzer failed
    """
    try:
        analytics = analyzer.compute_analytics(nodes, edges)
    except Exception as e:
        logger.warning(f"Failed to compute graph analytics: {e}")
        return list(nodes), False

    return merge_analytics(nodes, analytics), True
