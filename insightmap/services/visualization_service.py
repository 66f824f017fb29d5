"""
Graph visualization service.

Builds the interview-insight graph for a project, client or challenge
scope in one of two modes:

- full: insights, their types, and every node reachable through one hop of
  stored graph edges (entities resolved and deduplicated)
- concepts: resolved entities only, linked by how often they co-occur in
  the same insight

Each call is independent; nothing is cached between requests.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from pydantic import BaseModel, Field

from insightmap.core.config import Settings, get_settings
from insightmap.graph.analytics import GraphAnalyzer, NetworkXGraphAnalyzer, apply_analytics
from insightmap.graph.assembler import AssembledGraph, GraphAssembler
from insightmap.graph.canonical import select_canonical
from insightmap.graph.cooccurrence import aggregate_cooccurrence
from insightmap.graph.hierarchy import collect_challenge_subtree
from insightmap.graph.labels import (
    build_has_type_edge,
    build_insight_node,
    build_insight_type_node,
)
from insightmap.graph.models import (
    CHALLENGE_KIND,
    CLAIM_KIND,
    ENTITY_KIND,
    INSIGHT_KIND,
    SYNTHESIS_KIND,
    GraphStats,
    GraphVisualization,
    VisualizationEdge,
    VisualizationNode,
)
from insightmap.graph.resolution import EntityResolver, ResolutionConfig
from insightmap.graph.store import EdgeQuery, GraphStore, InsightQuery, SessionScope

logger = logging.getLogger(__name__)

NO_SESSION_MESSAGE = "No ASK session found"
NO_INSIGHT_MESSAGE = "No insight found"
NO_ENTITY_MESSAGE = "No extracted entity"


class VisualizationMode(str, Enum):
    """Which graph to build."""

    FULL = "full"
    CONCEPTS = "concepts"


class VisualizationQuery(BaseModel):
    """
    Scope and options of a visualization request.

    Attributes:
        project_id: Restrict to one project's ASK sessions
        client_id: Restrict to all projects of a client (ignored if project_id set)
        challenge_id: Restrict to a challenge and its descendants
        limit: Maximum number of insights (clamped to the configured maximum)
        include_analytics: Compute communities and centrality
        mode: Full graph or concepts-only graph
    """

    project_id: str | None = None
    client_id: str | None = None
    challenge_id: str | None = None
    limit: int | None = Field(default=None, ge=1)
    include_analytics: bool = False
    mode: VisualizationMode = VisualizationMode.FULL


class _Scope(BaseModel):
    """Resolved request scope."""

    session_ids: list[str] | None = None
    challenge_ids: list[str] = Field(default_factory=list)


class GraphVisualizationService:
    """
    Builds visualization graphs from the store.

    Usage:
        service = GraphVisualizationService(store)
        graph = await service.build_visualization(
            VisualizationQuery(project_id=project_id, mode=VisualizationMode.CONCEPTS)
        )
    """

    def __init__(
        self,
        store: GraphStore,
        settings: Settings | None = None,
        analyzer: GraphAnalyzer | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            store: Durable store read by every request
            settings: Limits and resolution tuning (defaults to get_settings())
            analyzer: Analytics collaborator (defaults to NetworkX)
        """
        self._store = store
        self._settings = settings or get_settings()
        self._analyzer = analyzer or NetworkXGraphAnalyzer()
        self._resolver = EntityResolver(
            ResolutionConfig(
                similarity_threshold=self._settings.similarity_threshold,
                max_semantic_entities=self._settings.max_semantic_entities,
            )
        )
        self._assembler = GraphAssembler(
            store, self._resolver, label_max_length=self._settings.label_max_length
        )

    def clamp_limit(self, limit: int | None) -> int:
        """Apply the default and the maximum insight limit."""
        if limit is None:
            return self._settings.default_limit
        return max(1, min(limit, self._settings.max_limit))

    async def build_visualization(self, query: VisualizationQuery) -> GraphVisualization:
        """
        Build the graph for a request.

        Args:
            query: Scope, limit and mode

        Returns:
            GraphVisualization (possibly empty, with an explanatory message)

        Raises:
            StoreError: If a required store read fails
        """
        limit = self.clamp_limit(query.limit)
        logger.info(
            f"Building {query.mode.value} graph (project={query.project_id}, "
            f"client={query.client_id}, challenge={query.challenge_id}, limit={limit})"
        )

        scope = await self._resolve_scope(query)
        if scope is None:
            return GraphVisualization(message=NO_SESSION_MESSAGE)

        if query.mode is VisualizationMode.CONCEPTS:
            return await self._build_concepts(scope, limit, query.include_analytics)
        return await self._build_full(scope, limit, query.include_analytics)

    async def _resolve_scope(self, query: VisualizationQuery) -> _Scope | None:
        """Expand the challenge filter and look up sessions; None if no session matches."""
        challenge_ids: list[str] = []
        if query.challenge_id:
            hierarchy = await self._store.fetch_challenge_hierarchy()
            challenge_ids = collect_challenge_subtree(hierarchy, query.challenge_id)

        if not (query.project_id or query.client_id):
            return _Scope(challenge_ids=challenge_ids)

        session_ids = await self._store.fetch_session_ids(
            SessionScope(
                project_id=query.project_id,
                client_id=query.client_id,
                challenge_ids=challenge_ids,
            )
        )
        if not session_ids:
            logger.info("No ASK session matches the requested scope")
            return None
        return _Scope(session_ids=session_ids, challenge_ids=challenge_ids)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # CONCEPTS MODE
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def _build_concepts(
        self, scope: _Scope, limit: int, include_analytics: bool
    ) -> GraphVisualization:
        insights = await self._store.fetch_insights(
            InsightQuery(
                session_ids=scope.session_ids,
                challenge_ids=scope.challenge_ids,
                limit=limit,
            )
        )
        insight_ids = [record.id for record in insights]
        if not insight_ids:
            return GraphVisualization(message=NO_INSIGHT_MESSAGE)

        links = await self._store.fetch_extraction_links(insight_ids)
        entity_ids = list(dict.fromkeys(link.entity_id for link in links))
        if not entity_ids:
            return GraphVisualization(
                stats=GraphStats(insights=len(insight_ids)), message=NO_ENTITY_MESSAGE
            )

        entities = await self._store.fetch_entities_by_ids(entity_ids)
        resolution = await asyncio.to_thread(self._resolver.resolve, entities)
        selection = select_canonical(resolution.clusters)
        edges = aggregate_cooccurrence(links, selection.mapping)

        nodes, applied = await self._with_analytics(
            selection.nodes, edges, include_analytics
        )
        return GraphVisualization(
            nodes=nodes,
            edges=edges,
            stats=GraphStats(
                insights=len(insight_ids),
                entities=len(selection.nodes),
                edges=len(edges),
            ),
            analytics_applied=applied,
        )

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # FULL MODE
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def _build_full(
        self, scope: _Scope, limit: int, include_analytics: bool
    ) -> GraphVisualization:
        insights = await self._store.fetch_insights(
            InsightQuery(
                session_ids=scope.session_ids,
                challenge_ids=scope.challenge_ids,
                limit=limit,
            )
        )
        if not insights:
            return GraphVisualization(message=NO_INSIGHT_MESSAGE)

        insight_nodes = [
            build_insight_node(record, self._settings.label_max_length)
            for record in insights
        ]
        insight_types = list(
            dict.fromkeys(node.meta["insightType"] for node in insight_nodes)
        )
        type_nodes = [build_insight_type_node(name) for name in insight_types]
        has_type_edges = [
            build_has_type_edge(node.id, node.meta["insightType"]) for node in insight_nodes
        ]

        insight_ids = [node.id for node in insight_nodes]
        edge_limit = limit * self._settings.edge_fetch_multiplier
        source_edges, target_edges = await asyncio.gather(
            self._store.fetch_graph_edges(
                EdgeQuery(endpoint="source", kind=INSIGHT_KIND, ids=insight_ids, limit=edge_limit)
            ),
            self._store.fetch_graph_edges(
                EdgeQuery(endpoint="target", kind=INSIGHT_KIND, ids=insight_ids, limit=edge_limit)
            ),
        )

        graph = await self._assembler.assemble(
            [*source_edges, *target_edges], loaded_nodes=[*insight_nodes, *type_nodes]
        )
        edges = [*graph.edges, *has_type_edges]

        nodes, applied = await self._with_analytics(graph.nodes, edges, include_analytics)
        return GraphVisualization(
            nodes=nodes,
            edges=edges,
            stats=self._full_stats(graph, nodes, edges, len(insight_ids), len(insight_types)),
            analytics_applied=applied,
        )

    @staticmethod
    def _full_stats(
        graph: AssembledGraph,
        nodes: list[VisualizationNode],
        edges: list[VisualizationEdge],
        insight_count: int,
        insight_type_count: int,
    ) -> GraphStats:
        entity_nodes = sum(
            1 for node in nodes if node.kind == ENTITY_KIND and not node.meta.get("isMissing")
        )
        return GraphStats(
            insights=insight_count,
            entities=entity_nodes,
            challenges=graph.referenced_count(CHALLENGE_KIND),
            syntheses=graph.referenced_count(SYNTHESIS_KIND),
            claims=graph.referenced_count(CLAIM_KIND),
            insight_types=insight_type_count,
            edges=len(edges),
            placeholders=graph.placeholders,
        )

    async def _with_analytics(
        self,
        nodes: list[VisualizationNode],
        edges: list[VisualizationEdge],
        include_analytics: bool,
    ) -> tuple[list[VisualizationNode], bool]:
        if not include_analytics or not nodes:
            return nodes, False
        return await asyncio.to_thread(apply_analytics, nodes, edges, self._analyzer)
