"""
Graph assembly from heterogeneous edge records.

Turns raw edge rows (fetched from several directions, touching several
node tables) into a closed visualization graph:

1. Deduplicate raw edges by (source, target, relationship type)
2. Load and resolve the entity endpoints; remap them to canonical IDs
3. Drop self-loops created by merges; deduplicate again post-remap
4. Fetch nodes still missing, one batched request per node kind
5. Emit placeholder nodes for anything the store could not return

Step 4 is a single extra round, never a recursive chase, and each kind's
fetch fails independently: a failed kind degrades to placeholders.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from pydantic import ValidationError

from insightmap.graph.canonical import select_canonical
from insightmap.graph.labels import (
    LABEL_MAX_LENGTH,
    build_node,
    placeholder_label,
    relationship_label,
)
from insightmap.graph.models import (
    ENTITY_KIND,
    GraphEdgeRecord,
    NodeRecord,
    VisualizationEdge,
    VisualizationNode,
)
from insightmap.graph.resolution import EntityResolver, ResolutionResult
from insightmap.graph.store import GraphStore

logger = logging.getLogger(__name__)

# Relationship types whose direction carries no meaning
SYMMETRIC_RELATIONSHIPS = frozenset({"SIMILAR_TO", "RELATED_TO", "CO_OCCURS"})


def edge_key(source: str, target: str, relationship_type: str) -> tuple[str, str, str]:
    """Deduplication key; endpoint order is ignored for symmetric types."""
    if relationship_type in SYMMETRIC_RELATIONSHIPS and target < source:
        source, target = target, source
    return source, target, relationship_type


def dedupe_edge_records(records: Iterable[GraphEdgeRecord]) -> list[GraphEdgeRecord]:
    """Keep the first record for each edge key, preserving order."""
    unique: dict[tuple[str, str, str], GraphEdgeRecord] = {}
    for record in records:
        key = edge_key(record.source_id, record.target_id, record.relationship_type)
        unique.setdefault(key, record)
    return list(unique.values())


@dataclass
class AssembledGraph:
    """
    A closed node/edge graph plus bookkeeping from its assembly.

    Attributes:
        nodes: All nodes (pre-loaded, entities, orphans, placeholders)
        edges: Remapped, deduplicated edges; every endpoint is in nodes
        mapping: entity ID -> canonical entity ID
        referenced_ids: node kind -> IDs referenced by the raw edges
        resolution: Entity resolution details (None if no entity endpoints)
        orphans_loaded: Nodes materialized by the orphan round
        placeholders: Placeholder nodes emitted for unresolved IDs
        failed_kinds: Node kinds whose orphan fetch failed
    """

    nodes: list[VisualizationNode] = field(default_factory=list)
    edges: list[VisualizationEdge] = field(default_factory=list)
    mapping: dict[str, str] = field(default_factory=dict)
    referenced_ids: dict[str, set[str]] = field(default_factory=dict)
    resolution: ResolutionResult | None = None
    orphans_loaded: int = 0
    placeholders: int = 0
    failed_kinds: list[str] = field(default_factory=list)

    @property
    def entity_count(self) -> int:
        """Number of distinct canonical entities."""
        return len(set(self.mapping.values()))

    def referenced_count(self, kind: str) -> int:
        return len(self.referenced_ids.get(kind, ()))


class GraphAssembler:
    """
    Assembles visualization graphs from raw edge records.

    Request-scoped state lives in the per-call _AssemblyState; the
    assembler itself only holds collaborators and can be shared.

    Example:
        assembler = GraphAssembler(store, EntityResolver())
        graph = await assembler.assemble(edge_records, loaded_nodes=insight_nodes)
    """

    def __init__(
        self,
        store: GraphStore,
        resolver: EntityResolver | None = None,
        label_max_length: int = LABEL_MAX_LENGTH,
    ) -> None:
        """
        Initialize the assembler.

        Args:
            store: Store used for entity and orphan fetches
            resolver: Entity resolver (defaults to default configuration)
            label_max_length: Maximum label length for materialized nodes
        """
        self._store = store
        self._resolver = resolver or EntityResolver()
        self._label_max_length = label_max_length

    async def assemble(
        self,
        records: Iterable[GraphEdgeRecord],
        loaded_nodes: Iterable[VisualizationNode] = (),
    ) -> AssembledGraph:
        """
        Assemble a closed graph from edge records.

        Args:
            records: Raw edge rows, possibly overlapping
            loaded_nodes: Nodes the caller already loaded (e.g. insights)

        Returns:
            AssembledGraph whose edges only reference nodes it contains

        Raises:
            StoreError: If loading the entity endpoints fails
        """
        state = _AssemblyState(nodes={node.id: node for node in loaded_nodes})
        state.kinds.update({node_id: node.kind for node_id, node in state.nodes.items()})

        raw = dedupe_edge_records(records)
        entity_ids = self._index_endpoints(raw, state)

        resolution = await self._load_entities(entity_ids, state)
        edges = self._remap_edges(raw, state)
        await self._fetch_orphans(edges, state)
        placeholders = self._add_placeholders(edges, state)

        graph = AssembledGraph(
            nodes=list(state.nodes.values()),
            edges=edges,
            mapping=state.mapping,
            referenced_ids=state.referenced,
            resolution=resolution,
            orphans_loaded=state.orphans_loaded,
            placeholders=placeholders,
            failed_kinds=state.failed_kinds,
        )
        logger.info(
            f"Assembled graph: {len(graph.nodes)} nodes, {len(graph.edges)} edges "
            f"({len(raw)} raw edges, {graph.orphans_loaded} orphans, "
            f"{graph.placeholders} placeholders)"
        )
        return graph

    @staticmethod
    def _index_endpoints(raw: list[GraphEdgeRecord], state: _AssemblyState) -> list[str]:
        """Record endpoint kinds; return entity IDs to load, in first-seen order."""
        entity_ids: dict[str, None] = {}
        for record in raw:
            for node_id, kind in (
                (record.source_id, record.source_kind),
                (record.target_id, record.target_kind),
            ):
                state.kinds.setdefault(node_id, kind)
                state.referenced.setdefault(kind, set()).add(node_id)
                if kind == ENTITY_KIND and node_id not in state.nodes:
                    entity_ids[node_id] = None
        return list(entity_ids)

    async def _load_entities(
        self, entity_ids: list[str], state: _AssemblyState
    ) -> ResolutionResult | None:
        """Fetch entity endpoints, resolve duplicates, add canonical nodes."""
        if not entity_ids:
            return None

        entities = await self._store.fetch_entities_by_ids(entity_ids)
        resolution = await asyncio.to_thread(self._resolver.resolve, entities)
        selection = select_canonical(resolution.clusters)

        for node in selection.nodes:
            state.nodes[node.id] = node
            state.kinds[node.id] = ENTITY_KIND
        state.mapping.update(selection.mapping)

        missing = len(entity_ids) - len(selection.mapping)
        if missing > 0:
            logger.debug(f"{missing} entity endpoints not returned by the store")
        return resolution

    def _remap_edges(
        self, raw: list[GraphEdgeRecord], state: _AssemblyState
    ) -> list[VisualizationEdge]:
        """Remap entity endpoints to canonical IDs, dropping loops and duplicates."""
        edges: list[VisualizationEdge] = []
        seen: set[tuple[str, str, str]] = set()
        self_loops = 0

        for record in raw:
            source = self._canonical(record.source_id, record.source_kind, state)
            target = self._canonical(record.target_id, record.target_kind, state)

            if source == target:
                self_loops += 1
                continue

            key = edge_key(source, target, record.relationship_type)
            if key in seen:
                continue
            seen.add(key)

            edges.append(
                VisualizationEdge(
                    id=f"edge-{len(edges)}-{source}-{target}-{record.relationship_type}",
                    source=source,
                    target=target,
                    relationship_type=record.relationship_type,
                    label=relationship_label(record.relationship_type),
                    weight=record.score if record.score is not None else record.confidence,
                    confidence=record.confidence,
                )
            )

        if self_loops:
            logger.debug(f"Dropped {self_loops} self-loops created by entity merges")
        return edges

    @staticmethod
    def _canonical(node_id: str, kind: str, state: _AssemblyState) -> str:
        if kind != ENTITY_KIND:
            return node_id
        return state.mapping.get(node_id, node_id)

    async def _fetch_orphans(
        self, edges: list[VisualizationEdge], state: _AssemblyState
    ) -> None:
        """
        Load nodes referenced by edges but not loaded yet.

        One batched fetch per kind, run concurrently. Each outcome is
        inspected on its own: a failed kind is logged and its IDs are left
        for placeholders.
        """
        missing = self._missing_by_kind(edges, state)
        if not missing:
            return

        kinds = list(missing)
        outcomes = await asyncio.gather(
            *(self._store.fetch_nodes_by_ids_and_kind(kind, missing[kind]) for kind in kinds),
            return_exceptions=True,
        )

        for kind, outcome in zip(kinds, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(
                    f"Orphan fetch failed for kind '{kind}' "
                    f"({len(missing[kind])} nodes): {type(outcome).__name__}: {outcome}"
                )
                state.failed_kinds.append(kind)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            self._add_orphans(kind, set(missing[kind]), outcome, state)

    def _add_orphans(
        self,
        kind: str,
        wanted: set[str],
        records: list[NodeRecord],
        state: _AssemblyState,
    ) -> None:
        for record in records:
            if record.id not in wanted or record.id in state.nodes:
                continue
            if kind == ENTITY_KIND and state.mapping.get(record.id, record.id) in state.nodes:
                continue

            try:
                node = build_node(record, self._label_max_length)
            except ValidationError as e:
                # Left for _add_placeholders
                logger.warning(
                    f"Skipping malformed {kind} row {record.id} in orphan round "
                    f"({e.error_count()} validation errors)"
                )
                continue

            state.nodes[record.id] = node.model_copy(
                update={"meta": {**node.meta, "isOrphan": True}}
            )
            state.orphans_loaded += 1

    @staticmethod
    def _missing_by_kind(
        edges: list[VisualizationEdge], state: _AssemblyState
    ) -> dict[str, list[str]]:
        missing: dict[str, dict[str, None]] = {}
        for edge in edges:
            for node_id in (edge.source, edge.target):
                if node_id not in state.nodes:
                    kind = state.kinds.get(node_id, ENTITY_KIND)
                    missing.setdefault(kind, {})[node_id] = None
        return {kind: list(ids) for kind, ids in missing.items()}

    @staticmethod
    def _add_placeholders(edges: list[VisualizationEdge], state: _AssemblyState) -> int:
        """Close the graph with placeholder nodes for unresolved endpoints."""
        added = 0
        for edge in edges:
            for node_id in (edge.source, edge.target):
                if node_id in state.nodes:
                    continue
                kind = state.kinds.get(node_id, ENTITY_KIND)
                state.nodes[node_id] = VisualizationNode(
                    id=node_id,
                    kind=kind,
                    label=placeholder_label(kind, node_id),
                    meta={"isMissing": True},
                )
                added += 1

        if added:
            logger.warning(f"Added {added} placeholder nodes for unresolved edge endpoints")
        return added


@dataclass
class _AssemblyState:
    """Mutable state of a single assemble() call."""

    nodes: dict[str, VisualizationNode] = field(default_factory=dict)
    kinds: dict[str, str] = field(default_factory=dict)
    mapping: dict[str, str] = field(default_factory=dict)
    referenced: dict[str, set[str]] = field(default_factory=dict)
    orphans_loaded: int = 0
    failed_kinds: list[str] = field(default_factory=list)
