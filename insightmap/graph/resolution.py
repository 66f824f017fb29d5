"""
Multi-pass entity resolution over a batch of extracted entities.

The resolver partitions a batch into clusters of entities that refer to
the same thing. Passes run in order of cost, each one only adding merges:

1. Lexical: entities whose normalized names are equal (any type)
2. Intra-type semantic: embedding cosine >= threshold within a type bucket
3. Cross-type semantic: embedding cosine >= threshold across types

Semantic passes are O(n^2) and therefore capped: a type bucket (or the
whole batch, for the cross-type pass) with more embedded entities than
``max_semantic_entities`` is skipped entirely. Entities in a skipped
bucket can still merge lexically or through the other semantic pass.
Pairs already unified by an earlier merge are never compared.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import numpy as np
from pydantic import BaseModel, Field

from insightmap.graph.models import Entity
from insightmap.graph.normalization import normalize_entity_name
from insightmap.graph.similarity import cosine_similarity
from insightmap.graph.union_find import DisjointSetForest

logger = logging.getLogger(__name__)


# ============================================================================
# Resolution Models
# ============================================================================


class ResolutionConfig(BaseModel):
    """
    Configuration for entity resolution.

    Attributes:
        similarity_threshold: Minimum cosine similarity for a semantic merge
            (inclusive). 0.80 captures paraphrases such as "google slide" vs
            "generation automatique google slide" (0.811) while keeping
            thematically adjacent terms apart.
        max_semantic_entities: Largest number of embedded entities a
            semantic pass will compare pairwise
    """

    similarity_threshold: float = Field(default=0.80, ge=0.0, le=1.0)
    max_semantic_entities: int = Field(default=500, ge=0)


@dataclass
class Cluster:
    """Entities sharing one disjoint-set root, in batch order."""

    root: str
    members: list[Entity] = field(default_factory=list)

    @property
    def member_ids(self) -> list[str]:
        return [m.id for m in self.members]

    @property
    def member_names(self) -> list[str]:
        return [m.name for m in self.members]


@dataclass
class ResolutionResult:
    """
    Outcome of one resolution run.

    Besides the partition itself, records how much work each pass did so
    callers (and tests) can verify the semantic caps were honored.
    """

    forest: DisjointSetForest[str]
    clusters: list[Cluster] = field(default_factory=list)
    lexical_merges: int = 0
    semantic_merges: int = 0
    intra_type_comparisons: int = 0
    cross_type_comparisons: int = 0
    skipped_buckets: list[str] = field(default_factory=list)
    cross_type_skipped: bool = False

    @property
    def comparisons(self) -> int:
        """Total number of embedding comparisons performed."""
        return self.intra_type_comparisons + self.cross_type_comparisons


def _dedupe_by_id(entities: Iterable[Entity]) -> list[Entity]:
    """Keep the first occurrence of each entity ID, preserving order."""
    seen: set[str] = set()
    batch: list[Entity] = []
    for entity in entities:
        if entity.id in seen:
            logger.debug(f"Ignoring duplicate entity row {entity.id}")
            continue
        seen.add(entity.id)
        batch.append(entity)
    return batch


# ============================================================================
# Entity Resolver
# ============================================================================


class EntityResolver:
    """
    Clusters duplicate entities using lexical and embedding signals.

    Stateless between calls: every resolve() builds its own forest.

    Example:
        resolver = EntityResolver(ResolutionConfig(similarity_threshold=0.85))
        result = resolver.resolve(entities)
        for cluster in result.clusters:
            print(cluster.member_names)
    """

    def __init__(self, config: ResolutionConfig | None = None) -> None:
        """
        Initialize the resolver.

        Args:
            config: Optional ResolutionConfig. Uses defaults if not provided.
        """
        self.config = config or ResolutionConfig()

    def resolve(self, entities: Iterable[Entity]) -> ResolutionResult:
        """
        Partition a batch of entities into clusters.

        Args:
            entities: Entities to resolve; duplicate IDs are collapsed

        Returns:
            ResolutionResult with one Cluster per disjoint-set root,
            clusters ordered by first appearance in the batch
        """
        batch = _dedupe_by_id(entities)

        forest: DisjointSetForest[str] = DisjointSetForest()
        for entity in batch:
            forest.add(entity.id)

        result = ResolutionResult(forest=forest)
        vectors = {
            e.id: np.asarray(e.embedding, dtype=float) for e in batch if e.has_embedding
        }

        self._lexical_pass(batch, result)
        self._intra_type_pass(batch, vectors, result)
        self._cross_type_pass(batch, vectors, result)

        result.clusters = self._materialize(batch, forest)

        logger.info(
            f"Resolved {len(batch)} entities into {len(result.clusters)} clusters "
            f"(lexical merges: {result.lexical_merges}, "
            f"semantic merges: {result.semantic_merges}, "
            f"comparisons: {result.comparisons})"
        )
        return result

    def _lexical_pass(self, batch: list[Entity], result: ResolutionResult) -> None:
        """Merge entities whose normalized names are identical, across types."""
        groups: dict[str, list[str]] = {}
        for entity in batch:
            key = normalize_entity_name(entity.name)
            if not key:
                # An empty key would unify every unnamed entity
                logger.debug(f"Entity {entity.id} has no usable name, skipping lexical pass")
                continue
            groups.setdefault(key, []).append(entity.id)

        for ids in groups.values():
            first = ids[0]
            for other in ids[1:]:
                if result.forest.union(first, other):
                    result.lexical_merges += 1

    def _intra_type_pass(
        self,
        batch: list[Entity],
        vectors: dict[str, np.ndarray],
        result: ResolutionResult,
    ) -> None:
        """Compare embedded entities pairwise within each type bucket."""
        buckets: dict[str, list[Entity]] = {}
        for entity in batch:
            if entity.id in vectors:
                buckets.setdefault(entity.type, []).append(entity)

        cap = self.config.max_semantic_entities
        for entity_type, members in buckets.items():
            if len(members) > cap:
                logger.info(
                    f"Skipping semantic pass for type '{entity_type}': "
                    f"{len(members)} embedded entities exceed cap of {cap}"
                )
                result.skipped_buckets.append(entity_type)
                continue

            for i, a in enumerate(members):
                for b in members[i + 1 :]:
                    if result.forest.connected(a.id, b.id):
                        continue
                    result.intra_type_comparisons += 1
                    self._merge_if_similar(a, b, vectors, result)

    def _cross_type_pass(
        self,
        batch: list[Entity],
        vectors: dict[str, np.ndarray],
        result: ResolutionResult,
    ) -> None:
        """Compare embedded entities of different types across the whole batch."""
        embedded = [e for e in batch if e.id in vectors]

        cap = self.config.max_semantic_entities
        if len(embedded) > cap:
            logger.info(
                f"Skipping cross-type semantic pass: {len(embedded)} embedded "
                f"entities exceed cap of {cap}"
            )
            result.cross_type_skipped = True
            return

        for i, a in enumerate(embedded):
            for b in embedded[i + 1 :]:
                # Same-type pairs belong to the intra-type pass
                if a.type == b.type:
                    continue
                if result.forest.connected(a.id, b.id):
                    continue
                result.cross_type_comparisons += 1
                self._merge_if_similar(a, b, vectors, result)

    def _merge_if_similar(
        self,
        a: Entity,
        b: Entity,
        vectors: dict[str, np.ndarray],
        result: ResolutionResult,
    ) -> None:
        similarity = cosine_similarity(vectors[a.id], vectors[b.id])
        if similarity >= self.config.similarity_threshold:
            result.forest.union(a.id, b.id)
            result.semantic_merges += 1
            logger.debug(
                f"Semantic merge: '{a.name}' ({a.type}) ~ '{b.name}' ({b.type}) "
                f"= {similarity:.3f}"
            )

    @staticmethod
    def _materialize(
        batch: list[Entity], forest: DisjointSetForest[str]
    ) -> list[Cluster]:
        clusters: dict[str, Cluster] = {}
        for entity in batch:
            root = forest.find(entity.id)
            if root not in clusters:
                clusters[root] = Cluster(root=root)
            clusters[root].members.append(entity)
        return list(clusters.values())
