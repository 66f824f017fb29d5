"""
Tests for multi-pass entity resolution.

Tests cover:
- Similarity threshold boundary (inclusive)
- Lexical merges without embeddings
- Intra-type and cross-type semantic merges
- Semantic pass caps (bounded comparison count)
- Skipping pairs already unified
"""

from __future__ import annotations

import math
from typing import Callable

import pytest

from insightmap.graph.models import Entity
from insightmap.graph.resolution import EntityResolver, ResolutionConfig

MakeEntity = Callable[..., Entity]


def unit_vector(cosine: float) -> list[float]:
    """2-d unit vector whose cosine with [1, 0] is ``cosine``."""
    return [cosine, math.sqrt(1.0 - cosine * cosine)]


def _cluster_ids(result) -> list[list[str]]:
    return sorted(sorted(cluster.member_ids) for cluster in result.clusters)


# ============================================================================
# Threshold
# ============================================================================


class TestSimilarityThreshold:
    """Semantic merges happen at or above the threshold only."""

    @pytest.mark.parametrize(
        ("embedding", "merged"),
        [
            (unit_vector(0.79), False),
            ([4.0, 3.0], True),  # cosine exactly 0.80
            (unit_vector(0.81), True),
        ],
    )
    def test_boundary(self, make_entity: MakeEntity, embedding: list[float], merged: bool) -> None:
        entities = [
            make_entity("a", name="slide deck", embedding=[1.0, 0.0]),
            make_entity("b", name="presentation tool", embedding=embedding),
        ]
        result = EntityResolver().resolve(entities)

        assert len(result.clusters) == (1 if merged else 2)
        assert result.intra_type_comparisons == 1
        assert result.semantic_merges == (1 if merged else 0)

    def test_custom_threshold(self, make_entity: MakeEntity) -> None:
        entities = [
            make_entity("a", name="slide deck", embedding=[1.0, 0.0]),
            make_entity("b", name="presentation tool", embedding=unit_vector(0.85)),
        ]
        resolver = EntityResolver(ResolutionConfig(similarity_threshold=0.9))
        assert len(resolver.resolve(entities).clusters) == 2


# ============================================================================
# Lexical Pass
# ============================================================================


class TestLexicalPass:
    """Normalized-name merges."""

    def test_merges_without_embeddings(self, make_entity: MakeEntity) -> None:
        entities = [
            make_entity("e1", name="Google Slides", type="tool"),
            make_entity("e2", name="google slide", type="keyword"),
            make_entity("e3", name="Préparation", type="theme"),
        ]
        result = EntityResolver().resolve(entities)

        assert _cluster_ids(result) == [["e1", "e2"], ["e3"]]
        assert result.lexical_merges == 1
        assert result.comparisons == 0

    def test_empty_names_not_merged(self) -> None:
        entities = [Entity(id="x", name=""), Entity(id="y", name=None)]
        result = EntityResolver().resolve(entities)
        assert _cluster_ids(result) == [["x"], ["y"]]

    def test_malformed_embedding_treated_as_absent(self) -> None:
        entities = [
            Entity(id="a", name="Roadmap", embedding="not json"),
            Entity(id="b", name="roadmaps", embedding="[0.1, 0.2]"),
        ]
        result = EntityResolver().resolve(entities)

        assert entities[0].embedding is None
        assert entities[1].embedding == [0.1, 0.2]
        assert _cluster_ids(result) == [["a", "b"]]
        assert result.comparisons == 0


# ============================================================================
# Semantic Passes
# ============================================================================


class TestSemanticPasses:
    """Intra-type and cross-type embedding merges."""

    def test_cross_type_merge(self, make_entity: MakeEntity) -> None:
        entities = [
            make_entity("a", name="onboarding", type="theme", embedding=[1.0, 0.0]),
            make_entity("b", name="first steps", type="keyword", embedding=unit_vector(0.85)),
        ]
        result = EntityResolver().resolve(entities)

        assert _cluster_ids(result) == [["a", "b"]]
        assert result.intra_type_comparisons == 0
        assert result.cross_type_comparisons == 1

    def test_cross_type_below_threshold(self, make_entity: MakeEntity) -> None:
        entities = [
            make_entity("a", name="onboarding", type="theme", embedding=[1.0, 0.0]),
            make_entity("b", name="first steps", type="keyword", embedding=unit_vector(0.79)),
        ]
        result = EntityResolver().resolve(entities)

        assert _cluster_ids(result) == [["a"], ["b"]]
        assert result.cross_type_comparisons == 1

    def test_connected_pairs_not_compared(self, make_entity: MakeEntity) -> None:
        """Pairs unified lexically (or transitively) are skipped."""
        entities = [
            make_entity("a", name="Dashboards", embedding=[1.0, 0.0]),
            make_entity("b", name="dashboard", embedding=[1.0, 0.0]),
            make_entity("c", name="reporting view", embedding=[1.0, 0.0]),
        ]
        result = EntityResolver().resolve(entities)

        assert _cluster_ids(result) == [["a", "b", "c"]]
        # (a, b) lexical; (a, c) compared and merged; (b, c) already connected
        assert result.intra_type_comparisons == 1

    def test_entities_without_embedding_skip_semantic(self, make_entity: MakeEntity) -> None:
        entities = [
            make_entity("a", name="alpha", embedding=[1.0, 0.0]),
            make_entity("b", name="beta"),
        ]
        result = EntityResolver().resolve(entities)
        assert result.comparisons == 0
        assert len(result.clusters) == 2


# ============================================================================
# Caps
# ============================================================================


class TestSemanticCaps:
    """Semantic passes are skipped above the entity cap."""

    def test_600_same_type_entities_no_comparisons(self, make_entity: MakeEntity) -> None:
        entities = [
            make_entity(f"e{i}", name=f"concept {i}", type="keyword", embedding=[1.0, 0.0])
            for i in range(600)
        ]
        result = EntityResolver().resolve(entities)

        assert result.comparisons == 0
        assert result.skipped_buckets == ["keyword"]
        assert result.cross_type_skipped is True
        assert len(result.clusters) == 600

    def test_only_oversized_bucket_skipped(self, make_entity: MakeEntity) -> None:
        entities = [
            make_entity("k1", name="one", type="keyword", embedding=[1.0, 0.0]),
            make_entity("k2", name="two", type="keyword", embedding=[1.0, 0.0]),
            make_entity("k3", name="three", type="keyword", embedding=[1.0, 0.0]),
            make_entity("t1", name="four", type="tool", embedding=[1.0, 0.0]),
            make_entity("t2", name="five", type="tool", embedding=[1.0, 0.0]),
        ]
        resolver = EntityResolver(ResolutionConfig(max_semantic_entities=2))
        result = resolver.resolve(entities)

        assert result.skipped_buckets == ["keyword"]
        assert result.intra_type_comparisons == 1
        assert result.cross_type_skipped is True
        assert _cluster_ids(result) == [["k1"], ["k2"], ["k3"], ["t1", "t2"]]


# ============================================================================
# Batch Handling
# ============================================================================


class TestBatchHandling:
    """Input batch edge cases."""

    def test_empty_batch(self) -> None:
        result = EntityResolver().resolve([])
        assert result.clusters == []

    def test_duplicate_ids_collapsed(self, make_entity: MakeEntity) -> None:
        entities = [
            make_entity("a", name="first"),
            make_entity("a", name="second"),
        ]
        result = EntityResolver().resolve(entities)

        assert len(result.clusters) == 1
        assert result.clusters[0].member_names == ["first"]

    def test_clusters_in_first_appearance_order(self, make_entity: MakeEntity) -> None:
        entities = [
            make_entity("z", name="zeta"),
            make_entity("a", name="alpha"),
            make_entity("y", name="Zeta"),
        ]
        result = EntityResolver().resolve(entities)

        assert [c.member_ids for c in result.clusters] == [["z", "y"], ["a"]]

    def test_every_entity_in_exactly_one_cluster(self, make_entity: MakeEntity) -> None:
        entities = [make_entity(f"e{i}", name=f"name {i % 3}") for i in range(9)]
        result = EntityResolver().resolve(entities)

        ids = [member for cluster in result.clusters for member in cluster.member_ids]
        assert sorted(ids) == sorted(e.id for e in entities)
        assert len(result.clusters) == 3
