"""Tests for canonical entity selection."""

from __future__ import annotations

from typing import Callable

from insightmap.graph.canonical import DEFAULT_ENTITY_LABEL, build_entity_node, select_canonical
from insightmap.graph.models import Entity
from insightmap.graph.resolution import Cluster, EntityResolver

MakeEntity = Callable[..., Entity]


class TestSelectCanonical:
    """Test canonical choice and mapping."""

    def test_highest_frequency_wins(self, make_entity: MakeEntity) -> None:
        cluster = Cluster(
            root="a",
            members=[
                make_entity("a", name="google slide", frequency=2),
                make_entity("b", name="Google Slides", frequency=5),
            ],
        )
        selection = select_canonical([cluster])

        assert selection.canonical_ids == ["b"]
        assert selection.mapping == {"a": "b", "b": "b"}

    def test_frequency_tie_broken_by_smallest_id(self, make_entity: MakeEntity) -> None:
        members = [
            make_entity("m2", name="roadmap", frequency=3),
            make_entity("m1", name="Roadmaps", frequency=3),
        ]
        selection = select_canonical([Cluster(root="m2", members=members)])
        reversed_selection = select_canonical(
            [Cluster(root="m1", members=list(reversed(members)))]
        )

        assert selection.canonical_ids == ["m1"]
        assert reversed_selection.canonical_ids == ["m1"]

    def test_every_member_mapped(self, make_entity: MakeEntity) -> None:
        entities = [
            make_entity("e1", name="Google Slides", frequency=5),
            make_entity("e2", name="google slide", frequency=2),
            make_entity("e3", name="Préparation", frequency=3),
        ]
        result = EntityResolver().resolve(entities)
        selection = select_canonical(result.clusters)

        assert set(selection.mapping) == {"e1", "e2", "e3"}
        assert set(selection.mapping.values()) == set(selection.canonical_ids)
        assert selection.canonical_id("e2") == "e1"
        assert selection.canonical_id("missing") is None

    def test_empty_cluster_ignored(self) -> None:
        selection = select_canonical([Cluster(root="x")])
        assert selection.nodes == []
        assert selection.mapping == {}


class TestBuildEntityNode:
    """Test entity node construction."""

    def test_merged_node_meta(self, make_entity: MakeEntity) -> None:
        canonical = make_entity("b", name="Google Slides", type="tool", frequency=5, description="Slides app")
        other = make_entity("a", name="google slide", frequency=2)
        node = build_entity_node(canonical, [canonical, other])

        assert node.kind == "entity"
        assert node.label == "Google Slides"
        assert node.subtitle == "tool"
        assert node.meta["frequency"] == 7
        assert node.meta["mergedCount"] == 2
        assert node.meta["mergedNames"] == "Google Slides, google slide"
        assert node.meta["description"] == "Slides app"

    def test_single_member_has_no_merge_meta(self, make_entity: MakeEntity) -> None:
        node = build_entity_node(make_entity("a", name="alpha", frequency=4))
        assert node.meta == {"description": None, "frequency": 4}

    def test_unnamed_untyped_entity(self) -> None:
        node = build_entity_node(Entity(id="x"))
        assert node.label == DEFAULT_ENTITY_LABEL
        assert node.subtitle is None
