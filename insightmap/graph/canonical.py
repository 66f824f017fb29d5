"""
Canonical entity selection for resolved clusters.

Each cluster is represented by its most frequently mentioned member.
Frequency ties are broken by ascending entity ID so the choice never
depends on the order the store returned rows in.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from insightmap.graph.models import (
    ENTITY_KIND,
    UNKNOWN_ENTITY_TYPE,
    Entity,
    VisualizationNode,
)
from insightmap.graph.resolution import Cluster

# Label used for entities stored without a name
DEFAULT_ENTITY_LABEL = "Entité"


@dataclass
class CanonicalSelection:
    """
    Result of canonical selection over a set of clusters.

    Attributes:
        nodes: One entity node per cluster, in cluster order
        mapping: entity ID -> canonical entity ID, for every member
    """

    nodes: list[VisualizationNode] = field(default_factory=list)
    mapping: dict[str, str] = field(default_factory=dict)

    @property
    def canonical_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    def canonical_id(self, entity_id: str) -> str | None:
        """Canonical ID for an entity, or None if it was never resolved."""
        return self.mapping.get(entity_id)


def rank_members(members: Iterable[Entity]) -> list[Entity]:
    """Order members by frequency descending, then ID ascending."""
    return sorted(members, key=lambda e: (-e.frequency, e.id))


def build_entity_node(
    canonical: Entity,
    members: list[Entity] | None = None,
) -> VisualizationNode:
    """
    Build the visualization node for a canonical entity.

    Args:
        canonical: The representative entity
        members: All cluster members (canonical included); defaults to
            the canonical entity alone

    Returns:
        Entity node with summed frequency and merge metadata when the
        cluster has more than one member
    """
    members = members or [canonical]

    meta: dict[str, object] = {
        "description": canonical.description,
        "frequency": sum(m.frequency for m in members),
    }
    if len(members) > 1:
        meta["mergedCount"] = len(members)
        meta["mergedNames"] = ", ".join(m.name for m in members)

    return VisualizationNode(
        id=canonical.id,
        kind=ENTITY_KIND,
        label=canonical.name or DEFAULT_ENTITY_LABEL,
        subtitle=canonical.type if canonical.type != UNKNOWN_ENTITY_TYPE else None,
        meta=meta,
    )


def select_canonical(clusters: Iterable[Cluster]) -> CanonicalSelection:
    """
    Pick a canonical entity per cluster and build the canonical mapping.

    Args:
        clusters: Clusters produced by EntityResolver

    Returns:
        CanonicalSelection with entity nodes and the entity -> canonical mapping
    """
    selection = CanonicalSelection()

    for cluster in clusters:
        if not cluster.members:
            continue

        ranked = rank_members(cluster.members)
        canonical = ranked[0]

        for member in cluster.members:
            selection.mapping[member.id] = canonical.id

        selection.nodes.append(build_entity_node(canonical, ranked))

    return selection
