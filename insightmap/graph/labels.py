"""
Node materialization and display labels.

Turns raw store rows into visualization nodes, one builder per node kind,
and holds the (French) display labels used by the graph UI.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from insightmap.graph.canonical import build_entity_node
from insightmap.graph.models import (
    CHALLENGE_KIND,
    CLAIM_KIND,
    ENTITY_KIND,
    INSIGHT_KIND,
    INSIGHT_TYPE_KIND,
    SYNTHESIS_KIND,
    Entity,
    NodeRecord,
    VisualizationEdge,
    VisualizationNode,
)

# Default maximum length of a node label
LABEL_MAX_LENGTH = 120

RELATIONSHIP_LABELS = {
    "SIMILAR_TO": "Similarité",
    "RELATED_TO": "Connexe",
    "MENTIONS": "Mention",
    "SYNTHESIZES": "Synthèse",
    "CONTAINS": "Contient",
    "HAS_TYPE": "Type",
    # Claim relationships
    "SUPPORTS": "Soutient",
    "CONTRADICTS": "Contredit",
    "ADDRESSES": "Adresse",
    "EVIDENCE_FOR": "Preuve",
}

INSIGHT_TYPE_LABELS = {
    "pain": "Pain Point",
    "gain": "Gain",
    "opportunity": "Opportunité",
    "risk": "Risque",
    "signal": "Signal",
    "idea": "Idée",
}

DEFAULT_INSIGHT_TYPE = "idea"

CLAIM_TYPE_LABELS = {
    "finding": "Constat",
    "hypothesis": "Hypothèse",
    "recommendation": "Recommandation",
    "observation": "Observation",
}

HAS_TYPE = "HAS_TYPE"


def relationship_label(relationship_type: str) -> str:
    """Display label for a relationship type; unknown types pass through."""
    return RELATIONSHIP_LABELS.get(relationship_type, relationship_type)


def truncate_label(text: str, max_length: int = LABEL_MAX_LENGTH) -> str:
    """Truncate text to max_length characters, ending with '...' when cut."""
    if len(text) <= max_length:
        return text
    return f"{text[: max_length - 3]}..."


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def resolve_insight_type(raw: Any) -> str:
    """
    Map a stored insight type name to a known type.

    Unknown or missing types fall back to "idea".
    """
    name = raw.lower() if isinstance(raw, str) else ""
    return name if name in INSIGHT_TYPE_LABELS else DEFAULT_INSIGHT_TYPE


def insight_type_node_id(insight_type: str) -> str:
    return f"insight-type-{insight_type}"


def placeholder_label(kind: str, node_id: str) -> str:
    """Label for a node that could not be loaded."""
    return f"{kind} {node_id[:6]}…"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# NODE BUILDERS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def build_insight_node(
    record: NodeRecord, max_length: int = LABEL_MAX_LENGTH
) -> VisualizationNode:
    """Insight node labelled by its summary (or content)."""
    data = record.data
    insight_type = resolve_insight_type(data.get("insight_type"))
    label = _text(data, "summary") or _text(data, "content") or "Insight"

    return VisualizationNode(
        id=record.id,
        kind=INSIGHT_KIND,
        label=truncate_label(label, max_length),
        subtitle=INSIGHT_TYPE_LABELS[insight_type],
        meta={
            "createdAt": data.get("created_at"),
            "challengeId": data.get("challenge_id"),
            "insightType": insight_type,
        },
    )


def build_insight_type_node(insight_type: str) -> VisualizationNode:
    return VisualizationNode(
        id=insight_type_node_id(insight_type),
        kind=INSIGHT_TYPE_KIND,
        label=INSIGHT_TYPE_LABELS.get(insight_type, insight_type),
        subtitle="Type d'insight",
        meta={"insightTypeName": insight_type},
    )


def build_has_type_edge(insight_id: str, insight_type: str) -> VisualizationEdge:
    return VisualizationEdge(
        id=f"has-type-{insight_id}-{insight_type}",
        source=insight_id,
        target=insight_type_node_id(insight_type),
        relationship_type=HAS_TYPE,
        label=relationship_label(HAS_TYPE),
        weight=1,
        confidence=1,
    )


def build_challenge_node(
    record: NodeRecord, max_length: int = LABEL_MAX_LENGTH
) -> VisualizationNode:
    data = record.data
    return VisualizationNode(
        id=record.id,
        kind=CHALLENGE_KIND,
        label=truncate_label(_text(data, "name") or "Challenge", max_length),
        subtitle=data.get("status") or None,
        meta={"priority": data.get("priority")},
    )


def build_synthesis_node(
    record: NodeRecord, max_length: int = LABEL_MAX_LENGTH
) -> VisualizationNode:
    data = record.data
    project_id = _text(data, "project_id")
    return VisualizationNode(
        id=record.id,
        kind=SYNTHESIS_KIND,
        label=truncate_label(_text(data, "synthesized_text") or "Synthèse", max_length),
        subtitle=f"Projet {project_id[:4]}…" if project_id else None,
    )


def build_claim_node(
    record: NodeRecord, max_length: int = LABEL_MAX_LENGTH
) -> VisualizationNode:
    data = record.data
    claim_type = data.get("claim_type")
    return VisualizationNode(
        id=record.id,
        kind=CLAIM_KIND,
        label=truncate_label(_text(data, "statement") or "Claim", max_length),
        subtitle=CLAIM_TYPE_LABELS.get(claim_type, claim_type) if claim_type else None,
        meta={
            "claimType": claim_type,
            "evidenceStrength": data.get("evidence_strength"),
        },
    )


def build_entity_record_node(
    record: NodeRecord, max_length: int = LABEL_MAX_LENGTH
) -> VisualizationNode:
    """Entity node from a raw row (no cluster information)."""
    entity = Entity.model_validate({"id": record.id, **record.data})
    node = build_entity_node(entity)
    return node.model_copy(update={"label": truncate_label(node.label, max_length)})


def build_generic_node(
    record: NodeRecord, max_length: int = LABEL_MAX_LENGTH
) -> VisualizationNode:
    """Fallback for node kinds without a dedicated builder."""
    data = record.data
    label = _text(data, "label") or _text(data, "name")
    return VisualizationNode(
        id=record.id,
        kind=record.kind,
        label=truncate_label(label, max_length) if label else placeholder_label(record.kind, record.id),
    )


NodeBuilder = Callable[[NodeRecord, int], VisualizationNode]

NODE_BUILDERS: dict[str, NodeBuilder] = {
    INSIGHT_KIND: build_insight_node,
    CHALLENGE_KIND: build_challenge_node,
    SYNTHESIS_KIND: build_synthesis_node,
    CLAIM_KIND: build_claim_node,
    ENTITY_KIND: build_entity_record_node,
}


def build_node(
    record: NodeRecord, max_length: int = LABEL_MAX_LENGTH
) -> VisualizationNode:
    """Materialize a node from a store row using the builder for its kind."""
    builder = NODE_BUILDERS.get(record.kind, build_generic_node)
    return builder(record, max_length)
