"""
Graph data models: store records in, visualization records out.

Input records (read-only to this package):
- Entity: an extracted concept, optionally carrying an embedding
- ExtractionLink: membership of an entity in a source record (an insight)
- GraphEdgeRecord: heterogeneous edge between two node tables
- NodeRecord: a row from any non-entity node table (insight, challenge, ...)
- ChallengeLink: one (id, parent) row of the challenge hierarchy

Output records (constructed fresh per request):
- VisualizationNode / VisualizationEdge / GraphStats / GraphVisualization

Store rows are tolerated as they come: malformed embeddings, missing types
and null frequencies are normalized here instead of failing validation.
Output models serialize with camelCase aliases for the graph UI.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

# Bucket used for entities stored without a type
UNKNOWN_ENTITY_TYPE = "unknown"

# Node kinds known to the visualization (edge tables may reference others)
ENTITY_KIND = "entity"
INSIGHT_KIND = "insight"
CHALLENGE_KIND = "challenge"
SYNTHESIS_KIND = "synthesis"
CLAIM_KIND = "claim"
INSIGHT_TYPE_KIND = "insight_type"


def parse_embedding(value: Any, entity_id: str | None = None) -> list[float] | None:
    """
    Parse a stored embedding into a list of floats.

    Vector columns come back either as arrays or as their text form
    ("[-0.03,0.05,...]"). Anything unusable is treated as absent.

    Args:
        value: Raw embedding value from the store
        entity_id: Owning entity ID, for log messages

    Returns:
        List of finite floats, or None if absent or malformed
    """
    if value is None:
        return None

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse embedding for entity {entity_id}")
            return None

    if not isinstance(value, (list, tuple)):
        logger.warning(
            f"Ignoring embedding of type {type(value).__name__} for entity {entity_id}"
        )
        return None

    if not value:
        return None

    vector: list[float] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            logger.warning(f"Ignoring non-numeric embedding for entity {entity_id}")
            return None
        try:
            component = float(item)
        except OverflowError:
            component = math.inf
        if not math.isfinite(component):
            logger.warning(f"Ignoring non-finite embedding for entity {entity_id}")
            return None
        vector.append(component)
    return vector


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# STORE RECORDS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class Entity(BaseModel):
    """
    An extracted entity (keyword, feature, concept, ...).

    Attributes:
        id: Unique, stable identifier
        name: Display name (may be empty)
        type: Free-form category; missing types become "unknown"
        description: Optional description
        frequency: Non-negative mention count
        embedding: Optional vector; malformed input is treated as absent
    """

    id: str
    name: str = ""
    type: str = UNKNOWN_ENTITY_TYPE
    description: str | None = None
    frequency: int = 0
    embedding: list[float] | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return UNKNOWN_ENTITY_TYPE
        return value

    @field_validator("frequency", mode="before")
    @classmethod
    def _coerce_frequency(cls, value: Any, info: ValidationInfo) -> int:
        if value is None:
            return 0
        try:
            frequency = int(value)
        except (TypeError, ValueError, OverflowError):
            logger.warning(
                f"Invalid frequency {value!r} for entity {info.data.get('id')}"
            )
            return 0
        return max(frequency, 0)

    @field_validator("embedding", mode="before")
    @classmethod
    def _parse_embedding(cls, value: Any, info: ValidationInfo) -> list[float] | None:
        return parse_embedding(value, info.data.get("id"))

    @property
    def has_embedding(self) -> bool:
        """True when the entity carries a usable embedding."""
        return bool(self.embedding)


class ExtractionLink(BaseModel):
    """Membership of an entity in a source record (insight keyword row)."""

    source_record_id: str = Field(
        validation_alias=AliasChoices("source_record_id", "insight_id")
    )
    entity_id: str
    relevance_score: float | None = None


class GraphEdgeRecord(BaseModel):
    """
    A heterogeneous edge row from the knowledge graph edge table.

    Endpoint kinds name the node table each endpoint belongs to
    (entity, insight, challenge, synthesis, claim, ...).
    """

    source_id: str
    source_kind: str = Field(validation_alias=AliasChoices("source_kind", "source_type"))
    target_id: str
    target_kind: str = Field(validation_alias=AliasChoices("target_kind", "target_type"))
    relationship_type: str
    score: float | None = Field(
        default=None, validation_alias=AliasChoices("score", "similarity_score")
    )
    confidence: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata", mode="before")
    @classmethod
    def _coerce_metadata(cls, value: Any) -> Any:
        return {} if value is None else value


class NodeRecord(BaseModel):
    """A row from a non-entity node table, kept as raw column data."""

    id: str
    kind: str
    data: dict[str, Any] = Field(default_factory=dict)


class ChallengeLink(BaseModel):
    """One row of the challenge hierarchy."""

    id: str
    parent_id: str | None = Field(
        default=None, validation_alias=AliasChoices("parent_id", "parent_challenge_id")
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# VISUALIZATION RECORDS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VisualizationNode(_CamelModel):
    """
    A node of the visualization graph.

    Analytics fields are only set by the analytics bridge.
    """

    id: str
    kind: str
    label: str
    subtitle: str | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
    community: int | None = None
    betweenness: float | None = None
    page_rank: float | None = None
    degree: int | None = None


class VisualizationEdge(_CamelModel):
    """An edge of the visualization graph."""

    id: str
    source: str
    target: str
    relationship_type: str
    label: str | None = None
    weight: float | None = None
    confidence: float | None = None


class NodeAnalytics(_CamelModel):
    """Per-node analytics computed over an assembled graph."""

    community: int | None = None
    betweenness: float = 0.0
    page_rank: float = 0.0
    degree: int = 0


class GraphStats(_CamelModel):
    """Counts reported alongside a visualization graph."""

    insights: int = 0
    entities: int = 0
    challenges: int = 0
    syntheses: int = 0
    claims: int = 0
    insight_types: int = 0
    edges: int = 0
    placeholders: int = 0


class GraphVisualization(_CamelModel):
    """The produced result: nodes, edges and stats."""

    nodes: list[VisualizationNode] = Field(default_factory=list)
    edges: list[VisualizationEdge] = Field(default_factory=list)
    stats: GraphStats = Field(default_factory=GraphStats)
    message: str | None = None
    analytics_applied: bool = False
