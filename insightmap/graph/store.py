"""
Store interface consumed by the graph engine, plus an in-memory store.

The durable store is an external collaborator: every method returns an
empty list when there are no rows and raises StoreError on transport or
authorization failure. Callers decide per call site whether a StoreError
is fatal.

InMemoryGraphStore implements the interface over plain tables (lists of
row dicts) named after the relational schema, loadable from a JSON
snapshot file:

    {
        "projects": [...], "ask_sessions": [...], "challenges": [...],
        "insights": [...], "insight_keywords": [...],
        "knowledge_entities": [...], "knowledge_graph_edges": [...],
        "insight_syntheses": [...], "claims": [...]
    }
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from insightmap.graph.models import (
    CHALLENGE_KIND,
    CLAIM_KIND,
    ENTITY_KIND,
    INSIGHT_KIND,
    SYNTHESIS_KIND,
    ChallengeLink,
    Entity,
    ExtractionLink,
    GraphEdgeRecord,
    NodeRecord,
)

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A store request failed (transport, auth, unknown table, ...)."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# QUERIES
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class SessionScope(BaseModel):
    """Selects ASK sessions by project (or client) and challenge."""

    project_id: str | None = None
    client_id: str | None = None
    challenge_ids: list[str] = Field(default_factory=list)


class InsightQuery(BaseModel):
    """
    Selects insights, newest first.

    session_ids=None means "no session filter"; an empty challenge_ids
    list means "no challenge filter".
    """

    session_ids: list[str] | None = None
    challenge_ids: list[str] = Field(default_factory=list)
    limit: int = 500


class EdgeQuery(BaseModel):
    """Selects edges whose source (or target) is one of the given nodes."""

    endpoint: Literal["source", "target"]
    kind: str
    ids: list[str]
    limit: int | None = None


@runtime_checkable
class GraphStore(Protocol):
    """Read interface of the durable store."""

    async def fetch_challenge_hierarchy(self) -> list[ChallengeLink]: ...

    async def fetch_session_ids(self, scope: SessionScope) -> list[str]: ...

    async def fetch_insights(self, query: InsightQuery) -> list[NodeRecord]: ...

    async def fetch_extraction_links(
        self, insight_ids: list[str]
    ) -> list[ExtractionLink]: ...

    async def fetch_graph_edges(self, query: EdgeQuery) -> list[GraphEdgeRecord]: ...

    async def fetch_entities_by_ids(self, ids: list[str]) -> list[Entity]: ...

    async def fetch_nodes_by_ids_and_kind(
        self, kind: str, ids: list[str]
    ) -> list[NodeRecord]: ...


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# IN-MEMORY STORE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


# Node kind -> table holding its rows
KIND_TABLES = {
    INSIGHT_KIND: "insights",
    ENTITY_KIND: "knowledge_entities",
    CHALLENGE_KIND: "challenges",
    SYNTHESIS_KIND: "insight_syntheses",
    CLAIM_KIND: "claims",
}


class InMemoryGraphStore:
    """
    GraphStore over in-memory tables.

    Rows are kept as dicts exactly as stored; conversion to models happens
    on read so malformed rows surface as data-quality warnings rather than
    load failures.

    Usage:
        store = InMemoryGraphStore.from_json_file(Path("data/graph_snapshot.json"))
        entities = await store.fetch_entities_by_ids(["e1", "e2"])
    """

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None) -> None:
        """
        Initialize the store.

        Args:
            tables: Table name -> list of row dicts (missing tables are empty)
        """
        self._tables: dict[str, list[dict[str, Any]]] = {
            name: list(rows) for name, rows in (tables or {}).items()
        }

    @classmethod
    def from_json_file(cls, path: Path) -> InMemoryGraphStore:
        """
        Load a store snapshot from a JSON file.

        Raises:
            FileNotFoundError: If the snapshot does not exist
            StoreError: If the snapshot is not a JSON object of tables
        """
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(f"Invalid store snapshot {path}: {e}", "load") from e

        if not isinstance(payload, dict):
            raise StoreError(f"Store snapshot {path} must be a JSON object", "load")

        logger.info(f"Loaded store snapshot from {path} ({len(payload)} tables)")
        return cls(payload)

    def table(self, name: str) -> list[dict[str, Any]]:
        return self._tables.get(name, [])

    @property
    def table_names(self) -> list[str]:
        return list(self._tables)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # GraphStore interface
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def fetch_challenge_hierarchy(self) -> list[ChallengeLink]:
        return _validate_rows(ChallengeLink, self.table("challenges"))

    async def fetch_session_ids(self, scope: SessionScope) -> list[str]:
        if scope.project_id:
            project_ids = {scope.project_id}
        elif scope.client_id:
            project_ids = {
                row["id"]
                for row in self.table("projects")
                if row.get("client_id") == scope.client_id
            }
        else:
            project_ids = None

        challenge_ids = set(scope.challenge_ids)
        return [
            row["id"]
            for row in self.table("ask_sessions")
            if (project_ids is None or row.get("project_id") in project_ids)
            and (not challenge_ids or row.get("challenge_id") in challenge_ids)
        ]

    async def fetch_insights(self, query: InsightQuery) -> list[NodeRecord]:
        session_ids = set(query.session_ids) if query.session_ids is not None else None
        challenge_ids = set(query.challenge_ids)

        rows = [
            row
            for row in self.table("insights")
            if (session_ids is None or row.get("ask_session_id") in session_ids)
            and (not challenge_ids or row.get("challenge_id") in challenge_ids)
        ]
        rows.sort(key=lambda row: row.get("created_at") or "", reverse=True)
        return [_to_node_record(INSIGHT_KIND, row) for row in rows[: query.limit]]

    async def fetch_extraction_links(
        self, insight_ids: list[str]
    ) -> list[ExtractionLink]:
        wanted = set(insight_ids)
        rows = [r for r in self.table("insight_keywords") if r.get("insight_id") in wanted]
        return _validate_rows(ExtractionLink, rows)

    async def fetch_graph_edges(self, query: EdgeQuery) -> list[GraphEdgeRecord]:
        id_key, kind_key = f"{query.endpoint}_id", f"{query.endpoint}_type"
        wanted = set(query.ids)
        rows = [
            row
            for row in self.table("knowledge_graph_edges")
            if row.get(kind_key) == query.kind and row.get(id_key) in wanted
        ]
        if query.limit is not None:
            rows = rows[: query.limit]
        return _validate_rows(GraphEdgeRecord, rows)

    async def fetch_entities_by_ids(self, ids: list[str]) -> list[Entity]:
        wanted = set(ids)
        rows = [r for r in self.table("knowledge_entities") if r.get("id") in wanted]
        return _validate_rows(Entity, rows)

    async def fetch_nodes_by_ids_and_kind(
        self, kind: str, ids: list[str]
    ) -> list[NodeRecord]:
        table = KIND_TABLES.get(kind)
        if table is None:
            raise StoreError(f"No node table for kind '{kind}'", "fetch_nodes")

        wanted = set(ids)
        return [_to_node_record(kind, row) for row in self.table(table) if row.get("id") in wanted]


def _to_node_record(kind: str, row: dict[str, Any]) -> NodeRecord:
    data = {key: value for key, value in row.items() if key != "id"}
    return NodeRecord(id=str(row["id"]), kind=kind, data=data)


def _validate_rows(model: type[BaseModel], rows: Iterable[dict[str, Any]]) -> list[Any]:
    """Convert rows to models, skipping (and logging) rows that fail validation."""
    records = []
    for row in rows:
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {model.__name__} row: {e}")
    return records
