"""
Pytest configuration and fixtures for insightmap tests.
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from insightmap.graph.models import Entity
from insightmap.graph.store import InMemoryGraphStore

# Configure pytest-asyncio to use function-scoped event loops
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def make_entity() -> Callable[..., Entity]:
    """Factory for Entity instances with sensible defaults."""

    def _make(
        entity_id: str,
        name: str = "",
        type: str = "keyword",
        frequency: int = 1,
        embedding: list[float] | None = None,
        description: str | None = None,
    ) -> Entity:
        return Entity(
            id=entity_id,
            name=name or f"entity {entity_id}",
            type=type,
            frequency=frequency,
            embedding=embedding,
            description=description,
        )

    return _make


# =============================================================================
# Store Fixtures
# =============================================================================

PROJECT_ID = "11111111-1111-4111-8111-111111111111"
OTHER_PROJECT_ID = "22222222-2222-4222-8222-222222222222"
CLIENT_ID = "33333333-3333-4333-8333-333333333333"
ROOT_CHALLENGE_ID = "44444444-4444-4444-8444-444444444444"
CHILD_CHALLENGE_ID = "55555555-5555-4555-8555-555555555555"


@pytest.fixture
def store_tables() -> dict[str, list[dict[str, Any]]]:
    """
    A small but complete store snapshot.

    Two insights in one ASK session of PROJECT_ID. Entities e1 and e2 are
    lexical duplicates ("Google Slides" / "google slide"); e3 is distinct.
    Graph edges link insights to entities, a synthesis, a claim and a
    challenge, plus one edge to an entity that does not exist.
    """
    return {
        "projects": [
            {"id": PROJECT_ID, "client_id": CLIENT_ID},
            {"id": OTHER_PROJECT_ID, "client_id": None},
        ],
        "ask_sessions": [
            {"id": "s1", "project_id": PROJECT_ID, "challenge_id": ROOT_CHALLENGE_ID},
            {"id": "s2", "project_id": OTHER_PROJECT_ID, "challenge_id": None},
        ],
        "challenges": [
            {"id": ROOT_CHALLENGE_ID, "parent_challenge_id": None, "name": "Onboarding", "status": "open"},
            {"id": CHILD_CHALLENGE_ID, "parent_challenge_id": ROOT_CHALLENGE_ID, "name": "Docs", "status": "open"},
        ],
        "insights": [
            {
                "id": "i1",
                "ask_session_id": "s1",
                "challenge_id": ROOT_CHALLENGE_ID,
                "summary": "Slides take too long to build",
                "insight_type": "pain",
                "created_at": "2024-05-01T10:00:00Z",
            },
            {
                "id": "i2",
                "ask_session_id": "s1",
                "challenge_id": CHILD_CHALLENGE_ID,
                "summary": "Automated slide generation would help",
                "insight_type": "opportunity",
                "created_at": "2024-05-02T10:00:00Z",
            },
            {
                "id": "i3",
                "ask_session_id": "s2",
                "challenge_id": None,
                "content": "Unrelated project insight",
                "insight_type": None,
                "created_at": "2024-04-01T10:00:00Z",
            },
        ],
        "insight_keywords": [
            {"insight_id": "i1", "entity_id": "e1", "relevance_score": 0.9},
            {"insight_id": "i1", "entity_id": "e3", "relevance_score": 0.5},
            {"insight_id": "i2", "entity_id": "e2", "relevance_score": 0.8},
            {"insight_id": "i2", "entity_id": "e3", "relevance_score": 0.7},
        ],
        "knowledge_entities": [
            {"id": "e1", "name": "Google Slides", "type": "tool", "frequency": 5},
            {"id": "e2", "name": "google slide", "type": "keyword", "frequency": 2},
            {"id": "e3", "name": "Préparation", "type": "theme", "frequency": 3},
        ],
        "knowledge_graph_edges": [
            {"source_id": "i1", "source_type": "insight", "target_id": "e1", "target_type": "entity", "relationship_type": "MENTIONS", "confidence": 0.9},
            {"source_id": "i2", "source_type": "insight", "target_id": "e2", "target_type": "entity", "relationship_type": "MENTIONS", "confidence": 0.8},
            {"source_id": "i1", "source_type": "insight", "target_id": "e3", "target_type": "entity", "relationship_type": "MENTIONS", "confidence": 0.7},
            {"source_id": "i1", "source_type": "insight", "target_id": "i2", "target_type": "insight", "relationship_type": "SIMILAR_TO", "similarity_score": 0.83},
            {"source_id": "i2", "source_type": "insight", "target_id": "i1", "target_type": "insight", "relationship_type": "SIMILAR_TO", "similarity_score": 0.83},
            {"source_id": "syn1", "source_type": "synthesis", "target_id": "i1", "target_type": "insight", "relationship_type": "SYNTHESIZES"},
            {"source_id": "c1", "source_type": "claim", "target_id": "i2", "target_type": "insight", "relationship_type": "EVIDENCE_FOR"},
            {"source_id": "i2", "source_type": "insight", "target_id": ROOT_CHALLENGE_ID, "target_type": "challenge", "relationship_type": "ADDRESSES"},
            {"source_id": "i2", "source_type": "insight", "target_id": "ghost-entity", "target_type": "entity", "relationship_type": "MENTIONS"},
        ],
        "insight_syntheses": [
            {"id": "syn1", "project_id": PROJECT_ID, "synthesized_text": "Slide building is a recurring pain"},
        ],
        "claims": [
            {"id": "c1", "statement": "Automation saves time", "claim_type": "hypothesis", "evidence_strength": 0.6},
        ],
    }


@pytest.fixture
def memory_store(store_tables: dict[str, list[dict[str, Any]]]) -> InMemoryGraphStore:
    """In-memory store over the sample snapshot."""
    return InMemoryGraphStore(store_tables)


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing FastAPI endpoints."""
    from insightmap.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
