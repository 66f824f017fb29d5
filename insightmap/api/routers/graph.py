"""
Graph visualization API endpoints.

GET /graph/visualization builds the insight graph for a project, client
or challenge scope. Query parameters and the response body use camelCase.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from insightmap.api.deps import get_visualization_service, validate_optional_uuid
from insightmap.api.errors import handle_endpoint_error
from insightmap.graph.models import GraphVisualization
from insightmap.services.visualization_service import (
    GraphVisualizationService,
    VisualizationMode,
    VisualizationQuery,
)

router = APIRouter(prefix="/graph", tags=["graph"])


@router.get(
    "/visualization",
    response_model=GraphVisualization,
    response_model_exclude_none=True,
)
async def get_graph_visualization(
    project_id: str | None = Query(None, alias="projectId"),
    client_id: str | None = Query(None, alias="clientId"),
    challenge_id: str | None = Query(None, alias="challengeId"),
    limit: int | None = Query(None, ge=1, description="Max insights (capped server-side)"),
    include_analytics: bool = Query(False, alias="includeAnalytics"),
    mode: VisualizationMode = Query(VisualizationMode.FULL),
    service: GraphVisualizationService = Depends(get_visualization_service),
) -> GraphVisualization:
    """
    Build the graph visualization for a scope.

    Args:
        project_id: Restrict to a project's ASK sessions
        client_id: Restrict to a client's projects
        challenge_id: Restrict to a challenge and its sub-challenges
        limit: Maximum number of insights
        include_analytics: Add community and centrality scores to nodes
        mode: "full" (insights and neighbours) or "concepts" (entities only)
        service: Injected visualization service

    Returns:
        GraphVisualization with nodes, edges and stats
    """
    query = VisualizationQuery(
        project_id=validate_optional_uuid(project_id, "project ID"),
        client_id=validate_optional_uuid(client_id, "client ID"),
        challenge_id=validate_optional_uuid(challenge_id, "challenge ID"),
        limit=limit,
        include_analytics=include_analytics,
        mode=mode,
    )

    try:
        return await service.build_visualization(query)
    except HTTPException:
        raise
    except Exception as e:
        raise handle_endpoint_error(e, f"graph_visualization mode={mode.value}")


# Health check endpoint for Docker/k8s
health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        Simple status response indicating service is running
    """
    return {"status": "ok"}
