"""
API router modules.

- graph: Graph visualization endpoint
- health: Health check for monitoring
"""

from insightmap.api.routers.graph import health_router
from insightmap.api.routers.graph import router as graph_router

__all__ = [
    "graph_router",
    "health_router",
]
