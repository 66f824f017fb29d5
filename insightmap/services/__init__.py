"""
Service Container and Lifecycle Management.

Provides a centralized container for service instances with
startup/shutdown lifecycle management for FastAPI integration.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from insightmap.core.config import get_settings
from insightmap.graph.store import GraphStore, InMemoryGraphStore
from insightmap.services.visualization_service import (
    GraphVisualizationService,
    VisualizationMode,
    VisualizationQuery,
)

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Dependency injection container for services.

    The store is loaded once at startup; every request builds its graph
    from scratch on top of it.
    """

    def __init__(self, store: GraphStore | None = None) -> None:
        """
        Initialize container.

        Args:
            store: Store to use instead of the configured snapshot
        """
        self._store: GraphStore | None = store
        self._visualization: GraphVisualizationService | None = None

    @property
    def store(self) -> GraphStore:
        """Get the graph store."""
        if self._store is None:
            raise RuntimeError(
                "ServiceContainer not initialized - call startup() first"
            )
        return self._store

    @property
    def visualization(self) -> GraphVisualizationService:
        """Get graph visualization service instance."""
        if self._visualization is None:
            raise RuntimeError(
                "ServiceContainer not initialized - call startup() first"
            )
        return self._visualization

    async def startup(self) -> None:
        """
        Load the store and create services.

        A missing snapshot file starts the service on an empty store.
        """
        settings = get_settings()
        logger.info("Starting service container")

        if self._store is None:
            snapshot = settings.graph_snapshot_path
            if snapshot.exists():
                self._store = InMemoryGraphStore.from_json_file(snapshot)
            else:
                logger.warning(f"Store snapshot {snapshot} not found, using an empty store")
                self._store = InMemoryGraphStore()

        self._visualization = GraphVisualizationService(self._store, settings)
        logger.info("Service container started")

    async def shutdown(self) -> None:
        """Drop service references."""
        logger.info("Shutting down service container")
        self._visualization = None
        self._store = None
        logger.info("Service container shutdown complete")


# Global service container instance
_services: ServiceContainer | None = None


def get_services() -> ServiceContainer:
    """
    Get the global service container instance.

    Returns:
        Global ServiceContainer singleton

    Raises:
        RuntimeError: If container hasn't been initialized
    """
    if _services is None:
        raise RuntimeError(
            "Services not initialized - ensure services_lifespan() is used"
        )
    return _services


@asynccontextmanager
async def services_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    FastAPI lifespan context manager for service initialization.

    Example:
        app = FastAPI(lifespan=services_lifespan)

    Args:
        app: FastAPI application instance

    Yields:
        None (context manager pattern)
    """
    global _services

    # Startup
    _services = ServiceContainer()
    await _services.startup()
    logger.info("FastAPI services initialized")

    try:
        yield
    finally:
        # Shutdown
        if _services:
            await _services.shutdown()
        _services = None
        logger.info("FastAPI services cleaned up")


__all__ = [
    "ServiceContainer",
    "get_services",
    "services_lifespan",
    "GraphVisualizationService",
    "VisualizationMode",
    "VisualizationQuery",
]
