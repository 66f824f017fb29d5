"""
Dependency injection providers for API endpoints.

Provides FastAPI dependencies that inject service instances into route
handlers, enabling loose coupling and testability.
"""

from __future__ import annotations

from fastapi import HTTPException

from insightmap.core.validators import is_valid_uuid
from insightmap.models.errors import invalid_id_error
from insightmap.services import GraphVisualizationService, get_services


def get_visualization_service() -> GraphVisualizationService:
    """
    Dependency provider for GraphVisualizationService.

    Returns:
        GraphVisualizationService instance from the global container
    """
    return get_services().visualization


def validate_uuid(value: str, field_name: str = "ID") -> str:
    """
    Validate that a string is a UUID.

    Args:
        value: The string to validate
        field_name: Name of the field for error messages

    Returns:
        The validated value

    Raises:
        HTTPException: If the value is not a UUID
    """
    if not is_valid_uuid(value):
        raise HTTPException(status_code=400, detail=invalid_id_error(field_name).to_dict())
    return value


def validate_optional_uuid(value: str | None, field_name: str = "ID") -> str | None:
    """Validate an optional filter ID; None passes through."""
    if value is None:
        return None
    return validate_uuid(value, field_name)
