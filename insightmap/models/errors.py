"""
Unified error schema for the insight graph API.

Provides consistent error codes, messages, and hints for all API responses.
All errors include retryability information and optional debugging details.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Store errors
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_FORMAT = "INVALID_FORMAT"

    # Capacity errors
    REQUEST_TIMEOUT = "REQUEST_TIMEOUT"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class APIError:
    """
    Structured error response for API endpoints.

    Attributes:
        code: Standardized error code from ErrorCode enum
        message: Human-readable error message
        detail: Optional technical details for debugging
        hint: Optional suggestion for resolving the error
        retryable: Whether the client should retry the request
    """

    code: ErrorCode
    message: str
    detail: str | None = None
    hint: str | None = None
    retryable: bool = False

    def to_dict(self) -> dict[str, dict[str, str | bool]]:
        """
        Convert error to dictionary format for JSON responses.

        Returns:
            Dictionary with 'error' key containing error details
        """
        error_dict: dict[str, str | bool] = {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
        }

        if self.detail is not None:
            error_dict["detail"] = self.detail

        if self.hint is not None:
            error_dict["hint"] = self.hint

        return {"error": error_dict}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Predefined Error Factories
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def store_unavailable_error(operation: str | None = None) -> APIError:
    """Create error for a failed store read."""
    return APIError(
        code=ErrorCode.STORE_UNAVAILABLE,
        message="The graph store could not be reached",
        detail=f"Operation: {operation}" if operation else None,
        hint="Please try again in a moment",
        retryable=True,
    )


def invalid_id_error(field: str) -> APIError:
    """Create error for a malformed identifier."""
    return APIError(
        code=ErrorCode.INVALID_FORMAT,
        message=f"Invalid {field} format",
        detail="Identifiers must be UUIDs",
        hint="Check the identifier and try again",
        retryable=False,
    )


def validation_error(field: str, reason: str) -> APIError:
    """Create error for validation failures."""
    return APIError(
        code=ErrorCode.VALIDATION_ERROR,
        message=f"Validation failed for field: {field}",
        detail=reason,
        hint="Check the input format and try again",
        retryable=False,
    )


def request_timeout_error(detail: str | None = None) -> APIError:
    """Create error for request timeout."""
    return APIError(
        code=ErrorCode.REQUEST_TIMEOUT,
        message="Request timed out",
        detail=detail,
        hint="Please try again",
        retryable=True,
    )


def internal_error(detail: str | None = None) -> APIError:
    """Create generic internal error."""
    return APIError(
        code=ErrorCode.INTERNAL_ERROR,
        message="An internal error occurred",
        detail=detail,
        hint="Please try again. If the problem persists, contact support.",
        retryable=True,
    )
