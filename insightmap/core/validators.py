"""
Centralized validation utilities for ID patterns.

Store identifiers (projects, clients, challenges) are UUIDs; this module
is the single source of truth for validating them at the API boundary.
"""

from __future__ import annotations

import re

# UUID validation pattern (RFC 4122 layout, any version)
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_uuid(value: str) -> bool:
    """
    Check if a string is a valid UUID.

    Args:
        value: The string to validate

    Returns:
        True if the value matches the UUID layout, False otherwise
    """
    return bool(UUID_PATTERN.match(value))
