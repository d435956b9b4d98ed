"""Input validation helpers for resource fields."""
from __future__ import annotations
import re

UUID_PATTERN = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def is_uuid(value: str, field: str) -> str:
    """Validate that a field holds a hyphenated UUID.

    Args:
        value: Value to validate
        field: Field name for error messages (e.g., "app_role_id")

    Returns:
        The value, unchanged

    Raises:
        ValueError: If value is not a UUID
    """
    if not isinstance(value, str) or not value:
        raise ValueError(f"expected {field} to be a non-empty string")
    if not UUID_PATTERN.match(value):
        raise ValueError(f"expected {field} to be a valid UUID, got {value!r}")
    return value
