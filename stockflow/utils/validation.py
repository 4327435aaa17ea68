"""
Input validation utilities for operator-supplied values.

Keeps malformed identifiers out of SQL parameters and gives the CLI a
readable error instead of a database exception.
"""

import re
from pathlib import Path
from uuid import UUID


class InputValidationError(ValueError):
    """Raised when operator input fails validation."""
    pass


MAX_FILENAME_LENGTH = 255
_UNSAFE_FILENAME_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def validate_job_id(job_id: str | UUID, field_name: str = "job_id") -> UUID:
    """
    Validate an import job identifier.

    Args:
        job_id: UUID string or UUID
        field_name: Name of the field (for error messages)

    Returns:
        The parsed UUID

    Raises:
        InputValidationError: If the value is not a UUID

    Examples:
        >>> validate_job_id("7f1c6a2e-4c1b-4f7e-9d0a-1b2c3d4e5f60")
        UUID('7f1c6a2e-4c1b-4f7e-9d0a-1b2c3d4e5f60')
    """
    if isinstance(job_id, UUID):
        return job_id

    if not job_id or not isinstance(job_id, str) or not job_id.strip():
        raise InputValidationError(f"{field_name} must be a non-empty string")

    try:
        return UUID(job_id.strip())
    except ValueError as e:
        raise InputValidationError(f"{field_name} is not a valid UUID: {job_id!r}") from e


def validate_limit(limit: int, field_name: str = "limit", maximum: int = 1000) -> int:
    """
    Validate a result-size limit.

    Raises:
        InputValidationError: If limit is not an integer between 1 and maximum
    """
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InputValidationError(f"{field_name} must be an integer")
    if limit < 1 or limit > maximum:
        raise InputValidationError(f"{field_name} must be between 1 and {maximum}")
    return limit


def sanitize_filename(filename: str) -> str:
    """
    Reduce an uploaded file name to its base name without control characters.

    Examples:
        >>> sanitize_filename("../exports/products.csv")
        'products.csv'
    """
    name = Path(str(filename).replace("\\", "/")).name
    name = _UNSAFE_FILENAME_CHARS.sub("", name).strip()
    if not name:
        raise InputValidationError("filename must not be empty")
    return name[:MAX_FILENAME_LENGTH]
