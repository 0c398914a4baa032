# validation/log_validator.py
"""
Schema validation for incoming log entries.

Every entry accepted by the LogStore must:

1. Contain all eight required keys:
       level, message, resourceId, timestamp, traceId, spanId, commit, metadata
   Presence is checked by key, so "" or null still counts as present.

2. Use one of the known levels: error, warn, info, debug.

3. Carry a timestamp of the form

       YYYY-MM-DDTHH:MM:SS[.mmm][Z]

   Timezone offsets such as +02:00 are not accepted.

4. Carry metadata that is a JSON object (not null, not an array, not a scalar).

Checks run in that order and the first failure is reported.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from exceptions.exceptions import LogValidationError


REQUIRED_FIELDS = (
    "level",
    "message",
    "resourceId",
    "timestamp",
    "traceId",
    "spanId",
    "commit",
    "metadata",
)

VALID_LEVELS = ("error", "warn", "info", "debug")

# [0-9] rather than \d: \d also matches non-ASCII digits.
TIMESTAMP_PATTERN = re.compile(
    r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}(\.[0-9]{3})?Z?"
)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class ValidationErrorKind(str, Enum):
    MISSING_FIELD = "missing_field"
    INVALID_LEVEL = "invalid_level"
    INVALID_TIMESTAMP = "invalid_timestamp"
    INVALID_METADATA = "invalid_metadata"


@dataclass
class ValidationResult:
    """Structured result of validating one candidate entry."""

    valid: bool
    kind: Optional[ValidationErrorKind] = None
    field: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(
        cls, kind: ValidationErrorKind, field: str, message: str
    ) -> "ValidationResult":
        return cls(valid=False, kind=kind, field=field, message=message)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def is_valid_timestamp(value: Any) -> bool:
    """Return True if value is a string in the accepted ISO-8601 shape."""
    return isinstance(value, str) and TIMESTAMP_PATTERN.fullmatch(value) is not None


def validate_log_entry(candidate: Mapping[str, Any]) -> ValidationResult:
    """
    Check a candidate entry against the log schema.

    Parameters
    ----------
    candidate:
        The decoded JSON object submitted by a client.

    Returns
    -------
    ValidationResult
        ``valid=True`` on success; otherwise the kind, field and message of
        the first failed check.
    """
    for field in REQUIRED_FIELDS:
        if field not in candidate:
            return ValidationResult.fail(
                ValidationErrorKind.MISSING_FIELD,
                field,
                f"Missing required field: {field}",
            )

    level = candidate["level"]
    if not isinstance(level, str) or level not in VALID_LEVELS:
        return ValidationResult.fail(
            ValidationErrorKind.INVALID_LEVEL,
            "level",
            f"Invalid level. Must be one of: {', '.join(VALID_LEVELS)}",
        )

    if not is_valid_timestamp(candidate["timestamp"]):
        return ValidationResult.fail(
            ValidationErrorKind.INVALID_TIMESTAMP,
            "timestamp",
            "Invalid timestamp format. Must be ISO 8601 format.",
        )

    if not isinstance(candidate["metadata"], dict):
        return ValidationResult.fail(
            ValidationErrorKind.INVALID_METADATA,
            "metadata",
            "Metadata must be a valid JSON object",
        )

    return ValidationResult.ok()


def ensure_valid_log_entry(candidate: Mapping[str, Any]) -> None:
    """Raise LogValidationError if the candidate fails validation."""
    result = validate_log_entry(candidate)
    if not result.valid:
        raise LogValidationError(result)
