"""
Log-related models for the LogIngest runtime.

These describe:
- LogLevel enum (error, warn, info, debug)
- a LogEntry matching the stored JSON shape
- LogQuery, the filter set accepted by LogStore.query
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(str, Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class LogEntry(BaseModel):
    """One structured log record as it appears on the wire and on disk.

    Field names follow the JSON keys (camelCase) through aliases; use
    ``model_dump(by_alias=True)`` to get the stored representation.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    level: LogLevel
    message: str
    resource_id: str = Field(alias="resourceId")
    timestamp: str     # ISO string, e.g. 2024-01-15T10:30:00.123Z
    trace_id: str = Field(alias="traceId")
    span_id: str = Field(alias="spanId")
    commit: str
    metadata: Dict[str, Any]


class LogQuery(BaseModel):
    """Filter set for LogStore.query.

    Every field is optional; a missing or empty value imposes no constraint.
    Supplied filters are combined with logical AND.
    """

    model_config = ConfigDict(populate_by_name=True)

    level: Optional[str] = None
    message: Optional[str] = None          # case-insensitive substring
    resource_id: Optional[str] = Field(default=None, alias="resourceId")
    trace_id: Optional[str] = Field(default=None, alias="traceId")
    span_id: Optional[str] = Field(default=None, alias="spanId")
    commit: Optional[str] = None
    timestamp_start: Optional[str] = None  # inclusive
    timestamp_end: Optional[str] = None    # inclusive

    def active_filters(self) -> Dict[str, str]:
        """Return only the supplied filters, keyed by their wire names."""
        data = self.model_dump(by_alias=True)
        return {key: value for key, value in data.items() if value not in (None, "")}
