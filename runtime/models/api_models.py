"""
HTTP request/response models for the LogIngest runtime API.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """
    Uniform error envelope for every non-2xx response:

      - error:   short category, e.g. "Invalid log entry", "Not Found"
      - message: human-readable detail
    """
    error: str
    message: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    uptime: float
