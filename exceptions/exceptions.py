"""
Custom exceptions for LogIngest.

These exceptions are intentionally simple and descriptive.
They are used across:

  - core/validation/
  - runtime/store/
  - runtime/api/
  - cli/

Placing them at the project root (exceptions/) avoids circular imports
and keeps exception types consistent across modules.
"""


class LogValidationError(Exception):
    """
    Raised when a submitted log entry does not satisfy the log schema.

    The exception carries the ValidationResult produced by the validator,
    so callers can inspect the failure kind and the offending field.
    """

    def __init__(self, result):
        self.result = result
        self.kind = result.kind
        self.field = result.field
        super().__init__(result.message)


class PersistenceError(Exception):
    """
    Raised when the log snapshot file cannot be read or written.

    Attributes
    ----------
    path:
        The snapshot path involved.
    operation:
        "read" or "write".
    details:
        Human-readable cause (usually the underlying OS/JSON error).
    """

    def __init__(self, path, operation, details=None):
        self.path = path
        self.operation = operation
        self.details = details or "Unknown persistence failure."
        msg = f"Failed to {operation} log snapshot {path}: {self.details}"
        super().__init__(msg)


class MalformedRequest(Exception):
    """
    Raised when an HTTP request body cannot be interpreted as a log entry.

    Example:
        '{"level": "info", '   ← truncated JSON
        '[1, 2, 3]'            ← valid JSON, but not an object
    """

    def __init__(self, details):
        self.details = details
        super().__init__(details)


class PayloadTooLarge(Exception):
    """
    Raised when a request body grows past the configured byte limit while
    it is being read (chunked uploads carry no Content-Length).
    """

    def __init__(self, limit):
        self.limit = limit
        super().__init__(f"Request body must not exceed {limit} bytes")
