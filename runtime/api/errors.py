"""Application-wide exception handlers.

Every error leaves the API in the same envelope:

    {"error": "<category>", "message": "<detail>"}
"""

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the LogIngest error handlers to ``app``."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(
                404, "Not Found", "The requested endpoint does not exist"
            )

        try:
            error = HTTPStatus(exc.status_code).phrase
        except ValueError:
            error = "HTTP error"
        logger.warning(
            "HTTP %s on %s %s: %r",
            exc.status_code,
            request.method,
            request.url.path,
            exc.detail,
        )
        return error_response(exc.status_code, error, str(exc.detail or error))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        logger.warning(
            "Request validation failed on %s %s: %s",
            request.method,
            request.url.path,
            details,
        )
        return error_response(400, "Malformed request", details)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return error_response(
            500, "Internal server error", "An unexpected error occurred"
        )
