"""Transport-level middleware for the LogIngest API.

- SecurityHeadersMiddleware: hardening headers on every response
- AccessLogMiddleware: one log line per request (method, path, status, timing)
- PayloadSizeLimitMiddleware: reject oversized request bodies with 413

CORS is handled by FastAPI's own CORSMiddleware, wired in server.py.
"""

import logging
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("runtime.api.access")


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Cross-Origin-Opener-Policy": "same-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add SECURITY_HEADERS to all responses without overriding explicit ones."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log every request once it has produced a response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        client = request.client.host if request.client else "-"
        access_logger.info(
            '%s "%s %s" %s %.1fms "%s"',
            client,
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.headers.get("user-agent", "-"),
        )
        return response


class PayloadSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject requests whose Content-Length exceeds ``max_size`` bytes.

    Only POST/PUT/PATCH are checked. Requests with a malformed
    Content-Length header are passed through.
    """

    def __init__(self, app, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method in ("POST", "PUT", "PATCH"):
            content_length = request.headers.get("content-length")
            if content_length:
                try:
                    size = int(content_length)
                except ValueError:
                    logger.warning(
                        "Invalid Content-Length header %r for %s %s",
                        content_length,
                        request.method,
                        request.url.path,
                    )
                else:
                    if size > self.max_size:
                        logger.warning(
                            "Payload too large: %d bytes (max %d) for %s %s",
                            size,
                            self.max_size,
                            request.method,
                            request.url.path,
                        )
                        return JSONResponse(
                            status_code=413,
                            content={
                                "error": "Payload too large",
                                "message": (
                                    f"Request body must not exceed {self.max_size} bytes"
                                ),
                            },
                        )

        return await call_next(request)


def install_middleware(app: FastAPI, max_body_bytes: int) -> None:
    """Add the LogIngest transport middleware to ``app``.

    Starlette runs the most recently added middleware first, so the access
    log wraps everything, including rejected oversized requests.
    """
    app.add_middleware(PayloadSizeLimitMiddleware, max_size=max_body_bytes)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(AccessLogMiddleware)
