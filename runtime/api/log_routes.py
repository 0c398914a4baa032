"""HTTP routes for ingesting and querying log entries.

Exposes:

- POST /logs    -> validate a JSON log entry and append it to the store
- GET  /logs    -> filtered entries, most recent first
- GET  /health  -> liveness probe with uptime
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from core.validation.log_validator import validate_log_entry
from exceptions.exceptions import MalformedRequest, PayloadTooLarge, PersistenceError
from ..models.api_models import ErrorResponse, HealthResponse
from ..models.log_models import LogEntry, LogQuery
from ..store.log_store import LogStore
from .errors import error_response


logger = logging.getLogger(__name__)

router = APIRouter()


def _require_log_store(request: Request) -> LogStore:
    store = getattr(request.app.state, "log_store", None)
    if store is None:
        raise HTTPException(
            status_code=500,
            detail="LogStore is not configured on the server.",
        )
    return store


def _reject_constant(name: str):
    raise MalformedRequest(f"Request body is not valid JSON: {name} is not a JSON value.")


async def _read_body(request: Request) -> bytes:
    """Read the body, counting bytes as they arrive."""
    limit = getattr(request.app.state, "max_body_bytes", None)
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if limit is not None and len(body) > limit:
            raise PayloadTooLarge(limit)
    return bytes(body)


async def _read_json_object(request: Request) -> Dict[str, Any]:
    """Decode the request body, which must be a single JSON object."""
    body = await _read_body(request)
    if not body.strip():
        raise MalformedRequest("Request body is empty; expected a JSON object.")
    try:
        payload = json.loads(body, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedRequest(f"Request body is not valid JSON: {e}")
    if not isinstance(payload, dict):
        raise MalformedRequest(
            f"Request body must be a JSON object, got {type(payload).__name__}."
        )
    return payload


@router.post(
    "/logs",
    status_code=201,
    response_model=LogEntry,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def ingest_log(request: Request):
    """Ingest a single log entry.

    The body is validated against the log schema, appended to the store,
    and echoed back unchanged with 201.
    """
    store = _require_log_store(request)

    try:
        entry = await _read_json_object(request)
    except MalformedRequest as e:
        logger.warning("[LOGS] Malformed ingest request: %s", e.details)
        return error_response(400, "Malformed request", e.details)
    except PayloadTooLarge as e:
        logger.warning("[LOGS] Ingest body exceeded %d bytes", e.limit)
        return error_response(413, "Payload too large", str(e))

    result = validate_log_entry(entry)
    if not result.valid:
        logger.warning(
            "[LOGS] Rejected entry kind=%s field=%s: %s",
            result.kind.value,
            result.field,
            result.message,
        )
        return error_response(400, "Invalid log entry", result.message)

    try:
        stored = await run_in_threadpool(store.append, entry)
    except PersistenceError:
        # LogStore already logged the traceback.
        return error_response(
            500,
            "Failed to save log entry",
            "Internal server error during persistence",
        )

    return JSONResponse(status_code=201, content=stored)


@router.get(
    "/logs",
    responses={500: {"model": ErrorResponse}},
)
def query_logs(
    request: Request,
    level: Optional[str] = None,
    message: Optional[str] = None,
    resource_id: Optional[str] = Query(default=None, alias="resourceId"),
    timestamp_start: Optional[str] = None,
    timestamp_end: Optional[str] = None,
    trace_id: Optional[str] = Query(default=None, alias="traceId"),
    span_id: Optional[str] = Query(default=None, alias="spanId"),
    commit: Optional[str] = None,
):
    """Return every entry matching the query-string filters, newest first."""
    store = _require_log_store(request)
    filters = LogQuery(
        level=level,
        message=message,
        resource_id=resource_id,
        timestamp_start=timestamp_start,
        timestamp_end=timestamp_end,
        trace_id=trace_id,
        span_id=span_id,
        commit=commit,
    )

    try:
        entries = store.query(filters)
    except PersistenceError:
        return error_response(
            500,
            "Internal server error",
            "An unexpected error occurred while retrieving logs",
        )

    return JSONResponse(status_code=200, content=entries)


# --------------------------------------------------------
# Endpoint: GET /health
# --------------------------------------------------------
@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """
    Simple health check endpoint for uptime monitoring.
    """
    started_at = getattr(request.app.state, "started_at", time.monotonic())
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        uptime=round(time.monotonic() - started_at, 3),
    )
