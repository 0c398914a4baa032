#!/usr/bin/env python3
"""
LogIngest CLI

Terminal access to the log snapshot and the HTTP server.

Commands:

1) serve
   - Start the HTTP API (POST /logs, GET /logs, GET /health) with uvicorn.

2) init
   - Create an empty snapshot ([]) if none exists.

3) ingest
   - Validate entries from a JSON file (one object or an array of objects)
     and append the valid ones to the snapshot.

4) query
   - Print the entries matching the given filters as a JSON array,
     most recent first.

The snapshot path defaults to LOG_INGEST_DATA_FILE or runtime/data/logs.json.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

# Ensure project root is on sys.path when running as a script
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from configs.settings import configure_logging, settings
from core.validation.log_validator import ensure_valid_log_entry
from exceptions.exceptions import LogValidationError, PersistenceError
from runtime.models.log_models import LogQuery
from runtime.store.log_store import LogStore


def _load_json(path: str) -> Any:
    """Read a UTF-8 JSON file."""
    src = Path(path)
    if not src.is_file():
        raise FileNotFoundError(f"Input file not found: {path}")
    with src.open("r", encoding="utf-8") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


def cmd_serve(host: str, port: int, reload: bool) -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    print(f"[LogIngest] Log Ingestion Server running on port {port}")
    print("[LogIngest] API endpoints:")
    print(f"[LogIngest]   POST http://{host}:{port}/logs   - Ingest log entry")
    print(f"[LogIngest]   GET  http://{host}:{port}/logs   - Query log entries")
    print(f"[LogIngest]   GET  http://{host}:{port}/health - Health check")
    uvicorn.run(
        "runtime.api.server:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


def cmd_init(data_file: str) -> None:
    store = LogStore(data_file)
    existed = store.data_file.exists()
    store.initialize()
    if existed:
        print(f"[LogIngest] Snapshot already exists: {store.data_file}")
    else:
        print(f"[LogIngest] ✓ Created empty snapshot → {store.data_file}")


# ---------------------------------------------------------------------------
# ingest
# ---------------------------------------------------------------------------


def cmd_ingest(data_file: str, src_path: str) -> int:
    """
    Validate and append every entry in ``src_path``.

    Returns the number of rejected entries.
    """
    payload = _load_json(src_path)
    candidates: List[Any] = payload if isinstance(payload, list) else [payload]

    store = LogStore(data_file)
    store.initialize()

    accepted = 0
    rejected = 0
    for index, candidate in enumerate(candidates):
        if not isinstance(candidate, dict):
            print(f"[LogIngest] ✗ entry #{index}: not a JSON object")
            rejected += 1
            continue
        try:
            ensure_valid_log_entry(candidate)
        except LogValidationError as e:
            print(f"[LogIngest] ✗ entry #{index}: {e}")
            rejected += 1
            continue
        store.append(candidate)
        accepted += 1

    print(
        f"[LogIngest] ✓ {accepted} entries appended → {store.data_file} "
        f"(total: {store.count()})"
    )
    if rejected:
        print(f"[LogIngest] {rejected} entries rejected")
    return rejected


# ---------------------------------------------------------------------------
# query
# ---------------------------------------------------------------------------


def cmd_query(data_file: str, filters: LogQuery) -> None:
    store = LogStore(data_file)
    entries = store.query(filters)
    json.dump(entries, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="LogIngest CLI")
    parser.add_argument(
        "--data-file",
        default=str(settings.data_file),
        help=(
            "Path of the JSON log snapshot "
            "(default: LOG_INGEST_DATA_FILE or 'runtime/data/logs.json')"
        ),
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = subparsers.add_parser("serve", help="Start the HTTP API server")
    p_serve.add_argument("--host", default=settings.host, help="Bind host")
    p_serve.add_argument("--port", type=int, default=settings.port, help="Bind port")
    p_serve.add_argument(
        "--reload", action="store_true", help="Reload on code changes (development)"
    )

    # init
    subparsers.add_parser("init", help="Create an empty snapshot if missing")

    # ingest
    p_ingest = subparsers.add_parser(
        "ingest", help="Append entries from a JSON file (object or array)"
    )
    p_ingest.add_argument("path", help="Path to the JSON file")

    # query
    p_query = subparsers.add_parser("query", help="Print matching entries as JSON")
    p_query.add_argument("--level", help="Exact level (error, warn, info, debug)")
    p_query.add_argument("--message", help="Case-insensitive message substring")
    p_query.add_argument("--resource-id", help="Exact resourceId")
    p_query.add_argument("--trace-id", help="Exact traceId")
    p_query.add_argument("--span-id", help="Exact spanId")
    p_query.add_argument("--commit", help="Exact commit")
    p_query.add_argument("--start", help="Inclusive lower timestamp bound")
    p_query.add_argument("--end", help="Inclusive upper timestamp bound")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)

    data_file: str = args.data_file
    command: str = args.command

    try:
        if command == "serve":
            cmd_serve(host=args.host, port=args.port, reload=args.reload)
        elif command == "init":
            cmd_init(data_file=data_file)
        elif command == "ingest":
            rejected = cmd_ingest(data_file=data_file, src_path=args.path)
            return 1 if rejected else 0
        elif command == "query":
            filters = LogQuery(
                level=args.level,
                message=args.message,
                resource_id=args.resource_id,
                trace_id=args.trace_id,
                span_id=args.span_id,
                commit=args.commit,
                timestamp_start=args.start,
                timestamp_end=args.end,
            )
            cmd_query(data_file=data_file, filters=filters)
        else:
            parser.error(f"Unknown command: {command}")
    except (PersistenceError, FileNotFoundError, json.JSONDecodeError) as e:
        print(f"[LogIngest] Error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
