"""LogStore: append-only, file-backed collection of log entries.

The whole collection lives in a single JSON snapshot:

    runtime/data/logs.json

containing a pretty-printed array of entries in arrival order:

    [
      {
        "level": "error",
        "message": "Connection Timeout",
        "resourceId": "server-1",
        "timestamp": "2024-01-15T10:30:00Z",
        ...
      }
    ]

The design is intentionally simple:
- The snapshot file is the source of truth. Every append and every query
  loads it wholesale; nothing is cached between calls.
- Every append rewrites the full snapshot through a temporary file and an
  atomic rename, so readers only ever see a complete prior or current
  snapshot.
- Appends are serialized with a lock owned by the store instance.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from core.query.log_filter import filter_entries, sort_newest_first
from exceptions.exceptions import PersistenceError
from ..models.log_models import LogQuery


logger = logging.getLogger(__name__)


def _reject_constant(name: str):
    # NaN, Infinity and -Infinity are not JSON.
    raise ValueError(f"invalid JSON constant {name}")


class LogStore:
    """File-backed store of validated log entries.

    Parameters
    ----------
    data_file:
        Path of the JSON snapshot. The file (and its parent directories)
        are created by ``initialize`` if missing. Until then the store
        behaves as empty.
    """

    def __init__(self, data_file: Union[str, Path]) -> None:
        self.data_file = Path(data_file)
        self._write_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Create an empty snapshot (``[]``) if none exists yet."""
        if self.data_file.exists():
            return
        with self._write_lock:
            if self.data_file.exists():
                return
            self._write_snapshot([])
        logger.info("Created empty log snapshot at %s", self.data_file)

    def append(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        """Append an already validated entry and persist the snapshot.

        Returns the entry unchanged.

        Raises
        ------
        PersistenceError
            If the current snapshot cannot be read or the new one cannot
            be written. The previous snapshot is left untouched.
        """
        with self._write_lock:
            entries = self._load_entries()
            entries.append(entry)
            self._write_snapshot(entries)

        logger.debug(
            "Appended %s entry for resourceId=%s (total=%d)",
            entry.get("level"),
            entry.get("resourceId"),
            len(entries),
        )
        return entry

    def query(
        self, filters: Optional[Union[LogQuery, Mapping[str, Any]]] = None
    ) -> List[Dict[str, Any]]:
        """Return entries matching ``filters``, most recent first.

        ``filters`` may be a LogQuery or a mapping keyed by wire names
        (level, message, resourceId, traceId, spanId, commit,
        timestamp_start, timestamp_end). Missing or empty values are
        ignored.

        Raises
        ------
        PersistenceError
            If an existing snapshot cannot be read or parsed.
        """
        if filters is None:
            query = LogQuery()
        elif isinstance(filters, LogQuery):
            query = filters
        else:
            query = LogQuery.model_validate(dict(filters))

        entries = self._load_entries()
        matched = filter_entries(entries, query.active_filters())
        return sort_newest_first(matched)

    def count(self) -> int:
        return len(self._load_entries())

    # ------------------------------------------------------------------
    # Snapshot I/O
    # ------------------------------------------------------------------

    def _load_entries(self) -> List[Dict[str, Any]]:
        """Load the snapshot.

        A snapshot that has never been created reads as an empty list.
        Any failure to read or parse an existing snapshot is an error.
        """
        if not self.data_file.exists():
            return []

        try:
            with self.data_file.open("r", encoding="utf-8") as f:
                data = json.load(f, parse_constant=_reject_constant)
        except (OSError, ValueError) as e:
            logger.exception("Error reading log snapshot %s", self.data_file)
            raise PersistenceError(self.data_file, "read", str(e)) from e

        if not isinstance(data, list):
            raise PersistenceError(
                self.data_file,
                "read",
                f"expected a JSON array, got {type(data).__name__}",
            )
        return data

    def _write_snapshot(self, entries: List[Dict[str, Any]]) -> None:
        """Atomically replace the snapshot with ``entries``."""
        try:
            text = json.dumps(entries, ensure_ascii=False, indent=2, allow_nan=False)
            payload = (text + "\n").encode("utf-8")
        except (TypeError, ValueError) as e:
            logger.exception("Error serializing log snapshot")
            raise PersistenceError(self.data_file, "write", str(e)) from e

        tmp_path: Optional[str] = None
        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.data_file.name}.",
                suffix=".tmp",
                dir=str(self.data_file.parent),
            )
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.data_file)
        except OSError as e:
            logger.exception("Error writing log snapshot %s", self.data_file)
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(self.data_file, "write", str(e)) from e
