from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()


def _int_from_env(name: str, default: int, fallback_name: Optional[str] = None) -> int:
    """Read an integer environment variable, raising a clear error if malformed."""
    raw = os.getenv(name)
    if raw is None and fallback_name is not None:
        name, raw = fallback_name, os.getenv(fallback_name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(
            f"{name} must be an integer, got {raw!r}. Fix it in your environment "
            "or in the .env file."
        )


class Settings:
    """
    Central configuration for LogIngest.

    Values are loaded once from environment variables (with sensible defaults)
    and then exposed via typed properties.
    """

    def __init__(self) -> None:
        # Snapshot file holding the full JSON array of log entries
        self._data_file = Path(
            os.getenv("LOG_INGEST_DATA_FILE", "runtime/data/logs.json")
        )

        # HTTP server
        self._host = os.getenv("LOG_INGEST_HOST", "0.0.0.0")
        self._port = _int_from_env("LOG_INGEST_PORT", 3001, fallback_name="PORT")
        self._cors_origins = os.getenv("LOG_INGEST_CORS_ORIGINS", "*")
        self._max_body_bytes = _int_from_env(
            "LOG_INGEST_MAX_BODY_BYTES", 10 * 1024 * 1024
        )

        self._log_level = os.getenv("LOG_INGEST_LOG_LEVEL", "INFO").upper()

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    @property
    def data_file(self) -> Path:
        return self._data_file

    # ------------------------------------------------------------------
    # HTTP server
    # ------------------------------------------------------------------

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def cors_origins(self) -> List[str]:
        origins = [o.strip() for o in self._cors_origins.split(",")]
        return [o for o in origins if o] or ["*"]

    @property
    def max_body_bytes(self) -> int:
        return self._max_body_bytes

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    @property
    def log_level(self) -> str:
        return self._log_level


def configure_logging(level: str = "INFO") -> None:
    """Apply a process-wide logging format for the CLI and the server."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


settings = Settings()
