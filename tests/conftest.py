"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict

import pytest
from fastapi.testclient import TestClient

from runtime.api.server import create_app
from runtime.store.log_store import LogStore


def make_entry(**overrides: Any) -> Dict[str, Any]:
    """Build a valid log entry, overriding any field."""
    entry: Dict[str, Any] = {
        "level": "info",
        "message": "User login succeeded",
        "resourceId": "server-1",
        "timestamp": "2024-01-15T10:30:00Z",
        "traceId": "trace-abc",
        "spanId": "span-001",
        "commit": "5e5342f",
        "metadata": {"parentResourceId": "server-0"},
    }
    entry.update(overrides)
    return entry


@pytest.fixture
def entry_factory() -> Callable[..., Dict[str, Any]]:
    return make_entry


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    """Snapshot path inside a not-yet-existing directory."""
    return tmp_path / "data" / "logs.json"


@pytest.fixture
def store(data_file: Path) -> LogStore:
    return LogStore(data_file)


@pytest.fixture
def app(data_file: Path):
    return create_app(data_file=data_file)


@pytest.fixture
def client(app):
    """TestClient with lifespan events (snapshot creation) enabled."""
    with TestClient(app) as test_client:
        yield test_client
