"""Tests for the file-backed LogStore."""

import json
import os
import threading
from unittest.mock import patch

import pytest

from conftest import make_entry
from exceptions.exceptions import PersistenceError
from runtime.models.log_models import LogQuery
from runtime.store.log_store import LogStore


class TestInitialize:
    def test_creates_empty_snapshot(self, store, data_file):
        store.initialize()

        assert data_file.is_file()
        assert json.loads(data_file.read_text(encoding="utf-8")) == []

    def test_keeps_existing_snapshot(self, store, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text(json.dumps([make_entry()]), encoding="utf-8")

        store.initialize()

        assert json.loads(data_file.read_text(encoding="utf-8")) == [make_entry()]


class TestAppend:
    def test_returns_entry_unchanged(self, store):
        entry = make_entry(metadata={"nested": {"a": [1, 2]}}, extra="kept")

        assert store.append(entry) == entry

    def test_round_trip_through_query(self, store):
        entry = make_entry(message="Ünïcode ✓", metadata={"k": None})

        store.append(entry)

        assert store.query({}) == [entry]

    def test_creates_snapshot_on_first_append(self, store, data_file):
        store.append(make_entry())

        assert data_file.is_file()

    def test_snapshot_is_pretty_printed_array_in_arrival_order(self, store, data_file):
        first = make_entry(message="first", timestamp="2024-01-15T12:00:00Z")
        second = make_entry(message="second", timestamp="2024-01-15T08:00:00Z")
        store.append(first)
        store.append(second)

        text = data_file.read_text(encoding="utf-8")

        assert json.loads(text) == [first, second]
        assert text.startswith("[\n  {")

    def test_survives_restart(self, data_file):
        LogStore(data_file).append(make_entry(message="persisted"))

        reopened = LogStore(data_file)

        assert [e["message"] for e in reopened.query()] == ["persisted"]

    def test_failed_write_keeps_previous_snapshot(self, store, data_file):
        store.append(make_entry(message="before"))
        before = data_file.read_text(encoding="utf-8")

        with patch("runtime.store.log_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError) as info:
                store.append(make_entry(message="after"))

        assert info.value.operation == "write"
        assert data_file.read_text(encoding="utf-8") == before
        assert [p.name for p in data_file.parent.iterdir()] == [data_file.name]

    def test_unserializable_entry_raises_persistence_error(self, store, data_file):
        store.initialize()

        with pytest.raises(PersistenceError):
            store.append(make_entry(metadata={"bad": object()}))

        assert json.loads(data_file.read_text(encoding="utf-8")) == []

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_numbers_are_not_written(self, store, data_file, value):
        store.initialize()

        with pytest.raises(PersistenceError) as info:
            store.append(make_entry(metadata={"x": value}))

        assert info.value.operation == "write"
        assert json.loads(data_file.read_text(encoding="utf-8")) == []

    def test_lone_surrogate_leaves_no_temp_file(self, store, data_file):
        store.append(make_entry(message="before"))
        before = data_file.read_text(encoding="utf-8")

        with pytest.raises(PersistenceError):
            store.append(make_entry(message="\ud800"))

        assert data_file.read_text(encoding="utf-8") == before
        assert [p.name for p in data_file.parent.iterdir()] == [data_file.name]

    def test_concurrent_appends_are_not_lost(self, store):
        store.initialize()

        def worker(n):
            for i in range(10):
                store.append(make_entry(message=f"w{n}-{i}"))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.count() == 40


class TestQuery:
    @pytest.fixture
    def populated(self, store):
        store.append(make_entry(level="error", resourceId="server-1",
                                message="Connection Timeout", timestamp="2024-01-15T10:00:00Z"))
        store.append(make_entry(level="error", resourceId="server-2",
                                message="Disk full", timestamp="2024-01-15T11:00:00Z"))
        store.append(make_entry(level="info", resourceId="server-1",
                                message="Started", timestamp="2024-01-15T12:00:00Z",
                                traceId="trace-xyz", spanId="span-9", commit="abc123"))
        return store

    def test_never_initialized_store_is_empty(self, store, data_file):
        assert store.query({}) == []
        assert not data_file.exists()

    def test_newest_first(self, populated):
        result = populated.query({})

        assert [e["timestamp"] for e in result] == [
            "2024-01-15T12:00:00Z",
            "2024-01-15T11:00:00Z",
            "2024-01-15T10:00:00Z",
        ]

    def test_repeated_queries_are_identical(self, populated):
        assert populated.query({}) == populated.query({})

    def test_conjunction(self, populated):
        result = populated.query({"level": "error", "resourceId": "server-1"})

        assert [e["message"] for e in result] == ["Connection Timeout"]

    def test_accepts_log_query_model(self, populated):
        result = populated.query(LogQuery(trace_id="trace-xyz", span_id="span-9", commit="abc123"))

        assert [e["message"] for e in result] == ["Started"]

    def test_empty_filter_values_are_ignored(self, populated):
        assert len(populated.query({"level": "", "message": None})) == 3

    def test_case_insensitive_message(self, populated):
        result = populated.query({"message": "timeout"})

        assert [e["message"] for e in result] == ["Connection Timeout"]

    def test_start_bound_is_inclusive(self, populated):
        included = populated.query({"timestamp_start": "2024-01-15T10:00:00Z"})
        excluded = populated.query({"timestamp_start": "2024-01-15T10:00:01Z"})

        assert "Connection Timeout" in [e["message"] for e in included]
        assert "Connection Timeout" not in [e["message"] for e in excluded]

    def test_end_bound_is_inclusive(self, populated):
        result = populated.query({"timestamp_end": "2024-01-15T11:00:00Z"})

        assert [e["message"] for e in result] == ["Disk full", "Connection Timeout"]

    def test_range(self, populated):
        result = populated.query({
            "timestamp_start": "2024-01-15T10:30:00Z",
            "timestamp_end": "2024-01-15T11:30:00Z",
        })

        assert [e["message"] for e in result] == ["Disk full"]

    def test_corrupt_snapshot_raises(self, store, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text("[{not json", encoding="utf-8")

        with pytest.raises(PersistenceError) as info:
            store.query({})

        assert info.value.operation == "read"

    def test_snapshot_with_nan_constant_raises(self, store, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text('[{"metadata": {"x": NaN}}]', encoding="utf-8")

        with pytest.raises(PersistenceError) as info:
            store.query({})

        assert info.value.operation == "read"

    def test_non_array_snapshot_raises(self, store, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text('{"level": "info"}', encoding="utf-8")

        with pytest.raises(PersistenceError):
            store.query({})

    def test_append_refuses_to_overwrite_corrupt_snapshot(self, store, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text("garbage", encoding="utf-8")

        with pytest.raises(PersistenceError):
            store.append(make_entry())

        assert data_file.read_text(encoding="utf-8") == "garbage"

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions")
    def test_unreadable_snapshot_raises(self, store, data_file):
        store.initialize()
        data_file.chmod(0)
        try:
            with pytest.raises(PersistenceError):
                store.query({})
        finally:
            data_file.chmod(0o644)
