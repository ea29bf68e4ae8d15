"""Tests for the storage backends."""

import json
from datetime import date
from decimal import Decimal

import pytest

from factories import avoided
from spardavel.models import AuditEventBuilder, PersistedState
from spardavel.services.storage import (
    CorruptStateError,
    InMemoryAuditStorage,
    InMemoryStateStorage,
    JsonFileStateStorage,
    JsonLinesAuditStorage,
    StorageWriteError,
)


def sample_state():
    return PersistedState(
        events=[avoided(12.5, date(2025, 10, 1), event_id="a")],
        default_interest_rate=Decimal("4"),
        theme="light",
    )


class TestJsonFileStateStorage:
    """Tests for the JSON file backend."""

    def test_missing_file_loads_nothing(self, tmp_path):
        """Test a fresh install has no stored state."""
        assert JsonFileStateStorage(tmp_path / "state.json").load_state() is None

    def test_empty_file_loads_nothing(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("  \n", encoding="utf-8")
        assert JsonFileStateStorage(path).load_state() is None

    def test_round_trip(self, tmp_path):
        """Test a saved state loads back as the same camelCase document."""
        storage = JsonFileStateStorage(tmp_path / "nested" / "state.json")
        assert storage.save_state(sample_state()) is True

        document = storage.load_state()
        assert document["defaultInterestRate"] == 4.0
        assert document["theme"] == "light"
        assert document["events"][0]["amount"] == 12.5
        assert PersistedState.model_validate(document) == sample_state()

    def test_no_temp_files_left(self, tmp_path):
        """Test the atomic write cleans up after itself."""
        storage = JsonFileStateStorage(tmp_path / "state.json")
        storage.save_state(sample_state())
        storage.save_state(sample_state())
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_invalid_json_is_corrupt(self, tmp_path):
        """Test unparseable content raises CorruptStateError."""
        path = tmp_path / "state.json"
        path.write_text("{\"events\": [", encoding="utf-8")
        with pytest.raises(CorruptStateError):
            JsonFileStateStorage(path).load_state()

    def test_undecodable_bytes_are_corrupt(self, tmp_path):
        """Test content that is not UTF-8 raises CorruptStateError."""
        path = tmp_path / "state.json"
        path.write_bytes(b'{"events": [], "defaultInterestRate": 3.5, "theme": "\xff\xfe"}')
        with pytest.raises(CorruptStateError):
            JsonFileStateStorage(path).load_state()

    def test_non_object_is_corrupt(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
        with pytest.raises(CorruptStateError):
            JsonFileStateStorage(path).load_state()

    def test_write_is_retried(self, tmp_path, monkeypatch):
        """Test transient OS errors are retried."""
        storage = JsonFileStateStorage(tmp_path / "state.json", retry_attempts=3)
        original = storage._atomic_write
        calls = []

        def flaky(payload):
            calls.append(payload)
            if len(calls) < 3:
                raise OSError("file busy")
            original(payload)

        monkeypatch.setattr(storage, "_atomic_write", flaky)
        assert storage.save_state(sample_state()) is True
        assert len(calls) == 3
        assert storage.load_state() is not None

    def test_write_gives_up(self, tmp_path, monkeypatch):
        """Test a persistent failure surfaces as StorageWriteError."""
        storage = JsonFileStateStorage(tmp_path / "state.json", retry_attempts=2)

        def broken(payload):
            raise OSError("read-only file system")

        monkeypatch.setattr(storage, "_atomic_write", broken)
        with pytest.raises(StorageWriteError):
            storage.save_state(sample_state())

    def test_clear_state(self, tmp_path):
        storage = JsonFileStateStorage(tmp_path / "state.json")
        assert storage.clear_state() is False
        storage.save_state(sample_state())
        assert storage.clear_state() is True
        assert storage.load_state() is None


class TestInMemoryStateStorage:
    """Tests for the in-memory backend."""

    def test_stores_serialized_document(self):
        """Test the document is kept in its JSON shape."""
        storage = InMemoryStateStorage()
        storage.save_state(sample_state())
        document = storage.load_state()
        assert document["events"][0]["type"] == "AVOIDED_PURCHASE"
        assert storage.save_count == 1

    def test_load_returns_a_copy(self):
        """Test callers cannot mutate the stored document."""
        storage = InMemoryStateStorage({"events": []})
        storage.load_state()["events"].append("junk")
        assert storage.load_state() == {"events": []}


class TestAuditStorage:
    """Tests for audit trail backends."""

    @pytest.fixture(params=["memory", "jsonl"])
    def audit_backend(self, request, tmp_path):
        if request.param == "memory":
            return InMemoryAuditStorage()
        return JsonLinesAuditStorage(tmp_path / "audit.jsonl")

    def test_recent_events_newest_first(self, audit_backend):
        """Test recent events come back newest first, limited."""
        for count in range(3):
            audit_backend.append_event(AuditEventBuilder.events_cleared(removed=count))

        recent = audit_backend.get_recent_events(limit=2)
        assert [event.details["removed"] for event in recent] == [2, 1]

    def test_events_by_entity(self, audit_backend):
        """Test filtering by ledger event id."""
        audit_backend.append_event(AuditEventBuilder.event_deleted("a", found=True))
        audit_backend.append_event(AuditEventBuilder.event_deleted("b", found=False))

        events = audit_backend.get_events_by_entity("b")
        assert len(events) == 1
        assert events[0].details == {"found": False}

    def test_jsonl_skips_damaged_lines(self, tmp_path):
        """Test a damaged line does not hide the rest of the trail."""
        path = tmp_path / "audit.jsonl"
        storage = JsonLinesAuditStorage(path)
        storage.append_event(AuditEventBuilder.state_reset("test"))
        with path.open("a", encoding="utf-8") as handle:
            handle.write("{truncated\n")
        storage.append_event(AuditEventBuilder.state_reset("again"))

        assert len(storage.get_recent_events()) == 2
