"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON document is the storage backend because:
1. The whole ledger is small (personal-finance scale)
2. The user can open, back up, or hand-edit the file
3. It has the same shape as the export file

TRADEOFFS:
- Every save rewrites the whole file (fine at this size)
- No concurrent writers (the ledger is single-user)

Writes go to a temporary file that is then renamed over the target, so
a crash mid-write never leaves a truncated ledger behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from spardavel.models.audit import AuditEvent
from spardavel.models.state import PersistedState
from spardavel.services.storage.interface import (
    AuditStorageInterface,
    CorruptStateError,
    StateStorageInterface,
    StorageError,
    StorageWriteError,
)


class JsonFileStateStorage(StateStorageInterface):
    """
    Ledger state kept in one JSON file.

    Writes are retried with exponential backoff on OS errors
    (e.g. a sync client briefly holding the file).
    """

    def __init__(
        self,
        path: Union[str, Path],
        retry_attempts: int = 3,
    ):
        self._path = Path(path).expanduser()
        self._retry_attempts = retry_attempts

    @property
    def path(self) -> Path:
        return self._path

    def load_state(self) -> Optional[dict[str, Any]]:
        if not self._path.exists():
            return None

        try:
            text = self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise CorruptStateError(f"State file {self._path} is not valid UTF-8: {e}")
        except OSError as e:
            raise StorageError(f"Could not read {self._path}: {e}")

        if not text.strip():
            return None

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptStateError(f"State file {self._path} is not valid JSON: {e}")

        if not isinstance(document, dict):
            raise CorruptStateError(
                f"State file {self._path} must hold a JSON object, "
                f"got {type(document).__name__}"
            )
        return document

    def save_state(self, state: PersistedState) -> bool:
        payload = json.dumps(state.to_document(), indent=2)

        retrying = Retrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self._atomic_write(payload)
        except OSError as e:
            raise StorageWriteError(f"Could not write {self._path}: {e}")

        return True

    def clear_state(self) -> bool:
        try:
            self._path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageWriteError(f"Could not remove {self._path}: {e}")
        return True

    def _atomic_write(self, payload: str) -> None:
        """Write to a sibling temp file, then rename it over the target."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Audit trail as an append-only JSON-lines file.

    One audit event per line; lines are never rewritten.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()

    def append_event(self, event: AuditEvent) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(event.to_json_line() + "\n")
        except OSError as e:
            raise StorageWriteError(f"Could not append to {self._path}: {e}")
        return True

    def get_events_by_entity(self, entity_id: str) -> list[AuditEvent]:
        return [event for event in self._read_all() if event.entity_id == entity_id]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = self._read_all()
        events.reverse()
        return events[:limit]

    def _read_all(self) -> list[AuditEvent]:
        """Parse every line, skipping ones that no longer decode."""
        if not self._path.exists():
            return []

        events = []
        with self._path.open(encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(AuditEvent.model_validate_json(line))
                except ValueError:
                    # A half-written last line from a crash
                    continue
        return events
