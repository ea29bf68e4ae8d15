"""
In-Memory Storage Implementation

Used by tests and by ephemeral sessions (nothing survives the process).
The state backend keeps the serialized document, not the model, so a
save/load round trip goes through the same JSON shape as the file backend.
"""

import copy
from typing import Any, Optional

from spardavel.models.audit import AuditEvent
from spardavel.models.state import PersistedState
from spardavel.services.storage.interface import (
    AuditStorageInterface,
    StateStorageInterface,
)


class InMemoryStateStorage(StateStorageInterface):
    """Holds one document in memory."""

    def __init__(self, document: Optional[dict[str, Any]] = None):
        self._document = copy.deepcopy(document)
        self.save_count = 0

    def load_state(self) -> Optional[dict[str, Any]]:
        return copy.deepcopy(self._document)

    def save_state(self, state: PersistedState) -> bool:
        self._document = state.to_document()
        self.save_count += 1
        return True

    def clear_state(self) -> bool:
        existed = self._document is not None
        self._document = None
        return existed


class InMemoryAuditStorage(AuditStorageInterface):
    """Keeps audit events in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(self, entity_id: str) -> list[AuditEvent]:
        return [event for event in self._events if event.entity_id == entity_id]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
