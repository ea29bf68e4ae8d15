"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger in a JSON file today and somewhere else later
2. Use in-memory storage for testing
3. Keep the ledger core free of any I/O

The state backend deals in whole documents: the core loads one raw
document, validates it itself, and writes one document back after each
mutation. There is no partial update path.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from spardavel.models.audit import AuditEvent
from spardavel.models.state import PersistedState


class StateStorageInterface(ABC):
    """
    Abstract interface for ledger state persistence.

    Any storage implementation (JSON file, key-value store, etc.)
    must implement these methods.
    """

    @abstractmethod
    def load_state(self) -> Optional[dict[str, Any]]:
        """
        Read the stored document.

        Returns:
            The raw, unvalidated JSON document, or None if nothing is stored

        Raises:
            CorruptStateError: If something is stored but cannot be decoded
        """
        pass

    @abstractmethod
    def save_state(self, state: PersistedState) -> bool:
        """
        Replace the stored document.

        Args:
            state: The full ledger state to persist

        Returns:
            True if saved successfully

        Raises:
            StorageWriteError: If the write fails
        """
        pass

    @abstractmethod
    def clear_state(self) -> bool:
        """
        Remove the stored document.

        Returns:
            True if something was removed
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(self, entity_id: str) -> list[AuditEvent]:
        """
        Get all audit events for one ledger event id.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStateError(StorageError):
    """Stored document exists but is not valid JSON."""
    pass


class StorageWriteError(StorageError):
    """Could not write to the storage backend."""
    pass
