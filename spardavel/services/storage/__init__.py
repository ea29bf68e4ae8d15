"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a JSON file backend (plus in-memory for tests), but
designed to be swappable.
"""

from spardavel.services.storage.interface import (
    AuditStorageInterface,
    CorruptStateError,
    StateStorageInterface,
    StorageError,
    StorageWriteError,
)
from spardavel.services.storage.json_file import (
    JsonFileStateStorage,
    JsonLinesAuditStorage,
)
from spardavel.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryStateStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "StateStorageInterface",
    # Exceptions
    "CorruptStateError",
    "StorageError",
    "StorageWriteError",
    # JSON file implementation
    "JsonFileStateStorage",
    "JsonLinesAuditStorage",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryStateStorage",
]
