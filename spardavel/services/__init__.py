"""Services package."""

from spardavel.services.storage import (
    AuditStorageInterface,
    CorruptStateError,
    InMemoryAuditStorage,
    InMemoryStateStorage,
    JsonFileStateStorage,
    JsonLinesAuditStorage,
    StateStorageInterface,
    StorageError,
    StorageWriteError,
)
from spardavel.services.transfer import (
    ImportFormatError,
    ImportResult,
    build_export_document,
    dump_export,
    export_filename,
    merge_imported_events,
    parse_import_document,
    should_remind_export,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "CorruptStateError",
    "InMemoryAuditStorage",
    "InMemoryStateStorage",
    "JsonFileStateStorage",
    "JsonLinesAuditStorage",
    "StateStorageInterface",
    "StorageError",
    "StorageWriteError",
    # Transfer services
    "ImportFormatError",
    "ImportResult",
    "build_export_document",
    "dump_export",
    "export_filename",
    "merge_imported_events",
    "parse_import_document",
    "should_remind_export",
]
