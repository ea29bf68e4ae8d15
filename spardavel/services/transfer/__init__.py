"""Export / import package."""

from spardavel.services.transfer.json_transfer import (
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
    "ImportFormatError",
    "ImportResult",
    "build_export_document",
    "dump_export",
    "export_filename",
    "merge_imported_events",
    "parse_import_document",
    "should_remind_export",
]
