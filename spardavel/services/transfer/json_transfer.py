"""
Export / Import

The export file is a versioned JSON document holding the raw event log
and the default rate. Import merges a file back into an existing log.

Import rules:
1. Events whose id already exists are skipped (re-importing is harmless)
2. Duplicate ids within the file are skipped after the first
3. INTEREST_APPLICATION events are dropped; postings are always
   regenerated from the merged log, never trusted from a file
"""

import json
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from spardavel.models.events import (
    LedgerEvent,
    as_decimal,
    is_posting_event,
    is_transaction_event,
    sort_events,
)
from spardavel.models.state import EXPORT_FORMAT_VERSION, ExportDocument, ExportSettings


class ImportFormatError(ValueError):
    """The import payload is not a usable export document."""
    pass


class ImportResult(BaseModel):
    """Outcome of merging an import into the log."""

    events: list[LedgerEvent] = Field(
        default_factory=list,
        description="The merged log, sorted by (date, id)"
    )
    added_ids: list[str] = Field(default_factory=list)
    skipped_duplicates: int = Field(default=0, ge=0)
    dropped_postings: int = Field(default=0, ge=0)
    default_interest_rate: Optional[Decimal] = None

    @property
    def added_count(self) -> int:
        return len(self.added_ids)


def build_export_document(
    events: Iterable[LedgerEvent],
    default_rate: Decimal,
    exported_at: datetime,
) -> ExportDocument:
    return ExportDocument(
        version=EXPORT_FORMAT_VERSION,
        export_date=exported_at,
        events=sort_events(events),
        settings=ExportSettings(default_interest_rate=as_decimal(default_rate)),
    )


def export_filename(exported_at: datetime) -> str:
    """``spardavel_export_YYYYMMDD_HHMMSS.json``"""
    return f"spardavel_export_{exported_at:%Y%m%d_%H%M%S}.json"


def dump_export(document: ExportDocument) -> str:
    return json.dumps(
        document.model_dump(mode="json", by_alias=True),
        indent=2,
    )


def parse_import_document(payload: Union[str, bytes, dict[str, Any]]) -> ExportDocument:
    """
    Decode and validate an export file.

    Raises:
        ImportFormatError: Not JSON, no ``events`` list, or invalid events
    """
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ImportFormatError(f"Import file is not UTF-8 text: {e}")

    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ImportFormatError(f"Import file is not valid JSON: {e}")

    if not isinstance(payload, dict) or not isinstance(payload.get("events"), list):
        raise ImportFormatError("Invalid file format: expected an object with an 'events' list")

    try:
        return ExportDocument.model_validate(payload)
    except ValidationError as e:
        raise ImportFormatError(
            f"Import file has {e.error_count()} invalid entries: {e}"
        ) from e


def merge_imported_events(
    existing: Iterable[LedgerEvent],
    incoming: Iterable[LedgerEvent],
) -> ImportResult:
    """De-duplicate ``incoming`` by id and merge it into ``existing``."""
    merged = list(existing)
    seen = {event.id for event in merged}
    added_ids: list[str] = []
    skipped = 0
    dropped = 0

    for event in incoming:
        if is_posting_event(event):
            dropped += 1
            continue
        if event.id in seen:
            skipped += 1
            continue
        seen.add(event.id)
        merged.append(event)
        added_ids.append(event.id)

    return ImportResult(
        events=sort_events(merged),
        added_ids=added_ids,
        skipped_duplicates=skipped,
        dropped_postings=dropped,
    )


def _as_aware(moment: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def should_remind_export(
    events: Iterable[LedgerEvent],
    last_export: Optional[datetime],
    dont_remind: bool,
    now: datetime,
    interval_days: int = 14,
) -> bool:
    """
    Whether to nag the user to export a backup.

    True when reminders are on, at least one purchase or avoided purchase
    exists, and ``interval_days`` have passed since the last export (or,
    if there never was one, since the first transaction's date).
    """
    if dont_remind:
        return False

    transaction_dates = [event.date for event in events if is_transaction_event(event)]
    if not transaction_dates:
        return False

    now = _as_aware(now)
    interval = timedelta(days=interval_days)

    if last_export is not None:
        return now - _as_aware(last_export) >= interval

    first = datetime.combine(min(transaction_dates), time.min, tzinfo=now.tzinfo)
    return now - first >= interval
