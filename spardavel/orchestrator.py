"""
Ledger Store Orchestrator

This module ties together the engine, storage, validation and audit
components and defines the one flow every mutation goes through:

    strip postings → mutate → strip again → regenerate postings
        → merge & sort → project → persist

DESIGN DECISION: The orchestrator enforces the boundaries:
- The log never holds a stale posting (postings are rebuilt on every change)
- Retroactive edits anywhere in history propagate to every later month
- Persistence is a side effect after the cycle; a failed write is audited
  and the in-memory state stays authoritative
- Every step is audited

There is no incremental update path. Personal ledgers are small enough
that a full regeneration per mutation is fast.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, Union

import structlog

from spardavel.audit import AuditLogger
from spardavel.config import Settings, get_settings
from spardavel.engine import (
    current_interest_rate,
    month_key,
    parse_month_key,
    project,
    regenerate_postings,
    strip_postings,
)
from spardavel.models.events import (
    InterestRateChangeEvent,
    LedgerEvent,
    as_decimal,
    field_alias,
    is_posting_event,
    parse_event,
    sort_events,
)
from spardavel.models.metrics import LedgerProjection
from spardavel.models.state import ExportDocument, PersistedState
from spardavel.services.storage import (
    CorruptStateError,
    InMemoryStateStorage,
    JsonFileStateStorage,
    JsonLinesAuditStorage,
    StateStorageInterface,
    StorageError,
)
from spardavel.services.transfer import (
    ImportResult,
    build_export_document,
    export_filename,
    merge_imported_events,
    parse_import_document,
    should_remind_export,
)
from spardavel.validation import (
    LoadRecovery,
    StateValidationError,
    StateValidationResult,
    StateValidator,
)

logger = structlog.get_logger()

_PROTECTED_FIELDS = ("id", "type")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerStore:
    """
    Explicit state container for one ledger.

    Holds the event log (postings included), the default rate, the
    display/reminder settings, and the current projection.

    Mutations:
    - add_event / update_event / delete_event
    - set_default_interest_rate / change_interest_rate
    - clear_all_events / import_data / recalculate

    Every mutation returns the new projection (import_data returns the
    ImportResult; the projection is then available from get_projection).
    """

    def __init__(
        self,
        storage: Optional[StateStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], date]] = None,
        now: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Args:
            storage: State backend. If None, nothing is persisted.
            audit_logger: Audit logger (local-only logger if None)
            settings: Application settings (cached settings if None)
            clock: Returns today's date; decides which months are closed
            now: Returns the current timestamp, for export bookkeeping
            id_factory: Produces ids for generated postings
        """
        self._settings = settings or get_settings()
        ledger_settings = self._settings.ledger

        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._clock = clock or date.today
        self._now = now or _utcnow
        self._id_factory = id_factory

        self._fallback_rate = as_decimal(ledger_settings.default_interest_rate)
        self._reminder_days = ledger_settings.export_reminder_days

        self._events: list[LedgerEvent] = []
        self._default_rate = self._fallback_rate
        self._theme: Optional[str] = None
        self._last_export: Optional[datetime] = None
        self._dont_remind_export = False
        self._projection = project([], self._default_rate, self._clock())

    # =========================================================================
    # READ-ONLY STATE
    # =========================================================================

    @property
    def events(self) -> list[LedgerEvent]:
        """The sorted log, postings included (a copy)."""
        return list(self._events)

    @property
    def default_interest_rate(self) -> Decimal:
        return self._default_rate

    @property
    def theme(self) -> Optional[str]:
        return self._theme

    @property
    def last_export_timestamp(self) -> Optional[datetime]:
        return self._last_export

    @property
    def export_reminder_enabled(self) -> bool:
        return not self._dont_remind_export

    # =========================================================================
    # THE CYCLE
    # =========================================================================

    def _snapshot(self) -> PersistedState:
        return PersistedState(
            events=self._events,
            default_interest_rate=self._default_rate,
            theme=self._theme,
            last_export_timestamp=self._last_export,
            dont_remind_export=self._dont_remind_export,
        )

    def _apply_state(self, state: PersistedState) -> None:
        self._events = list(state.events)
        self._default_rate = as_decimal(state.default_interest_rate)
        self._theme = state.theme
        self._last_export = state.last_export_timestamp
        self._dont_remind_export = state.dont_remind_export

    def _persist(self) -> bool:
        """Save the current state. Failures are audited, never raised."""
        if self._storage is None:
            return True

        try:
            self._storage.save_state(self._snapshot())
        except StorageError as e:
            self._audit.log_save_failed(str(e))
            return False

        self._audit.log_state_saved(len(self._events))
        return True

    def _run_cycle(self, events: Iterable[LedgerEvent]) -> LedgerProjection:
        """
        Rebuild postings and the projection from a mutated log.

        ``events`` may still contain postings; they are stripped here.
        """
        today = self._clock()
        base = sort_events(strip_postings(events))

        postings = regenerate_postings(
            base,
            month_key(today),
            self._default_rate,
            id_factory=self._id_factory,
        )
        self._events = sort_events(base + postings)

        self._audit.log_postings_regenerated(
            months=[month_key(posting.date) for posting in postings],
            default_rate=self._default_rate,
            current_rate=current_interest_rate(self._events, self._default_rate, today),
        )

        self._projection = project(self._events, self._default_rate, today)
        self._persist()
        return self._projection

    def recalculate(self) -> LedgerProjection:
        """Run the cycle with no mutation (e.g. after the month rolls over)."""
        return self._run_cycle(self._events)

    # =========================================================================
    # LOAD
    # =========================================================================

    def load(self, recovery: Optional[LoadRecovery] = None) -> LedgerProjection:
        """
        Load stored state, validate it, and run the cycle.

        Args:
            recovery: What to do if the stored state is invalid.
                      None raises StateValidationError so the caller can
                      ask the user; RESET clears storage; BEST_EFFORT keeps
                      the events that validate.

        Raises:
            StateValidationError: Stored state invalid and recovery is None
            StorageError: The backend could not be read at all
        """
        document = None
        result: Optional[StateValidationResult] = None

        if self._storage is not None:
            try:
                document = self._storage.load_state()
            except CorruptStateError as e:
                result = StateValidationResult.unreadable(str(e), self._fallback_rate)
            except StorageError as e:
                self._audit.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"operation": "load"},
                )
                raise

        if result is None:
            if document is None:
                self._apply_state(PersistedState(default_interest_rate=self._fallback_rate))
                self._audit.log_state_loaded(event_count=0)
                return self._run_cycle([])
            result = StateValidator(self._fallback_rate).validate(document)

        if result.is_valid:
            self._apply_state(result.state)
            self._audit.log_state_loaded(event_count=len(self._events))
            return self._run_cycle(self._events)

        self._audit.log_state_validation_failed(result.issue_dicts())

        if recovery is None:
            raise StateValidationError(result)

        if recovery == LoadRecovery.RESET:
            self._storage.clear_state()
            self._apply_state(PersistedState(default_interest_rate=self._fallback_rate))
            self._audit.log_state_reset(reason="stored state failed validation")
            return self._run_cycle([])

        self._apply_state(result.best_effort_state)
        self._audit.log_state_loaded(
            event_count=len(self._events),
            recovered=LoadRecovery.BEST_EFFORT.value,
        )
        return self._run_cycle(self._events)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_event(self, event: Union[LedgerEvent, dict[str, Any]]) -> LedgerProjection:
        """
        Append an event and rebuild.

        INTEREST_APPLICATION events cannot be added by hand; they are
        ignored (and audited) and the current projection is returned.

        Raises:
            pydantic.ValidationError: ``event`` is not a valid event
            ValueError: An event with the same id already exists
        """
        event = parse_event(event)

        if is_posting_event(event):
            self._audit.log_event_rejected(
                event_id=event.id,
                reason="interest postings are generated, not added",
            )
            return self._projection

        base = strip_postings(self._events)
        if any(existing.id == event.id for existing in base):
            raise ValueError(f"An event with id {event.id} already exists")

        self._audit.log_event_added(event)
        return self._run_cycle(base + [event])

    def update_event(self, event_id: str, updates: dict[str, Any]) -> LedgerProjection:
        """
        Apply a partial update to one event and rebuild.

        ``updates`` may use snake_case or camelCase names; ``id`` and
        ``type`` are ignored. Unknown ids (and postings) are a no-op.

        Raises:
            pydantic.ValidationError: The updated event is invalid
        """
        base = strip_postings(self._events)
        target = next((event for event in base if event.id == event_id), None)
        if target is None:
            return self._run_cycle(base)

        data = target.model_dump(by_alias=True)
        names_by_alias = {
            info.alias or name: name
            for name, info in type(target).model_fields.items()
        }
        changed = []
        for name, value in updates.items():
            alias = field_alias(target, name)
            if alias in _PROTECTED_FIELDS or alias not in data:
                continue
            data[alias] = value
            changed.append(names_by_alias[alias])

        updated = parse_event(data)
        self._audit.log_event_updated(updated, changed)

        return self._run_cycle(
            [updated if event.id == event_id else event for event in base]
        )

    def delete_event(self, event_id: str) -> LedgerProjection:
        """Remove an event by id (missing ids are tolerated) and rebuild."""
        base = strip_postings(self._events)
        remaining = [event for event in base if event.id != event_id]

        self._audit.log_event_deleted(event_id, found=len(remaining) != len(base))
        return self._run_cycle(remaining)

    def set_default_interest_rate(self, rate: Union[Decimal, float, int, str]) -> LedgerProjection:
        """
        Change the rate used wherever no rate-change event applies.

        Existing rate-change events are untouched.

        Raises:
            ValueError: rate outside 0..100
        """
        new_rate = as_decimal(rate)
        if not new_rate.is_finite() or new_rate < 0 or new_rate > 100:
            raise ValueError(f"Interest rate must be between 0 and 100, got {rate}")

        old_rate = self._default_rate
        self._default_rate = new_rate
        self._audit.log_default_rate_changed(old_rate, new_rate)
        return self._run_cycle(self._events)

    def change_interest_rate(
        self,
        rate: Union[Decimal, float, int, str],
        effective_date: Optional[date] = None,
    ) -> LedgerProjection:
        """Record an INTEREST_RATE_CHANGE, effective today unless given."""
        event = InterestRateChangeEvent(
            date=effective_date or self._clock(),
            new_rate=as_decimal(rate),
        )
        return self.add_event(event)

    def clear_all_events(self) -> LedgerProjection:
        """Drop the whole log. Settings, including the default rate, are kept."""
        removed = len(strip_postings(self._events))
        self._audit.log_events_cleared(removed)
        return self._run_cycle([])

    # =========================================================================
    # IMPORT / EXPORT
    # =========================================================================

    def import_data(
        self,
        payload: Union[str, bytes, dict[str, Any]],
        apply_settings: bool = False,
    ) -> ImportResult:
        """
        Merge an export file into the log.

        Args:
            payload: File content (str/bytes) or an already-decoded dict
            apply_settings: Adopt the file's default rate, if it has one

        Raises:
            ImportFormatError: The payload is not a valid export document
        """
        document = parse_import_document(payload)
        result = merge_imported_events(strip_postings(self._events), document.events)
        result = result.model_copy(
            update={"default_interest_rate": document.default_interest_rate}
        )

        if apply_settings and document.default_interest_rate is not None:
            old_rate = self._default_rate
            self._default_rate = as_decimal(document.default_interest_rate)
            self._audit.log_default_rate_changed(old_rate, self._default_rate)

        self._audit.log_import_completed(
            added=result.added_count,
            skipped_duplicates=result.skipped_duplicates,
            dropped_postings=result.dropped_postings,
        )
        self._run_cycle(result.events)
        return result

    def export_data(self) -> ExportDocument:
        """Build the export document and remember when it was made."""
        exported_at = self._now()
        document = build_export_document(self._events, self._default_rate, exported_at)

        self._last_export = exported_at
        self._audit.log_export_completed(
            event_count=len(document.events),
            filename=export_filename(exported_at),
        )
        self._persist()
        return document

    def should_show_export_reminder(self) -> bool:
        return should_remind_export(
            self._events,
            last_export=self._last_export,
            dont_remind=self._dont_remind_export,
            now=self._now(),
            interval_days=self._reminder_days,
        )

    def set_export_reminder(self, enabled: bool) -> None:
        self._dont_remind_export = not enabled
        self._persist()

    def set_theme(self, theme: Optional[str]) -> None:
        self._theme = theme
        self._persist()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_projection(self) -> LedgerProjection:
        return self._projection

    def get_events_for_month(self, key: str) -> list[LedgerEvent]:
        """
        Events dated in month ``YYYY-MM``, postings included.

        Raises:
            ValueError: malformed month key
        """
        parse_month_key(key)
        return [event for event in self._events if month_key(event.date) == key]

    def get_event_by_id(self, event_id: str) -> Optional[LedgerEvent]:
        return next((event for event in self._events if event.id == event_id), None)


def create_ledger_store(
    settings: Optional[Settings] = None,
    use_storage: bool = True,
    clock: Optional[Callable[[], date]] = None,
    now: Optional[Callable[[], datetime]] = None,
    load: bool = True,
    recovery: Optional[LoadRecovery] = None,
) -> LedgerStore:
    """
    Factory function to create a fully wired store.

    Args:
        settings: Application settings (cached settings if None)
        use_storage: Use the JSON file backend from settings.
                    Set to False for an in-memory ledger.
        clock / now: Time sources (system time if None)
        load: Load stored state immediately
        recovery: Passed to ``LedgerStore.load``

    Returns:
        The store, loaded if ``load`` is True
    """
    settings = settings or get_settings()
    storage_settings = settings.storage

    audit_storage = None
    if use_storage:
        state_storage = JsonFileStateStorage(
            storage_settings.data_path,
            retry_attempts=storage_settings.write_retry_attempts,
        )
        if storage_settings.audit_log_path:
            audit_storage = JsonLinesAuditStorage(storage_settings.audit_log_path)
    else:
        state_storage = InMemoryStateStorage()

    store = LedgerStore(
        storage=state_storage,
        audit_logger=AuditLogger(audit_storage),
        settings=settings,
        clock=clock,
        now=now,
    )

    if load:
        store.load(recovery=recovery)

    logger.debug(
        "ledger_store_created",
        use_storage=use_storage,
        event_count=len(store.events),
    )
    return store
