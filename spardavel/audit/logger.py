"""
Audit Logger

DESIGN DECISION: Every store action is logged.
This provides:
1. Complete traceability of the event log
2. Debugging capability when postings look wrong
3. A record of load failures and the recovery chosen

The audit logger:
- Is synchronous, like the ledger core
- Gracefully handles failures (a broken audit file never breaks a mutation)
"""

from decimal import Decimal
from typing import Optional

import structlog

from spardavel.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from spardavel.models.events import LedgerEvent
from spardavel.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend, if one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("spardavel.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    audit_id=str(event.audit_id),
                )
                return False

        return True

    def log_event_added(self, event: LedgerEvent) -> None:
        self.log(AuditEventBuilder.event_added(
            event_id=event.id,
            event_type=event.type,
            event_date=event.date.isoformat(),
        ))

    def log_event_updated(self, event: LedgerEvent, fields: list[str]) -> None:
        self.log(AuditEventBuilder.event_updated(
            event_id=event.id,
            event_type=event.type,
            fields=fields,
        ))

    def log_event_deleted(self, event_id: str, found: bool) -> None:
        self.log(AuditEventBuilder.event_deleted(event_id=event_id, found=found))

    def log_event_rejected(self, event_id: str, reason: str) -> None:
        self.log(AuditEventBuilder.event_rejected(event_id=event_id, reason=reason))

    def log_events_cleared(self, removed: int) -> None:
        self.log(AuditEventBuilder.events_cleared(removed=removed))

    def log_default_rate_changed(self, old_rate: Decimal, new_rate: Decimal) -> None:
        self.log(AuditEventBuilder.default_rate_changed(
            old_rate=str(old_rate),
            new_rate=str(new_rate),
        ))

    def log_postings_regenerated(
        self,
        months: list[str],
        default_rate: Decimal,
        current_rate: Decimal,
    ) -> None:
        """Log the outcome of one regeneration pass."""
        self.log(AuditEventBuilder.postings_regenerated(
            posting_count=len(months),
            months=months,
            default_rate=str(default_rate),
            current_rate=str(current_rate),
        ))

    def log_state_loaded(self, event_count: int, recovered: Optional[str] = None) -> None:
        self.log(AuditEventBuilder.state_loaded(event_count=event_count, recovered=recovered))

    def log_state_validation_failed(self, issues: list[dict]) -> None:
        self.log(AuditEventBuilder.state_validation_failed(issues=issues))

    def log_state_reset(self, reason: str) -> None:
        self.log(AuditEventBuilder.state_reset(reason=reason))

    def log_state_saved(self, event_count: int) -> None:
        self.log(AuditEventBuilder.state_saved(event_count=event_count))

    def log_save_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(error_message=error_message))

    def log_import_completed(
        self,
        added: int,
        skipped_duplicates: int,
        dropped_postings: int,
    ) -> None:
        self.log(AuditEventBuilder.import_completed(
            added=added,
            skipped_duplicates=skipped_duplicates,
            dropped_postings=dropped_postings,
        ))

    def log_export_completed(self, event_count: int, filename: str) -> None:
        self.log(AuditEventBuilder.export_completed(
            event_count=event_count,
            filename=filename,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))
