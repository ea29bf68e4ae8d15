"""
Audit Models for Spardavel

Every store action is logged for audit purposes.
This provides:
1. Traceability of every change to the event log
2. Debugging information when a regeneration looks wrong
3. A history of load/validation problems the user chose to recover from

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    One per store operation, plus the load/save lifecycle.
    """
    # Log mutations
    EVENT_ADDED = "event_added"
    EVENT_UPDATED = "event_updated"
    EVENT_DELETED = "event_deleted"
    EVENT_REJECTED = "event_rejected"
    EVENTS_CLEARED = "events_cleared"
    DEFAULT_RATE_CHANGED = "default_rate_changed"

    # Derivation
    POSTINGS_REGENERATED = "postings_regenerated"

    # Persistence
    STATE_LOADED = "state_loaded"
    STATE_VALIDATION_FAILED = "state_validation_failed"
    STATE_RESET = "state_reset"
    STATE_SAVED = "state_saved"
    SAVE_FAILED = "save_failed"

    # Transfer
    IMPORT_COMPLETED = "import_completed"
    EXPORT_COMPLETED = "export_completed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every store action creates one of these.
    """

    # Identity
    audit_id: UUID = Field(
        default_factory=uuid4,
        description="Unique audit record identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the action happened (UTC)"
    )

    # Classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of action"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which ledger entry is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'PURCHASE', 'state', 'export')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the ledger event this relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "audit_id": str(self.audit_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """Serialize as one line of a JSON-lines audit file."""
        return json.dumps(self.to_log_dict(), default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.event_added(event_id, "PURCHASE", "2025-08-01")
        event = AuditEventBuilder.postings_regenerated(3, ["2025-08", ...])
    """

    @staticmethod
    def event_added(
        event_id: str,
        event_type: str,
        event_date: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_ADDED,
            entity_type=event_type,
            entity_id=event_id,
            description=f"{event_type} dated {event_date} added",
            details={"date": event_date},
            is_user_action=True,
        )

    @staticmethod
    def event_updated(
        event_id: str,
        event_type: str,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_UPDATED,
            entity_type=event_type,
            entity_id=event_id,
            description=f"{event_type} updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def event_deleted(
        event_id: str,
        found: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_DELETED,
            entity_id=event_id,
            description=(
                "Event deleted" if found else "Delete requested for unknown event"
            ),
            details={"found": found},
            is_user_action=True,
        )

    @staticmethod
    def event_rejected(
        event_id: str,
        reason: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="INTEREST_APPLICATION",
            entity_id=event_id,
            description=f"Event ignored: {reason}",
            details={"reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def events_cleared(removed: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENTS_CLEARED,
            severity=AuditSeverity.WARNING,
            description=f"All data cleared ({removed} events removed)",
            details={"removed": removed},
            is_user_action=True,
        )

    @staticmethod
    def default_rate_changed(
        old_rate: str,
        new_rate: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEFAULT_RATE_CHANGED,
            entity_type="settings",
            description=f"Default interest rate changed from {old_rate}% to {new_rate}%",
            details={"old_rate": old_rate, "new_rate": new_rate},
            is_user_action=True,
        )

    @staticmethod
    def postings_regenerated(
        posting_count: int,
        months: list[str],
        default_rate: str,
        current_rate: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.POSTINGS_REGENERATED,
            severity=AuditSeverity.DEBUG,
            entity_type="posting",
            description=f"Regenerated {posting_count} interest postings",
            details={
                "months": months,
                "default_rate": default_rate,
                "current_rate": current_rate,
            },
        )

    @staticmethod
    def state_loaded(
        event_count: int,
        recovered: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            entity_type="state",
            description=f"Ledger loaded with {event_count} events",
            details={"event_count": event_count, "recovery": recovered},
        )

    @staticmethod
    def state_validation_failed(
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="state",
            description=f"Stored ledger failed validation with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def state_reset(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="state",
            description=f"Stored ledger reset: {reason}",
            details={"reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def state_saved(event_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="state",
            description=f"Ledger saved with {event_count} events",
            details={"event_count": event_count},
        )

    @staticmethod
    def save_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="state",
            description="Could not persist the ledger",
            error_message=error_message,
        )

    @staticmethod
    def import_completed(
        added: int,
        skipped_duplicates: int,
        dropped_postings: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            entity_type="import",
            description=(
                f"Imported {added} new events "
                f"({skipped_duplicates} duplicates skipped)"
            ),
            details={
                "added": added,
                "skipped_duplicates": skipped_duplicates,
                "dropped_postings": dropped_postings,
            },
            is_user_action=True,
        )

    @staticmethod
    def export_completed(
        event_count: int,
        filename: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_COMPLETED,
            entity_type="export",
            description=f"Exported {event_count} events to {filename}",
            details={"event_count": event_count, "filename": filename},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
