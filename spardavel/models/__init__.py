"""
Data Models Package

This package contains all Pydantic models used in Spardavel.
All data flowing through the ledger must conform to these schemas.
"""

from spardavel.models.events import (
    AvoidedPurchaseEvent,
    Category,
    EventType,
    InterestApplicationEvent,
    InterestRateChangeEvent,
    LedgerEvent,
    Money,
    PurchaseEvent,
    as_decimal,
    event_sort_key,
    event_to_dict,
    is_posting_event,
    is_rate_change_event,
    is_transaction_event,
    new_event_id,
    parse_event,
    parse_events,
    sort_events,
)
from spardavel.models.metrics import (
    AllTimeMetrics,
    LedgerProjection,
    PeriodMetrics,
    RateHistoryEntry,
)
from spardavel.models.state import (
    EXPORT_FORMAT_VERSION,
    ExportDocument,
    ExportSettings,
    PersistedState,
)
from spardavel.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Event models
    "AvoidedPurchaseEvent",
    "Category",
    "EventType",
    "InterestApplicationEvent",
    "InterestRateChangeEvent",
    "LedgerEvent",
    "Money",
    "PurchaseEvent",
    "as_decimal",
    "event_sort_key",
    "event_to_dict",
    "is_posting_event",
    "is_rate_change_event",
    "is_transaction_event",
    "new_event_id",
    "parse_event",
    "parse_events",
    "sort_events",
    # Projection models
    "AllTimeMetrics",
    "LedgerProjection",
    "PeriodMetrics",
    "RateHistoryEntry",
    # Documents
    "EXPORT_FORMAT_VERSION",
    "ExportDocument",
    "ExportSettings",
    "PersistedState",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
