"""
Tests for Spardavel models

Test strategy:
1. Unit tests for individual components (models, engine, validators)
2. Integration tests for the store cycle (with in-memory storage)
3. No real clock in tests (the store gets a fixed date)
"""

import json
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from factories import avoided, purchase, rate_change
from spardavel.models import (
    AllTimeMetrics,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    AvoidedPurchaseEvent,
    Category,
    EventType,
    InterestApplicationEvent,
    InterestRateChangeEvent,
    PersistedState,
    PurchaseEvent,
    as_decimal,
    event_to_dict,
    parse_event,
    parse_events,
    sort_events,
)
from spardavel.models.events import field_alias


class TestEventModels:
    """Tests for the event union."""

    def test_purchase_creation(self):
        """Test PurchaseEvent model creation."""
        event = PurchaseEvent(
            date=date(2025, 8, 1),
            amount=Decimal("12.50"),
            category=Category.FOOD,
            description="Lunch",
        )
        assert event.type == EventType.PURCHASE
        assert event.amount == Decimal("12.50")
        assert event.id

    def test_description_strips_whitespace(self):
        """Test that whitespace is stripped from descriptions."""
        event = avoided(5, date(2025, 8, 1), description="  Candy bar  ")
        assert event.description == "Candy bar"

    def test_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValidationError):
            purchase(0, date(2025, 8, 1))
        with pytest.raises(ValidationError):
            avoided(-3, date(2025, 8, 1))

    def test_rejects_empty_description(self):
        """Test that an empty description is rejected."""
        with pytest.raises(ValidationError):
            purchase(10, date(2025, 8, 1), description="   ")

    def test_rate_bounds(self):
        """Test rate must be between 0 and 100."""
        assert rate_change(0, date(2025, 8, 1)).new_rate == Decimal("0")
        with pytest.raises(ValidationError):
            rate_change(-1, date(2025, 8, 1))
        with pytest.raises(ValidationError):
            rate_change(101, date(2025, 8, 1))

    def test_events_are_frozen(self):
        """Test that events cannot be modified in place."""
        event = purchase(10, date(2025, 8, 1))
        with pytest.raises(ValidationError):
            event.amount = Decimal("20")

    def test_posting_defaults_to_zero(self):
        """Test posting amounts default to zero."""
        posting = InterestApplicationEvent(date=date(2025, 8, 31))
        assert posting.pending_on_avoided == Decimal("0")
        assert posting.pending_on_spent == Decimal("0")


class TestEventParsing:
    """Tests for the wire format."""

    def test_parse_camel_case_document(self):
        """Test stored documents with camelCase keys and float amounts."""
        event = parse_event({
            "type": "INTEREST_RATE_CHANGE",
            "id": "r1",
            "date": "2025-09-01",
            "newRate": 4.1,
        })
        assert isinstance(event, InterestRateChangeEvent)
        assert event.new_rate == Decimal("4.1")
        assert event.date == date(2025, 9, 1)

    def test_parse_accepts_snake_case(self):
        """Test snake_case field names are accepted too."""
        event = parse_event({
            "type": "INTEREST_APPLICATION",
            "id": "p1",
            "date": "2025-08-31",
            "pending_on_avoided": 1.25,
        })
        assert event.pending_on_avoided == Decimal("1.25")

    def test_parse_rejects_unknown_type(self):
        """Test an unknown tag is rejected."""
        with pytest.raises(ValidationError):
            parse_event({"type": "REFUND", "id": "x", "date": "2025-08-01"})

    def test_parse_passes_models_through(self):
        """Test an already-built event is returned unchanged."""
        event = avoided(5, date(2025, 8, 1))
        assert parse_event(event) is event

    def test_parse_events_all_or_nothing(self):
        """Test one bad event fails the whole list."""
        with pytest.raises(ValidationError):
            parse_events([
                {"type": "PURCHASE", "id": "a", "date": "2025-08-01",
                 "amount": 5, "category": "Food", "description": "x"},
                {"type": "PURCHASE", "id": "b", "date": "2025-08-01",
                 "amount": -5, "category": "Food", "description": "x"},
            ])

    def test_event_to_dict_uses_wire_names(self):
        """Test serialization uses camelCase and plain numbers."""
        data = event_to_dict(rate_change("3.75", date(2025, 9, 1), event_id="r1"))
        assert data == {
            "type": "INTEREST_RATE_CHANGE",
            "id": "r1",
            "date": "2025-09-01",
            "newRate": 3.75,
        }
        json.dumps(data)

    def test_field_alias(self):
        """Test snake_case and camelCase names map to the wire alias."""
        posting = InterestApplicationEvent(date=date(2025, 8, 31))
        assert field_alias(posting, "pending_on_spent") == "pendingOnSpent"
        assert field_alias(posting, "pendingOnSpent") == "pendingOnSpent"
        assert field_alias(posting, "unknown") == "unknown"

    def test_as_decimal_from_float(self):
        """Test floats convert through their repr, not their binary value."""
        assert as_decimal(0.1) == Decimal("0.1")
        assert as_decimal(3) == Decimal("3")


class TestEventOrdering:
    """Tests for the (date, id) total order."""

    def test_sorted_by_date_then_id(self):
        """Test same-day events are ordered by id."""
        events = [
            purchase(1, date(2025, 8, 2), event_id="a"),
            avoided(1, date(2025, 8, 1), event_id="z"),
            avoided(1, date(2025, 8, 1), event_id="b"),
        ]
        assert [event.id for event in sort_events(events)] == ["b", "z", "a"]


class TestMetricModels:
    """Tests for projection models."""

    def test_opportunity_cost_is_computed(self):
        """Test opportunity cost adds posted and pending missed interest."""
        metrics = AllTimeMetrics(
            missed_interest=Decimal("4.20"),
            pending_cost_interest=Decimal("0.35"),
        )
        assert metrics.opportunity_cost == Decimal("4.55")
        assert metrics.model_dump(mode="json")["opportunity_cost"] == 4.55


class TestPersistedState:
    """Tests for the stored document."""

    def test_to_document_layout(self):
        """Test stored layout uses camelCase keys and omits unset fields."""
        state = PersistedState(events=[avoided(5, date(2025, 8, 1), event_id="a")])
        document = state.to_document()
        assert document["defaultInterestRate"] == 3.5
        assert document["dontRemindExport"] is False
        assert "theme" not in document
        assert document["events"][0]["type"] == "AVOIDED_PURCHASE"

    def test_round_trip(self):
        """Test a stored document loads back to the same state."""
        state = PersistedState(
            events=[purchase(7, date(2025, 8, 1), event_id="p")],
            default_interest_rate=Decimal("4"),
            theme="dark",
        )
        restored = PersistedState.model_validate(state.to_document())
        assert restored == state


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EVENT_ADDED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.EVENT_ADDED
        assert event.severity == AuditSeverity.INFO
        assert event.audit_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            description="Could not persist",
            error_message="disk full",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "save_failed"
        assert log_dict["severity"] == "error"
        assert log_dict["error_message"] == "disk full"

    def test_audit_event_json_line_round_trip(self):
        """Test a JSON-lines record parses back into an AuditEvent."""
        event = AuditEventBuilder.import_completed(
            added=3, skipped_duplicates=1, dropped_postings=2,
        )
        restored = AuditEvent.model_validate(json.loads(event.to_json_line()))
        assert restored.audit_id == event.audit_id
        assert restored.details["skipped_duplicates"] == 1

    def test_audit_event_builder_event_added(self):
        """Test AuditEventBuilder.event_added."""
        event = AuditEventBuilder.event_added(
            event_id="e1",
            event_type="PURCHASE",
            event_date="2025-08-01",
        )
        assert event.event_type == AuditEventType.EVENT_ADDED
        assert event.entity_id == "e1"
        assert event.entity_type == "PURCHASE"
        assert event.is_user_action is True

    def test_audit_event_builder_event_rejected(self):
        """Test rejected events are warnings."""
        event = AuditEventBuilder.event_rejected(event_id="p1", reason="generated")
        assert event.severity == AuditSeverity.WARNING


class TestCategories:
    """Tests for category enum."""

    def test_all_categories_exist(self):
        """Test that all expected categories exist."""
        assert [category.value for category in Category] == [
            "Alcohol", "Candy", "Snacks", "Food", "Drinks", "Games", "Other",
        ]

    def test_category_values(self):
        """Test category parsing from strings."""
        assert Category("Snacks") == Category.SNACKS
        event = AvoidedPurchaseEvent(
            date=date(2025, 8, 1),
            amount=Decimal("2"),
            category="Games",
            description="Skin",
        )
        assert event.category == Category.GAMES
