"""
Two-Stage Validation of Stored State

DESIGN DECISION: A stored document is validated in two distinct stages
before the store trusts it:

STAGE 1 - DOCUMENT VALIDATION:
- The document is a JSON object
- ``events`` is present and is a list
- Settings fields (defaultInterestRate, theme, ...) have valid types
- This catches truncated files and documents from other apps

STAGE 2 - EVENT VALIDATION:
- Every event matches one of the four event schemas
- Ids are unique (later duplicates are dropped with a warning)
- Stored INTEREST_APPLICATION events are noted; they get regenerated
- This catches hand-edited or partially corrupted logs

IMPORTANT: Validation NEVER silently fixes a document.
It reports issues and offers a best-effort state; the caller decides
(through LoadRecovery) whether to use it.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from spardavel.config import get_settings
from spardavel.models.events import (
    LedgerEvent,
    as_decimal,
    is_posting_event,
    parse_event,
)
from spardavel.models.state import PersistedState


class LoadRecovery(str, Enum):
    """What to do when the stored document does not validate."""
    RESET = "reset"
    BEST_EFFORT = "best_effort"


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    location: str = Field(
        ...,
        description="Where the issue is (e.g. 'events[3].amount')"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g. 'missing', 'invalid_event', 'duplicate_id')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class StateValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    ``state`` is set only when the document is valid. ``best_effort_state``
    is always set: the valid events plus whatever settings could be read.
    """

    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    document_valid: bool = Field(
        ...,
        description="Stage 1 passed"
    )
    events_valid: bool = Field(
        ...,
        description="Stage 2 passed (False if it did not run)"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)
    valid_events: list[LedgerEvent] = Field(default_factory=list)
    default_interest_rate: Optional[Decimal] = Field(
        default=None,
        description="The stored default rate, if it could be read"
    )
    state: Optional[PersistedState] = None
    best_effort_state: PersistedState = Field(default_factory=PersistedState)

    @property
    def is_valid(self) -> bool:
        return self.document_valid and self.events_valid

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]

    def issue_dicts(self) -> list[dict]:
        return [issue.model_dump() for issue in self.issues]

    @classmethod
    def unreadable(
        cls,
        message: str,
        fallback_rate: Decimal,
    ) -> "StateValidationResult":
        """Result for a document that could not even be read."""
        return cls(
            document_valid=False,
            events_valid=False,
            issues=[ValidationIssue(
                location="document",
                issue_type="unreadable",
                message=message,
                severity="error",
            )],
            best_effort_state=PersistedState(default_interest_rate=fallback_rate),
        )


class StateValidationError(Exception):
    """Stored state is invalid and no recovery was requested."""

    def __init__(self, result: StateValidationResult):
        self.result = result
        errors = result.errors
        summary = "; ".join(issue.message for issue in errors[:3])
        if len(errors) > 3:
            summary += f" (and {len(errors) - 3} more)"
        super().__init__(f"Stored ledger is invalid: {summary}")


def _format_location(prefix: str, loc: tuple) -> str:
    location = prefix
    for part in loc:
        if isinstance(part, int):
            location += f"[{part}]"
        else:
            location += f".{part}" if location else str(part)
    return location or "document"


def _issues_from_error(prefix: str, error: ValidationError) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            location=_format_location(prefix, tuple(detail["loc"])),
            issue_type=detail["type"],
            message=detail["msg"],
            severity="error",
        )
        for detail in error.errors()
    ]


def _read_rate(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        return None
    try:
        rate = as_decimal(value)
    except InvalidOperation:
        return None
    if not rate.is_finite() or rate < 0 or rate > 100:
        return None
    return rate


class StateValidator:
    """
    Validates a raw stored document through a two-stage pipeline.

    Stage 1: Document shape and settings fields
    Stage 2: Each event, then cross-event checks
    """

    def __init__(self, fallback_rate: Optional[Decimal] = None):
        """
        Args:
            fallback_rate: Default rate used when the document has none
                           that can be read. Taken from settings if None.
        """
        if fallback_rate is None:
            fallback_rate = get_settings().ledger.default_interest_rate
        self._fallback_rate = as_decimal(fallback_rate)

    def _validate_document(
        self,
        document: Any,
    ) -> tuple[bool, list[ValidationIssue], Optional[PersistedState]]:
        """
        Stage 1: Document validation.

        Returns: (is_valid, list_of_issues, settings_only_state)
        """
        issues = []

        if not isinstance(document, dict):
            issues.append(ValidationIssue(
                location="document",
                issue_type="invalid_type",
                message=f"Stored state must be an object, got {type(document).__name__}",
                severity="error",
            ))
            return False, issues, None

        if "events" not in document:
            issues.append(ValidationIssue(
                location="events",
                issue_type="missing",
                message="Stored state has no 'events' list",
                severity="error",
            ))
        elif not isinstance(document["events"], list):
            issues.append(ValidationIssue(
                location="events",
                issue_type="invalid_type",
                message="'events' must be a list",
                severity="error",
            ))

        if "defaultInterestRate" not in document and "default_interest_rate" not in document:
            issues.append(ValidationIssue(
                location="defaultInterestRate",
                issue_type="missing",
                message=f"No default interest rate stored; using {self._fallback_rate}%",
                severity="info",
            ))

        settings_state = None
        try:
            settings_state = PersistedState.model_validate({**document, "events": []})
        except ValidationError as e:
            issues.extend(_issues_from_error("", e))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues, settings_state

    def _validate_events(
        self,
        raw_events: list,
    ) -> tuple[bool, list[ValidationIssue], list[LedgerEvent]]:
        """
        Stage 2: Event validation.

        Returns: (is_valid, list_of_issues, valid_events)
        """
        issues = []
        valid_events = []
        seen_ids: set[str] = set()
        stored_postings = 0

        for index, raw in enumerate(raw_events):
            try:
                event = parse_event(raw)
            except ValidationError as e:
                issues.extend(_issues_from_error(f"events[{index}]", e))
                continue

            if event.id in seen_ids:
                issues.append(ValidationIssue(
                    location=f"events[{index}].id",
                    issue_type="duplicate_id",
                    message=f"Event id {event.id} appears more than once; later copy dropped",
                    severity="warning",
                ))
                continue

            seen_ids.add(event.id)
            if is_posting_event(event):
                stored_postings += 1
            valid_events.append(event)

        if stored_postings:
            issues.append(ValidationIssue(
                location="events",
                issue_type="stored_postings",
                message=f"{stored_postings} stored interest postings will be regenerated",
                severity="info",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues, valid_events

    def validate(self, document: Any) -> StateValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            document: Raw JSON value as returned by the storage backend

        Returns:
            StateValidationResult with all issues found
        """
        all_issues = []

        # Stage 1: Document validation
        document_valid, document_issues, settings_state = self._validate_document(document)
        all_issues.extend(document_issues)

        raw_events = document.get("events") if isinstance(document, dict) else None
        stored_rate = None
        if isinstance(document, dict):
            stored_rate = _read_rate(
                document.get("defaultInterestRate", document.get("default_interest_rate"))
            )

        # Stage 2 runs whenever there is an event list to look at
        events_valid = False
        valid_events: list[LedgerEvent] = []
        if isinstance(raw_events, list):
            events_valid, event_issues, valid_events = self._validate_events(raw_events)
            all_issues.extend(event_issues)

        rate = stored_rate if stored_rate is not None else self._fallback_rate
        if settings_state is not None:
            best_effort = settings_state.model_copy(
                update={"events": valid_events, "default_interest_rate": rate}
            )
        else:
            best_effort = PersistedState(events=valid_events, default_interest_rate=rate)

        is_valid = document_valid and events_valid
        return StateValidationResult(
            document_valid=document_valid,
            events_valid=events_valid,
            issues=all_issues,
            valid_events=valid_events,
            default_interest_rate=stored_rate,
            state=best_effort if is_valid else None,
            best_effort_state=best_effort,
        )

    @staticmethod
    def get_user_friendly_summary(result: StateValidationResult) -> str:
        """Short summary suitable for a recovery prompt."""
        if result.is_valid and not result.warnings:
            return "Stored data is valid."

        lines = []
        if result.errors:
            lines.append("Stored data has problems:")
            for issue in result.errors:
                lines.append(f"   - {issue.location}: {issue.message}")

        if result.warnings:
            lines.append("Please note:")
            for issue in result.warnings:
                lines.append(f"   - {issue.message}")

        if not result.is_valid:
            kept = len(result.valid_events)
            lines.append("")
            lines.append(
                f"You can reset to an empty ledger, or keep the {kept} events that are readable."
            )

        return "\n".join(lines)
