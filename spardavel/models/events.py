"""
Event Models for Spardavel

The ledger is an event log. Four kinds of event exist:

1. PURCHASE - money actually spent
2. AVOIDED_PURCHASE - money the user chose not to spend
3. INTEREST_RATE_CHANGE - new annual rate, effective from its date onwards
4. INTEREST_APPLICATION - a monthly interest posting (derived, never hand-made)

DESIGN DECISION: The event is a tagged union, not a class hierarchy.
Each variant is its own Pydantic model carrying a literal ``type`` tag,
and the union is discriminated on that tag. Code that needs to tell
variants apart branches on ``event.type``.

Wire format uses camelCase keys (``newRate``, ``pendingOnAvoided``) and
plain JSON numbers for money, so documents written by earlier versions of
the app load unchanged. Python code uses snake_case names.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Iterable, Literal, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    TypeAdapter,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS
# =============================================================================

class EventType(str, Enum):
    """Discriminator values for the event union."""
    PURCHASE = "PURCHASE"
    AVOIDED_PURCHASE = "AVOIDED_PURCHASE"
    INTEREST_RATE_CHANGE = "INTEREST_RATE_CHANGE"
    INTEREST_APPLICATION = "INTEREST_APPLICATION"


class Category(str, Enum):
    """
    Spending categories.

    DESIGN DECISION: A closed set rather than free text, so per-category
    breakdowns always have the same keys.
    """
    ALCOHOL = "Alcohol"
    CANDY = "Candy"
    SNACKS = "Snacks"
    FOOD = "Food"
    DRINKS = "Drinks"
    GAMES = "Games"
    OTHER = "Other"


# Money is a Decimal in Python and a number on the wire
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


def new_event_id() -> str:
    """Create a fresh event identifier."""
    return str(uuid4())


EVENT_MODEL_CONFIG = ConfigDict(
    frozen=True,
    str_strip_whitespace=True,
    extra="ignore",
    alias_generator=to_camel,
    populate_by_name=True,
)


# =============================================================================
# EVENT VARIANTS
# =============================================================================

class PurchaseEvent(BaseModel):
    """Money actually spent."""
    model_config = EVENT_MODEL_CONFIG

    type: Literal["PURCHASE"] = "PURCHASE"
    id: str = Field(default_factory=new_event_id, min_length=1)
    date: dt.date
    amount: Money = Field(..., gt=0)
    category: Category
    description: str = Field(..., min_length=1)


class AvoidedPurchaseEvent(BaseModel):
    """Money the user chose not to spend."""
    model_config = EVENT_MODEL_CONFIG

    type: Literal["AVOIDED_PURCHASE"] = "AVOIDED_PURCHASE"
    id: str = Field(default_factory=new_event_id, min_length=1)
    date: dt.date
    amount: Money = Field(..., gt=0)
    category: Category
    description: str = Field(..., min_length=1)


class InterestRateChangeEvent(BaseModel):
    """
    A new annual rate (percent, e.g. 3.5).

    Effective from ``date`` inclusive until a later rate change supersedes it.
    """
    model_config = EVENT_MODEL_CONFIG

    type: Literal["INTEREST_RATE_CHANGE"] = "INTEREST_RATE_CHANGE"
    id: str = Field(default_factory=new_event_id, min_length=1)
    date: dt.date
    new_rate: Money = Field(..., ge=0, le=100)


class InterestApplicationEvent(BaseModel):
    """
    Interest accrued during one calendar month, dated to its last day.

    CRITICAL: These are created by the posting scheduler only. They are
    stripped and regenerated on every mutation of the log.
    """
    model_config = EVENT_MODEL_CONFIG

    type: Literal["INTEREST_APPLICATION"] = "INTEREST_APPLICATION"
    id: str = Field(default_factory=new_event_id, min_length=1)
    date: dt.date
    pending_on_avoided: Money = Field(default=Decimal("0"), ge=0)
    pending_on_spent: Money = Field(default=Decimal("0"), ge=0)


LedgerEvent = Annotated[
    Union[
        PurchaseEvent,
        AvoidedPurchaseEvent,
        InterestRateChangeEvent,
        InterestApplicationEvent,
    ],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter = TypeAdapter(LedgerEvent)
_EVENT_LIST_ADAPTER: TypeAdapter = TypeAdapter(list[LedgerEvent])

_EVENT_CLASSES = (
    PurchaseEvent,
    AvoidedPurchaseEvent,
    InterestRateChangeEvent,
    InterestApplicationEvent,
)


# =============================================================================
# HELPERS
# =============================================================================

def parse_event(data: Any) -> LedgerEvent:
    """
    Validate a single event.

    Already-built event models pass through untouched.
    Raises pydantic.ValidationError for anything that is not a valid event.
    """
    if isinstance(data, _EVENT_CLASSES):
        return data
    return _EVENT_ADAPTER.validate_python(data)


def parse_events(data: Any) -> list[LedgerEvent]:
    """Validate a list of events (all or nothing)."""
    return _EVENT_LIST_ADAPTER.validate_python(data)


def event_to_dict(event: LedgerEvent) -> dict:
    """Serialize an event to its JSON-ready wire shape."""
    return event.model_dump(mode="json", by_alias=True)


def event_sort_key(event: LedgerEvent) -> tuple[dt.date, str]:
    """Total order of the log: date ascending, id as tiebreak."""
    return (event.date, event.id)


def sort_events(events: Iterable[LedgerEvent]) -> list[LedgerEvent]:
    """Return a new list ordered by (date, id)."""
    return sorted(events, key=event_sort_key)


def is_transaction_event(event: LedgerEvent) -> bool:
    return event.type in (EventType.PURCHASE, EventType.AVOIDED_PURCHASE)


def is_rate_change_event(event: LedgerEvent) -> bool:
    return event.type == EventType.INTEREST_RATE_CHANGE


def is_posting_event(event: LedgerEvent) -> bool:
    return event.type == EventType.INTEREST_APPLICATION


def field_alias(event: LedgerEvent, name: str) -> str:
    """
    Map a snake_case or camelCase field name to the wire alias.

    Unknown names are returned unchanged (they are ignored on validation).
    """
    fields = type(event).model_fields
    if name in fields:
        return fields[name].alias or name
    return name


def as_decimal(value: Any) -> Decimal:
    """Decimal from an int, float, str or Decimal (floats via their repr)."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
