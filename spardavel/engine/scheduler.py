"""
Posting Scheduler

Every closed month (strictly before the current month) that carries a
balance gets exactly one INTEREST_APPLICATION, dated to its last day.

DESIGN DECISION: Postings are always regenerated from scratch.
Callers strip every posting, mutate the log, and then ask for fresh
postings. Patching postings in place would need to know which later
months a retroactive edit invalidates; regenerating sidesteps that, and
personal-finance logs are small enough for it to stay cheap.
"""

from decimal import Decimal
from typing import Callable, Iterable, Optional

import structlog

from spardavel.engine.accrual import accrue_for_month
from spardavel.engine.periods import iter_month_keys, month_bounds, month_key
from spardavel.models.events import (
    InterestApplicationEvent,
    LedgerEvent,
    as_decimal,
    is_posting_event,
    is_transaction_event,
    new_event_id,
)

logger = structlog.get_logger()


def strip_postings(events: Iterable[LedgerEvent]) -> list[LedgerEvent]:
    """The log without any INTEREST_APPLICATION events."""
    return [event for event in events if not is_posting_event(event)]


def months_with_posting(events: Iterable[LedgerEvent]) -> set[str]:
    return {month_key(event.date) for event in events if is_posting_event(event)}


def months_needing_posting(
    events: Iterable[LedgerEvent],
    current_month_key: str,
) -> list[str]:
    """
    Closed months that still lack a posting, oldest first.

    The range starts at the earliest closed month holding a purchase or
    avoided purchase; months after it inherit its balance even when they
    hold no transactions themselves.
    """
    events = list(events)
    posted = months_with_posting(events)

    transaction_months = [
        month_key(event.date)
        for event in events
        if is_transaction_event(event)
    ]
    closed = [key for key in transaction_months if key < current_month_key]
    if not closed:
        return []

    return [
        key for key in iter_month_keys(min(closed), current_month_key)
        if key not in posted
    ]


def regenerate_postings(
    events: Iterable[LedgerEvent],
    current_month_key: str,
    default_rate: Decimal,
    id_factory: Optional[Callable[[], str]] = None,
) -> list[InterestApplicationEvent]:
    """
    Create postings for every closed month that needs one.

    Pure: ``events`` is not modified. Months are processed oldest first
    against a working copy of the log that includes the postings created
    so far, so each new month compounds on the ones before it.

    Args:
        events: The event log, normally with postings already stripped
        current_month_key: ``YYYY-MM`` of the month still open
        default_rate: Annual percent used where no rate change applies
        id_factory: Produces posting ids (uuid4 strings by default)

    Returns:
        The new postings in month order; months accruing nothing get none
    """
    make_id = id_factory or new_event_id
    default_rate = as_decimal(default_rate)

    working = list(events)
    created: list[InterestApplicationEvent] = []

    for key in months_needing_posting(working, current_month_key):
        accrued = accrue_for_month(working, key, default_rate)
        if accrued.is_zero:
            continue

        _, last_day = month_bounds(key)
        posting = InterestApplicationEvent(
            id=make_id(),
            date=last_day,
            pending_on_avoided=accrued.on_avoided,
            pending_on_spent=accrued.on_spent,
        )
        created.append(posting)
        working.append(posting)

        logger.debug(
            "interest_posted",
            month=key,
            on_avoided=str(accrued.on_avoided),
            on_spent=str(accrued.on_spent),
        )

    return created
