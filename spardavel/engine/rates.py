"""
Rate Resolver

The annual rate in force on a day is the ``new_rate`` of the latest
INTEREST_RATE_CHANGE dated on or before that day. Days before the first
rate change (or every day, if there is none) use the default rate.

DESIGN DECISION: Rate-change events are fixed points. Changing the
default rate only moves the days no rate change covers.
"""

from bisect import bisect_right
from datetime import date
from decimal import Decimal
from typing import Iterable

from spardavel.models.events import (
    InterestRateChangeEvent,
    LedgerEvent,
    as_decimal,
    is_rate_change_event,
)
from spardavel.models.metrics import RateHistoryEntry


class RateSchedule:
    """
    Rate changes from an event log, sorted once for repeated lookups.

    The accrual walk asks for a rate on every day of a month, so the
    changes are kept as parallel sorted lists and searched with bisect.
    """

    def __init__(self, events: Iterable[LedgerEvent], default_rate: Decimal):
        changes: list[InterestRateChangeEvent] = sorted(
            (event for event in events if is_rate_change_event(event)),
            key=lambda event: (event.date, event.id),
        )
        self._dates = [change.date for change in changes]
        self._rates = [change.new_rate for change in changes]
        self._changes = changes
        self.default_rate = as_decimal(default_rate)

    @property
    def changes(self) -> list[InterestRateChangeEvent]:
        return list(self._changes)

    def rate_on(self, day: date) -> Decimal:
        """Rate in force on ``day``."""
        index = bisect_right(self._dates, day)
        if index == 0:
            return self.default_rate
        return self._rates[index - 1]


def effective_rate(
    on: date,
    events: Iterable[LedgerEvent],
    default_rate: Decimal,
) -> Decimal:
    """Rate in force on a date, honoring rate changes, else the default."""
    return RateSchedule(events, default_rate).rate_on(on)


def current_interest_rate(
    events: Iterable[LedgerEvent],
    default_rate: Decimal,
    today: date,
) -> Decimal:
    """The rate in force today."""
    return effective_rate(today, events, default_rate)


def interest_rate_history(
    events: Iterable[LedgerEvent],
    default_rate: Decimal,
    today: date,
) -> list[RateHistoryEntry]:
    """
    Rate changes in date order.

    With no rate change recorded, a single entry for the default rate
    effective today.
    """
    changes = RateSchedule(events, default_rate).changes
    if not changes:
        return [RateHistoryEntry(effective_date=today, rate=as_decimal(default_rate))]
    return [
        RateHistoryEntry(effective_date=change.date, rate=change.new_rate)
        for change in changes
    ]
