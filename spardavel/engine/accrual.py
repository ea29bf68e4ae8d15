"""
Period Accrual Calculator

Interest accrues daily on two running balances:

- the avoided balance (money kept by not buying), and
- the spent balance (money that could have been earning instead).

For a period [start, end] the balances are first rebuilt from every
deposit dated before ``start``. Deposits are purchase and avoided amounts
plus earlier interest postings, which is what makes interest compound
month over month. The period is then walked one day at a time:

1. add that day's deposits to the balances
2. look up the rate in force that day
3. accrue ``balance * rate / 100 / 365`` onto each accumulator

The walk is day by day because deposits and rate changes can fall on any
day, and each stretch must use the balance and rate in force during it.

Accumulation runs at full Decimal precision. Only the returned totals
are rounded to cents.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, NamedTuple

from spardavel.engine.periods import iter_days, month_bounds
from spardavel.engine.rates import RateSchedule
from spardavel.models.events import EventType, LedgerEvent, sort_events


CENT = Decimal("0.01")
DAYS_PER_YEAR = Decimal("365")
PERCENT = Decimal("100")
ZERO = Decimal("0")


class AccruedInterest(NamedTuple):
    """Interest accrued over a period, rounded to cents."""
    on_avoided: Decimal
    on_spent: Decimal

    @property
    def is_zero(self) -> bool:
        return self.on_avoided == ZERO and self.on_spent == ZERO


def round_money(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _deposit(event: LedgerEvent) -> tuple[Decimal, Decimal]:
    """(avoided, spent) deltas an event adds to the balances."""
    if event.type == EventType.AVOIDED_PURCHASE:
        return event.amount, ZERO
    if event.type == EventType.PURCHASE:
        return ZERO, event.amount
    if event.type == EventType.INTEREST_APPLICATION:
        return event.pending_on_avoided, event.pending_on_spent
    return ZERO, ZERO


def _is_deposit(event: LedgerEvent) -> bool:
    return event.type in (
        EventType.PURCHASE,
        EventType.AVOIDED_PURCHASE,
        EventType.INTEREST_APPLICATION,
    )


def accrue_for_range(
    events: Iterable[LedgerEvent],
    start: date,
    end: date,
    default_rate: Decimal,
) -> AccruedInterest:
    """
    Interest accrued on each balance from ``start`` to ``end`` inclusive.

    Args:
        events: The event log (any order; rate changes and deposits are read)
        start: First day of accrual
        end: Last day of accrual
        default_rate: Annual percent used where no rate change applies

    Returns:
        AccruedInterest rounded to cents; zero if end < start
    """
    events = list(events)
    if end < start:
        return AccruedInterest(ZERO, ZERO)

    schedule = RateSchedule(events, default_rate)
    deposits = [
        event for event in sort_events(events)
        if _is_deposit(event) and event.date <= end
    ]

    avoided_balance = ZERO
    spent_balance = ZERO
    by_day: dict[date, list[LedgerEvent]] = {}

    for event in deposits:
        if event.date < start:
            avoided, spent = _deposit(event)
            avoided_balance += avoided
            spent_balance += spent
        else:
            by_day.setdefault(event.date, []).append(event)

    on_avoided = ZERO
    on_spent = ZERO

    for day in iter_days(start, end):
        for event in by_day.get(day, ()):
            avoided, spent = _deposit(event)
            avoided_balance += avoided
            spent_balance += spent

        daily_rate = schedule.rate_on(day) / PERCENT / DAYS_PER_YEAR
        on_avoided += avoided_balance * daily_rate
        on_spent += spent_balance * daily_rate

    return AccruedInterest(round_money(on_avoided), round_money(on_spent))


def accrue_for_month(
    events: Iterable[LedgerEvent],
    month_key: str,
    default_rate: Decimal,
) -> AccruedInterest:
    """Interest accrued over a whole calendar month."""
    start, end = month_bounds(month_key)
    return accrue_for_range(events, start, end, default_rate)


def accrue_to_date(
    events: Iterable[LedgerEvent],
    today: date,
    default_rate: Decimal,
) -> AccruedInterest:
    """Pending interest for today's month, from its first day through today."""
    return accrue_for_range(events, today.replace(day=1), today, default_rate)
