"""
Ledger Projector

Folds the event log, postings included, into the dashboard view:
per-month buckets, all-time totals, and the rate history.

The fold reads events and never writes them. Closed months get their
interest from postings. The open month has no posting yet, so its interest
is computed as pending, from the first of the month through today.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable

from spardavel.engine.accrual import accrue_to_date
from spardavel.engine.periods import month_bounds, month_key
from spardavel.engine.rates import current_interest_rate, interest_rate_history
from spardavel.models.events import EventType, LedgerEvent, as_decimal, sort_events
from spardavel.models.metrics import AllTimeMetrics, LedgerProjection, PeriodMetrics


def empty_period(key: str) -> PeriodMetrics:
    start, end = month_bounds(key)
    return PeriodMetrics(month_key=key, period_start=start, period_end=end)


def project(
    events: Iterable[LedgerEvent],
    default_rate: Decimal,
    today: date,
) -> LedgerProjection:
    """
    Build the full projection for ``today``.

    Totals:
    - ``saved_total`` = avoided amounts + applied interest on avoided
    - ``spent_total`` = purchase amounts only
    - ``missed_interest`` = applied interest on spent
    - pending interest (current month only) is reported separately
    """
    events = sort_events(events)
    default_rate = as_decimal(default_rate)
    current_key = month_key(today)

    buckets: dict[str, PeriodMetrics] = {}
    all_time = AllTimeMetrics()

    for event in events:
        key = month_key(event.date)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = empty_period(key)

        if event.type == EventType.PURCHASE:
            bucket.purchases_count += 1
            bucket.purchases_total += event.amount
            bucket.purchases_by_category[event.category] += event.amount
            all_time.spent_total += event.amount
        elif event.type == EventType.AVOIDED_PURCHASE:
            bucket.avoided_count += 1
            bucket.avoided_total += event.amount
            bucket.avoided_by_category[event.category] += event.amount
            all_time.saved_total += event.amount
        elif event.type == EventType.INTEREST_APPLICATION:
            bucket.applied_interest_on_avoided += event.pending_on_avoided
            bucket.applied_interest_on_spent += event.pending_on_spent
            all_time.saved_total += event.pending_on_avoided
            all_time.missed_interest += event.pending_on_spent
        # rate changes only open the month's bucket

    current = buckets.get(current_key) or empty_period(current_key)

    pending = accrue_to_date(events, today, default_rate)
    current.pending_interest_on_avoided = pending.on_avoided
    current.pending_interest_on_spent = pending.on_spent
    all_time.pending_saved_interest = pending.on_avoided
    all_time.pending_cost_interest = pending.on_spent

    return LedgerProjection(
        current_month=current,
        all_time=all_time,
        monthly_history=[buckets[key] for key in sorted(buckets)],
        current_interest_rate=current_interest_rate(events, default_rate, today),
        interest_rate_history=interest_rate_history(events, default_rate, today),
    )
