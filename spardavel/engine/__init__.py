"""Interest accrual engine: pure functions over the event log."""

from spardavel.engine.accrual import (
    AccruedInterest,
    accrue_for_month,
    accrue_for_range,
    accrue_to_date,
    round_money,
)
from spardavel.engine.periods import (
    iter_days,
    iter_month_keys,
    month_bounds,
    month_key,
    next_month_key,
    parse_month_key,
)
from spardavel.engine.projector import empty_period, project
from spardavel.engine.rates import (
    RateSchedule,
    current_interest_rate,
    effective_rate,
    interest_rate_history,
)
from spardavel.engine.scheduler import (
    months_needing_posting,
    months_with_posting,
    regenerate_postings,
    strip_postings,
)

__all__ = [
    "AccruedInterest",
    "RateSchedule",
    "accrue_for_month",
    "accrue_for_range",
    "accrue_to_date",
    "current_interest_rate",
    "effective_rate",
    "empty_period",
    "interest_rate_history",
    "iter_days",
    "iter_month_keys",
    "month_bounds",
    "month_key",
    "months_needing_posting",
    "months_with_posting",
    "next_month_key",
    "parse_month_key",
    "project",
    "regenerate_postings",
    "round_money",
    "strip_postings",
]
