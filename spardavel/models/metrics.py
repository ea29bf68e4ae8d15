"""
Projection Models for Spardavel

These are the derived views the UI reads: one bucket per calendar month,
all-time totals, and the interest rate history. They are rebuilt from the
event log after every mutation and never persisted.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from spardavel.models.events import Category, Money


METRICS_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
)

ZERO = Decimal("0")


def empty_category_totals() -> dict[Category, Decimal]:
    """Zero total for every category."""
    return {category: ZERO for category in Category}


class PeriodMetrics(BaseModel):
    """
    Aggregates for one calendar month.

    ``applied_*`` interest comes from the month's posting (closed months).
    ``pending_*`` interest is only filled in for the current month.
    """
    model_config = METRICS_MODEL_CONFIG

    month_key: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    period_start: dt.date
    period_end: dt.date

    purchases_count: int = Field(default=0, ge=0)
    purchases_total: Money = ZERO
    purchases_by_category: dict[Category, Money] = Field(
        default_factory=empty_category_totals
    )

    avoided_count: int = Field(default=0, ge=0)
    avoided_total: Money = ZERO
    avoided_by_category: dict[Category, Money] = Field(
        default_factory=empty_category_totals
    )

    pending_interest_on_avoided: Money = ZERO
    pending_interest_on_spent: Money = ZERO
    applied_interest_on_avoided: Money = ZERO
    applied_interest_on_spent: Money = ZERO


class AllTimeMetrics(BaseModel):
    """Totals across the whole log."""
    model_config = METRICS_MODEL_CONFIG

    saved_total: Money = Field(
        default=ZERO,
        description="Avoided amounts plus all applied interest on them"
    )
    spent_total: Money = Field(
        default=ZERO,
        description="Raw purchase amounts only"
    )
    missed_interest: Money = Field(
        default=ZERO,
        description="Applied interest the spent money would have earned"
    )
    pending_saved_interest: Money = ZERO
    pending_cost_interest: Money = ZERO

    @computed_field
    @property
    def opportunity_cost(self) -> Money:
        """Interest forgone on spending, posted plus still accruing."""
        return self.missed_interest + self.pending_cost_interest


class RateHistoryEntry(BaseModel):
    model_config = METRICS_MODEL_CONFIG

    effective_date: dt.date
    rate: Money


class LedgerProjection(BaseModel):
    """Everything the dashboard needs, derived from one pass over the log."""
    model_config = METRICS_MODEL_CONFIG

    current_month: PeriodMetrics
    all_time: AllTimeMetrics = Field(default_factory=AllTimeMetrics)
    monthly_history: list[PeriodMetrics] = Field(default_factory=list)
    current_interest_rate: Money
    interest_rate_history: list[RateHistoryEntry] = Field(default_factory=list)

    def month(self, month_key: str) -> Optional[PeriodMetrics]:
        """Find the bucket for a month, if any event falls in it."""
        for period in self.monthly_history:
            if period.month_key == month_key:
                return period
        return None
