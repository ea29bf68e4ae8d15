"""Tests for the posting scheduler."""

import itertools
from datetime import date
from decimal import Decimal

from factories import RATE, avoided, purchase, rate_change
from spardavel.engine import (
    months_needing_posting,
    regenerate_postings,
    strip_postings,
)
from spardavel.models import InterestApplicationEvent, is_posting_event, sort_events


def counter_ids(prefix="post"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


class TestMonthsNeedingPosting:
    """Tests for which months get a posting."""

    def test_closed_months_from_first_transaction(self):
        """Test every month from the first transaction up to, not including, today's."""
        events = [avoided(10, date(2025, 8, 20))]
        assert months_needing_posting(events, "2025-11") == [
            "2025-08", "2025-09", "2025-10",
        ]

    def test_current_month_is_never_closed(self):
        """Test transactions in the open month alone need no posting."""
        events = [avoided(10, date(2025, 11, 2))]
        assert months_needing_posting(events, "2025-11") == []

    def test_rate_changes_do_not_open_months(self):
        """Test a rate change before any transaction does not start the range."""
        events = [
            rate_change("5", date(2025, 6, 1)),
            avoided(10, date(2025, 9, 1)),
        ]
        assert months_needing_posting(events, "2025-11") == ["2025-09", "2025-10"]

    def test_posted_months_are_excluded(self):
        """Test months that already hold a posting are skipped."""
        events = [
            avoided(10, date(2025, 8, 1)),
            InterestApplicationEvent(date=date(2025, 8, 31), pending_on_avoided=Decimal("0.03")),
        ]
        assert months_needing_posting(events, "2025-11") == ["2025-09", "2025-10"]


class TestRegeneratePostings:
    """Tests for posting synthesis."""

    def test_three_month_scenario(self):
        """Test 10000 saved on 1 Aug at 3.5% posts Aug, Sep and Oct, compounding."""
        events = [avoided(10000, date(2025, 8, 1))]
        postings = regenerate_postings(events, "2025-11", RATE)

        assert [posting.date for posting in postings] == [
            date(2025, 8, 31), date(2025, 9, 30), date(2025, 10, 31),
        ]
        assert [posting.pending_on_avoided for posting in postings] == [
            Decimal("29.73"), Decimal("28.85"), Decimal("29.90"),
        ]
        assert all(posting.pending_on_spent == Decimal("0") for posting in postings)
        total = sum(posting.pending_on_avoided for posting in postings)
        assert abs(total - Decimal("88.2")) <= 1

    def test_postings_carry_both_balances(self):
        """Test one posting holds interest for both balances."""
        events = [
            avoided(1000, date(2025, 10, 1)),
            purchase(500, date(2025, 10, 1)),
        ]
        [posting] = regenerate_postings(events, "2025-11", RATE)
        assert posting.pending_on_avoided == Decimal("2.97")
        assert posting.pending_on_spent == Decimal("1.49")

    def test_idempotent(self):
        """Test a second pass over the output creates nothing new."""
        events = [avoided(10000, date(2025, 8, 1)), purchase(40, date(2025, 9, 3))]
        first = regenerate_postings(events, "2025-11", RATE)
        assert first
        assert regenerate_postings(events + first, "2025-11", RATE) == []

    def test_input_not_modified(self):
        """Test the caller's list is left alone."""
        events = [avoided(100, date(2025, 8, 1))]
        regenerate_postings(events, "2025-11", RATE)
        assert len(events) == 1

    def test_zero_months_get_no_posting(self):
        """Test months that accrue nothing are skipped."""
        events = [
            rate_change("0", date(2025, 8, 1)),
            avoided(1000, date(2025, 8, 1)),
            rate_change("3.5", date(2025, 10, 1)),
        ]
        postings = regenerate_postings(events, "2025-11", RATE)
        assert [posting.date for posting in postings] == [date(2025, 10, 31)]

    def test_id_factory(self):
        """Test posting ids come from the given factory."""
        events = [avoided(100, date(2025, 9, 1))]
        postings = regenerate_postings(events, "2025-11", RATE, id_factory=counter_ids())
        assert [posting.id for posting in postings] == ["post-1", "post-2"]

    def test_uses_default_rate_before_first_change(self):
        """Test the default rate covers days before any rate change."""
        events = [avoided(1000, date(2025, 10, 1))]
        [low] = regenerate_postings(events, "2025-11", Decimal("1"))
        [high] = regenerate_postings(events, "2025-11", Decimal("7"))
        assert high.pending_on_avoided > low.pending_on_avoided


class TestStripAndRebuild:
    """Tests for the strip-then-regenerate cycle."""

    def test_strip_postings(self):
        """Test every posting is removed and nothing else."""
        events = [avoided(100, date(2025, 8, 1))]
        events += regenerate_postings(events, "2025-11", RATE)
        stripped = strip_postings(events)
        assert len(stripped) == 1
        assert not any(is_posting_event(event) for event in stripped)

    def test_retroactive_insert_changes_later_months(self):
        """Test adding an earlier deposit raises every later posting."""
        base = [avoided(1000, date(2025, 9, 1))]
        before = regenerate_postings(base, "2025-11", RATE)

        changed = base + [avoided(1000, date(2025, 8, 1))]
        after = regenerate_postings(changed, "2025-11", RATE)

        before_by_month = {posting.date: posting.pending_on_avoided for posting in before}
        after_by_month = {posting.date: posting.pending_on_avoided for posting in after}
        assert date(2025, 8, 31) in after_by_month
        assert date(2025, 8, 31) not in before_by_month
        for day, amount in before_by_month.items():
            assert after_by_month[day] > amount

    def test_sorted_log_order(self):
        """Test the merged log sorts by date then id."""
        events = [avoided(100, date(2025, 8, 31), event_id="zzz")]
        postings = regenerate_postings(events, "2025-09", RATE, id_factory=lambda: "aaa")
        merged = sort_events(events + postings)
        assert [event.id for event in merged] == ["aaa", "zzz"]
