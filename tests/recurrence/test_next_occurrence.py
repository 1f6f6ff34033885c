"""
Tests for next-occurrence calendar arithmetic.

Covers each frequency, month-end clamping, leap days, weekday sets and the
strictly-after guarantee.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from recurpay.models.rule import Frequency, RecurrenceRule, Weekday
from recurpay.recurrence.calculator import (
    clamp_to_month,
    first_occurrence,
    iter_occurrences,
    monthly_equivalent,
    next_occurrence,
    occurrence_on_or_after,
)


def rule(frequency, anchor, weekdays=None):
    return RecurrenceRule.create(frequency, anchor, weekdays)


class TestDaily:
    """Daily rules."""

    def test_advances_one_day(self):
        assert next_occurrence(rule("daily", date(2024, 1, 1)), date(2024, 1, 10)) == date(2024, 1, 11)

    def test_crosses_year_end(self):
        assert next_occurrence(rule("daily", date(2024, 1, 1)), date(2024, 12, 31)) == date(2025, 1, 1)

    def test_weekday_set_skips_other_days(self):
        r = rule("daily", date(2024, 1, 1), ["mon", "wed"])
        # 2024-01-05 is a Friday
        assert next_occurrence(r, date(2024, 1, 5)) == date(2024, 1, 8)

    def test_midweek_reference_picks_next_day_in_set(self):
        r = rule("custom", date(2024, 1, 2), ["tue", "thu"])
        # 2024-01-03 is a Wednesday
        assert next_occurrence(r, date(2024, 1, 3)) == date(2024, 1, 4)
        assert next_occurrence(r, date(2024, 1, 8)) == date(2024, 1, 10)


class TestWeekly:
    """Weekly rules."""

    def test_same_weekday_as_anchor_moves_a_full_week(self):
        r = rule("weekly", date(2024, 1, 3))
        assert next_occurrence(r, date(2024, 1, 3)) == date(2024, 1, 10)

    def test_mid_week_reference_lands_on_anchor_weekday(self):
        r = rule("weekly", date(2024, 1, 3))
        result = next_occurrence(r, date(2024, 1, 5))
        assert result == date(2024, 1, 10)
        assert result.weekday() == date(2024, 1, 3).weekday()

    def test_weekday_set_wraps_to_following_week(self):
        r = rule("weekly", date(2024, 1, 2), ["tue", "thu"])
        assert next_occurrence(r, date(2024, 1, 4)) == date(2024, 1, 9)


class TestMonthly:
    """Monthly rules, including month-end clamping."""

    @pytest.mark.parametrize("reference,expected", [
        (date(2024, 1, 31), date(2024, 2, 29)),
        (date(2024, 2, 29), date(2024, 3, 31)),
        (date(2024, 3, 31), date(2024, 4, 30)),
        (date(2024, 4, 30), date(2024, 5, 31)),
    ])
    def test_anchor_on_31st_clamps_each_month(self, reference, expected):
        r = rule("monthly", date(2024, 1, 31))
        assert next_occurrence(r, reference) == expected

    def test_non_leap_february_clamps_to_28th(self):
        r = rule("monthly", date(2023, 1, 31))
        assert next_occurrence(r, date(2023, 1, 31)) == date(2023, 2, 28)

    def test_clamped_month_does_not_drift_anchor_day(self):
        r = rule("monthly", date(2023, 1, 31))
        assert next_occurrence(r, date(2023, 2, 28)) == date(2023, 3, 31)

    def test_reference_before_day_in_same_month(self):
        r = rule("monthly", date(2024, 1, 15))
        assert next_occurrence(r, date(2024, 3, 10)) == date(2024, 3, 15)
        assert next_occurrence(r, date(2024, 3, 15)) == date(2024, 4, 15)

    def test_december_rolls_into_next_year(self):
        r = rule("monthly", date(2024, 1, 20))
        assert next_occurrence(r, date(2024, 12, 25)) == date(2025, 1, 20)


class TestYearly:
    """Yearly rules, including leap-day anchors."""

    def test_same_year_when_still_ahead(self):
        r = rule("yearly", date(2024, 6, 15))
        assert next_occurrence(r, date(2024, 7, 1)) == date(2025, 6, 15)
        assert next_occurrence(r, date(2025, 3, 1)) == date(2025, 6, 15)

    def test_leap_day_anchor_clamps_in_common_years(self):
        r = rule("yearly", date(2024, 2, 29))
        assert next_occurrence(r, date(2024, 2, 29)) == date(2025, 2, 28)
        assert next_occurrence(r, date(2025, 2, 28)) == date(2026, 2, 28)

    def test_leap_day_anchor_returns_in_leap_years(self):
        r = rule("yearly", date(2024, 2, 29))
        assert next_occurrence(r, date(2027, 3, 1)) == date(2028, 2, 29)


class TestCustom:
    """Custom weekday-set rules."""

    def test_single_weekday_cycles_weekly(self):
        r = rule("custom", date(2024, 1, 6), ["sat"])
        assert next_occurrence(r, date(2024, 1, 6)) == date(2024, 1, 13)

    def test_earliest_weekday_after_reference(self):
        r = rule("custom", date(2024, 1, 1), ["mon", "fri"])
        assert next_occurrence(r, date(2024, 1, 1)) == date(2024, 1, 5)
        assert next_occurrence(r, date(2024, 1, 5)) == date(2024, 1, 8)


class TestStrictlyAfter:
    """The next occurrence is always later than the reference."""

    @pytest.mark.parametrize("r", [
        rule("daily", date(2024, 1, 1)),
        rule("weekly", date(2024, 1, 3)),
        rule("monthly", date(2024, 1, 31)),
        rule("yearly", date(2024, 2, 29)),
        rule("custom", date(2024, 1, 1), ["tue", "sun"]),
    ], ids=lambda r: r.frequency.value)
    def test_result_exceeds_reference_for_a_year_of_references(self, r):
        reference = r.anchor_date
        for _ in range(400):
            result = next_occurrence(r, reference)
            assert result > reference
            reference += timedelta(days=1)

    def test_reference_before_anchor_returns_first_occurrence(self):
        r = rule("monthly", date(2024, 5, 10))
        assert next_occurrence(r, date(2024, 1, 1)) == date(2024, 5, 10)


class TestHelpers:
    """Supplementary occurrence helpers."""

    def test_first_occurrence_is_anchor_when_allowed(self):
        assert first_occurrence(rule("monthly", date(2024, 1, 31))) == date(2024, 1, 31)

    def test_first_occurrence_respects_weekday_set(self):
        # Anchor is a Monday, only Wednesdays allowed
        r = rule("custom", date(2024, 1, 1), ["wed"])
        assert first_occurrence(r) == date(2024, 1, 3)

    def test_occurrence_on_or_after_includes_the_day_itself(self):
        r = rule("monthly", date(2024, 1, 31))
        assert occurrence_on_or_after(r, date(2024, 4, 30)) == date(2024, 4, 30)
        assert occurrence_on_or_after(r, date(2024, 5, 1)) == date(2024, 5, 31)

    def test_iter_occurrences_within_range(self):
        r = rule("weekly", date(2024, 1, 1))
        dates = list(iter_occurrences(r, date(2024, 1, 1), date(2024, 1, 31)))
        assert dates == [date(2024, 1, d) for d in (1, 8, 15, 22, 29)]

    def test_clamp_to_month(self):
        assert clamp_to_month(2023, 2, 31) == date(2023, 2, 28)
        assert clamp_to_month(2024, 4, 15) == date(2024, 4, 15)


class TestMonthlyEquivalent:
    """Monthly cost approximation used by the summary."""

    def test_yearly_is_a_twelfth(self):
        assert monthly_equivalent(Decimal("1200"), rule("yearly", date(2024, 1, 1))) == Decimal("100")

    def test_daily_counts_thirty_days(self):
        assert monthly_equivalent(Decimal("10"), rule("daily", date(2024, 1, 1))) == Decimal("300")

    def test_weekly_uses_fifty_two_weeks(self):
        result = monthly_equivalent(Decimal("120"), rule("weekly", date(2024, 1, 1)))
        assert result.quantize(Decimal("0.01")) == Decimal("520.00")

    def test_custom_scales_with_weekday_count(self):
        r = rule("custom", date(2024, 1, 1), ["mon", "wed", "fri"])
        assert monthly_equivalent(Decimal("10"), r).quantize(Decimal("0.01")) == Decimal("130.00")

    def test_monthly_is_unchanged(self):
        assert monthly_equivalent(Decimal("499"), rule("monthly", date(2024, 1, 1))) == Decimal("499")
