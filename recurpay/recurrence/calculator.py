"""Next-occurrence calendar arithmetic for recurrence rules.

Every function here is pure: results depend only on the rule and the dates
passed in, never on the current time.
"""

import calendar
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator

from ..models.rule import Frequency, RecurrenceRule

ONE_DAY = timedelta(days=1)
ONE_WEEK = timedelta(days=7)
WEEKS_PER_MONTH = Decimal(52) / Decimal(12)


def clamp_to_month(year: int, month: int, day: int) -> date:
    """Date for ``day`` in the given month, clamped to the month's last day."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _add_months(year: int, month: int, n: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + n
    return index // 12, index % 12 + 1


def next_weekday_in_set(reference: date, weekday_indexes: frozenset) -> date:
    """
    Earliest date strictly after ``reference`` whose weekday is in the set.

    The search covers the next 7 days, so any non-empty set has a match.
    """
    for offset in range(1, 8):
        candidate = reference + timedelta(days=offset)
        if candidate.weekday() in weekday_indexes:
            return candidate
    raise ValueError("Weekday set must not be empty")


def _next_daily(rule: RecurrenceRule, reference: date) -> date:
    if rule.weekdays:
        return next_weekday_in_set(reference, rule.weekday_indexes)
    return reference + ONE_DAY


def _next_weekly(rule: RecurrenceRule, reference: date) -> date:
    if rule.weekdays:
        return next_weekday_in_set(reference, rule.weekday_indexes)
    # Days until the anchor's weekday, 7 when the reference falls on it
    days_ahead = (rule.anchor_date.weekday() - reference.weekday()) % 7 or 7
    return reference + timedelta(days=days_ahead)


def _next_monthly(rule: RecurrenceRule, reference: date) -> date:
    anchor_day = rule.anchor_date.day
    year, month = reference.year, reference.month
    candidate = clamp_to_month(year, month, anchor_day)
    while candidate <= reference:
        year, month = _add_months(year, month, 1)
        candidate = clamp_to_month(year, month, anchor_day)
    return candidate


def _next_yearly(rule: RecurrenceRule, reference: date) -> date:
    anchor = rule.anchor_date
    candidate = clamp_to_month(reference.year, anchor.month, anchor.day)
    if candidate <= reference:
        candidate = clamp_to_month(reference.year + 1, anchor.month, anchor.day)
    return candidate


def _next_custom(rule: RecurrenceRule, reference: date) -> date:
    return next_weekday_in_set(reference, rule.weekday_indexes)


_NEXT_BY_FREQUENCY = {
    Frequency.DAILY: _next_daily,
    Frequency.WEEKLY: _next_weekly,
    Frequency.MONTHLY: _next_monthly,
    Frequency.YEARLY: _next_yearly,
    Frequency.CUSTOM: _next_custom,
}


def first_occurrence(rule: RecurrenceRule) -> date:
    """
    First occurrence of a rule: the anchor itself when the weekday set admits it.

    Args:
        rule: Recurrence rule

    Returns:
        The date used to seed a new record's cursor
    """
    if rule.allows(rule.anchor_date):
        return rule.anchor_date
    return _NEXT_BY_FREQUENCY[rule.frequency](rule, rule.anchor_date)


def next_occurrence(rule: RecurrenceRule, reference: date) -> date:
    """
    Next due date strictly after ``reference``.

    A reference that is itself a valid occurrence resolves to the following
    occurrence. References before the anchor resolve to the rule's first
    occurrence, so results never precede the anchor.

    Args:
        rule: Recurrence rule
        reference: Calendar date to advance from

    Returns:
        Next occurrence date, always greater than ``reference``
    """
    if reference < rule.anchor_date:
        return first_occurrence(rule)

    return _NEXT_BY_FREQUENCY[rule.frequency](rule, reference)


def occurrence_on_or_after(rule: RecurrenceRule, day: date) -> date:
    """First occurrence on or after ``day``."""
    if day <= rule.anchor_date:
        return first_occurrence(rule)
    return next_occurrence(rule, day - ONE_DAY)


def iter_occurrences(rule: RecurrenceRule, start: date, end: date) -> Iterator[date]:
    """Yield every occurrence in ``[start, end]`` in ascending order."""
    current = occurrence_on_or_after(rule, start)
    while current <= end:
        yield current
        current = next_occurrence(rule, current)


def monthly_equivalent(amount: Decimal, rule: RecurrenceRule) -> Decimal:
    """
    Approximate monthly cost of a recurring amount.

    Daily counts 30 days per month, weekly 52/12 weeks, yearly a twelfth.
    Weekday sets scale the weekly rate by the number of days in the set.
    """
    if rule.frequency == Frequency.DAILY:
        if rule.weekdays:
            return amount * len(rule.weekdays) * WEEKS_PER_MONTH
        return amount * 30
    if rule.frequency in (Frequency.WEEKLY, Frequency.CUSTOM):
        per_week = len(rule.weekdays) if rule.weekdays else 1
        return amount * per_week * WEEKS_PER_MONTH
    if rule.frequency == Frequency.YEARLY:
        return amount / 12
    return amount
