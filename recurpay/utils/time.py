"""
Time semantics utilities for calendar dates and the fixed-offset wall clock.

Cursor dates are plain calendar dates and cross storage boundaries as
``YYYY-MM-DD`` strings. Wall-clock time is only used to decide *when* the
daily trigger fires, and is always read in a fixed UTC offset rather than
the host's local timezone.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from ..errors import MalformedDateError

CALENDAR_DATE_FORMAT = "%Y-%m-%d"


def parse_calendar_date(value: Optional[str], field_name: Optional[str] = None) -> date:
    """
    Parse a stored ``YYYY-MM-DD`` calendar date.

    Args:
        value: Stored string value
        field_name: Name of the field, used in the error context

    Returns:
        Parsed date

    Raises:
        MalformedDateError: If the value is missing or not a valid date
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value

    if not value or not isinstance(value, str):
        raise MalformedDateError(
            f"Missing calendar date for {field_name or 'value'}",
            raw_value=value,
            field_name=field_name,
        )

    try:
        return datetime.strptime(value.strip(), CALENDAR_DATE_FORMAT).date()
    except ValueError as e:
        raise MalformedDateError(
            f"Invalid calendar date {value!r}: {e}",
            raw_value=value,
            field_name=field_name,
        ) from e


def format_calendar_date(value: date) -> str:
    """Format a date as a ``YYYY-MM-DD`` storage string."""
    return value.strftime(CALENDAR_DATE_FORMAT)


def fixed_offset(utc_offset_minutes: int) -> timezone:
    """Build a constant-offset timezone from a minute offset."""
    return timezone(timedelta(minutes=utc_offset_minutes))


class Clock(ABC):
    """
    Injectable wall clock.

    Scheduling code never calls ``datetime.now()`` directly so that the
    trigger can be driven by a fake clock in tests.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current timezone-aware time."""
        ...

    def today(self) -> date:
        """Calendar date of ``now()`` in the clock's own timezone."""
        return self.now().date()


class FixedOffsetClock(Clock):
    """System clock read in a constant UTC offset."""

    def __init__(self, utc_offset_minutes: int = 330):
        self.tz = fixed_offset(utc_offset_minutes)

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self.tz)


class ManualClock(Clock):
    """Clock with controlled time for tests and replays."""

    def __init__(self, fixed_time: datetime):
        if fixed_time.tzinfo is None:
            raise ValueError("ManualClock requires a timezone-aware datetime")
        self._now = fixed_time

    def now(self) -> datetime:
        return self._now

    def set_time(self, value: datetime) -> None:
        self._now = value

    def advance(self, seconds: float) -> None:
        self._now = self._now + timedelta(seconds=seconds)


def is_past_trigger_hour(now: datetime, trigger_hour: int) -> bool:
    """Whether ``now`` is at or after the trigger hour on its calendar day."""
    return now.hour >= trigger_hour


def next_trigger_at(now: datetime, trigger_hour: int) -> datetime:
    """
    Next instant at which the wall clock reads ``trigger_hour:00``.

    Args:
        now: Timezone-aware current time in the trigger's fixed offset
        trigger_hour: Hour of day (0-23)

    Returns:
        The trigger instant later today, or tomorrow if it has passed
    """
    candidate = datetime.combine(now.date(), time(hour=trigger_hour), tzinfo=now.tzinfo)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def seconds_until(target: datetime, now: datetime) -> float:
    """Seconds from ``now`` to ``target``, never negative."""
    return max((target - now).total_seconds(), 0.0)
