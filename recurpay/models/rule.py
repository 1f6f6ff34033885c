"""
Recurrence rule value object.

A rule says how often an occurrence recurs and which calendar date fixes
its phase. Rules are immutable; invalid combinations are rejected when the
rule is constructed, never later while processing.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable, Optional

from ..errors import InvalidRuleError
from ..utils.time import format_calendar_date, parse_calendar_date


class Frequency(str, Enum):
    """How often a rule recurs."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class Weekday(str, Enum):
    """Weekday labels, ordered Monday first like ``date.weekday()``."""
    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"
    FRI = "fri"
    SAT = "sat"
    SUN = "sun"

    @property
    def index(self) -> int:
        """Position matching ``date.weekday()`` (Monday == 0)."""
        return _WEEKDAY_ORDER.index(self)

    @classmethod
    def of(cls, day: date) -> "Weekday":
        """Weekday label of a calendar date."""
        return _WEEKDAY_ORDER[day.weekday()]

    @classmethod
    def parse(cls, value: Any) -> "Weekday":
        """Accept labels ("mon", "Monday") or 0-6 indexes."""
        if isinstance(value, Weekday):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value <= 6:
                return _WEEKDAY_ORDER[value]
            raise InvalidRuleError(f"Weekday index out of range: {value}")
        if isinstance(value, str):
            key = value.strip().lower()[:3]
            for weekday in cls:
                if weekday.value == key:
                    return weekday
        raise InvalidRuleError(f"Unknown weekday label: {value!r}")


_WEEKDAY_ORDER = list(Weekday)

_WEEKDAY_FREQUENCIES = (Frequency.DAILY, Frequency.WEEKLY, Frequency.CUSTOM)


@dataclass(frozen=True)
class RecurrenceRule:
    """Immutable recurrence rule: frequency, anchor date and optional weekday set."""

    frequency: Frequency
    anchor_date: date
    weekdays: Optional[frozenset] = None    # frozenset[Weekday]; None = no constraint

    def __post_init__(self) -> None:
        try:
            frequency = Frequency(self.frequency)
        except ValueError as e:
            raise InvalidRuleError(
                f"Unknown frequency: {self.frequency!r}",
                frequency=str(self.frequency)
            ) from e
        object.__setattr__(self, 'frequency', frequency)

        if not isinstance(self.anchor_date, date):
            raise InvalidRuleError(
                "Anchor date must be a calendar date",
                frequency=frequency.value,
                context={"anchor_date": repr(self.anchor_date)}
            )

        weekdays = None
        if self.weekdays is not None:
            weekdays = frozenset(Weekday.parse(w) for w in self.weekdays) or None

        if frequency == Frequency.CUSTOM and not weekdays:
            raise InvalidRuleError(
                "Custom frequency requires a non-empty weekday set",
                frequency=frequency.value
            )
        if weekdays and frequency not in _WEEKDAY_FREQUENCIES:
            raise InvalidRuleError(
                f"Weekday set is not supported for {frequency.value} rules",
                frequency=frequency.value
            )
        object.__setattr__(self, 'weekdays', weekdays)

    @classmethod
    def create(
        cls,
        frequency: str,
        anchor_date: date,
        weekdays: Optional[Iterable[Any]] = None
    ) -> "RecurrenceRule":
        """Build a rule from loosely typed input (strings, weekday indexes)."""
        return cls(
            frequency=frequency.strip().lower() if isinstance(frequency, str) else frequency,
            anchor_date=anchor_date,
            weekdays=frozenset(weekdays) if weekdays is not None else None,
        )

    @property
    def weekday_indexes(self) -> frozenset:
        """Weekday set as ``date.weekday()`` indexes (empty when unconstrained)."""
        if not self.weekdays:
            return frozenset()
        return frozenset(w.index for w in self.weekdays)

    def allows(self, day: date) -> bool:
        """Whether the weekday constraint (if any) admits ``day``."""
        return not self.weekdays or day.weekday() in self.weekday_indexes

    def to_document(self) -> dict[str, Any]:
        """Serialize using the stored document field names."""
        document: dict[str, Any] = {
            "frequency": self.frequency.value,
            "startDate": format_calendar_date(self.anchor_date),
        }
        if self.weekdays:
            document["repeatDays"] = sorted(
                (w.value for w in self.weekdays), key=lambda v: Weekday(v).index
            )
        return document

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "RecurrenceRule":
        """Decode a stored rule; missing frequency defaults to monthly."""
        return cls.create(
            frequency=document.get("frequency") or Frequency.MONTHLY.value,
            anchor_date=parse_calendar_date(document.get("startDate"), "startDate"),
            weekdays=document.get("repeatDays") or None,
        )
