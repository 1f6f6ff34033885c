"""
Data models and contracts module.

Immutable data structures for recurrence rules, recurring payment records
and the ledger transactions the engine produces.
"""

from .record import Direction, RecordStatus, RecurringPaymentRecord
from .rule import Frequency, RecurrenceRule, Weekday
from .transaction import OccurrenceTransaction

__all__ = [
    "Direction",
    "Frequency",
    "OccurrenceTransaction",
    "RecordStatus",
    "RecurrenceRule",
    "RecurringPaymentRecord",
    "Weekday",
]
