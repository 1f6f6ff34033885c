"""
Data quality error classifications for recurring-payment data.

These exceptions cover invalid rules, invalid records and unreadable stored
values. They are raised at construction time or while decoding stored
documents, and the engine treats them as per-record problems.
"""

from typing import Optional, Dict, Any


class DataQualityError(Exception):
    """Base class for data quality issues that can be handled gracefully."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class MalformedDateError(DataQualityError):
    """A stored calendar date is not a valid YYYY-MM-DD string."""

    def __init__(self, message: str, raw_value: Optional[str] = None,
                 field_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_value = raw_value
        self.field_name = field_name


class InvalidRuleError(DataQualityError):
    """Recurrence rule violates its construction invariants."""

    def __init__(self, message: str, frequency: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.frequency = frequency


class InvalidRecordError(DataQualityError):
    """Recurring payment record violates its construction invariants."""

    def __init__(self, message: str, record_id: Optional[str] = None,
                 field_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.record_id = record_id
        self.field_name = field_name
