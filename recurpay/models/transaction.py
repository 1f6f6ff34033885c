"""Ledger transaction produced for one materialized occurrence."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from ..utils.time import format_calendar_date
from .record import Direction, RecurringPaymentRecord

DEFAULT_TRANSACTION_NOTE = "Auto-generated from recurring payment"


@dataclass(frozen=True)
class OccurrenceTransaction:
    """Machine-generated ledger entry linked back to its recurring payment."""
    recurring_payment_id: str
    user_id: str
    title: str
    amount: Decimal
    category: str
    direction: Direction
    date: date                          # occurrence date, not the processing day
    payment_method: Optional[str] = None
    note: str = DEFAULT_TRANSACTION_NOTE
    is_recurring: bool = True

    @classmethod
    def for_occurrence(
        cls,
        record: RecurringPaymentRecord,
        occurrence_date: date,
        note: str = DEFAULT_TRANSACTION_NOTE
    ) -> "OccurrenceTransaction":
        """Copy amount, category and direction from the record."""
        return cls(
            recurring_payment_id=record.id,
            user_id=record.user_id,
            title=record.name,
            amount=record.amount,
            category=record.category,
            direction=record.direction,
            date=occurrence_date,
            payment_method=record.payment_method,
            note=note,
        )

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "userId": self.user_id,
            "title": self.title,
            "category": self.category,
            "amount": str(self.amount),
            "type": self.direction.value,
            "date": format_calendar_date(self.date),
            "note": self.note,
            "isRecurring": self.is_recurring,
            "recurringPaymentId": self.recurring_payment_id,
        }
        if self.payment_method:
            document["paymentMethod"] = self.payment_method
        return document
