"""
Recurring payment record and its stored-document codec.

The record couples a RecurrenceRule with a lifecycle status and the
persisted ``next_run_date`` cursor. Internally the status is a single enum;
the legacy boolean ``isActive`` and legacy ``nextDate`` fields exist only in
stored documents and are always written in sync with the canonical ones.
"""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

import structlog

from ..errors import InvalidRecordError, MalformedDateError
from ..utils.time import format_calendar_date, parse_calendar_date
from .rule import RecurrenceRule

logger = structlog.get_logger(__name__)


class RecordStatus(str, Enum):
    """Record lifecycle status."""
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is RecordStatus.CANCELLED

    @property
    def legacy_is_active(self) -> bool:
        """Value mirrored into the legacy ``isActive`` field."""
        return self is RecordStatus.ACTIVE


class Direction(str, Enum):
    """Whether occurrences are money going out or coming in."""
    EXPENSE = "expense"
    INCOME = "income"


def to_amount(value: Any) -> Decimal:
    """Coerce a stored or user supplied amount to Decimal."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidRecordError(f"Invalid amount: {value!r}", field_name="amount") from e
    if not amount.is_finite():
        raise InvalidRecordError(f"Amount must be finite: {value!r}", field_name="amount")
    return amount


@dataclass(frozen=True)
class RecurringPaymentRecord:
    """Stored recurring payment: rule, status and the next-run cursor."""

    id: Optional[str]
    user_id: str
    name: str
    amount: Decimal
    category: str
    direction: Direction
    rule: RecurrenceRule
    status: RecordStatus = RecordStatus.ACTIVE
    next_run_date: Optional[date] = None    # None: stored cursor missing or unreadable
    reminder_enabled: bool = False
    payment_method: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'amount', to_amount(self.amount))
        try:
            object.__setattr__(self, 'direction', Direction(self.direction))
            object.__setattr__(self, 'status', RecordStatus(self.status))
        except ValueError as e:
            raise InvalidRecordError(str(e), record_id=self.id) from e

        if self.amount <= 0:
            raise InvalidRecordError(
                "Amount must be positive",
                record_id=self.id,
                field_name="amount",
                context={"amount": str(self.amount)}
            )
        if not isinstance(self.rule, RecurrenceRule):
            raise InvalidRecordError("Record requires a RecurrenceRule", record_id=self.id, field_name="rule")
        if self.next_run_date is not None and self.next_run_date < self.rule.anchor_date:
            raise InvalidRecordError(
                "Next run date precedes the rule's anchor date",
                record_id=self.id,
                field_name="next_run_date",
                context={
                    "next_run_date": self.next_run_date.isoformat(),
                    "anchor_date": self.rule.anchor_date.isoformat()
                }
            )

    @property
    def is_active(self) -> bool:
        return self.status is RecordStatus.ACTIVE

    def is_due(self, today: date) -> bool:
        """Whether the cursor is on or before ``today`` (unknown cursors count as due)."""
        return self.next_run_date is None or self.next_run_date <= today

    def with_id(self, record_id: str) -> "RecurringPaymentRecord":
        return replace(self, id=record_id)

    def with_status(self, status: RecordStatus) -> "RecurringPaymentRecord":
        return replace(self, status=status)

    def with_next_run_date(self, next_run_date: date) -> "RecurringPaymentRecord":
        return replace(self, next_run_date=next_run_date)

    def with_rule(self, rule: RecurrenceRule, next_run_date: date) -> "RecurringPaymentRecord":
        """Swap the rule together with a cursor computed from it."""
        return replace(self, rule=rule, next_run_date=next_run_date)

    def to_document(self) -> dict[str, Any]:
        """Serialize with canonical and legacy mirrored fields."""
        cursor = format_calendar_date(self.next_run_date) if self.next_run_date else None
        document: dict[str, Any] = {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "amount": str(self.amount),
            "category": self.category,
            "type": self.direction.value,
            "status": self.status.value,
            "nextRunDate": cursor,
            "reminderEnabled": self.reminder_enabled,
            # Legacy fields
            "isActive": self.status.legacy_is_active,
            "nextDate": cursor,
        }
        document.update(self.rule.to_document())
        if self.payment_method:
            document["paymentMethod"] = self.payment_method
        return document

    @classmethod
    def from_document(
        cls,
        document: dict[str, Any],
        record_id: Optional[str] = None,
        fallback_anchor: Optional[date] = None
    ) -> "RecurringPaymentRecord":
        """
        Decode a stored document, tolerating legacy layouts.

        Canonical fields win over legacy ones. An unreadable cursor, or one
        that precedes the anchor, is decoded as ``None`` so the engine can
        treat it as due and repair it.

        Legacy documents without ``startDate`` take their anchor from the
        cursor, or from ``fallback_anchor`` when the cursor is unreadable too.

        Raises:
            InvalidRuleError: If the stored rule is invalid
            InvalidRecordError: If amount or identity fields are invalid
            MalformedDateError: If no anchor can be recovered
        """
        record_id = document.get("id") or record_id
        raw_cursor = document.get("nextRunDate") or document.get("nextDate")

        next_run_date: Optional[date] = None
        try:
            next_run_date = parse_calendar_date(raw_cursor, "nextRunDate")
        except MalformedDateError as e:
            logger.warning(
                "Unreadable next run date in stored record",
                record_id=record_id,
                raw_value=e.raw_value,
            )

        rule_document = dict(document)
        if not rule_document.get("startDate"):
            anchor = next_run_date or fallback_anchor
            if anchor is not None:
                rule_document["startDate"] = format_calendar_date(anchor)
        rule = RecurrenceRule.from_document(rule_document)

        if next_run_date is not None and next_run_date < rule.anchor_date:
            logger.warning(
                "Stored next run date precedes anchor date",
                record_id=record_id,
                next_run_date=next_run_date.isoformat(),
                anchor_date=rule.anchor_date.isoformat(),
            )
            next_run_date = None

        return cls(
            id=record_id,
            user_id=str(document.get("userId", "")),
            name=document.get("name", ""),
            amount=document.get("amount"),
            category=document.get("category", ""),
            direction=document.get("type") or Direction.EXPENSE.value,
            rule=rule,
            status=_decode_status(document),
            next_run_date=next_run_date,
            reminder_enabled=bool(document.get("reminderEnabled", False)),
            payment_method=document.get("paymentMethod"),
        )


def _decode_status(document: dict[str, Any]) -> RecordStatus:
    """Canonical status if present, else derived from legacy ``isActive``."""
    status = document.get("status")
    if status:
        return RecordStatus(status)
    if document.get("isActive") is False:
        return RecordStatus.PAUSED
    return RecordStatus.ACTIVE
