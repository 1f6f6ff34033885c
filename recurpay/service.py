"""
Recurring payment management operations.

Creating, editing and changing the status of records goes through here so
that every stored record has a cursor computed from its current rule and
every status change passes the lifecycle transition table.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Iterable, Optional

import structlog

from .config.defaults import SummaryParams
from .engine import ExecutionEngine, ProcessResult
from .errors import RecordNotFoundError
from .gateways.base import RecordGateway
from .models.record import Direction, RecordStatus, RecurringPaymentRecord
from .models.rule import RecurrenceRule
from .recurrence.calculator import first_occurrence, monthly_equivalent
from .state.lifecycle import reschedule, toggled_status, transition
from .utils.time import Clock, FixedOffsetClock

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UpcomingPayment:
    """Record due within the summary window."""
    record_id: str
    name: str
    amount: Decimal
    direction: Direction
    next_run_date: date


@dataclass(frozen=True)
class RecurringSummary:
    """Dashboard figures for a user's recurring payments."""
    monthly_expense: Decimal
    monthly_income: Decimal
    active_count: int
    overdue_count: int
    upcoming: tuple

    @property
    def monthly_net(self) -> Decimal:
        return self.monthly_income - self.monthly_expense


class RecurringPaymentService:
    """User-facing operations on recurring payment records."""

    def __init__(
        self,
        records: RecordGateway,
        engine: ExecutionEngine,
        clock: Optional[Clock] = None,
        summary_params: Optional[SummaryParams] = None
    ) -> None:
        self.records = records
        self.engine = engine
        self.clock = clock or FixedOffsetClock()
        self.summary_params = summary_params or SummaryParams()
        self.logger = logger

    def _require(self, record_id: str) -> RecurringPaymentRecord:
        record = self.records.get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Record {record_id} not found", record_id=record_id)
        return record

    def create(
        self,
        user_id: str,
        name: str,
        amount: Any,
        category: str,
        rule: RecurrenceRule,
        direction: Direction = Direction.EXPENSE,
        reminder_enabled: bool = False,
        payment_method: Optional[str] = None,
        active: bool = True
    ) -> tuple[RecurringPaymentRecord, ProcessResult]:
        """
        Store a new record and materialize anything already due.

        The cursor is seeded with the rule's first occurrence. When that is
        today or earlier and the record is active, the engine runs for this
        record straight away instead of waiting for the next daily run.

        Returns:
            The stored record and the result of the immediate processing

        Raises:
            InvalidRecordError: If the record fields are invalid
        """
        record = RecurringPaymentRecord(
            id=None,
            user_id=user_id,
            name=name,
            amount=amount,
            category=category,
            direction=direction,
            rule=rule,
            status=RecordStatus.ACTIVE if active else RecordStatus.PAUSED,
            next_run_date=first_occurrence(rule),
            reminder_enabled=reminder_enabled,
            payment_method=payment_method,
        )
        record = record.with_id(self.records.add(record))

        self.logger.info(
            "Created recurring payment",
            record_id=record.id,
            user_id=user_id,
            frequency=rule.frequency.value,
            next_run_date=record.next_run_date.isoformat(),
            status=record.status.value
        )

        today = self.clock.today()
        if record.is_active and record.is_due(today):
            result = self.engine.process_record(record, today)
            return self._require(record.id), result
        return record, ProcessResult()

    def edit_rule(
        self,
        record_id: str,
        rule: RecurrenceRule,
        reschedule_from: Optional[date] = None
    ) -> RecurringPaymentRecord:
        """
        Replace a record's rule and recompute its cursor; status is unchanged.

        Args:
            record_id: Record to edit
            rule: New rule
            reschedule_from: Earliest allowed new cursor (defaults to the anchor)
        """
        record = reschedule(self._require(record_id), rule, reschedule_from)
        self.records.update_rule(record_id, record.rule, record.next_run_date)
        return record

    def _set_status(self, record_id: str, target: RecordStatus, trigger: str) -> RecurringPaymentRecord:
        record = transition(self._require(record_id), target, trigger)
        self.records.update_status(record_id, record.status)
        return record

    def pause(self, record_id: str) -> RecurringPaymentRecord:
        return self._set_status(record_id, RecordStatus.PAUSED, "pause")

    def resume(self, record_id: str) -> RecurringPaymentRecord:
        return self._set_status(record_id, RecordStatus.ACTIVE, "resume")

    def toggle(self, record_id: str) -> RecurringPaymentRecord:
        record = self._require(record_id)
        return self._set_status(record_id, toggled_status(record.status), "toggle")

    def cancel(self, record_id: str) -> RecurringPaymentRecord:
        """Cancel a record and delete it from the store."""
        record = transition(self._require(record_id), RecordStatus.CANCELLED, "cancel")
        self.records.delete(record_id)
        return record

    def summary(self, user_id: str, today: Optional[date] = None) -> RecurringSummary:
        """Monthly equivalents and due-date figures over the user's active records."""
        today = today or self.clock.today()
        return summarize(
            self.records.list_all(user_id),
            today,
            self.summary_params.upcoming_window_days
        )


def summarize(
    records: Iterable[RecurringPaymentRecord],
    today: date,
    upcoming_window_days: int = 7
) -> RecurringSummary:
    """Summary figures; paused and cancelled records are ignored."""
    monthly_expense = Decimal(0)
    monthly_income = Decimal(0)
    active_count = 0
    overdue_count = 0
    upcoming = []
    window_end = today + timedelta(days=upcoming_window_days)

    for record in records:
        if not record.is_active:
            continue
        active_count += 1

        monthly = monthly_equivalent(record.amount, record.rule)
        if record.direction is Direction.INCOME:
            monthly_income += monthly
        else:
            monthly_expense += monthly

        if record.next_run_date is None:
            continue
        if record.next_run_date < today:
            overdue_count += 1
        elif record.next_run_date <= window_end:
            upcoming.append(UpcomingPayment(
                record_id=record.id,
                name=record.name,
                amount=record.amount,
                direction=record.direction,
                next_run_date=record.next_run_date,
            ))

    upcoming.sort(key=lambda p: p.next_run_date)
    return RecurringSummary(
        monthly_expense=monthly_expense,
        monthly_income=monthly_income,
        active_count=active_count,
        overdue_count=overdue_count,
        upcoming=tuple(upcoming),
    )
