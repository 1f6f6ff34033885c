"""Pytest configuration and shared fixtures."""

import pytest
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from recurpay.engine import ExecutionEngine
from recurpay.gateways.memory import InMemoryLedgerGateway, InMemoryRecordGateway
from recurpay.models.record import Direction, RecordStatus, RecurringPaymentRecord
from recurpay.models.rule import RecurrenceRule
from recurpay.trigger.timers import TimerHandle, TimerScheduler
from recurpay.utils.time import ManualClock, fixed_offset

IST = fixed_offset(330)


@pytest.fixture
def ist_clock() -> ManualClock:
    """Clock reading 2024-04-15 10:00 at UTC+05:30."""
    return ManualClock(datetime(2024, 4, 15, 10, 0, tzinfo=IST))


@pytest.fixture
def record_gateway() -> InMemoryRecordGateway:
    return InMemoryRecordGateway()


@pytest.fixture
def ledger_gateway() -> InMemoryLedgerGateway:
    return InMemoryLedgerGateway()


@pytest.fixture
def engine(record_gateway, ledger_gateway) -> ExecutionEngine:
    return ExecutionEngine(record_gateway, ledger_gateway)


@pytest.fixture
def make_record() -> Callable[..., RecurringPaymentRecord]:
    """Factory for records with sensible defaults."""

    def _make(
        frequency: str = "monthly",
        anchor: date = date(2024, 1, 31),
        weekdays: Optional[Any] = None,
        next_run_date: Optional[date] = None,
        status: RecordStatus = RecordStatus.ACTIVE,
        record_id: Optional[str] = "rp-1",
        user_id: str = "user-1",
        amount: str = "499.00",
        direction: Direction = Direction.EXPENSE,
        name: str = "Streaming",
    ) -> RecurringPaymentRecord:
        rule = RecurrenceRule.create(frequency, anchor, weekdays)
        return RecurringPaymentRecord(
            id=record_id,
            user_id=user_id,
            name=name,
            amount=Decimal(amount),
            category="Entertainment",
            direction=direction,
            rule=rule,
            status=status,
            next_run_date=next_run_date if next_run_date is not None else anchor,
        )

    return _make


@pytest.fixture
def legacy_document() -> Dict[str, Any]:
    """Stored document written before the status/nextRunDate fields existed."""
    return {
        "userId": "user-1",
        "name": "Gym",
        "amount": 1200,
        "category": "Health",
        "type": "expense",
        "frequency": "monthly",
        "startDate": "2024-01-10",
        "isActive": True,
        "nextDate": "2024-03-10",
    }


class FakeHandle(TimerHandle):

    def __init__(self, delay, callback, repeating):
        self.delay = delay
        self.callback = callback
        self.repeating = repeating
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler(TimerScheduler):
    """Records armed timers instead of starting threads."""

    def __init__(self):
        self.handles = []

    def call_later(self, delay_seconds, callback):
        handle = FakeHandle(delay_seconds, callback, repeating=False)
        self.handles.append(handle)
        return handle

    def call_every(self, interval_seconds, callback):
        handle = FakeHandle(interval_seconds, callback, repeating=True)
        self.handles.append(handle)
        return handle

    def one_shots(self):
        return [h for h in self.handles if not h.repeating and not h.cancelled]

    def repeating(self):
        return [h for h in self.handles if h.repeating and not h.cancelled]


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()
