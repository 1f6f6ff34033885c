"""In-process gateways backed by plain document dictionaries.

Records and transactions are kept as stored documents, not objects, so the
codec and the legacy mirrored fields behave exactly as with a real store.
"""

import threading
import uuid
from datetime import date
from typing import Any, Optional

import structlog

from ..errors import (
    DataQualityError,
    GatewayUnavailableError,
    PersistenceError,
    RecordNotFoundError,
)
from ..models.record import RecordStatus, RecurringPaymentRecord
from ..models.rule import RecurrenceRule
from ..models.transaction import DEFAULT_TRANSACTION_NOTE, OccurrenceTransaction
from ..utils.time import Clock, FixedOffsetClock, format_calendar_date
from .base import LedgerGateway, RecordGateway

logger = structlog.get_logger(__name__)


class InMemoryRecordGateway(RecordGateway):
    """Record store keeping one document per record id."""

    def __init__(
        self,
        documents: Optional[dict[str, dict[str, Any]]] = None,
        clock: Optional[Clock] = None
    ):
        self.documents: dict[str, dict[str, Any]] = {}
        self.clock = clock or FixedOffsetClock()
        self.available = True
        self.write_count = 0
        self._lock = threading.Lock()
        for record_id, document in (documents or {}).items():
            self.documents[record_id] = dict(document, id=record_id)

    def _check_available(self, operation: str) -> None:
        if not self.available:
            raise GatewayUnavailableError(
                "Record store unavailable",
                gateway="records",
                operation=operation
            )

    def _document(self, record_id: str) -> dict[str, Any]:
        document = self.documents.get(record_id)
        if document is None:
            raise RecordNotFoundError(f"Record {record_id} not found", record_id=record_id)
        return document

    def _decode(self, document: dict[str, Any], record_id: str) -> RecurringPaymentRecord:
        return RecurringPaymentRecord.from_document(
            document, record_id, fallback_anchor=self.clock.today()
        )

    def _decode_all(self, user_id: str) -> list[RecurringPaymentRecord]:
        records = []
        for record_id, document in self.documents.items():
            if str(document.get("userId")) != str(user_id):
                continue
            try:
                records.append(self._decode(document, record_id))
            except (DataQualityError, ValueError, ArithmeticError) as e:
                logger.error(
                    "Skipping undecodable record document",
                    record_id=record_id,
                    error=str(e),
                    error_type=type(e).__name__
                )
        return records

    def list_active(self, user_id: str) -> list[RecurringPaymentRecord]:
        with self._lock:
            self._check_available("list_active")
            return [r for r in self._decode_all(user_id) if r.is_active]

    def list_all(self, user_id: str) -> list[RecurringPaymentRecord]:
        with self._lock:
            self._check_available("list_all")
            return self._decode_all(user_id)

    def get(self, record_id: str) -> Optional[RecurringPaymentRecord]:
        with self._lock:
            self._check_available("get")
            document = self.documents.get(record_id)
            if document is None:
                return None
            return self._decode(document, record_id)

    def add(self, record: RecurringPaymentRecord) -> str:
        with self._lock:
            self._check_available("add")
            record_id = record.id or uuid.uuid4().hex
            self.documents[record_id] = record.with_id(record_id).to_document()
            self.write_count += 1
            return record_id

    def update_next_run_date(self, record_id: str, next_run_date: date) -> None:
        with self._lock:
            self._check_available("update_next_run_date")
            document = self._document(record_id)
            cursor = format_calendar_date(next_run_date)
            document["nextRunDate"] = cursor
            document["nextDate"] = cursor
            self.write_count += 1

    def update_status(self, record_id: str, status: RecordStatus) -> None:
        with self._lock:
            self._check_available("update_status")
            document = self._document(record_id)
            document["status"] = status.value
            document["isActive"] = status.legacy_is_active
            self.write_count += 1

    def update_rule(self, record_id: str, rule: RecurrenceRule, next_run_date: date) -> None:
        with self._lock:
            self._check_available("update_rule")
            document = self._document(record_id)
            document.pop("repeatDays", None)
            document.update(rule.to_document())
            cursor = format_calendar_date(next_run_date)
            document["nextRunDate"] = cursor
            document["nextDate"] = cursor
            self.write_count += 1

    def delete(self, record_id: str) -> None:
        with self._lock:
            self._check_available("delete")
            self._document(record_id)
            del self.documents[record_id]
            self.write_count += 1


class InMemoryLedgerGateway(LedgerGateway):
    """Ledger keeping transaction documents in insertion order."""

    def __init__(self, note: str = DEFAULT_TRANSACTION_NOTE):
        self.transactions: dict[str, dict[str, Any]] = {}
        self.note = note
        self.available = True
        self.write_count = 0
        self._lock = threading.Lock()

    def create_occurrence_transaction(
        self,
        record: RecurringPaymentRecord,
        occurrence_date: date
    ) -> str:
        with self._lock:
            if not self.available:
                raise PersistenceError(
                    "Ledger unavailable",
                    operation="create_occurrence_transaction",
                    target=record.id
                )
            transaction = OccurrenceTransaction.for_occurrence(record, occurrence_date, self.note)
            transaction_id = uuid.uuid4().hex
            self.transactions[transaction_id] = transaction.to_document()
            self.write_count += 1
            return transaction_id

    def occurrence_exists(self, record_id: str, occurrence_date: date) -> bool:
        target = format_calendar_date(occurrence_date)
        with self._lock:
            return any(
                t["recurringPaymentId"] == record_id and t["date"] == target
                for t in self.transactions.values()
            )

    def for_record(self, record_id: str) -> list[dict[str, Any]]:
        """Transactions generated for one record, oldest first."""
        with self._lock:
            return [t for t in self.transactions.values() if t["recurringPaymentId"] == record_id]
