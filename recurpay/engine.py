"""
Recurring payment execution engine.

Materializes due occurrences of each active record into ledger
transactions and advances the record's cursor past ``today``.

Record Gateway → due check → Ledger Gateway (create) → Record Gateway (advance)
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

import structlog

from .config.defaults import EngineParams
from .errors import DataQualityError, PersistenceError
from .gateways.base import LedgerGateway, RecordGateway
from .models.record import RecurringPaymentRecord
from .recurrence.calculator import first_occurrence, next_occurrence

logger = structlog.get_logger(__name__)


@dataclass
class ProcessResult:
    """Counters for one processing run."""
    created_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    records_processed: int = 0

    def add(self, other: "ProcessResult") -> None:
        self.created_count += other.created_count
        self.skipped_count += other.skipped_count
        self.error_count += other.error_count
        self.records_processed += other.records_processed


class ExecutionEngine:
    """
    Processes a user's recurring payments for a given calendar day.

    Each record is processed on its own: a failure is logged and counted,
    and the remaining records still run. Within a record the transaction
    is created before the cursor is advanced, so a crash in between can at
    worst repeat that occurrence on the next run, never skip it. Ledgers
    that implement ``occurrence_exists`` close that window too.
    """

    def __init__(
        self,
        records: RecordGateway,
        ledger: LedgerGateway,
        params: Optional[EngineParams] = None
    ) -> None:
        self.records = records
        self.ledger = ledger
        self.params = params or EngineParams()
        self.logger = logger

    def process(self, user_id: str, today: date) -> ProcessResult:
        """
        Process every active record of a user.

        Args:
            user_id: Owner of the records
            today: Calendar date in the trigger's fixed timezone

        Returns:
            Counters for the run

        Raises:
            GatewayUnavailableError: If the active records cannot be listed
        """
        # Listing failures abort the whole run
        records = self.records.list_active(user_id)

        result = ProcessResult()
        for record in records:
            result.add(self._process_isolated(record, today))

        self.logger.info(
            "Processed recurring payments",
            user_id=user_id,
            today=today.isoformat(),
            records=result.records_processed,
            created=result.created_count,
            skipped=result.skipped_count,
            errors=result.error_count
        )
        return result

    def process_record(self, record: RecurringPaymentRecord, today: date) -> ProcessResult:
        """Process a single record with the same isolation as a full run."""
        return self._process_isolated(record, today)

    def _process_isolated(self, record: RecurringPaymentRecord, today: date) -> ProcessResult:
        try:
            return self._process_one(record, today)

        except DataQualityError as e:
            self.logger.warning(
                "Data quality issue while processing recurring payment",
                record_id=record.id,
                error=str(e),
                error_type=type(e).__name__,
                context=getattr(e, 'context', {})
            )

        except PersistenceError as e:
            self.logger.error(
                "Write failed while processing recurring payment",
                record_id=record.id,
                error=str(e),
                error_type=type(e).__name__,
                operation=e.operation,
                target=e.target
            )

        except Exception as e:
            self.logger.error(
                "Unexpected error processing recurring payment",
                record_id=record.id,
                error=str(e),
                error_type=type(e).__name__
            )

        return ProcessResult(error_count=1, records_processed=1)

    def _process_one(self, record: RecurringPaymentRecord, today: date) -> ProcessResult:
        result = ProcessResult(records_processed=1)

        if not record.is_active:
            self.logger.debug(
                "Skipping inactive recurring payment",
                record_id=record.id,
                status=record.status.value
            )
            result.skipped_count += 1
            return result

        cursor = record.next_run_date
        if cursor is None:
            cursor = self._fallback_cursor(record, today)
            if cursor > today:
                self.records.update_next_run_date(record.id, cursor)

        if cursor > today:
            result.skipped_count += 1
            return result

        while cursor <= today:
            if self._already_materialized(record, cursor):
                self.logger.info(
                    "Occurrence already in ledger, advancing cursor only",
                    record_id=record.id,
                    occurrence_date=cursor.isoformat()
                )
                result.skipped_count += 1
            else:
                transaction_id = self.ledger.create_occurrence_transaction(record, cursor)
                result.created_count += 1
                self.logger.info(
                    "Created transaction for recurring payment",
                    record_id=record.id,
                    user_id=record.user_id,
                    transaction_id=transaction_id,
                    occurrence_date=cursor.isoformat(),
                    amount=str(record.amount)
                )

            cursor = next_occurrence(record.rule, cursor)
            self.records.update_next_run_date(record.id, cursor)

        self.logger.debug(
            "Advanced recurring payment cursor",
            record_id=record.id,
            next_run_date=cursor.isoformat()
        )
        return result

    def _fallback_cursor(self, record: RecurringPaymentRecord, today: date) -> date:
        """Cursor used when the stored one is missing or unreadable."""
        if today < record.rule.anchor_date:
            fallback = first_occurrence(record.rule)
        else:
            fallback = today

        self.logger.warning(
            "Recurring payment has no usable next run date",
            record_id=record.id,
            fallback_cursor=fallback.isoformat()
        )
        return fallback

    def _already_materialized(self, record: RecurringPaymentRecord, occurrence_date: date) -> bool:
        if not self.params.check_existing_occurrences:
            return False
        return self.ledger.occurrence_exists(record.id, occurrence_date)
