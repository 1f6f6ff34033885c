"""SQLite persistence for recurring payment records and their ledger entries."""

import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from ..errors import (
    DataQualityError,
    GatewayUnavailableError,
    PersistenceError,
    RecordNotFoundError,
)
from ..gateways.base import LedgerGateway, RecordGateway
from ..models.record import RecordStatus, RecurringPaymentRecord
from ..models.rule import RecurrenceRule
from ..models.transaction import DEFAULT_TRANSACTION_NOTE, OccurrenceTransaction
from ..utils.time import Clock, FixedOffsetClock, format_calendar_date

logger = structlog.get_logger(__name__)

_RECORD_COLUMNS = {
    # column -> document field
    "id": "id",
    "user_id": "userId",
    "name": "name",
    "amount": "amount",
    "category": "category",
    "type": "type",
    "frequency": "frequency",
    "start_date": "startDate",
    "status": "status",
    "next_run_date": "nextRunDate",
    "reminder_enabled": "reminderEnabled",
    "payment_method": "paymentMethod",
    "is_active": "isActive",
    "next_date": "nextDate",
}


class SqliteStore:
    """
    One SQLite file holding both the record store and the ledger.

    Tables created by older versions only carry the legacy ``is_active`` and
    ``next_date`` columns; opening such a file adds ``status`` and
    ``next_run_date`` and backfills them from the legacy columns.
    """

    def __init__(
        self,
        db_path: str = "recurring_payments.db",
        note: str = DEFAULT_TRANSACTION_NOTE,
        clock: Optional[Clock] = None
    ):
        self.db_path = Path(db_path)
        self.clock = clock or FixedOffsetClock()
        self.logger = logger
        self._lock = threading.Lock()

        self._init_database()

        self.records = SqliteRecordGateway(self)
        self.ledger = SqliteLedgerGateway(self, note=note)

    def _init_database(self) -> None:
        """Create tables, migrating legacy record tables in place."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS recurring_payments (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL DEFAULT '',
                    amount TEXT NOT NULL,
                    category TEXT NOT NULL DEFAULT '',
                    type TEXT NOT NULL DEFAULT 'expense',
                    frequency TEXT NOT NULL,
                    start_date TEXT,
                    repeat_days TEXT,
                    status TEXT,
                    next_run_date TEXT,
                    reminder_enabled INTEGER DEFAULT 0,
                    payment_method TEXT,
                    is_active INTEGER DEFAULT 1,
                    next_date TEXT
                )
            """)

            cursor = conn.execute("PRAGMA table_info(recurring_payments)")
            columns = [row[1] for row in cursor.fetchall()]

            if 'status' not in columns:
                conn.execute("ALTER TABLE recurring_payments ADD COLUMN status TEXT")
                conn.execute("""
                    UPDATE recurring_payments
                    SET status = CASE WHEN is_active = 0 THEN 'paused' ELSE 'active' END
                    WHERE status IS NULL
                """)
                self.logger.info("Migrated recurring_payments: added status column")

            if 'next_run_date' not in columns:
                conn.execute("ALTER TABLE recurring_payments ADD COLUMN next_run_date TEXT")
                conn.execute("""
                    UPDATE recurring_payments
                    SET next_run_date = next_date
                    WHERE next_run_date IS NULL
                """)
                self.logger.info("Migrated recurring_payments: added next_run_date column")

            if 'repeat_days' not in columns:
                conn.execute("ALTER TABLE recurring_payments ADD COLUMN repeat_days TEXT")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS transactions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    category TEXT NOT NULL,
                    type TEXT NOT NULL,
                    date TEXT NOT NULL,
                    note TEXT,
                    payment_method TEXT,
                    is_recurring INTEGER DEFAULT 0,
                    recurring_payment_id TEXT,
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_recurring_payments_user ON recurring_payments(user_id)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_transactions_occurrence
                ON transactions(recurring_payment_id, date)
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", db_path=str(self.db_path), error=str(e))
            raise
        finally:
            if conn:
                conn.close()

    def execute_write(self, operation: str, target: Optional[str], sql: str, params: tuple) -> int:
        """
        Run one write statement and commit.

        Returns:
            Number of affected rows

        Raises:
            PersistenceError: If SQLite reports an error
        """
        with self._lock:
            try:
                with self._get_connection() as conn:
                    cursor = conn.execute(sql, params)
                    conn.commit()
                    return cursor.rowcount
            except sqlite3.Error as e:
                raise PersistenceError(
                    f"SQLite write failed: {e}",
                    operation=operation,
                    target=target
                ) from e

    def query(self, operation: str, sql: str, params: tuple) -> list[sqlite3.Row]:
        """
        Run one read statement.

        Raises:
            GatewayUnavailableError: If SQLite reports an error
        """
        try:
            with self._get_connection() as conn:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise GatewayUnavailableError(
                f"SQLite read failed: {e}",
                gateway="sqlite",
                operation=operation
            ) from e


def _row_to_document(row: sqlite3.Row) -> dict[str, Any]:
    keys = row.keys()
    document: dict[str, Any] = {}
    for column, field_name in _RECORD_COLUMNS.items():
        if column in keys:
            document[field_name] = row[column]

    if document.get("isActive") is not None:
        document["isActive"] = bool(document["isActive"])
    document["reminderEnabled"] = bool(document.get("reminderEnabled"))
    repeat_days = row["repeat_days"] if "repeat_days" in keys else None
    if repeat_days:
        document["repeatDays"] = repeat_days.split(",")
    return document


class SqliteRecordGateway(RecordGateway):
    """Record gateway over the ``recurring_payments`` table."""

    def __init__(self, store: SqliteStore):
        self.store = store

    def _decode(self, row: sqlite3.Row) -> RecurringPaymentRecord:
        return RecurringPaymentRecord.from_document(
            _row_to_document(row), fallback_anchor=self.store.clock.today()
        )

    def _decode_rows(self, rows: list[sqlite3.Row]) -> list[RecurringPaymentRecord]:
        records = []
        for row in rows:
            try:
                records.append(self._decode(row))
            except (DataQualityError, ValueError, ArithmeticError) as e:
                logger.error(
                    "Skipping undecodable record row",
                    record_id=row["id"],
                    error=str(e),
                    error_type=type(e).__name__
                )
        return records

    def list_active(self, user_id: str) -> list[RecurringPaymentRecord]:
        # Rows never migrated to a status fall back to the legacy flag
        rows = self.store.query(
            "list_active",
            """
                SELECT * FROM recurring_payments
                WHERE user_id = ?
                  AND (status = 'active' OR (status IS NULL AND is_active = 1))
                ORDER BY rowid
            """,
            (user_id,)
        )
        return self._decode_rows(rows)

    def list_all(self, user_id: str) -> list[RecurringPaymentRecord]:
        rows = self.store.query(
            "list_all",
            "SELECT * FROM recurring_payments WHERE user_id = ? ORDER BY rowid",
            (user_id,)
        )
        return self._decode_rows(rows)

    def get(self, record_id: str) -> Optional[RecurringPaymentRecord]:
        rows = self.store.query(
            "get",
            "SELECT * FROM recurring_payments WHERE id = ?",
            (record_id,)
        )
        if not rows:
            return None
        return self._decode(rows[0])

    def add(self, record: RecurringPaymentRecord) -> str:
        record_id = record.id or uuid.uuid4().hex
        document = record.with_id(record_id).to_document()
        self.store.execute_write(
            "add",
            record_id,
            """
                INSERT INTO recurring_payments (
                    id, user_id, name, amount, category, type, frequency,
                    start_date, repeat_days, status, next_run_date,
                    reminder_enabled, payment_method, is_active, next_date
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record_id,
                document["userId"],
                document["name"],
                document["amount"],
                document["category"],
                document["type"],
                document["frequency"],
                document["startDate"],
                ",".join(document["repeatDays"]) if document.get("repeatDays") else None,
                document["status"],
                document["nextRunDate"],
                int(document["reminderEnabled"]),
                document.get("paymentMethod"),
                int(document["isActive"]),
                document["nextDate"],
            )
        )
        return record_id

    def _update(self, operation: str, record_id: str, sql: str, params: tuple) -> None:
        updated = self.store.execute_write(operation, record_id, sql, params)
        if updated == 0:
            raise RecordNotFoundError(f"Record {record_id} not found", record_id=record_id)

    def update_next_run_date(self, record_id: str, next_run_date: date) -> None:
        cursor = format_calendar_date(next_run_date)
        self._update(
            "update_next_run_date",
            record_id,
            "UPDATE recurring_payments SET next_run_date = ?, next_date = ? WHERE id = ?",
            (cursor, cursor, record_id)
        )

    def update_status(self, record_id: str, status: RecordStatus) -> None:
        self._update(
            "update_status",
            record_id,
            "UPDATE recurring_payments SET status = ?, is_active = ? WHERE id = ?",
            (status.value, int(status.legacy_is_active), record_id)
        )

    def update_rule(self, record_id: str, rule: RecurrenceRule, next_run_date: date) -> None:
        document = rule.to_document()
        cursor = format_calendar_date(next_run_date)
        self._update(
            "update_rule",
            record_id,
            """
                UPDATE recurring_payments
                SET frequency = ?, start_date = ?, repeat_days = ?,
                    next_run_date = ?, next_date = ?
                WHERE id = ?
            """,
            (
                document["frequency"],
                document["startDate"],
                ",".join(document["repeatDays"]) if document.get("repeatDays") else None,
                cursor,
                cursor,
                record_id,
            )
        )

    def delete(self, record_id: str) -> None:
        self._update(
            "delete",
            record_id,
            "DELETE FROM recurring_payments WHERE id = ?",
            (record_id,)
        )


class SqliteLedgerGateway(LedgerGateway):
    """Ledger gateway over the ``transactions`` table."""

    def __init__(self, store: SqliteStore, note: str = DEFAULT_TRANSACTION_NOTE):
        self.store = store
        self.note = note

    def create_occurrence_transaction(
        self,
        record: RecurringPaymentRecord,
        occurrence_date: date
    ) -> str:
        document = OccurrenceTransaction.for_occurrence(record, occurrence_date, self.note).to_document()
        transaction_id = uuid.uuid4().hex
        self.store.execute_write(
            "create_occurrence_transaction",
            record.id,
            """
                INSERT INTO transactions (
                    id, user_id, title, amount, category, type, date, note,
                    payment_method, is_recurring, recurring_payment_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                transaction_id,
                document["userId"],
                document["title"],
                document["amount"],
                document["category"],
                document["type"],
                document["date"],
                document["note"],
                document.get("paymentMethod"),
                int(document["isRecurring"]),
                document["recurringPaymentId"],
                datetime.now(timezone.utc).isoformat(),
            )
        )
        return transaction_id

    def occurrence_exists(self, record_id: str, occurrence_date: date) -> bool:
        rows = self.store.query(
            "occurrence_exists",
            """
                SELECT COUNT(*) FROM transactions
                WHERE recurring_payment_id = ? AND date = ? AND is_recurring = 1
            """,
            (record_id, format_calendar_date(occurrence_date))
        )
        return rows[0][0] > 0

    def for_record(self, record_id: str) -> list[dict[str, Any]]:
        """Transactions generated for one record, in insertion order."""
        rows = self.store.query(
            "for_record",
            "SELECT * FROM transactions WHERE recurring_payment_id = ? ORDER BY rowid",
            (record_id,)
        )
        return [dict(row) for row in rows]
