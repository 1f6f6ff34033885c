"""Tests for the SQLite record store and ledger."""

import sqlite3
import pytest
from datetime import date

from recurpay.engine import ExecutionEngine
from recurpay.errors import PersistenceError, RecordNotFoundError
from recurpay.models.record import RecordStatus
from recurpay.models.rule import RecurrenceRule, Weekday
from recurpay.persistence.sqlite_store import SqliteStore


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "recurring.db")


@pytest.fixture
def store(db_path):
    return SqliteStore(db_path)


def raw_row(db_path, record_id):
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        return conn.execute(
            "SELECT * FROM recurring_payments WHERE id = ?", (record_id,)
        ).fetchone()
    finally:
        conn.close()


class TestRecordGateway:
    """Record CRUD over SQLite."""

    def test_add_and_get(self, store, make_record):
        record = make_record()
        record_id = store.records.add(record)

        loaded = store.records.get(record_id)

        assert record_id == "rp-1"
        assert loaded == record

    def test_add_assigns_id_when_missing(self, store, make_record):
        record_id = store.records.add(make_record(record_id=None))

        assert record_id
        assert store.records.get(record_id).id == record_id

    def test_get_missing_returns_none(self, store):
        assert store.records.get("nope") is None

    def test_list_active_excludes_paused(self, store, make_record):
        store.records.add(make_record(record_id="a"))
        store.records.add(make_record(record_id="p", status=RecordStatus.PAUSED))

        assert [r.id for r in store.records.list_active("user-1")] == ["a"]
        assert {r.id for r in store.records.list_all("user-1")} == {"a", "p"}

    def test_status_write_mirrors_legacy_flag(self, store, db_path, make_record):
        store.records.add(make_record())

        store.records.update_status("rp-1", RecordStatus.PAUSED)

        row = raw_row(db_path, "rp-1")
        assert row["status"] == "paused"
        assert row["is_active"] == 0

    def test_cursor_write_mirrors_legacy_field(self, store, db_path, make_record):
        store.records.add(make_record())

        store.records.update_next_run_date("rp-1", date(2024, 2, 29))

        row = raw_row(db_path, "rp-1")
        assert row["next_run_date"] == "2024-02-29"
        assert row["next_date"] == "2024-02-29"

    def test_update_rule_stores_weekdays(self, store, make_record):
        store.records.add(make_record())
        rule = RecurrenceRule.create("custom", date(2024, 5, 6), ["mon", "thu"])

        store.records.update_rule("rp-1", rule, date(2024, 5, 6))

        loaded = store.records.get("rp-1")
        assert loaded.rule.weekdays == frozenset({Weekday.MON, Weekday.THU})
        assert loaded.next_run_date == date(2024, 5, 6)

    def test_update_missing_record_raises(self, store):
        with pytest.raises(RecordNotFoundError):
            store.records.update_next_run_date("nope", date(2024, 1, 1))

    def test_delete(self, store, make_record):
        store.records.add(make_record())

        store.records.delete("rp-1")

        assert store.records.get("rp-1") is None


    def test_row_with_non_numeric_amount_is_skipped(self, store, db_path, make_record):
        store.records.add(make_record(record_id="good"))
        store.records.add(make_record(record_id="bad"))
        conn = sqlite3.connect(db_path)
        conn.execute("UPDATE recurring_payments SET amount = 'NaN' WHERE id = 'bad'")
        conn.commit()
        conn.close()

        assert [r.id for r in store.records.list_active("user-1")] == ["good"]


class TestLegacyMigration:
    """Opening a database written before status/next_run_date existed."""

    @pytest.fixture
    def legacy_db(self, db_path):
        conn = sqlite3.connect(db_path)
        conn.execute("""
            CREATE TABLE recurring_payments (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                name TEXT NOT NULL DEFAULT '',
                amount TEXT NOT NULL,
                category TEXT NOT NULL DEFAULT '',
                type TEXT NOT NULL DEFAULT 'expense',
                frequency TEXT NOT NULL,
                start_date TEXT,
                reminder_enabled INTEGER DEFAULT 0,
                payment_method TEXT,
                is_active INTEGER DEFAULT 1,
                next_date TEXT
            )
        """)
        conn.executemany(
            """
                INSERT INTO recurring_payments
                    (id, user_id, name, amount, category, frequency, start_date, is_active, next_date)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                ("gym", "user-1", "Gym", "1200", "Health", "monthly", "2024-01-10", 1, "2024-03-10"),
                ("old", "user-1", "Old plan", "99", "Misc", "monthly", "2024-01-05", 0, "2024-02-05"),
            ]
        )
        conn.commit()
        conn.close()
        return db_path

    def test_columns_added_and_backfilled(self, legacy_db):
        SqliteStore(legacy_db)

        gym = raw_row(legacy_db, "gym")
        old = raw_row(legacy_db, "old")
        assert gym["status"] == "active"
        assert gym["next_run_date"] == "2024-03-10"
        assert old["status"] == "paused"
        assert old["next_run_date"] == "2024-02-05"

    def test_migrated_records_are_processed(self, legacy_db):
        store = SqliteStore(legacy_db)
        engine = ExecutionEngine(store.records, store.ledger)

        result = engine.process("user-1", date(2024, 4, 15))

        assert result.created_count == 2
        assert [t["date"] for t in store.ledger.for_record("gym")] == ["2024-03-10", "2024-04-10"]
        assert store.ledger.for_record("old") == []
        assert raw_row(legacy_db, "gym")["next_date"] == "2024-05-10"

    def test_row_without_start_date_or_readable_cursor_is_processed(self, legacy_db, ist_clock):
        conn = sqlite3.connect(legacy_db)
        conn.execute(
            """
                INSERT INTO recurring_payments
                    (id, user_id, name, amount, category, frequency, is_active, next_date)
                VALUES ('tuition', 'user-1', 'Tuition', '2500', 'Education', 'monthly', 1, '10/04/2024')
            """
        )
        conn.commit()
        conn.close()
        store = SqliteStore(legacy_db, clock=ist_clock)
        engine = ExecutionEngine(store.records, store.ledger)

        result = engine.process("user-1", date(2024, 4, 15))

        assert result.error_count == 0
        assert [t["date"] for t in store.ledger.for_record("tuition")] == ["2024-04-15"]
        assert raw_row(legacy_db, "tuition")["next_run_date"] == "2024-05-15"

    def test_reopening_is_idempotent(self, legacy_db):
        SqliteStore(legacy_db)
        store = SqliteStore(legacy_db)

        assert {r.id for r in store.records.list_all("user-1")} == {"gym", "old"}


class TestLedgerGateway:
    """Transactions written by the engine."""

    def test_occurrence_exists(self, store, make_record):
        record = make_record()
        store.ledger.create_occurrence_transaction(record, date(2024, 1, 31))

        assert store.ledger.occurrence_exists("rp-1", date(2024, 1, 31))
        assert not store.ledger.occurrence_exists("rp-1", date(2024, 2, 29))

    def test_transaction_row_fields(self, store, make_record):
        store.ledger.create_occurrence_transaction(make_record(), date(2024, 1, 31))

        [row] = store.ledger.for_record("rp-1")
        assert row["date"] == "2024-01-31"
        assert row["is_recurring"] == 1
        assert row["amount"] == "499.00"
        assert row["note"] == "Auto-generated from recurring payment"

    def test_custom_note(self, db_path, make_record):
        store = SqliteStore(db_path, note="Scheduled")
        store.ledger.create_occurrence_transaction(make_record(), date(2024, 1, 31))

        assert store.ledger.for_record("rp-1")[0]["note"] == "Scheduled"

    def test_write_failure_raises_persistence_error(self, store, db_path, make_record):
        conn = sqlite3.connect(db_path)
        conn.execute("DROP TABLE transactions")
        conn.commit()
        conn.close()

        with pytest.raises(PersistenceError) as exc_info:
            store.ledger.create_occurrence_transaction(make_record(), date(2024, 1, 31))
        assert exc_info.value.operation == "create_occurrence_transaction"

    def test_end_to_end_catch_up(self, store, make_record):
        store.records.add(make_record())
        engine = ExecutionEngine(store.records, store.ledger)

        engine.process("user-1", date(2024, 4, 15))
        second = engine.process("user-1", date(2024, 4, 15))

        dates = [t["date"] for t in store.ledger.for_record("rp-1")]
        assert dates == ["2024-01-31", "2024-02-29", "2024-03-31"]
        assert second.created_count == 0
        assert store.records.get("rp-1").next_run_date == date(2024, 4, 30)
