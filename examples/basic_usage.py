#!/usr/bin/env python3
"""
Basic Usage Example - recurpay Recurring Payment Engine

This script demonstrates the basic usage of the recurring payment engine
against a throwaway SQLite file. It shows how to:
- Open a session for a user
- Create recurring payments with different rules
- Catch up on missed occurrences
- Pause a record and read the dashboard summary

Run: python examples/basic_usage.py
"""

import tempfile
from datetime import date, datetime
from pathlib import Path

from recurpay.logging.config import configure_logging
from recurpay.models.record import Direction
from recurpay.models.rule import RecurrenceRule
from recurpay.runtime import SchedulerSession
from recurpay.utils.time import ManualClock, fixed_offset


def main() -> None:
    configure_logging(level="WARNING")

    # Pretend it is mid-April at 09:00 UTC+05:30
    clock = ManualClock(datetime(2024, 4, 15, 9, 0, tzinfo=fixed_offset(330)))

    with tempfile.TemporaryDirectory() as tmp:
        db_path = str(Path(tmp) / "demo.db")

        with SchedulerSession("demo-user", db_path=db_path, clock=clock) as session:
            print("📅 Creating recurring payments...")
            phone, result = session.service.create(
                "demo-user", "Phone bill", "499", "Bills",
                RecurrenceRule.create("monthly", date(2024, 1, 31))
            )
            print(f"  Phone bill: {result.created_count} past occurrences materialized, "
                  f"next on {phone.next_run_date}")

            salary, _ = session.service.create(
                "demo-user", "Salary", "85000", "Income",
                RecurrenceRule.create("monthly", date(2024, 5, 1)),
                direction=Direction.INCOME
            )
            print(f"  Salary: first credit on {salary.next_run_date}")

            yoga, _ = session.service.create(
                "demo-user", "Yoga class", "300", "Health",
                RecurrenceRule.create("custom", date(2024, 4, 16), ["tue", "thu"])
            )
            print(f"  Yoga class: next on {yoga.next_run_date}")

            print("\n🧾 Ledger entries for the phone bill:")
            for transaction in session.store.ledger.for_record(phone.id):
                print(f"  {transaction['date']}  {transaction['title']}  {transaction['amount']}")

            session.service.pause(yoga.id)

            summary = session.service.summary("demo-user")
            print("\n📊 Summary:")
            print(f"  Monthly expenses: {summary.monthly_expense:.2f}")
            print(f"  Monthly income:   {summary.monthly_income:.2f}")
            print(f"  Net:              {summary.monthly_net:.2f}")
            print(f"  Active: {summary.active_count}, overdue: {summary.overdue_count}")
            for payment in summary.upcoming:
                print(f"  Upcoming: {payment.name} on {payment.next_run_date}")


if __name__ == "__main__":
    main()
