"""
End-to-end session tests.

A session wires configuration, the SQLite store, the engine, the service
and the daily trigger; time and timers are driven explicitly.
"""

import pytest
from datetime import date, datetime

from recurpay.errors import ConfigurationError
from recurpay.models.rule import RecurrenceRule
from recurpay.runtime import SchedulerSession
from recurpay.trigger.daily import TriggerOutcome
from recurpay.utils.time import ManualClock, fixed_offset

IST = fixed_offset(330)


@pytest.fixture
def session_factory(tmp_path, scheduler):
    def _make(clock, overrides=None):
        return SchedulerSession(
            "user-1",
            db_path=str(tmp_path / "session.db"),
            config_dir=tmp_path,
            overrides=overrides,
            clock=clock,
            scheduler=scheduler,
        )
    return _make


class TestSessionFlow:

    def test_records_created_offline_are_caught_up_on_sign_in(self, session_factory):
        clock = ManualClock(datetime(2024, 1, 31, 2, 0, tzinfo=IST))
        session = session_factory(clock)
        record, result = session.service.create(
            "user-1", "Phone", "499", "Bills", RecurrenceRule.create("monthly", date(2024, 1, 31))
        )
        assert result.created_count == 1

        # Months pass without the app running
        clock.set_time(datetime(2024, 4, 15, 9, 0, tzinfo=IST))
        with session_factory(clock) as later:
            dates = [t["date"] for t in later.store.ledger.for_record(record.id)]
            assert dates == ["2024-01-31", "2024-02-29", "2024-03-31"]
            assert later.trigger.state.last_processed_date == date(2024, 4, 15)

    def test_daily_wakeup_processes_new_day(self, session_factory, scheduler):
        clock = ManualClock(datetime(2024, 4, 15, 9, 0, tzinfo=IST))
        with session_factory(clock) as session:
            record, _ = session.service.create(
                "user-1", "Milk", "60", "Groceries", RecurrenceRule.create("daily", date(2024, 4, 16))
            )
            wakeup = scheduler.one_shots()[0]

            clock.set_time(datetime(2024, 4, 16, 4, 0, tzinfo=IST))
            wakeup.callback()

            assert [t["date"] for t in session.store.ledger.for_record(record.id)] == ["2024-04-16"]
            assert session.trigger.check_and_process() is TriggerOutcome.ALREADY_PROCESSED

        assert scheduler.repeating() == []
        assert scheduler.one_shots() == [wakeup]

    def test_overrides_reach_the_trigger(self, session_factory):
        clock = ManualClock(datetime(2024, 4, 15, 5, 0, tzinfo=IST))
        session = session_factory(clock, overrides={"trigger": {"hour": 6}})

        assert session.trigger.check_and_process() is TriggerOutcome.BEFORE_TRIGGER_HOUR

    def test_invalid_configuration_is_rejected(self, session_factory):
        clock = ManualClock(datetime(2024, 4, 15, 5, 0, tzinfo=IST))

        with pytest.raises(ConfigurationError) as exc_info:
            session_factory(clock, overrides={"trigger": {"hour": 25}})
        assert exc_info.value.errors[0].field == "hour"

    def test_unknown_key_in_config_file_is_rejected(self, session_factory, tmp_path):
        (tmp_path / "scheduler.yaml").write_text("trigger:\n  hours: 4\n")
        clock = ManualClock(datetime(2024, 4, 15, 5, 0, tzinfo=IST))

        with pytest.raises(ConfigurationError) as exc_info:
            session_factory(clock)
        assert [e.field for e in exc_info.value.errors] == ["hours"]
