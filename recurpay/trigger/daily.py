"""
Daily trigger for the execution engine.

Runs the engine once per calendar day, at or after a fixed hour of a
fixed-offset wall clock, for as long as a session is active. Three timers
drive it:

- an immediate catch-up on ``start()`` when the trigger hour has passed
- a one-shot wake-up at the next trigger instant, re-armed after each fire
- a periodic safety-net re-check

All three funnel into ``check_and_process()``, which applies the same-day
and in-flight guards, so extra wake-ups are harmless.
"""

import threading
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

import structlog

from ..config.defaults import TriggerParams
from ..engine import ExecutionEngine, ProcessResult
from ..logging.config import get_trigger_logger, log_trigger_decision
from ..utils.time import (
    Clock,
    FixedOffsetClock,
    fixed_offset,
    is_past_trigger_hour,
    next_trigger_at,
    seconds_until,
)
from .timers import ThreadingTimerScheduler, TimerHandle, TimerScheduler

logger = structlog.get_logger(__name__)


class TriggerOutcome(str, Enum):
    """Result of one trigger check."""
    PROCESSED = "processed"
    BEFORE_TRIGGER_HOUR = "before_trigger_hour"
    ALREADY_PROCESSED = "already_processed"
    IN_FLIGHT = "in_flight"
    FAILED = "failed"


@dataclass
class SchedulerState:
    """Session-local trigger state."""
    last_processed_date: Optional[date] = None
    in_flight: bool = False
    last_result: Optional[ProcessResult] = None


class DailyTrigger:
    """Best-effort daily scheduler for one user's recurring payments."""

    def __init__(
        self,
        engine: ExecutionEngine,
        user_id: str,
        clock: Optional[Clock] = None,
        scheduler: Optional[TimerScheduler] = None,
        params: Optional[TriggerParams] = None,
        state: Optional[SchedulerState] = None
    ) -> None:
        self.engine = engine
        self.user_id = user_id
        self.params = params or TriggerParams()
        self.clock = clock or FixedOffsetClock(self.params.utc_offset_minutes)
        self.scheduler = scheduler or ThreadingTimerScheduler()
        self.state = state or SchedulerState()
        self.logger = logger
        self.trigger_logger = get_trigger_logger(__name__).bind(user_id=user_id)

        self._tz = fixed_offset(self.params.utc_offset_minutes)
        self._lock = threading.Lock()
        self._running = False
        self._daily_handle: Optional[TimerHandle] = None
        self._recheck_handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Activate the trigger for the session."""
        if self._running:
            return
        self._running = True

        self.logger.info(
            "Starting daily trigger",
            user_id=self.user_id,
            trigger_hour=self.params.hour,
            utc_offset_minutes=self.params.utc_offset_minutes,
            recheck_interval_seconds=self.params.recheck_interval_seconds
        )

        if self.params.run_on_start:
            self.check_and_process()

        self._arm_daily()
        with self._lock:
            if self._running:
                self._recheck_handle = self.scheduler.call_every(
                    self.params.recheck_interval_seconds,
                    self.check_and_process
                )

    def stop(self) -> None:
        """Cancel every pending timer (session teardown)."""
        with self._lock:
            self._running = False
            handles = (self._daily_handle, self._recheck_handle)
            self._daily_handle = None
            self._recheck_handle = None
        for handle in handles:
            if handle is not None:
                handle.cancel()

        self.logger.info("Stopped daily trigger", user_id=self.user_id)

    def check_and_process(self) -> TriggerOutcome:
        """
        Run the engine if today's run is due and none is in progress.

        Never raises: engine failures are logged and reported as
        ``TriggerOutcome.FAILED``, leaving the day unprocessed so a later
        check retries it.
        """
        now = self.clock.now().astimezone(self._tz)
        today = now.date()

        with self._lock:
            if not is_past_trigger_hour(now, self.params.hour):
                outcome = TriggerOutcome.BEFORE_TRIGGER_HOUR
            elif self.state.last_processed_date == today:
                outcome = TriggerOutcome.ALREADY_PROCESSED
            elif self.state.in_flight:
                outcome = TriggerOutcome.IN_FLIGHT
            else:
                self.state.in_flight = True
                outcome = None

        if outcome is not None:
            log_trigger_decision(
                self.trigger_logger,
                outcome=outcome.value,
                local_date=today.isoformat(),
                reason=f"Skipped at {now.strftime('%H:%M')}"
            )
            return outcome

        try:
            result = self.engine.process(self.user_id, today)
        except Exception as e:
            with self._lock:
                self.state.in_flight = False
            log_trigger_decision(
                self.trigger_logger,
                outcome=TriggerOutcome.FAILED.value,
                local_date=today.isoformat(),
                reason=str(e),
                context={"error_type": type(e).__name__}
            )
            return TriggerOutcome.FAILED

        with self._lock:
            self.state.last_processed_date = today
            self.state.last_result = result
            self.state.in_flight = False

        log_trigger_decision(
            self.trigger_logger,
            outcome=TriggerOutcome.PROCESSED.value,
            local_date=today.isoformat(),
            reason="Daily run completed",
            context={
                "created": result.created_count,
                "skipped": result.skipped_count,
                "errors": result.error_count
            }
        )
        return TriggerOutcome.PROCESSED

    def _arm_daily(self) -> None:
        now = self.clock.now().astimezone(self._tz)
        fire_at = next_trigger_at(now, self.params.hour)
        # Same lock as stop(), so a stopped trigger is never re-armed
        with self._lock:
            if not self._running:
                return
            self._daily_handle = self.scheduler.call_later(
                seconds_until(fire_at, now),
                self._on_daily_timer
            )
        self.logger.debug(
            "Armed daily trigger",
            user_id=self.user_id,
            fire_at=fire_at.isoformat()
        )

    def _on_daily_timer(self) -> None:
        try:
            self.check_and_process()
        finally:
            self._arm_daily()
