"""Daily trigger and its timer sources."""

from .daily import DailyTrigger, SchedulerState, TriggerOutcome
from .timers import ThreadingTimerScheduler, TimerHandle, TimerScheduler

__all__ = [
    "DailyTrigger",
    "SchedulerState",
    "ThreadingTimerScheduler",
    "TimerHandle",
    "TimerScheduler",
    "TriggerOutcome",
]
