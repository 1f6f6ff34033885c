"""Timer scheduling used by the daily trigger."""

import threading
from abc import ABC, abstractmethod
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)


class TimerHandle(ABC):
    """Cancellable reference to a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running if it has not run yet."""
        pass


class TimerScheduler(ABC):
    """Source of one-shot and repeating timers."""

    @abstractmethod
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_seconds``."""
        pass

    @abstractmethod
    def call_every(self, interval_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` every ``interval_seconds`` until cancelled."""
        pass


class _ThreadingTimerHandle(TimerHandle):

    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class _RepeatingHandle(TimerHandle):
    """Repeats by chaining daemon ``threading.Timer`` instances."""

    def __init__(self, interval_seconds: float, callback: Callable[[], None]):
        self.interval_seconds = interval_seconds
        self.callback = callback
        self._lock = threading.Lock()
        self._cancelled = False
        self._timer = None
        self._arm()

    def _arm(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._timer = threading.Timer(self.interval_seconds, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        try:
            self.callback()
        except Exception as e:
            logger.error(
                "Repeating timer callback failed",
                error=str(e),
                error_type=type(e).__name__
            )
        self._arm()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()


class ThreadingTimerScheduler(TimerScheduler):
    """Timers backed by daemon ``threading.Timer`` threads."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay_seconds, callback)
        timer.daemon = True
        timer.start()
        return _ThreadingTimerHandle(timer)

    def call_every(self, interval_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        return _RepeatingHandle(interval_seconds, callback)
