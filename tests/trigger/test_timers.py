"""Tests for the threading-backed timer scheduler."""

import threading

from recurpay.trigger.timers import ThreadingTimerScheduler


class TestThreadingTimerScheduler:

    def test_call_later_fires_once(self):
        fired = threading.Event()
        ThreadingTimerScheduler().call_later(0.01, fired.set)

        assert fired.wait(timeout=2)

    def test_cancelled_call_later_does_not_fire(self):
        fired = threading.Event()
        handle = ThreadingTimerScheduler().call_later(0.5, fired.set)
        handle.cancel()

        assert not fired.wait(timeout=1)

    def test_call_every_repeats_until_cancelled(self):
        calls = []
        done = threading.Event()

        def tick():
            calls.append(1)
            if len(calls) >= 3:
                done.set()

        handle = ThreadingTimerScheduler().call_every(0.01, tick)
        assert done.wait(timeout=2)
        handle.cancel()

        assert len(calls) >= 3

    def test_call_every_survives_callback_errors(self):
        calls = []
        done = threading.Event()

        def flaky():
            calls.append(1)
            if len(calls) >= 2:
                done.set()
            raise RuntimeError("tick failed")

        handle = ThreadingTimerScheduler().call_every(0.01, flaky)
        assert done.wait(timeout=2)
        handle.cancel()
