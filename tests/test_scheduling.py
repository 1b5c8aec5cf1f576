"""
Tests for background scheduling.

Tests tickers and fire-and-forget dispatch including:
- Periodic callbacks and synchronous stop
- Idempotent start
- Errors inside ticks and dispatched calls
"""

import threading
import time
from unittest.mock import Mock
from pathlib import Path

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from examguard.scheduling import SerialDispatcher, Ticker, fire_and_forget, run_inline, spawn


def wait_for(predicate, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestFireAndForget:
    """Test dispatch of calls nobody waits for."""

    def test_inline_call_runs(self):
        call = Mock()

        fire_and_forget(run_inline, None, "PROGRESS_UPDATE", call, "s1", {'a': 1})

        call.assert_called_once_with("s1", {'a': 1})

    def test_failure_is_logged_not_raised(self):
        logger = Mock()
        call = Mock(side_effect=RuntimeError("offline"))

        fire_and_forget(run_inline, logger, "DETENTION_STATUS_UPDATE", call)

        logger.assert_called_once_with("DETENTION_STATUS_UPDATE_FAILED", "offline")

    def test_spawn_runs_on_other_thread(self):
        seen = []
        done = threading.Event()

        def call():
            seen.append(threading.current_thread())
            done.set()

        thread = spawn(call)

        assert done.wait(2.0)
        assert seen[0] is thread
        assert thread.daemon


class TestSerialDispatcher:
    """Test ordered dispatch on a single worker."""

    def test_calls_run_in_issue_order(self):
        dispatch = SerialDispatcher()
        order = []

        def slow():
            time.sleep(0.1)
            order.append("first")

        dispatch(slow)
        dispatch(lambda: order.append("second"))

        assert wait_for(lambda: len(order) == 2)
        assert order == ["first", "second"]
        dispatch.shutdown()

    def test_runs_off_the_caller_thread(self):
        dispatch = SerialDispatcher(name="writer")
        seen = []

        dispatch(lambda: seen.append(threading.current_thread().name))

        assert wait_for(lambda: seen)
        assert seen[0].startswith("writer")
        assert seen[0] != threading.current_thread().name
        dispatch.shutdown()

    def test_queued_calls_survive_shutdown(self):
        dispatch = SerialDispatcher()
        release = threading.Event()
        done = []

        dispatch(lambda: release.wait(1.0))
        dispatch(lambda: done.append(True))
        dispatch.shutdown()
        release.set()

        assert wait_for(lambda: done)

    def test_usable_after_shutdown(self):
        dispatch = SerialDispatcher()
        dispatch.shutdown()
        call = Mock()

        dispatch(call)

        assert wait_for(lambda: call.called)
        dispatch.shutdown()

    def test_failure_logged_through_fire_and_forget(self):
        dispatch = SerialDispatcher()
        logger = Mock()

        fire_and_forget(dispatch, logger, "STATUS_UPDATE", Mock(side_effect=RuntimeError("down")))

        assert wait_for(lambda: logger.called)
        logger.assert_called_once_with("STATUS_UPDATE_FAILED", "down")
        dispatch.shutdown()


class TestTicker:
    """Test the periodic ticker thread."""

    def test_ticks_until_stopped(self):
        callback = Mock()
        ticker = Ticker(0.01, callback, name="test-ticker")

        ticker.start()
        assert wait_for(lambda: callback.call_count >= 3)
        ticker.stop()

        assert not ticker.is_running
        assert not ticker.thread.is_alive()
        count = callback.call_count
        time.sleep(0.05)
        assert callback.call_count == count

    def test_start_twice_keeps_one_thread(self):
        ticker = Ticker(0.05, Mock())

        ticker.start()
        first = ticker.thread
        ticker.start()

        assert ticker.thread is first
        ticker.stop()

    def test_restart_after_stop(self):
        callback = Mock()
        ticker = Ticker(0.01, callback)

        ticker.start()
        ticker.stop()
        ticker.start()

        assert ticker.is_running
        ticker.stop()

    def test_tick_error_logged_and_ticking_continues(self):
        logger = Mock()
        callback = Mock(side_effect=[ValueError("boom"), None, None, None, None, None])
        ticker = Ticker(0.01, callback, name="exam-timer", session_logger=logger)

        ticker.start()
        assert wait_for(lambda: callback.call_count >= 3)
        ticker.stop()

        logger.assert_any_call("TICK_ERROR", "exam-timer: boom")

    def test_stop_from_inside_tick(self):
        """A tick that stops its own ticker must not deadlock."""
        holder = {}
        stopped = threading.Event()

        def callback():
            holder['ticker'].stop()
            stopped.set()

        ticker = Ticker(0.01, callback)
        holder['ticker'] = ticker
        ticker.start()

        assert stopped.wait(2.0)
        assert wait_for(lambda: not ticker.thread.is_alive())

    def test_stop_before_start_is_safe(self):
        ticker = Ticker(1.0, Mock())
        ticker.stop()

        assert not ticker.is_running
