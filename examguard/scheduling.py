"""
Background scheduling for the exam session.

Ticker runs a callback on a fixed cadence on a daemon thread (exam clock,
detention countdown, reconciliation poll). spawn dispatches a single
fire-and-forget call; SerialDispatcher runs a session's calls one at a time
in the order they were issued. Components take a dispatch callable, so
tests run network calls inline.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional


def spawn(call: Callable[[], None]) -> threading.Thread:
    """Run call on a daemon thread without waiting for it."""
    thread = threading.Thread(target=call, daemon=True)
    thread.start()
    return thread


class SerialDispatcher:
    """
    Dispatch that runs calls on a single worker thread, in issue order.

    Status patches for one student must reach the gateway in the order the
    session produced them; a later patch never overtakes an earlier one.
    """

    def __init__(self, name: str = "gateway-writer"):
        self.name = name
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def __call__(self, call: Callable[[], None]):
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=self.name)
            return self._executor.submit(call)

    def shutdown(self):
        """Stop accepting calls on the current worker; queued calls still run."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False)


def run_inline(call: Callable[[], None]):
    """Dispatch that runs the call immediately on the caller's thread."""
    call()


def fire_and_forget(dispatch, session_logger, event: str, call: Callable, *args, **kwargs):
    """
    Dispatch a gateway call whose outcome nobody waits for.

    A failure is logged as <event>_FAILED and never propagates into the
    handler or tick that issued it.
    """
    def run():
        try:
            call(*args, **kwargs)
        except Exception as e:
            if session_logger:
                session_logger(f"{event}_FAILED", str(e))

    dispatch(run)


class Ticker:
    """Calls a function every `interval` seconds until stopped."""

    def __init__(self, interval: float, callback: Callable[[], None],
                 name: str = "ticker", session_logger=None):
        self.interval = interval
        self.callback = callback
        self.name = name
        self.session_logger = session_logger
        self.thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self.thread is not None and self.thread.is_alive() and not self._stop_event.is_set()

    def start(self):
        """Start ticking; a second call while running is a no-op."""
        if self.is_running:
            return

        self._stop_event = threading.Event()
        self.thread = threading.Thread(
            target=self._run,
            args=(self._stop_event,),
            name=self.name,
            daemon=True
        )
        self.thread.start()

    def stop(self):
        """Stop ticking. Waits for the thread unless called from the tick itself."""
        self._stop_event.set()
        thread = self.thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=1.0)

    def _run(self, stop_event: threading.Event):
        while not stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception as e:
                if self.session_logger:
                    self.session_logger("TICK_ERROR", f"{self.name}: {e}")
