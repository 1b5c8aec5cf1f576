"""
Exam timer.

Counts down the overall exam window. The countdown is anchored on the
first moment this device saw the exam live; the anchor is persisted so a
reload resumes the clock instead of resetting it.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from .models import ExamSession, RemoteStatus, Status, format_timestamp, parse_timestamp
from .scheduling import fire_and_forget, spawn
from .store import start_key


class ExamTimer:
    """Drives waiting -> live -> timedOut for one session."""

    def __init__(self, session: ExamSession, gateway, store, clock,
                 session_logger=None, dispatch=spawn,
                 on_terminal: Optional[Callable[[], None]] = None):
        self.session = session
        self.gateway = gateway
        self.store = store
        self.clock = clock
        self.session_logger = session_logger
        self.dispatch = dispatch
        self.on_terminal = on_terminal
        self.exam_start_at: Optional[datetime] = None
        self.time_limit_minutes: Optional[int] = None
        self._expired = False

    @property
    def is_live(self) -> bool:
        return self.session.exam_end_at is not None

    def go_live(self, time_limit_minutes: Optional[int]) -> Optional[datetime]:
        """
        Transition waiting -> live, or re-derive the end after a limit change.

        The start anchor is read from the store; only when none exists is the
        current time recorded and persisted. Repeated calls with the same limit
        always yield the same end.

        Args:
            time_limit_minutes: Exam length; None keeps the session waiting

        Returns:
            The exam end time, or None if the exam cannot go live yet
        """
        if time_limit_minutes is None:
            return None

        with self.session.lock:
            if self.session.is_terminal:
                return None

            key = start_key(self.session.student_id)
            anchor = parse_timestamp(self.store.get(key))
            if anchor is None:
                anchor = self.clock.now()
                self.store.set(key, format_timestamp(anchor))
                self._log("EXAM_START", f"Exam started at {anchor.strftime('%H:%M:%S')}, "
                                        f"duration: {time_limit_minutes} minutes")
            elif self.exam_start_at is None:
                self._log("EXAM_RESUME", f"Exam resumed from anchor {anchor.strftime('%H:%M:%S')}, "
                                         f"duration: {time_limit_minutes} minutes")

            self.exam_start_at = anchor
            self.time_limit_minutes = time_limit_minutes
            self.session.exam_end_at = anchor + timedelta(minutes=time_limit_minutes)

            if self.session.status == Status.WAITING:
                self.session.status = Status.ACTIVE
            return self.session.exam_end_at

    def get_remaining_time(self) -> Optional[timedelta]:
        """Remaining exam time, or None while waiting."""
        end = self.session.exam_end_at
        if end is None:
            return None
        return max(end - self.clock.now(), timedelta(0))

    def format_remaining_time(self) -> str:
        """Format remaining time as HH:MM:SS."""
        remaining = self.get_remaining_time()
        if remaining is None:
            return "--:--:--"

        total_seconds = int(remaining.total_seconds())
        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        seconds = total_seconds % 60
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"

    def tick(self) -> bool:
        """
        One countdown check. On expiry, exactly once: time out the session,
        clear any detention and report the student finished.

        Returns:
            True if this tick expired the exam
        """
        with self.session.lock:
            if self._expired or self.session.is_terminal or self.session.exam_end_at is None:
                return False
            if self.session.exam_end_at - self.clock.now() > timedelta(0):
                return False

            self._expired = True
            self.session.status = Status.TIMED_OUT
            self.session.detention_end_at = None
            question_count = self.session.question_count
            student_id = self.session.student_id

        self._log("EXAM_TIMEOUT", "Exam time finished - auto-stopping")
        fire_and_forget(
            self.dispatch, self.session_logger, "TIMEOUT_STATUS_UPDATE",
            self.gateway.update_student_status, student_id,
            {'status': RemoteStatus.FINISHED, 'current_question_index': question_count}
        )
        if self.on_terminal:
            self.on_terminal()
        return True

    def _log(self, event: str, details: str = ""):
        if self.session_logger:
            self.session_logger(event, details)
