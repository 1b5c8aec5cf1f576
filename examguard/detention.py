"""
Detention engine.

Penalizes loss of focus during an active exam: hiding the page or blurring
the window locks the student out for a fixed period. While detained, the
student can shorten the lockout by solving arithmetic challenges. This is
a deterrent, not a security boundary.
"""

import math
import random
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from .models import ExamSession, RemoteStatus, Status
from .scheduling import fire_and_forget, spawn

VIOLATION_TAB_SWITCH = "tab_switch"
VIOLATION_WINDOW_BLUR = "window_blur"


@dataclass
class MathChallenge:
    """An arithmetic problem shown during detention."""
    left: int
    operator: str
    right: int
    answer: int

    @property
    def text(self) -> str:
        return f"{self.left} {self.operator} {self.right}"

    @staticmethod
    def generate(rng: random.Random) -> 'MathChallenge':
        """Multiply (2-13 by 2-10), or add/subtract two values in 0-99."""
        operator = rng.choice(["*", "+", "-"])
        if operator == "*":
            left = rng.randint(2, 13)
            right = rng.randint(2, 10)
            return MathChallenge(left, operator, right, left * right)

        left = rng.randint(0, 99)
        right = rng.randint(0, 99)
        answer = left + right if operator == "+" else left - right
        return MathChallenge(left, operator, right, answer)

    def check(self, raw_answer) -> bool:
        try:
            return int(str(raw_answer).strip()) == self.answer
        except ValueError:
            return False


class DetentionEngine:
    """Focus-loss detector and detention countdown for one session."""

    def __init__(self, session: ExamSession, gateway, clock, config,
                 session_logger=None, dispatch=spawn, rng: Optional[random.Random] = None):
        self.session = session
        self.gateway = gateway
        self.clock = clock
        self.config = config
        self.session_logger = session_logger
        self.dispatch = dispatch
        self.rng = rng or random.Random()
        self.listening = False
        self.challenge = MathChallenge.generate(self.rng)

    # ===== LISTENERS =====

    def attach(self):
        """Start reacting to visibility and blur events."""
        self.listening = True

    def detach(self):
        """Stop reacting to visibility and blur events."""
        self.listening = False

    def on_visibility_change(self, hidden: bool) -> bool:
        if not hidden:
            return False
        return self.trigger(VIOLATION_TAB_SWITCH)

    def on_window_blur(self) -> bool:
        return self.trigger(VIOLATION_WINDOW_BLUR)

    # ===== PENALTY =====

    def trigger(self, reason: str) -> bool:
        """
        Start a detention if, and only if, the session is active.

        Returns:
            True if a detention was started
        """
        with self.session.lock:
            if not self.listening or self.session.status != Status.ACTIVE:
                return False

            end = self.clock.now() + timedelta(seconds=self.config.detention_seconds)
            self.session.detention_end_at = end
            self.session.status = Status.DETAINED
            self._new_challenge()
            student_id = self.session.student_id

        self._log("DETENTION_TRIGGERED", f"Reason: {reason}, until {end.strftime('%H:%M:%S')}")
        fire_and_forget(
            self.dispatch, self.session_logger, "DETENTION_STATUS_UPDATE",
            self.gateway.update_student_status, student_id,
            {'status': RemoteStatus.DETENTION, 'detention_end_time': end}
        )
        fire_and_forget(
            self.dispatch, self.session_logger, "VIOLATION_LOG",
            self.gateway.log_violation, student_id, reason
        )
        return True

    def submit_challenge(self, raw_answer) -> bool:
        """
        Check an answer to the current challenge.

        A correct answer moves the detention end earlier by the configured
        reduction, never before now. A new challenge is generated either way.

        Returns:
            True if the answer was correct
        """
        with self.session.lock:
            if self.session.status != Status.DETAINED or self.session.detention_end_at is None:
                return False

            correct = self.challenge.check(raw_answer)
            if correct:
                reduced = self.session.detention_end_at - timedelta(seconds=self.config.detention_reduction_seconds)
                new_end = max(reduced, self.clock.now())
                self.session.detention_end_at = new_end
            self._new_challenge()
            student_id = self.session.student_id

        if not correct:
            return False

        self._log("DETENTION_REDUCED", f"New end {new_end.strftime('%H:%M:%S')}")
        fire_and_forget(
            self.dispatch, self.session_logger, "DETENTION_STATUS_UPDATE",
            self.gateway.update_student_status, student_id,
            {'detention_end_time': new_end}
        )
        return True

    def remaining_seconds(self) -> int:
        """Whole seconds left in the detention (0 when not detained)."""
        end = self.session.detention_end_at
        if end is None:
            return 0
        return max(0, math.floor((end - self.clock.now()).total_seconds()))

    def tick(self) -> bool:
        """
        One countdown check; releases the student when the countdown hits zero.

        Returns:
            True if this tick ended the detention
        """
        with self.session.lock:
            if self.session.status != Status.DETAINED:
                return False
            if self.remaining_seconds() > 0:
                return False

            self._release()
            student_id = self.session.student_id

        self._log("DETENTION_EXPIRED", "Detention countdown finished")
        fire_and_forget(
            self.dispatch, self.session_logger, "DETENTION_STATUS_UPDATE",
            self.gateway.update_student_status, student_id,
            {'status': RemoteStatus.ACTIVE, 'detention_end_time': None}
        )
        return True

    # ===== SERVER OVERRIDES =====

    def force_detain(self, end) -> bool:
        """Enter (or re-time) detention because the server says so. No gateway write."""
        with self.session.lock:
            if self.session.is_terminal:
                return False

            entering = self.session.status != Status.DETAINED
            self.session.detention_end_at = end
            self.session.status = Status.DETAINED
            if entering:
                self._new_challenge()

        if entering:
            self._log("DETENTION_FORCED", f"Server detention until {end.strftime('%H:%M:%S')}")
        return entering

    def force_release(self) -> bool:
        """Leave detention because the server says so. No gateway write."""
        with self.session.lock:
            if self.session.status != Status.DETAINED:
                return False
            self._release()

        self._log("DETENTION_RELEASED", "Server released detention")
        return True

    def _release(self):
        self.session.detention_end_at = None
        self.session.status = Status.ACTIVE if self.session.exam_end_at is not None else Status.WAITING

    def _new_challenge(self):
        self.challenge = MathChallenge.generate(self.rng)

    def _log(self, event: str, details: str = ""):
        if self.session_logger:
            self.session_logger(event, details)
