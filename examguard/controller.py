"""
Exam session controller.

Owns the lifecycle of one exam attempt on this device: the entry (join)
flow, hydration from the store and the gateway, wiring of the timer,
detention engine, submission pipeline and reconciler, and teardown when
the attempt ends or the student navigates away.
"""

from typing import Optional

from .clock import SystemClock
from .detention import DetentionEngine
from .eventlog import SessionLog
from .gateway import GatewayError
from .models import ExamSession, SessionConfig, Status
from .reconciler import PollTransport, PushTransport, SessionReconciler, exam_changes
from .scheduling import SerialDispatcher, Ticker
from .sequencer import QuestionSequencer
from .store import ACTIVE_EXAM_CODE, ACTIVE_STUDENT_ID, ACTIVE_STUDENT_NAME, order_key
from .submission import AnswerPipeline
from .timer import ExamTimer

SCREEN_LOADING = "loading"


class InitializationError(Exception):
    """The session cannot be hydrated; the student goes back to the entry flow."""


class JoinError(Exception):
    """The entry form was incomplete or named an unknown exam."""


def join_exam(gateway, store, exam_code: str, first_name: str, surname: str, grade: str) -> str:
    """
    Register a student for an exam and remember the attempt in the store.

    Returns:
        The new student id

    Raises:
        JoinError: If a field is missing or the exam code is unknown
    """
    fields = [exam_code, first_name, surname, grade]
    if any(not (value or "").strip() for value in fields):
        raise JoinError("Please fill out all fields!")

    clean_code = exam_code.strip().upper()
    try:
        gateway.get_exam_by_code(clean_code)
    except GatewayError:
        raise JoinError(f'Exam Code "{clean_code}" not found!')

    full_name = f"{first_name.strip()} {surname.strip()} (Grade {grade.strip()})"
    try:
        student_id = gateway.create_student(full_name, clean_code)
    except GatewayError as e:
        raise JoinError(f"Could not join the exam: {e}")

    store.set(ACTIVE_STUDENT_ID, student_id)
    store.set(ACTIVE_EXAM_CODE, clean_code)
    store.set(ACTIVE_STUDENT_NAME, full_name)
    return student_id


class ExamController:
    """Runs one exam attempt from hydration to teardown."""

    def __init__(self, gateway, store, config: Optional[SessionConfig] = None, clock=None,
                 session_logger=None, dispatch=None, rng=None):
        self.gateway = gateway
        self.store = store
        self.config = config or SessionConfig.default()
        self.clock = clock or SystemClock()
        self.session_logger = session_logger or SessionLog().log
        # Gateway writes of one session go through a single ordered worker
        self.dispatch = dispatch or SerialDispatcher()
        self.rng = rng

        self.session: Optional[ExamSession] = None
        self.timer: Optional[ExamTimer] = None
        self.detention: Optional[DetentionEngine] = None
        self.pipeline: Optional[AnswerPipeline] = None
        self.reconciler: Optional[SessionReconciler] = None
        self.exam_ticker: Optional[Ticker] = None
        self.detention_ticker: Optional[Ticker] = None

    # ===== LIFECYCLE =====

    def hydrate(self) -> ExamSession:
        """
        Build the session from the store and the gateway.

        Raises:
            InitializationError: Missing identifiers or failed lookups
            NoQuestionsAvailable: The exam has no questions yet
        """
        student_id = self.store.get(ACTIVE_STUDENT_ID)
        exam_code = self.store.get(ACTIVE_EXAM_CODE)
        student_name = self.store.get(ACTIVE_STUDENT_NAME) or ""
        if not student_id or not exam_code:
            raise InitializationError("No active exam attempt on this device")

        try:
            attempt = self.gateway.get_student_attempt(student_id)
            exam = self.gateway.get_exam_by_code(exam_code)
            questions = self.gateway.get_questions(exam.exam_id)
        except GatewayError as e:
            self._log("INIT_FAILED", str(e))
            raise InitializationError(f"Could not load the exam: {e}") from e

        sequencer = QuestionSequencer(self.store, rng=self.rng, session_logger=self.session_logger)
        ordered = sequencer.sequence(questions, order_key(exam_code, student_name))

        session = ExamSession(
            student_id=student_id,
            exam_id=exam.exam_id,
            exam_code=exam_code,
            student_name=student_name,
            questions=ordered,
        )
        self._build(session)

        self.reconciler.apply_student_update(attempt.to_changes())
        self.reconciler.apply_exam_update(exam_changes(exam))
        self._log("SESSION_START", f"Student: {student_name}, Exam: {exam_code}, "
                                   f"{len(ordered)} questions, status: {session.status}")
        return session

    def _build(self, session: ExamSession):
        common = dict(session_logger=self.session_logger, dispatch=self.dispatch)
        self.session = session
        self.timer = ExamTimer(session, self.gateway, self.store, self.clock,
                               on_terminal=self._handle_terminal, **common)
        self.detention = DetentionEngine(session, self.gateway, self.clock, self.config,
                                         rng=self.rng, **common)
        self.pipeline = AnswerPipeline(session, self.gateway,
                                       on_terminal=self._handle_terminal, **common)
        self.reconciler = SessionReconciler(session, self.gateway, self.timer, self.detention,
                                            self.clock, on_terminal=self._handle_terminal, **common)
        if self.config.push_enabled:
            self.reconciler.add_transport(PushTransport(self.gateway, session.exam_id, session.student_id))
        if self.config.poll_enabled:
            self.reconciler.add_transport(PollTransport(self.gateway, session.exam_code, session.student_id,
                                                        self.config.poll_interval_seconds,
                                                        session_logger=self.session_logger))

        self.exam_ticker = Ticker(self.config.exam_tick_seconds, self.timer.tick,
                                  name="exam-timer", session_logger=self.session_logger)
        self.detention_ticker = Ticker(self.config.detention_tick_seconds, self.detention.tick,
                                       name="detention-timer", session_logger=self.session_logger)

    def start(self):
        """Attach listeners and start ticks and reconciliation."""
        if self.session is None:
            raise InitializationError("Session has not been hydrated")
        if self.session.is_terminal:
            return

        self.detention.attach()
        self.exam_ticker.start()
        self.detention_ticker.start()
        self.reconciler.start()

    def stop(self):
        """Release every ticker, listener and subscription (navigation away)."""
        if self.session is None:
            return

        self._release_resources()
        self._log("SESSION_STOP", f"Status at stop: {self.session.status}")

    def leave(self):
        """Tear down and forget the attempt; the student returns to the entry screen."""
        self.stop()
        self.store.clear()
        self.session = None

    @property
    def is_running(self) -> bool:
        """True while any ticker, listener or subscription is still held."""
        if self.session is None:
            return False
        return (self.exam_ticker.is_running or self.detention_ticker.is_running or
                self.detention.listening or self.reconciler.is_active)

    def _handle_terminal(self):
        self._release_resources()

    def _release_resources(self):
        self.detention.detach()
        self.exam_ticker.stop()
        self.detention_ticker.stop()
        self.reconciler.stop()
        if isinstance(self.dispatch, SerialDispatcher):
            self.dispatch.shutdown()

    # ===== STUDENT EVENTS =====

    def on_visibility_change(self, hidden: bool) -> bool:
        return self.detention.on_visibility_change(hidden)

    def on_window_blur(self) -> bool:
        return self.detention.on_window_blur()

    def select(self, choice: str) -> str:
        return self.pipeline.select(choice)

    def submit(self) -> str:
        return self.pipeline.submit()

    def solve(self, answer) -> bool:
        return self.detention.submit_challenge(answer)

    # ===== SCREEN =====

    def screen(self) -> str:
        """The one full-screen state to render right now."""
        if self.session is None:
            return SCREEN_LOADING
        with self.session.lock:
            return self.session.status

    def _log(self, event: str, details: str = ""):
        if self.session_logger:
            self.session_logger(event, details)


__all__ = [
    "ExamController", "InitializationError", "JoinError", "join_exam",
    "SCREEN_LOADING", "Status",
]
