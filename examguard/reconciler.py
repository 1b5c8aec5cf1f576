"""
Session reconciler.

Merges authoritative state from the gateway into the local session. Two
transports feed the same apply functions: push subscriptions on the exam
and student records, and a periodic full-state poll for environments where
push delivery is unreliable. The server always wins for status, detention
end and score; the cursor only moves forward.
"""

from typing import Callable, List, Optional

from .gateway import GatewayError
from .models import (
    ExamRecord, ExamSession, ExamStatus, RemoteStatus, Status,
    parse_timestamp,
)
from .scheduling import Ticker, fire_and_forget, spawn

_NOT_REPORTED = object()


class PushTransport:
    """Gateway subscriptions on the exam and student records."""

    def __init__(self, gateway, exam_id: str, student_id: str):
        self.gateway = gateway
        self.exam_id = exam_id
        self.student_id = student_id
        self.handles: List[Callable[[], None]] = []

    @property
    def is_active(self) -> bool:
        return bool(self.handles)

    def start(self, on_exam_change, on_student_change):
        if self.handles:
            return
        self.handles.append(self.gateway.subscribe_to_exam(self.exam_id, on_exam_change))
        self.handles.append(self.gateway.subscribe_to_student(self.student_id, on_student_change))

    def stop(self):
        handles, self.handles = self.handles, []
        for unsubscribe in handles:
            unsubscribe()


class PollTransport:
    """Periodic full-state fetch of the exam and student records."""

    def __init__(self, gateway, exam_code: str, student_id: str, interval: float,
                 session_logger=None):
        self.gateway = gateway
        self.exam_code = exam_code
        self.student_id = student_id
        self.interval = interval
        self.session_logger = session_logger
        self.ticker: Optional[Ticker] = None
        self._on_exam_change = None
        self._on_student_change = None

    @property
    def is_active(self) -> bool:
        return self.ticker is not None and self.ticker.is_running

    def start(self, on_exam_change, on_student_change):
        if self.is_active:
            return
        self._on_exam_change = on_exam_change
        self._on_student_change = on_student_change
        self.ticker = Ticker(self.interval, self.poll_once, name="reconcile-poll",
                             session_logger=self.session_logger)
        self.ticker.start()

    def stop(self):
        if self.ticker:
            self.ticker.stop()
            self.ticker = None

    def poll_once(self):
        """Fetch both records and hand them to the apply callbacks."""
        try:
            exam = self.gateway.get_exam_by_code(self.exam_code)
            attempt = self.gateway.get_student_attempt(self.student_id)
        except GatewayError as e:
            if self.session_logger:
                self.session_logger("RECONCILE_POLL_FAILED", str(e))
            return

        if self._on_exam_change:
            self._on_exam_change(exam_changes(exam))
        if self._on_student_change:
            self._on_student_change(attempt.to_changes())


def exam_changes(exam: ExamRecord) -> dict:
    """Express an exam record in the same shape as a push notification."""
    return {'status': exam.status, 'time_limit': exam.time_limit_minutes}


class SessionReconciler:
    """Applies server-side truth to the local session."""

    def __init__(self, session: ExamSession, gateway, timer, detention, clock,
                 session_logger=None, dispatch=spawn,
                 on_terminal: Optional[Callable[[], None]] = None):
        self.session = session
        self.gateway = gateway
        self.timer = timer
        self.detention = detention
        self.clock = clock
        self.session_logger = session_logger
        self.dispatch = dispatch
        self.on_terminal = on_terminal
        self.transports = []
        self.remote_exam = {'status': ExamStatus.WAITING, 'time_limit': None}
        self.remote_student = {
            'status': RemoteStatus.ACTIVE,
            'detention_end_time': None,
            'score': 0,
            'current_question_index': 0,
        }
        self._stale_detention_reported = _NOT_REPORTED

    # ===== TRANSPORTS =====

    def add_transport(self, transport):
        self.transports.append(transport)

    def start(self):
        for transport in self.transports:
            transport.start(self.apply_exam_update, self.apply_student_update)
        self._log("RECONCILE_STARTED", f"{len(self.transports)} transport(s)")

    def stop(self):
        """Release every subscription and poll."""
        for transport in self.transports:
            transport.stop()

    @property
    def is_active(self) -> bool:
        return any(transport.is_active for transport in self.transports)

    # ===== EXAM RECORD =====

    def apply_exam_update(self, changes: dict):
        """Merge an exam-record change and go live when the exam allows it."""
        with self.session.lock:
            for key in ('status', 'time_limit'):
                if key in changes:
                    self.remote_exam[key] = changes[key]

            if self.session.is_terminal:
                return
            if self.remote_exam['status'] != ExamStatus.LIVE:
                return

            time_limit = self.remote_exam['time_limit']
            if time_limit in (None, ""):
                return
            time_limit = int(time_limit)
            if self.timer.is_live and self.timer.time_limit_minutes == time_limit:
                return

            self.timer.go_live(time_limit)
        self._log("RECONCILE_EXAM_LIVE", f"Time limit: {time_limit} minutes")

    # ===== STUDENT RECORD =====

    def apply_student_update(self, changes: dict):
        """
        Merge a student-record change with server-wins semantics.

        status, detention end and score take the server's value; the cursor
        moves only if the server's value is strictly greater; answered ids
        are added to the local set. status and detention are re-evaluated
        only when the change carries one of them. A cursor that reaches the
        question count finishes the attempt. Once terminal, only score is
        applied.
        """
        report_stale = False
        report_finished = False
        became_terminal = False

        with self.session.lock:
            for key in ('status', 'detention_end_time', 'score', 'current_question_index'):
                if key in changes:
                    self.remote_student[key] = changes[key]

            if 'score' in changes:
                self.session.score = changes['score'] or 0

            if self.session.is_terminal:
                return

            for qid in changes.get('answered_question_ids') or []:
                self.session.answered_question_ids.add(str(qid))

            cursor_complete = False
            if 'current_question_index' in changes:
                cursor_complete = self._apply_cursor(changes['current_question_index'])

            remote_status = self.remote_student['status']
            remote_end = parse_timestamp(self.remote_student['detention_end_time'])

            # A push that carries neither field says nothing about status or detention
            if 'status' in changes or 'detention_end_time' in changes:
                if remote_status == RemoteStatus.FINISHED:
                    self._finish()
                    became_terminal = True
                elif remote_status == RemoteStatus.DETENTION:
                    if remote_end is not None and remote_end > self.clock.now():
                        self.detention.force_detain(remote_end)
                    else:
                        self.detention.force_release()
                        if self._stale_detention_reported != remote_end:
                            self._stale_detention_reported = remote_end
                            report_stale = True
                else:
                    self.detention.force_release()

            if cursor_complete and not self.session.is_terminal:
                self._finish()
                became_terminal = True
                report_finished = True

            student_id = self.session.student_id
            question_count = self.session.question_count

        if report_stale:
            self._log("RECONCILE_STALE_DETENTION", "Server detention already expired; reporting active")
            fire_and_forget(
                self.dispatch, self.session_logger, "DETENTION_STATUS_UPDATE",
                self.gateway.update_student_status, student_id,
                {'status': RemoteStatus.ACTIVE, 'detention_end_time': None}
            )
        if report_finished:
            self._log("RECONCILE_CURSOR_COMPLETE", "Server moved the cursor past the last question")
            fire_and_forget(
                self.dispatch, self.session_logger, "PROGRESS_UPDATE",
                self.gateway.update_student_status, student_id,
                {'status': RemoteStatus.FINISHED, 'current_question_index': question_count}
            )
        if became_terminal:
            self._log("RECONCILE_FINISHED", "Server marked the attempt finished")
            if self.on_terminal:
                self.on_terminal()

    def _finish(self):
        self.session.status = Status.FINISHED
        self.session.detention_end_at = None
        self.session.current_question_index = self.session.question_count
        self.session.selected_option = None

    def _apply_cursor(self, remote_index) -> bool:
        """Move the cursor forward to the server's value; True if it now marks completion."""
        if remote_index is None:
            return False
        remote_index = min(int(remote_index), self.session.question_count)
        if remote_index > self.session.current_question_index:
            self._log("RECONCILE_CURSOR", f"{self.session.current_question_index} -> {remote_index}")
            self.session.current_question_index = remote_index
            self.session.selected_option = None
            return remote_index == self.session.question_count
        return False

    def _log(self, event: str, details: str = ""):
        if self.session_logger:
            self.session_logger(event, details)
