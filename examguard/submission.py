"""
Answer submission pipeline.

Submits the selected option for the question at the cursor exactly once,
then advances the cursor. Grading happens behind the gateway; the client
only sends (question id, selected letter).
"""

import threading
from typing import Callable, Optional

from .gateway import GatewayError, SUBMIT_ALREADY_RECORDED
from .models import ExamSession, RemoteStatus, Status, option_letter
from .scheduling import fire_and_forget, spawn

SUBMITTED = "submitted"
SKIPPED = "skipped"
FAILED = "failed"
IGNORED = "ignored"

NO_OPTION_MESSAGE = "YOU MUST SELECT AN ANSWER!"


class NoOptionSelected(Exception):
    """Submit was called without a selected option."""

    def __init__(self, message: str = NO_OPTION_MESSAGE):
        super().__init__(message)
        self.message = message


class AnswerPipeline:
    """Serialized, idempotent answer submission for one session."""

    def __init__(self, session: ExamSession, gateway, session_logger=None,
                 dispatch=spawn, on_terminal: Optional[Callable[[], None]] = None):
        self.session = session
        self.gateway = gateway
        self.session_logger = session_logger
        self.dispatch = dispatch
        self.on_terminal = on_terminal
        self._in_flight = threading.Lock()

    def select(self, choice: str) -> str:
        """
        Select an option at the cursor by its text or its letter.

        Returns:
            The selected option text

        Raises:
            ValueError: If the choice matches no option of the current question
        """
        with self.session.lock:
            question = self.session.current_question
            if question is None or self.session.status != Status.ACTIVE:
                raise ValueError("No question is open for answering")

            choice = choice.strip()
            if choice in question.options:
                option = choice
            else:
                letters = [option_letter(i) for i in range(len(question.options))]
                if choice.upper() not in letters:
                    raise ValueError(f"'{choice}' is not one of {', '.join(letters)}")
                option = question.options[letters.index(choice.upper())]

            self.session.selected_option = option
            return option

    def submit(self) -> str:
        """
        Submit the selected option for the current question and advance.

        Returns:
            SUBMITTED, SKIPPED (already answered), FAILED (gateway error,
            cursor still advanced) or IGNORED (another submit in flight, or
            the session is not accepting answers)

        Raises:
            NoOptionSelected: If nothing is selected; no state changes
        """
        if not self._in_flight.acquire(blocking=False):
            self._log("SUBMIT_IGNORED", "Submission already in flight")
            return IGNORED

        try:
            with self.session.lock:
                if self.session.status != Status.ACTIVE or self.session.current_question is None:
                    return IGNORED
                if not self.session.selected_option:
                    raise NoOptionSelected()

                index = self.session.current_question_index
                question = self.session.current_question
                letter = question.letter_for(self.session.selected_option)
                already_answered = question.id in self.session.answered_question_ids
                student_id = self.session.student_id
                exam_id = self.session.exam_id

            if already_answered:
                self._log("DUPLICATE_SUBMISSION_SKIPPED", f"Question: {question.id}")
                outcome = SKIPPED
            else:
                try:
                    result = self.gateway.submit_answer(student_id, exam_id, question.id, letter)
                except GatewayError as e:
                    self._log("SUBMISSION_FAILED", f"Question: {question.id}, Error: {e}")
                    outcome = FAILED
                else:
                    with self.session.lock:
                        self.session.answered_question_ids.add(question.id)
                    if result == SUBMIT_ALREADY_RECORDED:
                        self._log("DUPLICATE_SUBMISSION_SKIPPED", f"Question: {question.id} (recorded remotely)")
                        outcome = SKIPPED
                    else:
                        self._log("ANSWER_SUBMITTED", f"Question: {question.id}, Answer: {letter}")
                        outcome = SUBMITTED

            self._advance(index)
            return outcome
        finally:
            self._in_flight.release()

    def _advance(self, index: int):
        """Move past the question at index unless something else already did."""
        finished = False
        with self.session.lock:
            if self.session.is_terminal or self.session.current_question_index != index:
                return

            count = self.session.question_count
            if index < count - 1:
                self.session.current_question_index = index + 1
                self.session.selected_option = None
                changes = {'current_question_index': index + 1}
            else:
                self.session.status = Status.FINISHED
                self.session.current_question_index = count
                self.session.selected_option = None
                self.session.detention_end_at = None
                changes = {'status': RemoteStatus.FINISHED, 'current_question_index': count}
                finished = True
            student_id = self.session.student_id

        if finished:
            self._log("EXAM_FINISHED", f"All {changes['current_question_index']} questions answered")
        fire_and_forget(
            self.dispatch, self.session_logger, "PROGRESS_UPDATE",
            self.gateway.update_student_status, student_id, changes
        )
        if finished and self.on_terminal:
            self.on_terminal()

    def _log(self, event: str, details: str = ""):
        if self.session_logger:
            self.session_logger(event, details)
