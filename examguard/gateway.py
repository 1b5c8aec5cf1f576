"""
Remote exam gateway interface.

The gateway is the boundary to the backend that stores exams, questions,
students and answers, grades submissions and pushes record changes. The
session core only talks to this interface; LocalGateway is the in-process
implementation.
"""

from abc import ABC, abstractmethod
from typing import Callable, List

from .models import ExamRecord, Question, StudentAttempt

SUBMIT_SUCCESS = "success"
SUBMIT_ALREADY_RECORDED = "alreadyRecorded"

# Keys accepted by update_student_status
STATUS_FIELDS = ("status", "detention_end_time", "current_question_index", "score")

Unsubscribe = Callable[[], None]
ChangeCallback = Callable[[dict], None]


class GatewayError(Exception):
    """A remote call was rejected, failed or timed out."""


class ExamGateway(ABC):
    """Operations the exam session needs from the backend."""

    @abstractmethod
    def get_student_attempt(self, student_id: str) -> StudentAttempt:
        """Fetch the student's status, detention end, score, cursor and answered ids."""

    @abstractmethod
    def get_exam_by_code(self, code: str) -> ExamRecord:
        """Fetch the exam record for an exam code."""

    @abstractmethod
    def get_questions(self, exam_id: str) -> List[Question]:
        """Fetch the exam's questions. Never includes answer keys."""

    @abstractmethod
    def submit_answer(self, student_id: str, exam_id: str, question_id: str, selected_letter: str) -> str:
        """
        Record and grade one answer.

        Returns:
            SUBMIT_SUCCESS or SUBMIT_ALREADY_RECORDED

        Raises:
            GatewayError: If the answer could not be recorded
        """

    @abstractmethod
    def update_student_status(self, student_id: str, changes: dict) -> None:
        """Patch the student record. Keys are a subset of STATUS_FIELDS; None clears a field."""

    @abstractmethod
    def subscribe_to_exam(self, exam_id: str, on_change: ChangeCallback) -> Unsubscribe:
        """Push exam-record changes to on_change until the returned handle is called."""

    @abstractmethod
    def subscribe_to_student(self, student_id: str, on_change: ChangeCallback) -> Unsubscribe:
        """Push student-record changes to on_change until the returned handle is called."""

    @abstractmethod
    def create_student(self, name: str, exam_code: str) -> str:
        """Create an active student record for an exam and return its id."""

    @abstractmethod
    def log_violation(self, student_id: str, violation_type: str) -> None:
        """Record a detected focus-loss violation."""

    def connect(self):
        """Open the connection. Gateways without a connection need not override."""

    def disconnect(self):
        """Close the connection and drop every subscription."""
