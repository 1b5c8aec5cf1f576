"""
Data models for the exam session.

Provides type-safe structures for the running ExamSession, the records the
gateway hands back (Question, ExamRecord, StudentAttempt) and the client
configuration (SessionConfig).
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Set, Any


class Status:
    """Local session states. Exactly one holds at any instant."""
    WAITING = "waiting"
    ACTIVE = "active"
    DETAINED = "detained"
    FINISHED = "finished"
    TIMED_OUT = "timedOut"

    ALL = (WAITING, ACTIVE, DETAINED, FINISHED, TIMED_OUT)
    TERMINAL = (FINISHED, TIMED_OUT)


class RemoteStatus:
    """Student status values as stored by the gateway."""
    ACTIVE = "active"
    DETENTION = "detention"
    FINISHED = "finished"


class ExamStatus:
    """Exam status values as stored by the gateway."""
    WAITING = "waiting"
    LIVE = "live"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp (or pass through a datetime); naive values are UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def option_letter(position: int) -> str:
    """Display letter for an option position (0 -> A, 1 -> B, ...)."""
    return chr(65 + position)


@dataclass
class Question:
    """A multiple-choice question as delivered to the client (no answer key)."""
    id: str
    text: str
    options: List[str]

    @staticmethod
    def from_dict(data: dict) -> 'Question':
        """Create a Question from a dictionary, ignoring any grading fields."""
        return Question(
            id=str(data['id']),
            text=data.get('text', ''),
            options=list(data.get('options') or [])
        )

    def letter_for(self, option: str) -> str:
        """Resolve an option's display text to its letter."""
        return option_letter(self.options.index(option))


@dataclass
class ExamRecord:
    """Authoritative exam record."""
    exam_id: str
    code: str
    status: str = ExamStatus.WAITING
    time_limit_minutes: Optional[int] = None
    title: str = ""

    @property
    def is_live(self) -> bool:
        return self.status == ExamStatus.LIVE

    @staticmethod
    def from_dict(data: dict) -> 'ExamRecord':
        """Create an ExamRecord from a gateway row."""
        time_limit = data.get('time_limit')
        return ExamRecord(
            exam_id=str(data['id']),
            code=data.get('code', ''),
            status=data.get('status') or ExamStatus.WAITING,
            time_limit_minutes=int(time_limit) if time_limit not in (None, "") else None,
            title=data.get('title', '')
        )


@dataclass
class StudentAttempt:
    """Authoritative student record for one exam attempt."""
    student_id: str
    status: str = RemoteStatus.ACTIVE
    detention_end_at: Optional[datetime] = None
    score: int = 0
    current_question_index: int = 0
    answered_question_ids: List[str] = field(default_factory=list)
    name: str = ""
    exam_code: str = ""

    @staticmethod
    def from_dict(data: dict) -> 'StudentAttempt':
        """Create a StudentAttempt from a gateway row."""
        return StudentAttempt(
            student_id=str(data['id']),
            status=data.get('status') or RemoteStatus.ACTIVE,
            detention_end_at=parse_timestamp(data.get('detention_end_time')),
            score=data.get('score') or 0,
            current_question_index=data.get('current_question_index') or 0,
            answered_question_ids=[str(q) for q in data.get('answered_question_ids') or []],
            name=data.get('name', ''),
            exam_code=data.get('exam_code', '')
        )

    def to_changes(self) -> dict:
        """Express this record in the same shape as a push notification."""
        return {
            'status': self.status,
            'detention_end_time': format_timestamp(self.detention_end_at),
            'score': self.score,
            'current_question_index': self.current_question_index,
            'answered_question_ids': list(self.answered_question_ids),
        }


@dataclass
class ExamSession:
    """
    Ephemeral state of one running exam attempt, owned by the client.

    Attributes:
        student_id, exam_id, exam_code: Identifiers, fixed once hydrated.
        student_name: Display name; part of the question-order storage key.
        status: One of Status.ALL.
        current_question_index: Cursor into questions; len(questions) means complete.
        answered_question_ids: Questions already durably submitted.
        exam_end_at: Set once the exam is live (start anchor + time limit).
        detention_end_at: Set only while detained.
        score: Last score received from the gateway.
        selected_option: Option text currently selected at the cursor.
    """
    student_id: str
    exam_id: str
    exam_code: str
    student_name: str = ""
    questions: List[Question] = field(default_factory=list)
    status: str = Status.WAITING
    current_question_index: int = 0
    answered_question_ids: Set[str] = field(default_factory=set)
    exam_end_at: Optional[datetime] = None
    detention_end_at: Optional[datetime] = None
    score: int = 0
    selected_option: Optional[str] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def is_terminal(self) -> bool:
        return self.status in Status.TERMINAL

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    @property
    def is_last_question(self) -> bool:
        return self.current_question_index == len(self.questions) - 1


@dataclass
class SessionConfig:
    """
    Client-side tuning for the exam session.

    Attributes:
        detention_seconds: Length of a fresh detention penalty
        detention_reduction_seconds: Time removed per solved challenge
        exam_tick_seconds: Exam countdown polling cadence
        detention_tick_seconds: Detention countdown polling cadence
        poll_interval_seconds: Full-state reconciliation poll cadence
        push_enabled: Subscribe to gateway push notifications
        poll_enabled: Run the periodic reconciliation poll
        language: Interface language ("en" or "fr")
    """
    detention_seconds: int = 120
    detention_reduction_seconds: int = 30
    exam_tick_seconds: float = 1.0
    detention_tick_seconds: float = 1.0
    poll_interval_seconds: float = 3.0
    push_enabled: bool = True
    poll_enabled: bool = True
    language: str = "en"

    @staticmethod
    def from_dict(data: dict) -> 'SessionConfig':
        """Create SessionConfig from dictionary."""
        return SessionConfig(
            detention_seconds=int(data.get('detention_seconds', 120)),
            detention_reduction_seconds=int(data.get('detention_reduction_seconds', 30)),
            exam_tick_seconds=float(data.get('exam_tick_seconds', 1.0)),
            detention_tick_seconds=float(data.get('detention_tick_seconds', 1.0)),
            poll_interval_seconds=float(data.get('poll_interval_seconds', 3.0)),
            push_enabled=bool(data.get('push_enabled', True)),
            poll_enabled=bool(data.get('poll_enabled', True)),
            language=data.get('language', 'en')
        )

    def validate(self) -> tuple[bool, str]:
        """
        Validate configuration consistency.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if self.detention_seconds < 1:
            return False, "Detention must last at least 1 second"

        if self.detention_reduction_seconds < 0:
            return False, "Detention reduction must be non-negative"

        if self.detention_reduction_seconds > self.detention_seconds:
            return False, (f"Detention reduction ({self.detention_reduction_seconds}s) "
                           f"exceeds detention length ({self.detention_seconds}s)")

        if any(x <= 0 for x in [self.exam_tick_seconds, self.detention_tick_seconds,
                                self.poll_interval_seconds]):
            return False, "Tick and poll intervals must be positive"

        if not self.push_enabled and not self.poll_enabled:
            return False, "At least one of push_enabled or poll_enabled must be true"

        if self.language not in ("en", "fr"):
            return False, f"Unsupported language '{self.language}'"

        return True, ""

    @staticmethod
    def default() -> 'SessionConfig':
        """Return default configuration."""
        return SessionConfig()
