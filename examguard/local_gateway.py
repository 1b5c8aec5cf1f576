"""
In-process exam gateway.

Implements ExamGateway over in-memory tables loaded from an exam bank. It
grades answers on its side of the boundary, pushes record changes to
subscribers synchronously, and exposes the teacher-side operations (start
exam, force block, forgive, move cursor) that a monitor screen would call.
"""

import threading
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .bank import load_bank
from .clock import SystemClock
from .gateway import (
    ExamGateway, GatewayError, STATUS_FIELDS,
    SUBMIT_SUCCESS, SUBMIT_ALREADY_RECORDED,
)
from .models import (
    ExamRecord, ExamStatus, Question, RemoteStatus, StudentAttempt,
    format_timestamp,
)


class LocalGateway(ExamGateway):
    """Exam backend living in the same process as the session."""

    def __init__(self, bank: Optional[dict] = None, clock=None):
        self.clock = clock or SystemClock()
        self._lock = threading.RLock()
        self._exams: Dict[str, dict] = {}
        self._codes: Dict[str, str] = {}
        self._questions: Dict[str, List[dict]] = {}
        self._students: Dict[str, dict] = {}
        self._answers: Dict[Tuple[str, str], dict] = {}
        self.violations: List[dict] = []
        self._exam_subscribers: Dict[str, List] = {}
        self._student_subscribers: Dict[str, List] = {}
        self.connected = False

        if bank:
            for exam in bank.get('exams', []):
                self.add_exam(exam)

    @classmethod
    def from_bank_file(cls, bank_path: Path, key_input: Optional[str] = None, clock=None) -> 'LocalGateway':
        """Build a gateway from a plain or encrypted bank file."""
        return cls(load_bank(bank_path, key_input), clock=clock)

    def add_exam(self, exam: dict) -> str:
        """Register an exam (with questions and answer keys); returns its id."""
        code = str(exam['code']).strip().upper()
        exam_id = str(exam.get('id') or uuid.uuid4().hex)
        with self._lock:
            self._exams[exam_id] = {
                'id': exam_id,
                'code': code,
                'title': exam.get('title', ''),
                'status': exam.get('status') or ExamStatus.WAITING,
                'time_limit': exam.get('time_limit'),
            }
            self._codes[code] = exam_id
            self._questions[exam_id] = [
                {
                    'id': str(q['id']),
                    'text': q.get('text', ''),
                    'options': list(q.get('options') or []),
                    'answer': str(q.get('answer', '')).strip().upper(),
                }
                for q in exam.get('questions', [])
            ]
        return exam_id

    # ===== CONNECTION =====

    def connect(self):
        self.connected = True

    def disconnect(self):
        with self._lock:
            self._exam_subscribers.clear()
            self._student_subscribers.clear()
        self.connected = False

    # ===== READS =====

    def get_student_attempt(self, student_id: str) -> StudentAttempt:
        with self._lock:
            row = self._student_row(student_id)
            data = dict(row)
            data['answered_question_ids'] = [
                qid for (sid, qid) in self._answers if sid == student_id
            ]
        return StudentAttempt.from_dict(data)

    def get_exam_by_code(self, code: str) -> ExamRecord:
        with self._lock:
            exam_id = self._codes.get(str(code).strip().upper())
            if exam_id is None:
                raise GatewayError(f"Exam code '{code}' not found")
            return ExamRecord.from_dict(self._exams[exam_id])

    def get_questions(self, exam_id: str) -> List[Question]:
        with self._lock:
            if exam_id not in self._exams:
                raise GatewayError(f"Exam '{exam_id}' not found")
            return [Question.from_dict(q) for q in self._questions.get(exam_id, [])]

    # ===== WRITES =====

    def create_student(self, name: str, exam_code: str) -> str:
        code = str(exam_code).strip().upper()
        with self._lock:
            if code not in self._codes:
                raise GatewayError(f"Exam code '{code}' not found")
            student_id = uuid.uuid4().hex
            self._students[student_id] = {
                'id': student_id,
                'name': name,
                'exam_code': code,
                'status': RemoteStatus.ACTIVE,
                'current_question_index': 0,
                'score': 0,
                'detention_end_time': None,
            }
        return student_id

    def submit_answer(self, student_id: str, exam_id: str, question_id: str, selected_letter: str) -> str:
        with self._lock:
            row = self._student_row(student_id)
            question = self._question_row(exam_id, question_id)

            if (student_id, question_id) in self._answers:
                return SUBMIT_ALREADY_RECORDED

            letter = str(selected_letter).strip().upper()
            is_correct = letter == question['answer']
            self._answers[(student_id, question_id)] = {
                'student_id': student_id,
                'exam_id': exam_id,
                'question_id': question_id,
                'question_text': question['text'],
                'selected_answer': letter,
                'is_correct': is_correct,
                'submitted_at': format_timestamp(self.clock.now()),
            }
            if not is_correct:
                return SUBMIT_SUCCESS

            row['score'] = (row.get('score') or 0) + 1
            changes = {'score': row['score']}

        self._notify_student(student_id, changes)
        return SUBMIT_SUCCESS

    def update_student_status(self, student_id: str, changes: dict) -> None:
        unknown = set(changes) - set(STATUS_FIELDS)
        if unknown:
            raise GatewayError(f"Unknown student fields: {', '.join(sorted(unknown))}")

        normalized = {}
        for key, value in changes.items():
            if isinstance(value, datetime):
                value = format_timestamp(value)
            normalized[key] = value

        with self._lock:
            row = self._student_row(student_id)
            row.update(normalized)

        self._notify_student(student_id, normalized)

    def log_violation(self, student_id: str, violation_type: str) -> None:
        with self._lock:
            self._student_row(student_id)
            self.violations.append({
                'student_id': student_id,
                'violation_type': violation_type,
                'created_at': format_timestamp(self.clock.now()),
            })

    # ===== SUBSCRIPTIONS =====

    def subscribe_to_exam(self, exam_id: str, on_change):
        return self._subscribe(self._exam_subscribers, exam_id, on_change)

    def subscribe_to_student(self, student_id: str, on_change):
        return self._subscribe(self._student_subscribers, student_id, on_change)

    def subscription_count(self) -> int:
        """Number of live subscriptions across exams and students."""
        with self._lock:
            return (sum(len(v) for v in self._exam_subscribers.values()) +
                    sum(len(v) for v in self._student_subscribers.values()))

    def _subscribe(self, table: Dict[str, List], key: str, on_change):
        with self._lock:
            table.setdefault(key, []).append(on_change)

        def unsubscribe():
            with self._lock:
                callbacks = table.get(key, [])
                if on_change in callbacks:
                    callbacks.remove(on_change)
                if not callbacks:
                    table.pop(key, None)

        return unsubscribe

    def _notify_student(self, student_id: str, changes: dict):
        with self._lock:
            callbacks = list(self._student_subscribers.get(student_id, []))
        for callback in callbacks:
            callback(dict(changes))

    def _notify_exam(self, exam_id: str, changes: dict):
        with self._lock:
            callbacks = list(self._exam_subscribers.get(exam_id, []))
        for callback in callbacks:
            callback(dict(changes))

    # ===== TEACHER OPERATIONS =====

    def start_exam(self, code: str, time_limit_minutes: Optional[int] = None):
        """Open the exam; optionally set its time limit at the same moment."""
        with self._lock:
            exam = self._exam_row(code)
            exam['status'] = ExamStatus.LIVE
            if time_limit_minutes is not None:
                exam['time_limit'] = time_limit_minutes
            changes = {'status': exam['status'], 'time_limit': exam['time_limit']}
        self._notify_exam(exam['id'], changes)

    def set_time_limit(self, code: str, time_limit_minutes: Optional[int]):
        with self._lock:
            exam = self._exam_row(code)
            exam['time_limit'] = time_limit_minutes
        self._notify_exam(exam['id'], {'time_limit': time_limit_minutes})

    def force_block(self, student_id: str, minutes: float = 2):
        """Put a student into detention from the teacher's side."""
        end = self.clock.now() + timedelta(minutes=minutes)
        self.update_student_status(student_id, {
            'status': RemoteStatus.DETENTION,
            'detention_end_time': end,
        })

    def forgive(self, student_id: str):
        """Release a student from detention immediately."""
        self.update_student_status(student_id, {
            'status': RemoteStatus.ACTIVE,
            'detention_end_time': None,
        })

    def set_question_index(self, student_id: str, index: int):
        self.update_student_status(student_id, {'current_question_index': index})

    def student_row(self, student_id: str) -> dict:
        """Copy of the stored student record (what the teacher monitor sees)."""
        with self._lock:
            return dict(self._student_row(student_id))

    def answers_for(self, student_id: str) -> List[dict]:
        with self._lock:
            return [dict(a) for (sid, _), a in self._answers.items() if sid == student_id]

    # ===== HELPERS =====

    def _student_row(self, student_id: str) -> dict:
        row = self._students.get(student_id)
        if row is None:
            raise GatewayError(f"Student '{student_id}' not found")
        return row

    def _exam_row(self, code: str) -> dict:
        exam_id = self._codes.get(str(code).strip().upper())
        if exam_id is None:
            raise GatewayError(f"Exam code '{code}' not found")
        return self._exams[exam_id]

    def _question_row(self, exam_id: str, question_id: str) -> dict:
        for question in self._questions.get(exam_id, []):
            if question['id'] == question_id:
                return question
        raise GatewayError(f"Question '{question_id}' not found in exam '{exam_id}'")
