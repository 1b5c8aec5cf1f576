"""
Tests for the in-process exam gateway.

Tests the backend boundary including:
- Exam, question and student reads
- Server-side grading and duplicate answers
- Status patches and push notifications
- Teacher operations
"""

import pytest
from datetime import timedelta
from unittest.mock import Mock
from pathlib import Path

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from examguard.clock import ManualClock
from examguard.gateway import GatewayError, SUBMIT_ALREADY_RECORDED, SUBMIT_SUCCESS
from examguard.local_gateway import LocalGateway

BANK = {'exams': [{
    'code': 'sci7',
    'title': 'Science',
    'time_limit': None,
    'questions': [
        {'id': 'q1', 'text': 'Water boils at?', 'options': ['90', '100', '110'], 'answer': 'b'},
        {'id': 'q2', 'text': 'Plants absorb?', 'options': ['O2', 'CO2'], 'answer': 'B'},
    ],
}]}


def make_gateway():
    clock = ManualClock()
    gateway = LocalGateway(BANK, clock=clock)
    exam = gateway.get_exam_by_code('SCI7')
    student_id = gateway.create_student("Jo Doe (Grade 7)", "sci7")
    return gateway, exam, student_id, clock


class TestReads:
    """Test record lookups."""

    def test_exam_lookup_is_case_insensitive(self):
        gateway, exam, _, _ = make_gateway()

        assert gateway.get_exam_by_code(' sci7 ').exam_id == exam.exam_id
        assert exam.code == 'SCI7'
        assert exam.status == 'waiting'
        assert exam.time_limit_minutes is None

    def test_unknown_exam(self):
        gateway, _, _, _ = make_gateway()

        with pytest.raises(GatewayError):
            gateway.get_exam_by_code('NOPE')

    def test_questions_have_no_answer_key(self):
        gateway, exam, _, _ = make_gateway()

        questions = gateway.get_questions(exam.exam_id)

        assert [q.id for q in questions] == ['q1', 'q2']
        assert not hasattr(questions[0], 'answer')

    def test_questions_unknown_exam(self):
        gateway, _, _, _ = make_gateway()

        with pytest.raises(GatewayError):
            gateway.get_questions('missing')

    def test_new_student_attempt(self):
        gateway, _, student_id, _ = make_gateway()

        attempt = gateway.get_student_attempt(student_id)

        assert attempt.status == 'active'
        assert attempt.current_question_index == 0
        assert attempt.score == 0
        assert attempt.detention_end_at is None
        assert attempt.answered_question_ids == []
        assert attempt.exam_code == 'SCI7'

    def test_unknown_student(self):
        gateway, _, _, _ = make_gateway()

        with pytest.raises(GatewayError):
            gateway.get_student_attempt('ghost')

    def test_create_student_unknown_exam(self):
        gateway, _, _, _ = make_gateway()

        with pytest.raises(GatewayError):
            gateway.create_student("Jo", "NOPE")


class TestGrading:
    """Test server-side grading."""

    def test_correct_answer_scores(self):
        gateway, exam, student_id, _ = make_gateway()
        on_change = Mock()
        gateway.subscribe_to_student(student_id, on_change)

        assert gateway.submit_answer(student_id, exam.exam_id, 'q1', 'B') == SUBMIT_SUCCESS

        assert gateway.student_row(student_id)['score'] == 1
        on_change.assert_called_once_with({'score': 1})
        assert gateway.answers_for(student_id)[0]['is_correct'] is True

    def test_wrong_answer_recorded_without_score(self):
        gateway, exam, student_id, _ = make_gateway()

        assert gateway.submit_answer(student_id, exam.exam_id, 'q2', 'a') == SUBMIT_SUCCESS

        assert gateway.student_row(student_id)['score'] == 0
        answer = gateway.answers_for(student_id)[0]
        assert answer['selected_answer'] == 'A'
        assert answer['is_correct'] is False

    def test_duplicate_answer(self):
        gateway, exam, student_id, _ = make_gateway()
        gateway.submit_answer(student_id, exam.exam_id, 'q1', 'B')

        assert gateway.submit_answer(student_id, exam.exam_id, 'q1', 'A') == SUBMIT_ALREADY_RECORDED

        assert gateway.student_row(student_id)['score'] == 1
        assert len(gateway.answers_for(student_id)) == 1
        assert gateway.get_student_attempt(student_id).answered_question_ids == ['q1']

    def test_unknown_question(self):
        gateway, exam, student_id, _ = make_gateway()

        with pytest.raises(GatewayError):
            gateway.submit_answer(student_id, exam.exam_id, 'q9', 'A')


class TestStatusUpdates:
    """Test student record patches."""

    def test_patch_and_push(self):
        gateway, _, student_id, clock = make_gateway()
        on_change = Mock()
        gateway.subscribe_to_student(student_id, on_change)
        end = clock.now() + timedelta(minutes=2)

        gateway.update_student_status(student_id, {'status': 'detention', 'detention_end_time': end})

        expected = {'status': 'detention', 'detention_end_time': end.isoformat()}
        on_change.assert_called_once_with(expected)
        attempt = gateway.get_student_attempt(student_id)
        assert attempt.status == 'detention'
        assert attempt.detention_end_at == end

    def test_unknown_field_rejected(self):
        gateway, _, student_id, _ = make_gateway()

        with pytest.raises(GatewayError):
            gateway.update_student_status(student_id, {'is_correct': True})

    def test_unsubscribe(self):
        gateway, _, student_id, _ = make_gateway()
        on_change = Mock()
        unsubscribe = gateway.subscribe_to_student(student_id, on_change)
        assert gateway.subscription_count() == 1

        unsubscribe()
        unsubscribe()
        gateway.update_student_status(student_id, {'score': 5})

        on_change.assert_not_called()
        assert gateway.subscription_count() == 0

    def test_other_students_not_notified(self):
        gateway, _, student_id, _ = make_gateway()
        other = gateway.create_student("Sam", "SCI7")
        on_change = Mock()
        gateway.subscribe_to_student(other, on_change)

        gateway.update_student_status(student_id, {'score': 5})

        on_change.assert_not_called()

    def test_log_violation(self):
        gateway, _, student_id, _ = make_gateway()

        gateway.log_violation(student_id, 'tab_switch')

        assert gateway.violations[0]['student_id'] == student_id
        assert gateway.violations[0]['violation_type'] == 'tab_switch'

    def test_disconnect_drops_subscriptions(self):
        gateway, exam, student_id, _ = make_gateway()
        gateway.connect()
        gateway.subscribe_to_exam(exam.exam_id, Mock())
        gateway.subscribe_to_student(student_id, Mock())

        gateway.disconnect()

        assert gateway.subscription_count() == 0
        assert not gateway.connected


class TestTeacherOperations:
    """Test the monitor-side actions."""

    def test_start_exam(self):
        gateway, exam, _, _ = make_gateway()
        on_change = Mock()
        gateway.subscribe_to_exam(exam.exam_id, on_change)

        gateway.start_exam('sci7', 45)

        on_change.assert_called_once_with({'status': 'live', 'time_limit': 45})
        record = gateway.get_exam_by_code('SCI7')
        assert record.is_live
        assert record.time_limit_minutes == 45

    def test_set_time_limit(self):
        gateway, exam, _, _ = make_gateway()
        on_change = Mock()
        gateway.subscribe_to_exam(exam.exam_id, on_change)

        gateway.set_time_limit('SCI7', 25)

        on_change.assert_called_once_with({'time_limit': 25})

    def test_force_block_and_forgive(self):
        gateway, _, student_id, clock = make_gateway()

        gateway.force_block(student_id, minutes=3)
        row = gateway.student_row(student_id)
        assert row['status'] == 'detention'
        assert row['detention_end_time'] == (clock.now() + timedelta(minutes=3)).isoformat()

        gateway.forgive(student_id)
        row = gateway.student_row(student_id)
        assert row['status'] == 'active'
        assert row['detention_end_time'] is None

    def test_set_question_index(self):
        gateway, _, student_id, _ = make_gateway()

        gateway.set_question_index(student_id, 2)

        assert gateway.get_student_attempt(student_id).current_question_index == 2
