"""
Tests for the question sequencer.

Tests reload-stable question ordering including:
- First-run shuffle and persistence
- Replay of a persisted order (reload)
- Questions added or removed after the student started
- Empty question sets
"""

import random
import pytest
from unittest.mock import Mock
from pathlib import Path

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from examguard.models import Question
from examguard.sequencer import NoQuestionsAvailable, QuestionSequencer
from examguard.store import SessionStore

KEY = "order-MATH1-Ada Lovelace (Grade 10)"


def make_questions(count):
    return [Question(id=f"q{i}", text=f"Question {i}", options=["x", "y"]) for i in range(1, count + 1)]


class TestFirstRun:
    """Test the initial shuffle."""

    def test_persists_shuffled_order(self):
        store = SessionStore()
        sequencer = QuestionSequencer(store, rng=random.Random(3))

        ordered = sequencer.sequence(make_questions(6), KEY)

        assert sorted(q.id for q in ordered) == [f"q{i}" for i in range(1, 7)]
        assert store.get(KEY) == [q.id for q in ordered]

    def test_uses_injected_rng(self):
        """Same seed gives the same order on a fresh store."""
        first = QuestionSequencer(SessionStore(), rng=random.Random(11)).sequence(make_questions(8), KEY)
        second = QuestionSequencer(SessionStore(), rng=random.Random(11)).sequence(make_questions(8), KEY)

        assert [q.id for q in first] == [q.id for q in second]

    def test_logs_creation(self):
        logger = Mock()
        QuestionSequencer(SessionStore(), rng=random.Random(1), session_logger=logger).sequence(
            make_questions(3), KEY)

        logger.assert_called_once_with("QUESTION_ORDER_CREATED", "3 questions")

    def test_empty_set_raises(self):
        store = SessionStore()

        with pytest.raises(NoQuestionsAvailable):
            QuestionSequencer(store).sequence([], KEY)
        assert store.get(KEY) is None


class TestReload:
    """Test replay of the persisted order."""

    def test_two_invocations_are_identical(self):
        """Same persisted order and source set yield the same sequence."""
        store = SessionStore()
        questions = make_questions(10)

        first = QuestionSequencer(store, rng=random.Random(5)).sequence(questions, KEY)
        second = QuestionSequencer(store, rng=random.Random(99)).sequence(list(reversed(questions)), KEY)

        assert [q.id for q in first] == [q.id for q in second]

    def test_new_questions_appended_in_source_order(self):
        store = SessionStore()
        store.set(KEY, ["q3", "q1", "q2"])
        questions = make_questions(5)

        ordered = QuestionSequencer(store).sequence(questions, KEY)

        assert [q.id for q in ordered] == ["q3", "q1", "q2", "q4", "q5"]
        assert store.get(KEY) == ["q3", "q1", "q2", "q4", "q5"]

    def test_removed_questions_dropped(self):
        store = SessionStore()
        store.set(KEY, ["q3", "q9", "q1", "q2"])

        ordered = QuestionSequencer(store).sequence(make_questions(3), KEY)

        assert [q.id for q in ordered] == ["q3", "q1", "q2"]

    def test_no_question_is_ever_dropped(self):
        """Every question still in the source set appears exactly once."""
        store = SessionStore()
        store.set(KEY, ["q2", "q2", "q7"])
        questions = make_questions(4)

        ordered = QuestionSequencer(store).sequence(questions, KEY)

        assert sorted(q.id for q in ordered) == ["q1", "q2", "q3", "q4"]
        assert ordered[0].id == "q2"

    def test_restore_is_logged_and_not_rewritten(self):
        store = SessionStore()
        store.set(KEY, ["q2", "q1"])
        store.set = Mock(wraps=store.set)
        logger = Mock()

        QuestionSequencer(store, session_logger=logger).sequence(make_questions(2), KEY)

        store.set.assert_not_called()
        logger.assert_called_once_with("QUESTION_ORDER_RESTORED", "2 questions")

    def test_unusable_saved_order_reshuffles(self):
        store = SessionStore()
        store.set(KEY, "garbage")

        ordered = QuestionSequencer(store, rng=random.Random(2)).sequence(make_questions(3), KEY)

        assert store.get(KEY) == [q.id for q in ordered]
