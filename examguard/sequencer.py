"""
Question sequencer.

Freezes a randomized question order for one attempt so a reload resumes
the same sequence.
"""

import random
from typing import List, Optional

from .models import Question


class NoQuestionsAvailable(Exception):
    """The exam has no questions; the caller must not render an empty exam."""


class QuestionSequencer:
    """Produces a stable, per-attempt shuffled question order."""

    def __init__(self, store, rng: Optional[random.Random] = None, session_logger=None):
        self.store = store
        self.rng = rng or random.Random()
        self.session_logger = session_logger

    def sequence(self, questions: List[Question], storage_key: str) -> List[Question]:
        """
        Order questions for this attempt.

        First run shuffles uniformly and persists the id order under
        storage_key. Later runs replay the persisted order; questions it does
        not know (added after the student started) are appended in source
        order, and ids no longer in the source set are dropped.

        Raises:
            NoQuestionsAvailable: If questions is empty
        """
        if not questions:
            raise NoQuestionsAvailable("No questions are available for this exam")

        saved_order = self.store.get(storage_key)
        if not isinstance(saved_order, list) or not saved_order:
            ordered = list(questions)
            self.rng.shuffle(ordered)
            self.store.set(storage_key, [q.id for q in ordered])
            self._log("QUESTION_ORDER_CREATED", f"{len(ordered)} questions")
            return ordered

        by_id = {q.id: q for q in questions}
        known = set()
        ordered = []
        for qid in saved_order:
            qid = str(qid)
            if qid in by_id and qid not in known:
                ordered.append(by_id[qid])
                known.add(qid)

        extras = [q for q in questions if q.id not in known]
        if extras:
            ordered.extend(extras)
            self._log("QUESTION_ORDER_EXTENDED", f"Appended: {', '.join(q.id for q in extras)}")

        new_order = [q.id for q in ordered]
        if new_order != saved_order:
            self.store.set(storage_key, new_order)
        else:
            self._log("QUESTION_ORDER_RESTORED", f"{len(ordered)} questions")
        return ordered

    def _log(self, event: str, details: str):
        if self.session_logger:
            self.session_logger(event, details)
