"""Submitter: Persists an attempt's answers and triggers evaluation."""

import logging
from typing import List, Optional, Sequence

from academy_quiz.data_store import DataStore
from academy_quiz.evaluation_engine import (
    RESPONSES_COLLECTION,
    EvaluationEngine,
    EvaluationReport,
)
from academy_quiz.exceptions import DataStoreError, SubmissionError
from academy_quiz.models import AnswerEntry

logger = logging.getLogger(__name__)


class SubmissionReport:
    """Rows written for an attempt plus the evaluation outcome."""

    def __init__(self, attempt_id: str, saved_rows: List[dict],
                 evaluation: Optional[EvaluationReport] = None):
        self.attempt_id = attempt_id
        self.saved_rows = saved_rows
        self.evaluation = evaluation

    @property
    def saved(self) -> int:
        return len(self.saved_rows)

    @property
    def failed_row_ids(self) -> List[str]:
        return self.evaluation.failed_row_ids if self.evaluation else []


class Submitter:
    """Writes the answer batch, then asks the evaluation engine to score it."""

    def __init__(self, store: DataStore, evaluator: Optional[EvaluationEngine] = None):
        self.store = store
        self.evaluator = evaluator or EvaluationEngine(store)

    def save_answers(self, user_id: str, attempt_id: str,
                     answers: Sequence[AnswerEntry]) -> List[dict]:
        if not user_id or not attempt_id or not answers:
            raise SubmissionError("User ID, attempt ID and answers are required.")
        rows = [
            {
                "user_id": user_id,
                "quiz_id": answer.question_id,
                "selected_answer": answer.selected_answer,
                "quiz_attempt_id": attempt_id,
                "is_correct": None,
            }
            for answer in answers
        ]
        logger.debug(f"Saving {len(rows)} answers for attempt {attempt_id}")
        try:
            saved = self.store.insert_batch(RESPONSES_COLLECTION, rows)
        except DataStoreError as e:
            logger.error(f"Error saving user quiz answers: {e}")
            raise SubmissionError(f"Could not save answers: {e}") from e
        logger.info(f"Saved {len(saved)} responses for attempt {attempt_id}")
        return saved

    def submit(self, user_id: str, attempt_id: str,
               answers: Sequence[AnswerEntry]) -> SubmissionReport:
        """Persist all answers, then evaluate.

        Evaluation only starts after the insert succeeded. Individual rows that
        could not be scored are reported, not raised.
        """
        saved = self.save_answers(user_id, attempt_id, answers)
        evaluation = self.evaluator.evaluate_batch(user_id, attempt_id)
        return SubmissionReport(attempt_id, saved, evaluation)
