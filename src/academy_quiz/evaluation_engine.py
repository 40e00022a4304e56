"""Evaluation Engine: Best-effort scoring of a persisted quiz attempt."""

import logging
from typing import Dict, List, Optional

from academy_quiz.data_store import DataStore
from academy_quiz.exceptions import DataStoreError, EvaluationError

logger = logging.getLogger(__name__)

RESPONSES_COLLECTION = "user_quiz_responses"


class EvaluationReport:
    """Outcome of evaluating one attempt; failed rows keep a null correctness flag."""

    def __init__(self, attempt_id: str, evaluated: int, correct: int,
                 failed_row_ids: Optional[List[str]] = None):
        self.attempt_id = attempt_id
        self.evaluated = evaluated
        self.correct = correct
        self.failed_row_ids = list(failed_row_ids or [])

    @property
    def complete(self) -> bool:
        return not self.failed_row_ids

    def to_dict(self) -> dict:
        return {
            "attempt_id": self.attempt_id,
            "evaluated": self.evaluated,
            "correct": self.correct,
            "failed_row_ids": list(self.failed_row_ids),
        }


def is_answer_correct(selected_answer: Optional[str], correct_answer: Optional[str]) -> bool:
    """Exact string comparison; an unanswered question is never correct."""
    if selected_answer is None or correct_answer is None:
        return False
    return selected_answer == correct_answer


class EvaluationEngine:
    """Compares stored answers with the authoritative answers and records correctness."""

    def __init__(self, store: DataStore):
        self.store = store

    def _fetch_correct_answers(self, question_ids: List[str]) -> Dict[str, str]:
        rows = self.store.query(
            "quizzes", {"id": question_ids}, columns=["id", "correct_answer"],
        )
        return {r["id"]: r["correct_answer"] for r in rows}

    def evaluate_batch(self, user_id: str, attempt_id: str) -> EvaluationReport:
        """Score every response of an attempt, one update per row.

        Row updates that fail are logged and reported in ``failed_row_ids``;
        they never abort the batch. Failing to read the responses or the
        correct answers raises EvaluationError.
        """
        logger.info(f"Evaluating quiz attempt {attempt_id} for user {user_id}")
        try:
            responses = self.store.query(
                RESPONSES_COLLECTION,
                {"user_id": user_id, "quiz_attempt_id": attempt_id},
                columns=["id", "quiz_id", "selected_answer"],
            )
        except DataStoreError as e:
            logger.error(f"Error fetching user responses for evaluation: {e}")
            raise EvaluationError(f"Could not read responses: {e}") from e

        if not responses:
            logger.warning(f"No responses found for quiz attempt {attempt_id}.")
            return EvaluationReport(attempt_id, evaluated=0, correct=0)

        try:
            correct_answers = self._fetch_correct_answers(
                sorted({r["quiz_id"] for r in responses})
            )
        except DataStoreError as e:
            logger.error(f"Error fetching correct answers for evaluation: {e}")
            raise EvaluationError(f"Could not read correct answers: {e}") from e

        evaluated = 0
        correct = 0
        failed: List[str] = []
        for response in responses:
            is_correct = is_answer_correct(
                response["selected_answer"], correct_answers.get(response["quiz_id"])
            )
            try:
                self.store.update_one(
                    RESPONSES_COLLECTION, {"id": response["id"]}, {"is_correct": is_correct},
                )
            except DataStoreError as e:
                logger.error(f"Error updating response {response['id']}: {e}")
                failed.append(response["id"])
                continue
            evaluated += 1
            if is_correct:
                correct += 1

        if failed:
            logger.error(
                f"Evaluation of {attempt_id} complete with {len(failed)} failed rows."
            )
        else:
            logger.info(f"Evaluation of {attempt_id} complete, all responses updated.")
        return EvaluationReport(attempt_id, evaluated=evaluated, correct=correct,
                                failed_row_ids=failed)
