"""Result Reviewer: Loads an evaluated attempt and summarises the score."""

import logging

from academy_quiz.data_store import DataStore
from academy_quiz.evaluation_engine import RESPONSES_COLLECTION
from academy_quiz.exceptions import DataStoreError, ResultsError
from academy_quiz.models import EvaluatedResult, QuestionRecord, ResultSummary

logger = logging.getLogger(__name__)

SHARE_TEMPLATE = "I scored {correct}/{total} ({percentage}%) on a quiz on {site}!"


class ResultReviewer:
    """Read-only view over the evaluated responses of one attempt."""

    def __init__(self, store: DataStore):
        self.store = store

    def load_results(self, user_id: str, attempt_id: str) -> ResultSummary:
        """Results in submission order, each joined with its question.

        Rows still awaiting evaluation are returned with ``is_correct=None``.
        """
        try:
            responses = self.store.query(
                RESPONSES_COLLECTION,
                {"user_id": user_id, "quiz_attempt_id": attempt_id},
                order_by="created_at",
            )
            question_ids = sorted({r["quiz_id"] for r in responses})
            questions = {
                row["id"]: QuestionRecord.from_row(row)
                for row in self.store.query("quizzes", {"id": question_ids})
            } if question_ids else {}
        except DataStoreError as e:
            logger.error(f"Error fetching quiz attempt results: {e}")
            raise ResultsError(f"Could not load results: {e}") from e

        results = []
        for response in responses:
            question = questions.get(response["quiz_id"])
            if question is None:
                logger.warning(
                    f"Question {response['quiz_id']} for response {response['id']} no longer exists"
                )
                continue
            results.append(EvaluatedResult(
                id=response["id"],
                question_id=response["quiz_id"],
                selected_answer=response["selected_answer"],
                is_correct=response["is_correct"],
                question=question,
                created_at=response.get("created_at"),
            ))

        summary = ResultSummary(attempt_id=attempt_id, results=tuple(results))
        if summary.unresolved:
            logger.warning(
                f"Evaluation might not be complete, {summary.unresolved} results are unresolved."
            )
        logger.info(
            f"Attempt {attempt_id}: {summary.correct}/{summary.total} ({summary.percentage}%)"
        )
        return summary


def share_message(summary: ResultSummary, site: str = "Skutopia Academy") -> str:
    return SHARE_TEMPLATE.format(
        correct=summary.correct, total=summary.total,
        percentage=summary.percentage, site=site,
    )
