"""Question Loader: Fetches and shuffles question sets from the data store."""

import logging
import random
from typing import List, Optional, Sequence

from academy_quiz.data_store import DataStore
from academy_quiz.exceptions import DataStoreError, QuestionLoadError
from academy_quiz.models import QuestionRecord

logger = logging.getLogger(__name__)

QUESTIONS_COLLECTION = "quizzes"
DEFAULT_LIMIT = 20
MIN_QUESTIONS = 5


def fisher_yates(items: Sequence, rng: random.Random) -> list:
    """Return a uniformly shuffled copy of items."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def has_enough(questions: Sequence, minimum: int = MIN_QUESTIONS) -> bool:
    return len(questions) >= minimum


class QuestionLoader:
    """Loads randomly ordered question sets for a grade, subject and topic."""

    def __init__(self, store: DataStore, rng: Optional[random.Random] = None):
        self.store = store
        self._rng = rng or random.Random()

    def load_questions(self, grade: str, subject: str, topic: str,
                       limit: int = DEFAULT_LIMIT) -> List[QuestionRecord]:
        """Fetch up to ``limit`` matching questions in random order.

        The store gives no ordering guarantee, so the fetched page is shuffled
        here. Store failures are raised as QuestionLoadError without retrying.
        """
        for name, value in (("grade", grade), ("subject", subject), ("topic", topic)):
            if not isinstance(value, str) or not value:
                raise ValueError(f"{name} must be a non-empty string")
        if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")

        logger.info(f"Fetching {limit} questions for {grade}/{subject}/{topic}")
        try:
            rows = self.store.query(
                QUESTIONS_COLLECTION,
                {"grade": grade, "subject": subject, "topic": topic},
                limit=limit,
            )
        except DataStoreError as e:
            logger.error(f"Error fetching quiz questions: {e}")
            raise QuestionLoadError(f"Could not load questions: {e}") from e

        if not rows:
            logger.warning("No quiz questions found for the criteria.")
            return []
        questions = [QuestionRecord.from_row(r) for r in rows]
        return fisher_yates(questions, self._rng)

    def shuffle_options(self, question: QuestionRecord) -> List[str]:
        """Display order for the four options of a question."""
        return fisher_yates(question.options, self._rng)

    def _distinct(self, column: str, filters: dict) -> List[str]:
        try:
            rows = self.store.query(QUESTIONS_COLLECTION, filters, columns=[column])
        except DataStoreError as e:
            logger.error(f"Error fetching quiz {column} values for {filters}: {e}")
            raise QuestionLoadError(f"Could not load {column} values: {e}") from e
        values = sorted({str(r[column]) for r in rows if r.get(column) is not None})
        logger.debug(f"Available quiz {column} values for {filters}: {values}")
        return values

    def fetch_grades(self) -> List[str]:
        return self._distinct("grade", {})

    def fetch_subjects(self, grade: str) -> List[str]:
        if not grade:
            return []
        return self._distinct("subject", {"grade": grade})

    def fetch_topics(self, grade: str, subject: str) -> List[str]:
        if not grade or not subject:
            return []
        return self._distinct("topic", {"grade": grade, "subject": subject})
