"""Shared fixtures for the quiz tests."""
import pytest

from academy_quiz.data_store import SQLiteDataStore
from academy_quiz.exceptions import DataStoreError


def question_row(index, grade="10", subject="Math", topic="Algebra"):
    """Question whose correct answer is always option B."""
    return {
        "id": f"{grade}-{subject}-{topic}-{index}",
        "grade": grade,
        "subject": subject,
        "topic": topic,
        "question": f"{topic} question {index}?",
        "option_a": f"A{index}",
        "option_b": f"B{index}",
        "option_c": f"C{index}",
        "option_d": f"D{index}",
        "correct_answer": f"B{index}",
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": "2024-01-01T00:00:00+00:00",
    }


class FlakyStore(SQLiteDataStore):
    """SQLite store whose correctness updates fail for chosen questions."""

    def __init__(self, db_path, failing_question_ids=()):
        super().__init__(db_path)
        self.failing_question_ids = set(failing_question_ids)

    def update_one(self, collection, match, patch):
        if collection == "user_quiz_responses":
            row = self.query(collection, match, limit=1)
            if row and row[0]["quiz_id"] in self.failing_question_ids:
                raise DataStoreError("update rejected")
        return super().update_one(collection, match, patch)


@pytest.fixture
def store(tmp_path):
    return SQLiteDataStore(db_path=str(tmp_path / "quiz.db"))


@pytest.fixture
def flaky_store(tmp_path):
    return FlakyStore(str(tmp_path / "flaky.db"))


@pytest.fixture
def seed():
    def _seed(target, count, **filters):
        rows = [question_row(i, **filters) for i in range(count)]
        target.insert_batch("quizzes", rows)
        return rows
    return _seed
