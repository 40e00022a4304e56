"""Domain models for quiz attempts."""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

OPTION_LABELS = ("A", "B", "C", "D")


@dataclass(frozen=True)
class QuestionRecord:
    """Multiple-choice question with four labelled options."""

    id: str
    grade: str
    subject: str
    topic: str
    question: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_answer: str  # Option text, not label
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def options(self) -> List[str]:
        return [self.option_a, self.option_b, self.option_c, self.option_d]

    def option_for_label(self, label: str) -> str:
        return self.options[OPTION_LABELS.index(label.upper())]

    @classmethod
    def from_row(cls, row: dict) -> "QuestionRecord":
        return cls(
            id=str(row["id"]),
            grade=str(row.get("grade", "")),
            subject=str(row.get("subject", "")),
            topic=str(row.get("topic", "")),
            question=row.get("question", ""),
            option_a=row.get("option_a", ""),
            option_b=row.get("option_b", ""),
            option_c=row.get("option_c", ""),
            option_d=row.get("option_d", ""),
            correct_answer=row.get("correct_answer", ""),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


@dataclass(frozen=True)
class AnswerEntry:
    """The answer given for one question; None means unanswered or timed out."""

    question_id: str
    selected_answer: Optional[str]


@dataclass(frozen=True)
class QuizAttempt:
    attempt_id: str
    user_id: str
    answers: Tuple[AnswerEntry, ...] = ()


@dataclass(frozen=True)
class EvaluatedResult:
    """A persisted answer row joined with its question."""

    id: str
    question_id: str
    selected_answer: Optional[str]
    is_correct: Optional[bool]
    question: QuestionRecord
    created_at: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.is_correct is not None

    @property
    def timed_out(self) -> bool:
        return self.selected_answer is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question_id": self.question_id,
            "question": self.question.question,
            "selected_answer": self.selected_answer,
            "correct_answer": self.question.correct_answer,
            "is_correct": self.is_correct,
            "created_at": self.created_at,
        }


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ResultSummary:
    """Score summary for one evaluated attempt."""

    attempt_id: str
    results: Tuple[EvaluatedResult, ...] = ()

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def correct(self) -> int:
        return sum(1 for r in self.results if r.is_correct is True)

    @property
    def unresolved(self) -> int:
        return sum(1 for r in self.results if r.is_correct is None)

    @property
    def percentage(self) -> int:
        if self.total == 0:
            return 0
        return round_half_up(self.correct / self.total * 100)

    def to_dict(self) -> dict:
        return {
            "attempt_id": self.attempt_id,
            "correct": self.correct,
            "total": self.total,
            "percentage": self.percentage,
            "unresolved": self.unresolved,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: str
    username: str
    highest_score: int
    total_quizzes_taken: int


@dataclass(frozen=True)
class LeaderboardData:
    entries: List[LeaderboardEntry] = field(default_factory=list)
    max_score: int = 100
