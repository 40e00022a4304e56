"""Answer Collector: Per-attempt answers keyed by question id."""

from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from academy_quiz.models import AnswerEntry


class AnswerCollector:
    """Immutable question id -> selected answer mapping for one attempt.

    Only ids from the loaded question set are accepted. Recording an id twice
    overwrites the earlier answer and keeps its original position.
    """

    __slots__ = ("_allowed", "_answers")

    def __init__(self, question_ids: Iterable[str] = (),
                 answers: Optional[Dict[str, Optional[str]]] = None):
        self._allowed: FrozenSet[str] = frozenset(question_ids)
        self._answers: Dict[str, Optional[str]] = dict(answers or {})

    def record(self, question_id: str, selected_answer: Optional[str]) -> "AnswerCollector":
        if question_id not in self._allowed:
            raise ValueError(f"Question {question_id!r} is not part of this attempt")
        answers = dict(self._answers)
        answers[question_id] = selected_answer
        return AnswerCollector(self._allowed, answers)

    def get(self, question_id: str) -> Optional[str]:
        return self._answers.get(question_id)

    def snapshot(self) -> Tuple[AnswerEntry, ...]:
        return tuple(AnswerEntry(qid, value) for qid, value in self._answers.items())

    def __contains__(self, question_id) -> bool:
        return question_id in self._answers

    def __len__(self) -> int:
        return len(self._answers)

    def __eq__(self, other) -> bool:
        if not isinstance(other, AnswerCollector):
            return NotImplemented
        return self._allowed == other._allowed and self._answers == other._answers

    def __hash__(self):
        return hash((self._allowed, tuple(self._answers.items())))

    def __repr__(self) -> str:
        return f"AnswerCollector({len(self._answers)}/{len(self._allowed)} answered)"
