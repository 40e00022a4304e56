"""Feedback Generator: Text for question prompts, result reviews and leaderboards."""

import logging
from typing import List, Optional, Sequence

from academy_quiz.models import EvaluatedResult, LeaderboardData, ResultSummary

logger = logging.getLogger(__name__)

CHOICE_KEYS = "abcd"
TIMED_OUT = "Timed Out"
UNRESOLVED = "Pending"


class FeedbackGenerator:
    """Formats quiz output for the text-mode runner."""

    def generate_intro(self, question, question_num: int, total: int,
                       time_left: Optional[int] = None) -> str:
        """Generate the heading line for a question."""
        clock = f" [{time_left}s]" if time_left is not None else ""
        return f"Question {question_num} of {total}{clock}. {question.question}"

    def format_options(self, options: Sequence[str]) -> List[str]:
        return [f"  {CHOICE_KEYS[i]}) {text}" for i, text in enumerate(options)]

    def parse_choice(self, text: str, options: Sequence[str]) -> Optional[str]:
        """Map typed input (letter, number or the option text) to an option, else None."""
        value = text.strip()
        lower = value.lower()
        if len(lower) == 1 and lower in CHOICE_KEYS[:len(options)]:
            return options[CHOICE_KEYS.index(lower)]
        if value.isdigit() and 1 <= int(value) <= len(options):
            return options[int(value) - 1]
        for option in options:
            if option.lower() == lower:
                return option
        return None

    def format_result(self, result: EvaluatedResult, number: int) -> str:
        if result.is_correct is None:
            mark = UNRESOLVED
        else:
            mark = "Correct" if result.is_correct else "Incorrect"
        answer = result.selected_answer if result.selected_answer is not None else TIMED_OUT
        line = f"{number}. [{mark}] {result.question.question}\n   Your Answer: {answer}"
        if result.is_correct is not True:
            line += f"\n   Correct Answer: {result.question.correct_answer}"
        return line

    def generate_session_summary(self, summary: ResultSummary) -> str:
        """Generate end-of-quiz summary."""
        text = (
            f"You answered {summary.correct} out of {summary.total} questions "
            f"correctly ({summary.percentage}%). "
        )
        if summary.unresolved:
            text += f"{summary.unresolved} answers are still being scored. "
        if summary.percentage >= 80:
            text += "Outstanding performance!"
        elif summary.percentage >= 60:
            text += "Good work! Keep practicing."
        else:
            text += "Keep studying, you'll improve with practice!"
        return text

    def format_review(self, summary: ResultSummary) -> str:
        lines = [self.generate_session_summary(summary), ""]
        lines.extend(self.format_result(r, i) for i, r in enumerate(summary.results, start=1))
        return "\n".join(lines)

    def format_leaderboard(self, data: LeaderboardData) -> str:
        if not data.entries:
            return "No scores yet. Be the first on the leaderboard!"
        width = max(len(e.username) for e in data.entries)
        lines = [f"Leaderboard (best score {data.max_score}%)"]
        for rank, entry in enumerate(data.entries, start=1):
            lines.append(
                f"{rank:>2}. {entry.username:<{width}}  {entry.highest_score:>3}%  "
                f"({entry.total_quizzes_taken} quizzes)"
            )
        return "\n".join(lines)
