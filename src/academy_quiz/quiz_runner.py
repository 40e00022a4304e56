"""Quiz Runner: Text-mode quiz driven by keyboard input and a live per-question timer."""

import argparse
import logging
import queue
import sys
import threading
from typing import Callable, List, Optional

from academy_quiz.config import load_config
from academy_quiz.data_store import SQLiteDataStore
from academy_quiz.exceptions import QuestionLoadError
from academy_quiz.feedback_generator import FeedbackGenerator
from academy_quiz.leaderboard import Leaderboard
from academy_quiz.question_loader import QuestionLoader
from academy_quiz.question_timer import Ticker
from academy_quiz.quiz_session import QuizSession
from academy_quiz.quiz_state import QuizStatus
from academy_quiz.result_reviewer import ResultReviewer, share_message
from academy_quiz.submission import Submitter

logger = logging.getLogger(__name__)

QUIT_COMMANDS = ("quit", "exit", "stop")
WARN_AT = (30, 10, 5)


class QuizRunner:
    """
    Runs one quiz attempt in the terminal.

    Keyboard lines and timer ticks arrive on separate threads and are posted
    to a single queue; the main loop hands them to the session one at a time.
    """

    def __init__(self, session: QuizSession, feedback: FeedbackGenerator,
                 input_fn: Callable[[], str] = input):
        self.session = session
        self.feedback = feedback
        self._input = input_fn
        self.events: "queue.Queue" = queue.Queue()
        self._reader: Optional[threading.Thread] = None

    def say(self, text: str):
        print(f"\n[Quiz]: {text}")

    def post_tick(self, question_index: int):
        """Timer callback; runs on the timer thread."""
        self.events.put(("tick", question_index))

    def _read_lines(self):
        while True:
            try:
                line = self._input()
            except (EOFError, KeyboardInterrupt):
                self.events.put(("eof", None))
                return
            self.events.put(("line", line))

    def _start_reader(self):
        if self._reader is None:
            self._reader = threading.Thread(target=self._read_lines, name="quiz-input", daemon=True)
            self._reader.start()

    def _next_line(self) -> Optional[str]:
        """Next typed line, skipping ticks; None on end of input."""
        self._start_reader()
        while True:
            kind, value = self.events.get()
            if kind == "line":
                return value.strip()
            if kind == "eof":
                return None

    def choose(self, label: str, values: List[str]) -> Optional[str]:
        """Ask the user to pick one of ``values`` by number or name."""
        if not values:
            self.say(f"No {label} values are available.")
            return None
        if len(values) == 1:
            self.say(f"{label.capitalize()}: {values[0]}")
            return values[0]
        self.say(f"Choose a {label}: " + ", ".join(f"{i}) {v}" for i, v in enumerate(values, 1)))
        while True:
            line = self._next_line()
            if line is None or line.lower() in QUIT_COMMANDS:
                return None
            if line.isdigit() and 1 <= int(line) <= len(values):
                return values[int(line) - 1]
            if line in values:
                return line
            self.say(f"Please enter a number between 1 and {len(values)}.")

    def select_filters(self, grade: Optional[str] = None, subject: Optional[str] = None,
                       topic: Optional[str] = None) -> bool:
        loader = self.session.loader
        try:
            grade = grade or self.choose("grade", loader.fetch_grades())
            subject = grade and (subject or self.choose("subject", loader.fetch_subjects(grade)))
            topic = subject and (topic or self.choose("topic", loader.fetch_topics(grade, subject)))
        except QuestionLoadError as e:
            self.say(f"Could not load quiz filters: {e}")
            return False
        if not (grade and subject and topic):
            return False
        self.session.select_filters(grade=grade, subject=subject, topic=topic)
        return True

    def _show_question(self):
        state = self.session.state
        intro = self.feedback.generate_intro(
            self.session.current_question, state.current_index + 1,
            len(state.questions), state.time_left,
        )
        self.say("\n".join([intro] + self.feedback.format_options(self.session.current_options)))

    def _handle_line(self, line: str) -> bool:
        """Apply one typed line; returns False when the user quits."""
        if line.lower() in QUIT_COMMANDS:
            return False
        choice = self.feedback.parse_choice(line, self.session.current_options)
        if choice is None:
            self.say("Please answer with a, b, c or d.")
        else:
            self.session.answer(choice)
        return True

    def _handle_tick(self, question_index: int):
        before = self.session.state.current_index
        if question_index != before:
            logger.debug(f"Dropping stale tick for question index {question_index}")
            return
        state = self.session.tick(question_index)
        if state.status is QuizStatus.TAKING and state.current_index == before:
            if state.time_left in WARN_AT:
                self.say(f"{state.time_left} seconds left.")
        elif state.current_index != before or state.status is not QuizStatus.TAKING:
            self.say("Time's up! Moving on.")

    def take_quiz(self) -> bool:
        """Answer questions until the attempt is submitted; False if abandoned."""
        shown = None
        while self.session.status is QuizStatus.TAKING:
            key = (self.session.state.attempt_id, self.session.state.current_index)
            if key != shown:
                self._show_question()
                shown = key
            self._start_reader()
            kind, value = self.events.get()
            if kind == "tick":
                self._handle_tick(value)
            elif kind == "line":
                if not self._handle_line(value):
                    return False
            else:
                return False
        return True

    def run(self, grade: Optional[str] = None, subject: Optional[str] = None,
            topic: Optional[str] = None):
        """Run a full attempt and return the result summary, if any."""
        try:
            if not self.select_filters(grade, subject, topic):
                self.say("No quiz selected. Goodbye!")
                return None
            self.session.start()
            if self.session.status is not QuizStatus.TAKING:
                return None
            self.say(
                f"Starting {len(self.session.state.questions)} questions, "
                f"{self.session.config.question_time_limit} seconds each. Type 'quit' to stop."
            )
            if not self.take_quiz():
                self.say("Quiz abandoned. Your answers were not submitted.")
                return None
        finally:
            self.session.close()

        summary = self.session.summary
        if self.session.status is QuizStatus.REVIEWING and summary is not None:
            self.say(self.feedback.format_review(summary))
            self.say(share_message(summary))
        elif self.session.state.error:
            self.say(f"Submission failed: {self.session.state.error}")
        return summary


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Timed multiple-choice quizzes")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("--db", default=None, help="Quiz database path")
    parser.add_argument("--questions", default=None, help="JSON question bank to import first")
    parser.add_argument("--user", default="student", help="User id to record answers under")
    parser.add_argument("--grade", default=None)
    parser.add_argument("--subject", default=None)
    parser.add_argument("--topic", default=None)
    parser.add_argument("--limit", type=int, default=None, help="Questions per attempt")
    parser.add_argument("--time-limit", type=int, default=None, help="Seconds per question")
    parser.add_argument("--leaderboard", action="store_true", help="Show the leaderboard and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    try:
        config = load_config(args.config)
        if args.db:
            config.db_path = args.db
        if args.limit is not None:
            config.question_limit = args.limit
        if args.time_limit is not None:
            config.question_time_limit = args.time_limit
        config.validate()
    except ValueError as e:
        parser.error(str(e))

    store = SQLiteDataStore(db_path=config.db_path)
    if args.questions:
        store.import_question_bank(args.questions)

    feedback = FeedbackGenerator()
    leaderboard = Leaderboard(store)
    if args.leaderboard:
        print(feedback.format_leaderboard(leaderboard.fetch_with_max_score(config.leaderboard_limit)))
        return 0

    leaderboard.ensure_profile(args.user, args.user)
    session = QuizSession(
        loader=QuestionLoader(store),
        submitter=Submitter(store),
        reviewer=ResultReviewer(store),
        user_id=args.user,
        config=config,
        leaderboard=leaderboard,
        on_notify=lambda note: print(f"\n[{note.title}]: {note.message}"),
    )
    runner = QuizRunner(session, feedback)
    session.timer = Ticker(runner.post_tick)
    summary = runner.run(args.grade, args.subject, args.topic)
    return 0 if summary is not None else 1


if __name__ == "__main__":
    sys.exit(main())
