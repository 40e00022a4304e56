"""Quiz Session: Runs the quiz state machine against the loader, submitter and reviewer."""

import logging
import uuid
from collections import deque
from typing import Callable, Dict, List, Optional

from academy_quiz.config import QuizConfig
from academy_quiz.exceptions import (
    DataStoreError,
    EvaluationError,
    QuestionLoadError,
    ResultsError,
    SubmissionError,
)
from academy_quiz.models import ResultSummary
from academy_quiz.quiz_state import (
    AnswerSelected,
    LoadFailed,
    LoadQuestions,
    LoadResults,
    Notify,
    QuestionsLoaded,
    QuizStatus,
    RetryRequested,
    SelectFilters,
    SessionState,
    StartRequested,
    SubmissionFailed,
    SubmissionSucceeded,
    SubmitAnswers,
    TimerTick,
    initial_state,
    transition,
)
from academy_quiz.submission import SubmissionReport

logger = logging.getLogger(__name__)

_LOG_LEVELS = {"info": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}


class QuizSession:
    """
    Owns the state of one user's quiz and carries out the effects of each transition.

    Events are processed strictly one at a time in arrival order. Outcomes of
    effects (loaded questions, submission results) are queued behind whatever
    is already waiting, so an answer and a timer expiry for the same question
    can never both advance the quiz. A ``timer`` with ``arm(index)`` and
    ``cancel()`` (see :class:`~academy_quiz.question_timer.Ticker`) is re-armed
    whenever the current question changes and torn down when the quiz leaves
    the taking state.
    """

    def __init__(
        self,
        loader,
        submitter,
        reviewer,
        user_id: str,
        config: Optional[QuizConfig] = None,
        timer=None,
        leaderboard=None,
        id_factory: Optional[Callable[[], str]] = None,
        on_notify: Optional[Callable[[Notify], None]] = None,
    ):
        if not user_id:
            raise ValueError("A user id is required to take a quiz")
        self.loader = loader
        self.submitter = submitter
        self.reviewer = reviewer
        self.user_id = user_id
        self.config = config or QuizConfig()
        self.timer = timer
        self.leaderboard = leaderboard
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._on_notify = on_notify
        self._state = initial_state(
            time_limit=self.config.question_time_limit,
            question_limit=self.config.question_limit,
            min_questions=self.config.min_questions,
        )
        self._queue = deque()
        self._dispatching = False
        self._option_order: Dict[str, List[str]] = {}
        self.notifications: List[Notify] = []
        self.summary: Optional[ResultSummary] = None
        self.last_submission: Optional[SubmissionReport] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def status(self) -> QuizStatus:
        return self._state.status

    @property
    def current_question(self):
        return self._state.current_question

    @property
    def current_options(self) -> List[str]:
        """Options of the current question in their display order."""
        question = self.current_question
        if question is None:
            return []
        if question.id not in self._option_order:
            self._option_order[question.id] = self.loader.shuffle_options(question)
        return list(self._option_order[question.id])

    # --- Event intake ---

    def dispatch(self, event) -> SessionState:
        """Queue an event and process the queue unless already processing it."""
        self._queue.append(event)
        if self._dispatching:
            return self._state
        self._dispatching = True
        try:
            while self._queue:
                self._process(self._queue.popleft())
        finally:
            self._dispatching = False
        return self._state

    def select_filters(self, grade: Optional[str] = None, subject: Optional[str] = None,
                       topic: Optional[str] = None) -> SessionState:
        return self.dispatch(SelectFilters(grade=grade, subject=subject, topic=topic))

    def start(self) -> SessionState:
        """Begin a new attempt for the selected filters with a fresh attempt id."""
        if self._state.status is QuizStatus.SELECTING and self._state.filters_complete:
            self.summary = None
            self.last_submission = None
            self._option_order.clear()
        return self.dispatch(StartRequested(attempt_id=self._id_factory()))

    def answer(self, selected_answer: Optional[str]) -> SessionState:
        """Answer the question currently shown."""
        question = self.current_question
        if question is None:
            logger.debug("Answer ignored, no question is being shown")
            return self._state
        return self.dispatch(AnswerSelected(question.id, selected_answer))

    def tick(self, question_index: Optional[int] = None) -> SessionState:
        if question_index is None:
            question_index = self._state.current_index
        return self.dispatch(TimerTick(question_index))

    def retry(self) -> SessionState:
        return self.dispatch(RetryRequested())

    def close(self):
        """Stop the question timer; no further ticks are delivered."""
        if self.timer is not None:
            self.timer.cancel()

    # --- Processing ---

    def _process(self, event):
        before = self._state
        result = transition(before, event)
        self._state = result.state
        self._sync_timer(before, result.state)
        for effect in result.effects:
            self._run_effect(effect)

    def _sync_timer(self, before: SessionState, after: SessionState):
        if self.timer is None:
            return

        def timed(state):
            if state.status is not QuizStatus.TAKING:
                return None
            return state.attempt_id, state.current_index

        if timed(before) == timed(after):
            return
        if timed(after) is None:
            self.timer.cancel()
        else:
            self.timer.arm(after.current_index)

    def _run_effect(self, effect):
        if isinstance(effect, LoadQuestions):
            self._load_questions(effect)
        elif isinstance(effect, SubmitAnswers):
            self._submit(effect)
        elif isinstance(effect, LoadResults):
            self._load_results(effect)
        elif isinstance(effect, Notify):
            self._notify(effect)
        else:
            raise TypeError(f"Unknown quiz effect: {effect!r}")

    def _load_questions(self, effect: LoadQuestions):
        try:
            questions = self.loader.load_questions(
                effect.grade, effect.subject, effect.topic, effect.limit,
            )
        except (QuestionLoadError, ValueError) as e:
            logger.error(f"Failed to start quiz: {e}")
            self._queue.append(LoadFailed(effect.attempt_id, str(e)))
            return
        self._queue.append(QuestionsLoaded(effect.attempt_id, tuple(questions)))

    def _submit(self, effect: SubmitAnswers):
        try:
            report = self.submitter.submit(self.user_id, effect.attempt_id, effect.answers)
        except (SubmissionError, EvaluationError) as e:
            logger.error(f"Error submitting quiz {effect.attempt_id}: {e}")
            self._queue.append(SubmissionFailed(effect.attempt_id, str(e) or "Could not submit quiz."))
            return
        self.last_submission = report
        self._queue.append(SubmissionSucceeded(effect.attempt_id, tuple(report.failed_row_ids)))

    def _load_results(self, effect: LoadResults):
        try:
            self.summary = self.reviewer.load_results(self.user_id, effect.attempt_id)
        except ResultsError as e:
            logger.error(f"Error fetching quiz results: {e}")
            self._notify(Notify("Error", "Could not load quiz results.", "error"))
            return
        if self.leaderboard is None:
            return
        try:
            self.leaderboard.record_attempt(self.user_id, self.summary.percentage)
        except DataStoreError as e:
            logger.warning(f"Could not update leaderboard for {self.user_id}: {e}")

    def _notify(self, note: Notify):
        self.notifications.append(note)
        logger.log(_LOG_LEVELS.get(note.level, logging.INFO), f"{note.title}: {note.message}")
        if self._on_notify is not None:
            self._on_notify(note)
