"""Quiz State: Pure state machine for one quiz attempt.

Every input (filter changes, start requests, loader and submitter outcomes,
answer selections and timer ticks) is an event. ``transition(state, event)``
returns the next state together with the effects the caller must carry out;
it never performs I/O itself.

Lifecycle::

    SELECTING -> LOADING -> TAKING -> SUBMITTING -> REVIEWING
                    |          |          |
                    +----------+----------+--> ERROR -> SELECTING

Answering the last question (or letting its timer run out) submits the
attempt immediately; there is no separate confirmation step.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from academy_quiz.answer_collector import AnswerCollector
from academy_quiz.models import AnswerEntry, QuestionRecord
from academy_quiz.question_loader import DEFAULT_LIMIT, MIN_QUESTIONS
from academy_quiz.question_timer import QUESTION_TIME_LIMIT, QuestionTimer

logger = logging.getLogger(__name__)


class QuizStatus(Enum):
    SELECTING = "selecting"
    LOADING = "loading"
    TAKING = "taking"
    SUBMITTING = "submitting"
    REVIEWING = "reviewing"
    ERROR = "error"


@dataclass(frozen=True)
class SessionState:
    status: QuizStatus = QuizStatus.SELECTING
    grade: str = ""
    subject: str = ""
    topic: str = ""
    attempt_id: Optional[str] = None
    questions: Tuple[QuestionRecord, ...] = ()
    current_index: int = 0
    answers: AnswerCollector = field(default_factory=AnswerCollector)
    timer: Optional[QuestionTimer] = None
    error: Optional[str] = None
    time_limit: int = QUESTION_TIME_LIMIT
    question_limit: int = DEFAULT_LIMIT
    min_questions: int = MIN_QUESTIONS

    @property
    def filters_complete(self) -> bool:
        return bool(self.grade and self.subject and self.topic)

    @property
    def current_question(self) -> Optional[QuestionRecord]:
        if self.status is not QuizStatus.TAKING:
            return None
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def is_last_question(self) -> bool:
        return self.current_index == len(self.questions) - 1

    @property
    def time_left(self) -> Optional[int]:
        return self.timer.remaining if self.timer else None


def initial_state(time_limit: int = QUESTION_TIME_LIMIT, question_limit: int = DEFAULT_LIMIT,
                  min_questions: int = MIN_QUESTIONS) -> SessionState:
    return SessionState(time_limit=time_limit, question_limit=question_limit,
                        min_questions=min_questions)


# --- Events ---

@dataclass(frozen=True)
class SelectFilters:
    """Change one or more filters; a new grade clears subject and topic, a new subject clears topic."""

    grade: Optional[str] = None
    subject: Optional[str] = None
    topic: Optional[str] = None


@dataclass(frozen=True)
class StartRequested:
    attempt_id: str


@dataclass(frozen=True)
class QuestionsLoaded:
    attempt_id: str
    questions: Tuple[QuestionRecord, ...]


@dataclass(frozen=True)
class LoadFailed:
    attempt_id: str
    reason: str


@dataclass(frozen=True)
class AnswerSelected:
    question_id: str
    selected_answer: Optional[str]


@dataclass(frozen=True)
class TimerTick:
    question_index: int


@dataclass(frozen=True)
class SubmissionSucceeded:
    attempt_id: str
    failed_row_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SubmissionFailed:
    attempt_id: str
    reason: str


@dataclass(frozen=True)
class RetryRequested:
    """Discard the current attempt and go back to filter selection."""


# --- Effects ---

@dataclass(frozen=True)
class LoadQuestions:
    attempt_id: str
    grade: str
    subject: str
    topic: str
    limit: int


@dataclass(frozen=True)
class SubmitAnswers:
    attempt_id: str
    answers: Tuple[AnswerEntry, ...]


@dataclass(frozen=True)
class LoadResults:
    attempt_id: str


@dataclass(frozen=True)
class Notify:
    title: str
    message: str
    level: str = "info"


@dataclass(frozen=True)
class Transition:
    state: SessionState
    effects: Tuple[object, ...] = ()


def _ignore(state: SessionState, event, why: str) -> Transition:
    logger.debug(f"Ignoring {type(event).__name__} in {state.status.value}: {why}")
    return Transition(state)


def _select_filters(state: SessionState, event: SelectFilters) -> Transition:
    if state.status is not QuizStatus.SELECTING:
        return _ignore(state, event, "filters are fixed once an attempt starts")
    grade, subject, topic = state.grade, state.subject, state.topic
    if event.grade is not None and event.grade != grade:
        grade, subject, topic = event.grade, "", ""
    if event.subject is not None and event.subject != subject:
        subject, topic = event.subject, ""
    if event.topic is not None:
        topic = event.topic
    return Transition(replace(state, grade=grade, subject=subject, topic=topic))


def _start(state: SessionState, event: StartRequested) -> Transition:
    if state.status is not QuizStatus.SELECTING:
        return _ignore(state, event, "an attempt is already in progress")
    if not state.filters_complete:
        return Transition(state, (Notify(
            "Selection Required", "Please select grade, subject, and topic."),))
    if not event.attempt_id:
        raise ValueError("StartRequested needs an attempt id")
    loading = replace(
        state, status=QuizStatus.LOADING, attempt_id=event.attempt_id,
        questions=(), current_index=0, answers=AnswerCollector(), timer=None, error=None,
    )
    return Transition(loading, (LoadQuestions(
        event.attempt_id, state.grade, state.subject, state.topic, state.question_limit),))


def _questions_loaded(state: SessionState, event: QuestionsLoaded) -> Transition:
    if state.status is not QuizStatus.LOADING or event.attempt_id != state.attempt_id:
        return _ignore(state, event, "no matching load in flight")
    questions = tuple(event.questions)
    if len(questions) < state.min_questions:
        abandoned = replace(state, status=QuizStatus.SELECTING, attempt_id=None, questions=())
        return Transition(abandoned, (Notify(
            "Not Enough Questions",
            f"Found only {len(questions)} questions. "
            f"Need at least {state.min_questions} to start."),))
    taking = replace(
        state, status=QuizStatus.TAKING, questions=questions, current_index=0,
        answers=AnswerCollector(q.id for q in questions),
        timer=QuestionTimer.start(0, state.time_limit),
    )
    return Transition(taking)


def _load_failed(state: SessionState, event: LoadFailed) -> Transition:
    if state.status is not QuizStatus.LOADING or event.attempt_id != state.attempt_id:
        return _ignore(state, event, "no matching load in flight")
    failed = replace(state, status=QuizStatus.ERROR, questions=(), error=event.reason)
    return Transition(failed, (Notify(
        "Error", "Could not load quiz questions. Please try again.", "error"),))


def _advance(state: SessionState, question_id: str,
             selected_answer: Optional[str]) -> Transition:
    """Record the answer for the current question, then move on or submit."""
    answers = state.answers.record(question_id, selected_answer)
    if not state.is_last_question:
        index = state.current_index + 1
        return Transition(replace(
            state, answers=answers, current_index=index,
            timer=QuestionTimer.start(index, state.time_limit),
        ))
    logger.info(f"Last question reached, submitting attempt {state.attempt_id}")
    submitting = replace(state, status=QuizStatus.SUBMITTING, answers=answers, timer=None)
    return Transition(submitting, (SubmitAnswers(state.attempt_id, answers.snapshot()),))


def _answer_selected(state: SessionState, event: AnswerSelected) -> Transition:
    question = state.current_question
    if question is None:
        return _ignore(state, event, "no question is being shown")
    if event.question_id != question.id:
        return _ignore(state, event, f"question {event.question_id} is not the current one")
    if event.selected_answer is not None and event.selected_answer not in question.options:
        return _ignore(state, event, f"{event.selected_answer!r} is not an option")
    return _advance(state, question.id, event.selected_answer)


def _timer_tick(state: SessionState, event: TimerTick) -> Transition:
    question = state.current_question
    if question is None or state.timer is None:
        return _ignore(state, event, "no question is being timed")
    if event.question_index != state.current_index:
        return _ignore(state, event, f"stale tick for index {event.question_index}")
    timer = state.timer.tick(event.question_index)
    if not timer.expired:
        return Transition(replace(state, timer=timer))
    logger.info(f"Timer expired for question index {state.current_index}, ID: {question.id}")
    return _advance(state, question.id, None)


def _submission_succeeded(state: SessionState, event: SubmissionSucceeded) -> Transition:
    if state.status is not QuizStatus.SUBMITTING or event.attempt_id != state.attempt_id:
        return _ignore(state, event, "no matching submission in flight")
    effects = [LoadResults(state.attempt_id),
               Notify("Quiz Submitted!", "Review your results.")]
    if event.failed_row_ids:
        effects.append(Notify(
            "Partially Scored",
            f"{len(event.failed_row_ids)} answers could not be scored yet.", "warning"))
    return Transition(replace(state, status=QuizStatus.REVIEWING), tuple(effects))


def _submission_failed(state: SessionState, event: SubmissionFailed) -> Transition:
    if state.status is not QuizStatus.SUBMITTING or event.attempt_id != state.attempt_id:
        return _ignore(state, event, "no matching submission in flight")
    failed = replace(state, status=QuizStatus.ERROR, error=event.reason)
    return Transition(failed, (Notify("Submission Error", event.reason, "error"),))


def _retry(state: SessionState, event: RetryRequested) -> Transition:
    if state.status not in (QuizStatus.ERROR, QuizStatus.REVIEWING):
        return _ignore(state, event, "nothing to retry")
    return Transition(replace(
        state, status=QuizStatus.SELECTING, attempt_id=None, questions=(),
        current_index=0, answers=AnswerCollector(), timer=None, error=None,
    ))


_HANDLERS = {
    SelectFilters: _select_filters,
    StartRequested: _start,
    QuestionsLoaded: _questions_loaded,
    LoadFailed: _load_failed,
    AnswerSelected: _answer_selected,
    TimerTick: _timer_tick,
    SubmissionSucceeded: _submission_succeeded,
    SubmissionFailed: _submission_failed,
    RetryRequested: _retry,
}


def transition(state: SessionState, event) -> Transition:
    """Apply one event to the state; out-of-place events change nothing."""
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unknown quiz event: {event!r}")
    return handler(state, event)
