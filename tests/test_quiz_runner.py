"""Tests for the text-mode QuizRunner."""
import random
from unittest.mock import MagicMock

import pytest

from academy_quiz.config import QuizConfig
from academy_quiz.feedback_generator import FeedbackGenerator
from academy_quiz.question_loader import QuestionLoader
from academy_quiz.quiz_runner import QuizRunner, main
from academy_quiz.quiz_session import QuizSession
from academy_quiz.quiz_state import QuizStatus
from academy_quiz.result_reviewer import ResultReviewer
from academy_quiz.submission import Submitter


def scripted(lines):
    """input() replacement that raises EOFError once the script runs out."""
    remaining = list(lines)

    def _input():
        if not remaining:
            raise EOFError
        return remaining.pop(0)
    return _input


@pytest.fixture
def make_runner(store):
    def _make(lines, timer=None, config=None):
        session = QuizSession(
            loader=QuestionLoader(store, rng=random.Random(5)),
            submitter=Submitter(store),
            reviewer=ResultReviewer(store),
            user_id="user-1",
            timer=timer,
            config=config,
        )
        runner = QuizRunner(session, FeedbackGenerator(), input_fn=scripted(lines))
        runner.say = MagicMock()
        return runner
    return _make


def test_full_run_with_typed_answers(store, seed, make_runner):
    seed(store, 5)
    runner = make_runner(["a", "b", "nonsense", "c", "d", "1"])
    summary = runner.run("10", "Math", "Algebra")
    assert runner.session.status is QuizStatus.REVIEWING
    assert summary.total == 5
    runner.say.assert_any_call("Please answer with a, b, c or d.")


def test_filters_chosen_interactively(store, seed, make_runner):
    seed(store, 5, grade="9", topic="Algebra")
    seed(store, 5, grade="10", topic="Algebra")
    seed(store, 5, grade="10", topic="Geometry")
    runner = make_runner(["1", "Geometry", "a", "a", "a", "a", "a"])
    summary = runner.run()
    assert summary is not None
    assert (runner.session.state.grade, runner.session.state.topic) == ("10", "Geometry")
    assert {r.question.topic for r in summary.results} == {"Geometry"}


def test_quit_abandons_without_submitting(store, seed, make_runner):
    seed(store, 5)
    timer = MagicMock()
    runner = make_runner(["a", "quit"], timer=timer)
    assert runner.run("10", "Math", "Algebra") is None
    assert store.query("user_quiz_responses") == []
    timer.cancel.assert_called()


def test_end_of_input_abandons(store, seed, make_runner):
    seed(store, 5)
    runner = make_runner([])
    assert runner.run("10", "Math", "Algebra") is None


def test_insufficient_questions_returns_none(store, seed, make_runner):
    seed(store, 2)
    runner = make_runner([])
    assert runner.run("10", "Math", "Algebra") is None
    assert runner.session.notifications[-1].title == "Not Enough Questions"


def test_posted_ticks_time_out_questions(store, seed, make_runner):
    seed(store, 5)
    runner = make_runner([], config=QuizConfig(question_time_limit=1))
    runner.select_filters("10", "Math", "Algebra")
    runner.session.start()
    runner._reader = MagicMock()  # keyboard stays silent
    for index in range(5):
        runner.post_tick(index)
    assert runner.take_quiz() is True
    assert runner.session.summary.correct == 0
    assert runner.session.summary.total == 5


def test_main_imports_bank_and_shows_leaderboard(tmp_path, capsys):
    bank = tmp_path / "bank.json"
    bank.write_text(
        '[{"grade": "10", "subject": "Math", "topic": "Algebra", "question": "1+1?",'
        ' "options": ["1", "2", "3", "4"], "correct_answer": "2"}]'
    )
    code = main(["--config", str(tmp_path / "none.yaml"), "--db", str(tmp_path / "q.db"),
                 "--questions", str(bank), "--leaderboard"])
    assert code == 0
    assert "No scores yet" in capsys.readouterr().out


def test_stale_tick_prints_nothing(store, seed, make_runner):
    seed(store, 5)
    runner = make_runner([], config=QuizConfig(question_time_limit=30))
    runner.select_filters("10", "Math", "Algebra")
    runner.session.start()
    runner.session.answer(runner.session.current_question.option_a)
    assert runner.session.state.time_left == 30
    runner.say.reset_mock()
    runner._handle_tick(0)
    runner.say.assert_not_called()
    runner._handle_tick(1)
    runner.say.assert_not_called()
    assert runner.session.state.time_left == 29


def test_main_rejects_limit_below_minimum(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--config", str(tmp_path / "none.yaml"), "--db", str(tmp_path / "q.db"),
              "--limit", "3"])
    assert exc.value.code == 2
    assert "min_questions" in capsys.readouterr().err
