"""Tests for the AnswerCollector module."""
import pytest

from academy_quiz.answer_collector import AnswerCollector
from academy_quiz.models import AnswerEntry


@pytest.fixture
def collector():
    return AnswerCollector(["q1", "q2", "q3"])


def test_record_returns_new_collector(collector):
    updated = collector.record("q1", "Paris")
    assert len(collector) == 0
    assert updated.get("q1") == "Paris"


def test_second_write_overwrites(collector):
    answers = collector.record("q1", "Paris").record("q2", None).record("q1", "Rome")
    assert answers.snapshot() == (AnswerEntry("q1", "Rome"), AnswerEntry("q2", None))


def test_null_answer_is_recorded(collector):
    answers = collector.record("q3", None)
    assert "q3" in answers
    assert answers.get("q3") is None


def test_unknown_question_rejected(collector):
    with pytest.raises(ValueError):
        collector.record("q9", "Paris")


def test_empty_collector_accepts_nothing():
    with pytest.raises(ValueError):
        AnswerCollector().record("q1", "x")


def test_equality(collector):
    assert collector.record("q1", "a") == collector.record("q1", "a")
    assert collector.record("q1", "a") != collector.record("q1", "b")
