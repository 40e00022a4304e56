"""Tests for the QuestionLoader module."""
import random
from unittest.mock import MagicMock

import pytest

from academy_quiz.exceptions import DataStoreError, QuestionLoadError
from academy_quiz.models import QuestionRecord
from academy_quiz.question_loader import QuestionLoader, fisher_yates, has_enough


@pytest.fixture
def loader(store):
    return QuestionLoader(store, rng=random.Random(7))


def test_load_questions_returns_records(loader, store, seed):
    seed(store, 6)
    questions = loader.load_questions("10", "Math", "Algebra")
    assert len(questions) == 6
    assert all(isinstance(q, QuestionRecord) for q in questions)


@pytest.mark.parametrize("seed_value", range(10))
def test_shuffle_is_a_permutation(store, seed, seed_value):
    rows = seed(store, 12)
    loader = QuestionLoader(store, rng=random.Random(seed_value))
    ids = [q.id for q in loader.load_questions("10", "Math", "Algebra")]
    assert sorted(ids) == sorted(r["id"] for r in rows)
    assert len(set(ids)) == len(ids)


def test_shuffle_changes_order_for_some_seed(store, seed):
    rows = seed(store, 12)
    stored = [r["id"] for r in rows]
    orders = {
        tuple(q.id for q in QuestionLoader(store, rng=random.Random(s))
              .load_questions("10", "Math", "Algebra"))
        for s in range(5)
    }
    assert any(list(order) != stored for order in orders)


def test_limit_caps_the_page(loader, store, seed):
    seed(store, 25)
    assert len(loader.load_questions("10", "Math", "Algebra")) == 20
    assert len(loader.load_questions("10", "Math", "Algebra", limit=7)) == 7


def test_filters_must_all_match_exactly(loader, store, seed):
    seed(store, 5, topic="Algebra")
    seed(store, 5, topic="Geometry")
    seed(store, 5, subject="math")
    questions = loader.load_questions("10", "Math", "Algebra")
    assert {(q.subject, q.topic) for q in questions} == {("Math", "Algebra")}


def test_no_matches_returns_empty_list(loader):
    assert loader.load_questions("12", "History", "Rome") == []


def test_store_error_becomes_load_error_without_retry():
    store = MagicMock()
    store.query.side_effect = DataStoreError("connection refused")
    loader = QuestionLoader(store)
    with pytest.raises(QuestionLoadError):
        loader.load_questions("10", "Math", "Algebra")
    assert store.query.call_count == 1


@pytest.mark.parametrize("args", [
    ("", "Math", "Algebra", 20),
    ("10", None, "Algebra", 20),
    ("10", "Math", "Algebra", 0),
    ("10", "Math", "Algebra", -3),
])
def test_invalid_arguments(loader, args):
    with pytest.raises(ValueError):
        loader.load_questions(*args)


def test_filter_discovery_is_distinct_and_sorted(loader, store, seed):
    seed(store, 2, grade="9", subject="Science", topic="Physics")
    seed(store, 2, grade="10", subject="Math", topic="Geometry")
    seed(store, 2, grade="10", subject="Math", topic="Algebra")
    seed(store, 2, grade="10", subject="English", topic="Poetry")
    assert loader.fetch_grades() == ["10", "9"]
    assert loader.fetch_subjects("10") == ["English", "Math"]
    assert loader.fetch_topics("10", "Math") == ["Algebra", "Geometry"]


def test_filter_discovery_needs_parent_filters(loader):
    assert loader.fetch_subjects("") == []
    assert loader.fetch_topics("10", "") == []


def test_filter_discovery_store_error():
    store = MagicMock()
    store.query.side_effect = DataStoreError("down")
    with pytest.raises(QuestionLoadError):
        QuestionLoader(store).fetch_grades()


def test_shuffle_options_keeps_all_options(loader, store, seed):
    seed(store, 1)
    question = loader.load_questions("10", "Math", "Algebra")[0]
    assert sorted(loader.shuffle_options(question)) == sorted(question.options)


def test_fisher_yates_does_not_mutate_input():
    items = [1, 2, 3, 4, 5]
    shuffled = fisher_yates(items, random.Random(1))
    assert items == [1, 2, 3, 4, 5]
    assert sorted(shuffled) == items


def test_has_enough():
    assert has_enough([1] * 5) is True
    assert has_enough([1] * 4) is False
    assert has_enough([], minimum=0) is True
