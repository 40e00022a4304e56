"""Configuration: YAML settings with environment overrides."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from academy_quiz.question_loader import DEFAULT_LIMIT, MIN_QUESTIONS
from academy_quiz.question_timer import QUESTION_TIME_LIMIT

logger = logging.getLogger(__name__)

DB_PATH_ENV = "ACADEMY_QUIZ_DB_PATH"


@dataclass
class QuizConfig:
    question_time_limit: int = QUESTION_TIME_LIMIT
    question_limit: int = DEFAULT_LIMIT
    min_questions: int = MIN_QUESTIONS
    db_path: str = "academy_quiz.db"
    leaderboard_limit: int = 10

    def validate(self) -> "QuizConfig":
        for name in ("question_time_limit", "question_limit", "min_questions",
                     "leaderboard_limit"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if self.min_questions > self.question_limit:
            raise ValueError(
                f"min_questions ({self.min_questions}) exceeds question_limit "
                f"({self.question_limit})"
            )
        if not self.db_path:
            raise ValueError("db_path must not be empty")
        return self


def load_config(path: Optional[str] = None) -> QuizConfig:
    """Read settings from a YAML file; missing file or keys fall back to defaults.

    Sections: ``quiz`` (time_limit, question_limit, min_questions),
    ``store`` (db_path) and ``leaderboard`` (limit). The store path can be
    overridden with the ACADEMY_QUIZ_DB_PATH environment variable.
    """
    config = {}
    if path and Path(path).exists():
        with open(path) as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded config from {path}")
    elif path:
        logger.debug(f"Config file {path} not found, using defaults")

    quiz_cfg = config.get("quiz", {}) or {}
    store_cfg = config.get("store", {}) or {}
    board_cfg = config.get("leaderboard", {}) or {}

    settings = QuizConfig(
        question_time_limit=quiz_cfg.get("time_limit", QUESTION_TIME_LIMIT),
        question_limit=quiz_cfg.get("question_limit", DEFAULT_LIMIT),
        min_questions=quiz_cfg.get("min_questions", MIN_QUESTIONS),
        db_path=store_cfg.get("db_path", "academy_quiz.db"),
        leaderboard_limit=board_cfg.get("limit", 10),
    )
    env_db = os.environ.get(DB_PATH_ENV)
    if env_db:
        settings.db_path = env_db
    return settings.validate()
