"""Exceptions raised by the quiz core."""


class QuizError(Exception):
    """Base class for all quiz errors."""


class DataStoreError(QuizError):
    """The data store rejected or failed a request."""


class QuestionLoadError(QuizError):
    """Questions could not be fetched for the selected filters."""


class SubmissionError(QuizError):
    """An answer batch could not be persisted."""


class EvaluationError(QuizError):
    """An attempt could not be evaluated at all."""


class ResultsError(QuizError):
    """Evaluated results could not be fetched."""
