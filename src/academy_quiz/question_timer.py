"""Question Timer: Per-question countdown and the wall-clock ticker that drives it."""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable, Optional

logger = logging.getLogger(__name__)

QUESTION_TIME_LIMIT = 90  # Seconds per question


@dataclass(frozen=True)
class QuestionTimer:
    """Countdown bound to a single question index.

    Ticks for any other index leave the timer untouched, so a tick scheduled
    for a question the user has already left can never count down the next one.
    """

    question_index: int
    remaining: int

    @classmethod
    def start(cls, question_index: int, duration: int = QUESTION_TIME_LIMIT) -> "QuestionTimer":
        if duration <= 0:
            raise ValueError(f"Timer duration must be positive, got {duration}")
        return cls(question_index=question_index, remaining=duration)

    @property
    def expired(self) -> bool:
        return self.remaining <= 0

    def tick(self, question_index: int) -> "QuestionTimer":
        if question_index != self.question_index or self.expired:
            return self
        return replace(self, remaining=self.remaining - 1)


class Ticker:
    """Calls ``callback(question_index)`` once per interval on a daemon thread.

    Only one arming is live at a time. Once :meth:`arm` or :meth:`cancel`
    returns, no further callback for the previous index is delivered. The
    callback may itself re-arm or cancel the ticker.
    """

    def __init__(self, callback: Callable[[int], None], interval: float = 1.0):
        self._callback = callback
        self.interval = interval
        self._lock = threading.RLock()
        self._stop: Optional[threading.Event] = None
        self._index: Optional[int] = None

    @property
    def armed_index(self) -> Optional[int]:
        return self._index

    def arm(self, question_index: int):
        with self._lock:
            self._teardown()
            stop = threading.Event()
            self._stop = stop
            self._index = question_index
            thread = threading.Thread(
                target=self._run, args=(question_index, stop),
                name=f"question-timer-{question_index}", daemon=True,
            )
            thread.start()
        logger.debug(f"Timer armed for question index {question_index}")

    def cancel(self):
        with self._lock:
            self._teardown()

    def _teardown(self):
        if self._stop is not None:
            self._stop.set()
            logger.debug(f"Timer torn down for question index {self._index}")
        self._stop = None
        self._index = None

    def _run(self, question_index: int, stop: threading.Event):
        while not stop.wait(self.interval):
            with self._lock:
                if stop.is_set():
                    break
                try:
                    self._callback(question_index)
                except Exception as e:
                    logger.error(f"Timer callback failed for index {question_index}: {e}")
