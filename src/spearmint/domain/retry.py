"""Bounded exponential backoff around a single remote mutation."""

from __future__ import annotations

import random
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import Final

from .errors import RateLimitedError, RateLimitExhaustedError, SyncCancelledError

log = getLogger(__name__)

MAX_RETRIES: Final[int] = 5
BASE_DELAY_SECONDS: Final[float] = 0.5


class CancellationToken:
    """Cooperative cancellation shared by one reconciliation run.

    Cancelled explicitly (e.g. from a SIGINT handler) or implicitly once the
    optional monotonic ``deadline`` has passed.
    """

    def __init__(
        self,
        *,
        deadline: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._event = threading.Event()
        self._deadline = deadline
        self._clock = clock

    @classmethod
    def with_timeout(
        cls,
        seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> CancellationToken:
        return cls(deadline=clock() + seconds, clock=clock)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._deadline is not None and self._clock() >= self._deadline:
            self._event.set()
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if cancelled in the meantime."""

        if self.cancelled:
            return True
        if self._deadline is not None:
            remaining = self._deadline - self._clock()
            if remaining <= seconds:
                self._event.wait(max(remaining, 0.0))
                self._event.set()
                return True
        return self._event.wait(seconds)


@dataclass(slots=True)
class RetryOrchestrator:
    """Runs one remote call, retrying only on ``RateLimitedError``.

    Attempt ``n`` (zero-based) that is rate limited sleeps ``base_delay * 2**n``
    before attempt ``n + 1``. After ``max_retries`` retries the call fails with
    ``RateLimitExhaustedError``; every other error propagates untouched.
    """

    max_retries: int = MAX_RETRIES
    base_delay: float = BASE_DELAY_SECONDS
    jitter: float = 0.0
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    random: Callable[[], float] = field(default=random.random)

    def backoff_delay(self, attempt: int, *, retry_after: float | None = None) -> float:
        delay = self.base_delay * (2**attempt)
        if self.jitter:
            delay += delay * self.jitter * self.random()
        if retry_after is not None:
            delay = max(delay, retry_after)
        return delay

    def attempt[T](self, operation: Callable[[], T], *, description: str = "remote call") -> T:
        attempt = 0
        while True:
            try:
                return operation()
            except RateLimitedError as exc:
                if attempt >= self.max_retries:
                    log.warning(f"Giving up on {description} after {attempt + 1} attempts")
                    raise RateLimitExhaustedError(attempt + 1) from exc
                delay = self.backoff_delay(attempt, retry_after=exc.retry_after)
                log.info(
                    f"Rate limited on {description}; retry {attempt + 1}/{self.max_retries} "
                    f"in {delay:.2f}s"
                )
                if self.cancellation.wait(delay):
                    raise SyncCancelledError(
                        f"Cancelled while backing off on {description}"
                    ) from exc
                attempt += 1
