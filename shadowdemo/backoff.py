"""Exponential backoff with full jitter for connection retries."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TypeVar

logger = logging.getLogger(__name__)

CONNECTION_RETRY_MAX_ATTEMPTS = 5
CONNECTION_RETRY_MAX_BACKOFF_DELAY_MS = 5000
CONNECTION_RETRY_BACKOFF_BASE_MS = 500

RETRY_FOREVER = 0

T = TypeVar("T")


class RetriesExhaustedError(Exception):
    """Every allowed retry of an operation failed."""


def _default_rng() -> Callable[[], int]:
    generator = random.Random(time.time_ns())
    return lambda: generator.getrandbits(31)


@dataclass(frozen=True)
class BackoffPolicy:
    """Retry timing: jitter ceiling starts at base_ms and doubles up to max_delay_ms.

    A max_attempts of zero retries forever.
    """

    base_ms: int = CONNECTION_RETRY_BACKOFF_BASE_MS
    max_delay_ms: int = CONNECTION_RETRY_MAX_BACKOFF_DELAY_MS
    max_attempts: int = CONNECTION_RETRY_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        if self.base_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("backoff delays must not be negative")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must not be negative")

    def delays(self, rng: Callable[[], int] | None = None) -> Iterator[int]:
        """Yield the delay in milliseconds before each retry."""
        draw = rng if rng is not None else _default_rng()
        jitter_max = self.base_ms
        attempts = 0
        while self.max_attempts == RETRY_FOREVER or attempts < self.max_attempts:
            yield draw() % (jitter_max + 1)
            attempts += 1
            if jitter_max < self.max_delay_ms // 2:
                jitter_max += jitter_max
            else:
                jitter_max = self.max_delay_ms


def retry_with_backoff(
    operation: Callable[[], T],
    policy: BackoffPolicy | None = None,
    sleep: Callable[[float], object] = time.sleep,
    rng: Callable[[], int] | None = None,
) -> T:
    """Run operation, retrying after OSError with backoff; return its result.

    Raises RetriesExhaustedError, chained to the last failure, once the
    policy allows no more retries.
    """
    delays = (policy or BackoffPolicy()).delays(rng)
    while True:
        try:
            return operation()
        except OSError as error:
            delay_ms = next(delays, None)
            if delay_ms is None:
                logger.error("Connection to the broker failed, all attempts exhausted.")
                raise RetriesExhaustedError("all connection attempts exhausted") from error
            logger.warning(
                "Connection to the broker failed. Retrying connection after %d ms backoff.",
                delay_ms,
            )
            sleep(delay_ms / 1000)