"""
skill_loader.retry

Bounded retry with exponential backoff, independent of any HTTP details.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from skill_loader.config import BACKOFF_BASE_SECONDS, MAX_ATTEMPTS, SERVER_NAME
from skill_loader.errors import RetrievalError

logger = logging.getLogger(f"{SERVER_NAME}.retry")

T = TypeVar("T")


def should_retry(error: RetrievalError) -> bool:
    """A missing resource will not appear by asking again; everything else might."""
    return not error.is_not_found


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = MAX_ATTEMPTS
    base_delay: float = BACKOFF_BASE_SECONDS

    def delay(self, attempt: int) -> float:
        """Backoff before retrying after the given 0-based attempt: 1s, 2s, 4s, ..."""
        return self.base_delay * (2**attempt)


def call_with_retry(
    call: Callable[[], T],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
    decide: Callable[[RetrievalError], bool] = should_retry,
) -> tuple[T, int]:
    """
    function_purpose: Run ``call`` until it succeeds, a non-retryable error occurs, or the budget is spent.

    Returns (result, retries_used). Raises the last RetrievalError, annotated with the
    number of attempts made, when the call never succeeds.
    """
    for attempt in range(policy.max_attempts):
        try:
            return call(), attempt
        except RetrievalError as exc:
            exc.context["attempts"] = attempt + 1
            if not decide(exc) or attempt == policy.max_attempts - 1:
                raise
            delay = policy.delay(attempt)
            logger.info(
                "Retry attempt %d/%d after %.1fs delay (%s)",
                attempt + 1,
                policy.max_attempts,
                delay,
                exc.message,
            )
            sleep(delay)
    raise ValueError("retry policy must allow at least one attempt")
