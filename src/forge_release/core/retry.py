"""Bounded retry for eventually consistent API reads."""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fixed_delay(seconds: float) -> Callable[[int], float]:
    """Wait `seconds` between attempts, never before the first one."""
    return lambda attempt: 0.0 if attempt == 1 else seconds


def exponential_backoff(base: float, cap: float) -> Callable[[int], float]:
    """Wait base * 2**(attempt - 1) before every attempt, capped at `cap`."""
    return lambda attempt: min(base * 2 ** (attempt - 1), cap)


def _found(result) -> bool:
    return result is not None


def retry(
    operation: Callable[[], T],
    attempts: int,
    delay: Callable[[int], float],
    stop: Callable[[T], bool] = _found,
    sleep: Callable[[float], None] = time.sleep,
    description: str = "operation",
) -> T | None:
    """Run `operation` until `stop` accepts its result.

    Args:
        operation: Callable performing one attempt
        attempts: Maximum number of attempts
        delay: Maps the 1-based attempt number to seconds to wait before it
        stop: Predicate on the result; defaults to "is not None"
        sleep: Sleep function, replaced in tests
        description: Used in debug logs

    Returns:
        The first accepted result, or the last result when attempts run out
        (None if no attempt ran).
    """
    result = None
    for attempt in range(1, attempts + 1):
        wait = delay(attempt)
        if wait > 0:
            sleep(wait)

        result = operation()
        if stop(result):
            logger.debug("%s succeeded after %d attempt(s)", description, attempt)
            return result

        logger.debug("Attempt %d/%d: %s not satisfied yet", attempt, attempts, description)

    return result
