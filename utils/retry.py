"""
Retry wrapper for flaky test flows.

Runs a zero-argument callable up to ``max_retries`` times, one attempt after
another, with no delay in between. Every failed attempt is kept so the final
error can say why each try went wrong.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, TypeVar

from utils.errors import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryAttempt:
    """Outcome of a single invocation of the wrapped action."""

    number: int
    outcome: str
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == "success"


def run_with_retry(action: Callable[[], T], max_retries: int = 2) -> T:
    """
    Invoke ``action`` until it succeeds or ``max_retries`` attempts are used up.

    Returns whatever the first successful attempt returned. Raises
    ``RetryExhaustedError`` (chained to the last failure) when every attempt
    raised, and ``ValueError`` when ``max_retries`` is not a positive integer.
    """
    if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries <= 0:
        raise ValueError(f"max_retries must be a positive integer, got {max_retries!r}")

    from utils.test_logger import get_test_logger
    test_logger = get_test_logger()

    attempts: List[RetryAttempt] = []
    for attempt in range(1, max_retries + 1):
        logger.info(f"Attempt {attempt} of {max_retries}.")
        try:
            result = action()
        except Exception as e:
            attempts.append(RetryAttempt(attempt, "error", e))
            logger.error(f"Attempt {attempt} failed: {e}")
            test_logger.log_warning(f"Attempt {attempt} of {max_retries} failed: {e}")
            continue
        attempts.append(RetryAttempt(attempt, "success"))
        logger.info(f"Attempt {attempt} passed")
        return result

    raise RetryExhaustedError(attempts) from attempts[-1].error
