"""Exponential backoff for retryable upstream failures."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from tenacity import Retrying, before_sleep_log, retry_if_exception, stop_after_attempt, wait_exponential

from ..errors import CrawlError, classify_exception

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float = 1.0) -> float:
    """Delay before retry number ``attempt`` (1-based): ``2**attempt * base``."""
    return (2**attempt) * base_delay


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, CrawlError) and exc.retryable


def retry_with_backoff(
    fn: Callable[[], T],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    url: str | None = None,
) -> T:
    """Call ``fn`` until it succeeds or ``max_attempts`` are used up.

    Only errors whose classified kind is retryable (network, timeout, rate
    limit, upstream 5xx) are retried; anything else propagates immediately.
    The last classified error is raised once attempts are exhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def _attempt() -> T:
        try:
            return fn()
        except CrawlError:
            raise
        except Exception as exc:
            error = classify_exception(exc, url=url)
            if not error.retryable:
                raise
            raise error from exc

    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        # tenacity counts from the first attempt: multiplier * 2**(n - 1).
        wait=wait_exponential(multiplier=2 * base_delay, exp_base=2),
        retry=retry_if_exception(_is_retryable),
        before_sleep=before_sleep_log(logger, logging.INFO),
        sleep=sleep,
        reraise=True,
    )
    return retrying(_attempt)


__all__ = ["backoff_delay", "retry_with_backoff"]
