"""
Caller-side retry helpers.

The catalog core never retries: a stale version must reach the caller, and
a blind retry could clobber a concurrent intent. ``AdapterUnavailableError``
is the one class a caller may retry, and this module packages that policy
with tenacity so entry points (CLI, HTTP handlers) share it.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from moviecatalog.errors import AdapterUnavailableError
from moviecatalog.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


def with_backoff(
    operation: Callable[[], T],
    attempts: int = 3,
    min_wait: float = 0.5,
    max_wait: float = 8.0,
) -> T:
    """
    Run ``operation`` and retry it on ``AdapterUnavailableError``.

    Parameters
    ----------
    operation : Callable[[], T]
        Zero-argument callable wrapping one repository call.
    attempts : int
        Total attempts including the first one.
    min_wait, max_wait : float
        Bounds in seconds for the exponential backoff between attempts.

    Raises
    ------
    AdapterUnavailableError
        If every attempt failed with a connectivity error.
    """
    retrying = Retrying(
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(AdapterUnavailableError),
        before_sleep=before_sleep_log(log, logging.WARNING),
        reraise=True,
    )
    return retrying(operation)


__all__ = ["with_backoff"]
