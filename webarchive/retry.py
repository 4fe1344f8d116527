"""
Bounded retry with a fixed delay, built on tenacity.

Lookups against the CDX index are idempotent, so a failed attempt is simply
repeated after a constant pause until the attempt budget runs out. Only
WaybackError failures are retried; anything else propagates at once.
"""

import logging
import threading
from typing import Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .errors import CancelledError, WaybackError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelToken:
    """
    Cooperative cancellation shared by the resolver and its retry loops.

    Setting the token stops new attempts and wakes up any retry delay that
    is currently waiting.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancelledError()

    def sleep(self, seconds: float) -> None:
        """Wait for seconds, raising CancelledError if cancelled meanwhile."""
        if self._event.wait(seconds):
            raise CancelledError()


def _log_retry(retry_state: RetryCallState) -> None:
    logger.info(
        "retry %d in %.1fs",
        retry_state.attempt_number,
        retry_state.next_action.sleep if retry_state.next_action else 0.0,
    )


def call_with_retry(
    fn: Callable[[], T],
    attempts: int,
    delay: float,
    token: Optional[CancelToken] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> T:
    """
    Call fn up to attempts times, pausing delay seconds between attempts.

    Args:
        fn: Zero-argument callable performing one attempt
        attempts: Maximum number of attempts, at least 1
        delay: Seconds to wait before every attempt after the first
        token: Optional CancelToken, checked before each attempt and during waits
        sleep: Optional sleep function (defaults to the token's interruptible wait)

    Returns:
        The first successful result of fn

    Raises:
        WaybackError: The failure of the last attempt, once all attempts fail
        CancelledError: The token was cancelled
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    token = token or CancelToken()

    def _sleep(seconds: float) -> None:
        if sleep is None:
            token.sleep(seconds)
        else:
            sleep(seconds)
            token.raise_if_cancelled()

    def _attempt() -> T:
        token.raise_if_cancelled()
        return fn()

    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(delay),
        retry=retry_if_exception_type(WaybackError),
        before_sleep=_log_retry,
        sleep=_sleep,
        reraise=True,
    )
    return retrying(_attempt)
