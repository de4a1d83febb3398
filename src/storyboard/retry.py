"""Exponential-backoff retry for a single asynchronous operation."""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from .config import DEFAULT_RETRY_SIGNALS

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
RetryCallback = Callable[[int, float, BaseException], None]


def is_retryable_error(
    error: BaseException,
    signals: Iterable[str] = DEFAULT_RETRY_SIGNALS,
) -> bool:
    """Return True if the error text looks like rate limiting or overload."""
    text = str(error).lower()
    return any(signal.lower() in text for signal in signals)


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int,
    base_delay: float,
    is_retryable: Callable[[BaseException], bool] = is_retryable_error,
    sleep: Sleep = asyncio.sleep,
    on_retry: Optional[RetryCallback] = None,
) -> T:
    """Run an async operation, retrying transient failures with backoff.

    Args:
        operation: Zero-argument coroutine factory. Called once per attempt.
        max_retries: Number of retries after the first attempt.
        base_delay: Seconds to wait before the first retry. Doubles each time.
        is_retryable: Classifier for failures. Non-retryable errors propagate
            immediately.
        sleep: Awaitable sleep function.
        on_retry: Optional callback(attempt, delay, error) fired before each
            backoff.

    Returns:
        The operation's result.

    Raises:
        Exception: The last error, once it is fatal or retries are exhausted.
    """
    attempts_left = max_retries
    delay = base_delay
    attempt = 0

    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as e:
            if attempts_left <= 0 or not is_retryable(e):
                raise

            logger.warning(
                f"Rate limit or overload hit: {e}. "
                f"Retrying in {delay:.1f}s ({attempts_left} left)..."
            )
            if on_retry is not None:
                on_retry(attempt, delay, e)

            await sleep(delay)
            delay *= 2
            attempts_left -= 1
