"""Fixed-interval pacing between scene generations."""

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Waits a fixed delay between two consecutive generations.

    The provider's requests-per-minute ceiling is per account, so a single
    fixed pause between items is enough. Adaptive backoff happens per call
    in the retry wrapper.
    """

    def __init__(
        self,
        delay: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if delay < 0:
            raise ValueError(f"Rate limit delay must be >= 0, got {delay}")
        self._delay = delay
        self._sleep = sleep

    @property
    def delay(self) -> float:
        return self._delay

    async def wait(self) -> None:
        """Suspend for the configured delay."""
        logger.debug(f"Rate limiting: waiting {self._delay:.1f}s")
        await self._sleep(self._delay)
