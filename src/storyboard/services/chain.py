"""Ordered fallback chain over image providers."""

import asyncio
import logging
from functools import partial
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from ..config import DEFAULT_RETRY_SIGNALS
from ..errors import classify_generation_error
from ..retry import RetryCallback, call_with_retry, is_retryable_error
from .base import ImageProvider
from .gemini import GeminiImageProvider
from .imagen import ImagenProvider

logger = logging.getLogger(__name__)


def build_provider(name: str) -> ImageProvider:
    """Create a provider from its model name."""
    if name.startswith("imagen-"):
        return ImagenProvider(model=name)
    if name.startswith("gemini-"):
        return GeminiImageProvider(model=name)
    raise ValueError(f"Unknown image provider: {name}")


def build_providers(names: Iterable[str]) -> list[ImageProvider]:
    return [build_provider(name) for name in names]


class ProviderChain:
    """Tries each provider in order until one returns an image.

    Every provider gets its own retry budget. When all of them fail, the
    last provider's error is turned into a GenerationError subclass.
    """

    def __init__(
        self,
        providers: Sequence[ImageProvider],
        max_retries: int,
        base_delay: float,
        retry_signals: Iterable[str] = DEFAULT_RETRY_SIGNALS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not providers:
            raise ValueError("Provider chain needs at least one provider")
        self._providers = list(providers)
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._retry_signals = list(retry_signals)
        self._sleep = sleep

    @property
    def providers(self) -> list[ImageProvider]:
        return list(self._providers)

    def _is_retryable(self, error: BaseException) -> bool:
        return is_retryable_error(error, self._retry_signals)

    async def generate(
        self,
        api_key: str,
        prompt: str,
        on_retry: Optional[RetryCallback] = None,
    ) -> str:
        """Generate an image with the first provider that succeeds.

        Returns:
            The artifact reference returned by the successful provider.

        Raises:
            GenerationError: Every provider failed.
        """
        last_error: Optional[BaseException] = None

        for index, provider in enumerate(self._providers):
            try:
                result = await call_with_retry(
                    partial(provider.generate, api_key, prompt),
                    max_retries=self._max_retries,
                    base_delay=self._base_delay,
                    is_retryable=self._is_retryable,
                    sleep=self._sleep,
                    on_retry=on_retry,
                )
            except Exception as e:
                last_error = e
                if index < len(self._providers) - 1:
                    logger.warning(
                        f"Provider {provider.name} failed: {e}. "
                        f"Falling back to {self._providers[index + 1].name}"
                    )
                else:
                    logger.error(f"Provider {provider.name} failed: {e}")
                continue

            if index > 0:
                logger.info(f"Fallback provider {provider.name} succeeded")
            return result

        raise classify_generation_error(last_error) from last_error
