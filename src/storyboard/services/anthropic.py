"""Anthropic Claude API client wrapper."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from anthropic import (
    APIConnectionError,
    AsyncAnthropic,
    InternalServerError,
    RateLimitError,
)

from ..config import config
from ..errors import ResponseTruncatedError
from ..retry import call_with_retry, is_retryable_error

logger = logging.getLogger(__name__)


class AnthropicClient:
    """Async client wrapper for Anthropic Claude API with retry logic."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the Anthropic client.

        Args:
            api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY env var.
            model: Model to use. Defaults to config.default_model.
            max_retries: Retries for rate-limited or failed requests.
                Defaults to config.max_retries.
            retry_delay: Base delay between retries in seconds (exponential backoff).
                Defaults to config.retry_base_delay.
            sleep: Awaitable sleep used between retries.
        """
        self._api_key = api_key or config.anthropic_api_key
        if not self._api_key:
            raise ValueError(
                "Anthropic API key not provided. Set ANTHROPIC_API_KEY env var."
            )

        # Retries are handled here so they share the storyboard backoff policy
        self._client = AsyncAnthropic(api_key=self._api_key, max_retries=0)
        self._model = model or config.default_model
        self._max_retries = config.max_retries if max_retries is None else max_retries
        self._retry_delay = config.retry_base_delay if retry_delay is None else retry_delay
        self._sleep = sleep

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    @staticmethod
    def _is_retryable(error: BaseException) -> bool:
        if isinstance(error, (RateLimitError, APIConnectionError, InternalServerError)):
            return True
        return is_retryable_error(error, config.retry_signals)

    async def create_message(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        system: Optional[str] = None,
        temperature: float = 0.7,
    ) -> str:
        """Create a message using Claude.

        Args:
            prompt: The user prompt to send.
            max_tokens: Maximum tokens in the response.
                Defaults to config.analysis_max_tokens.
            system: Optional system prompt.
            temperature: Sampling temperature (0.0-1.0).

        Returns:
            The text content of Claude's response.

        Raises:
            APIError: If the API request fails after all retries.
            ResponseTruncatedError: If the response hit the token limit.
        """
        max_tokens = max_tokens or config.analysis_max_tokens
        kwargs = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        async def _send():
            logger.debug(f"Sending request to Claude ({len(prompt)} chars)")
            # Streaming keeps long outputs within the SDK request timeout
            async with self._client.messages.stream(**kwargs) as stream:
                return await stream.get_final_message()

        response = await call_with_retry(
            _send,
            max_retries=self._max_retries,
            base_delay=self._retry_delay,
            is_retryable=self._is_retryable,
            sleep=self._sleep,
        )

        if response.stop_reason == "max_tokens":
            raise ResponseTruncatedError(
                f"Response truncated at max_tokens={max_tokens}. Split the script "
                "or raise STORYBOARD_ANALYSIS_MAX_TOKENS."
            )

        # Extract text content from response
        content = response.content[0]
        if hasattr(content, "text"):
            return content.text
        return str(content)
