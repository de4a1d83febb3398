"""Gemini native image generation provider."""

import logging
from typing import Optional

from google import genai
from google.genai import types

from ..errors import ProviderError
from .base import ImageProvider, to_data_url

logger = logging.getLogger(__name__)

# Finish reasons that mean the output was withheld by a content filter
SAFETY_FINISH_REASONS = {
    "SAFETY",
    "IMAGE_SAFETY",
    "PROHIBITED_CONTENT",
    "IMAGE_PROHIBITED_CONTENT",
    "BLOCKLIST",
    "SPII",
}


class GeminiImageProvider(ImageProvider):
    """Image provider for Gemini models that answer with inline image parts."""

    DEFAULT_MODEL = "gemini-2.5-flash-image"

    def __init__(self, model: Optional[str] = None, aspect_ratio: str = "16:9") -> None:
        self._model = model or self.DEFAULT_MODEL
        self._aspect_ratio = aspect_ratio
        self._clients: dict[str, genai.Client] = {}

    @property
    def name(self) -> str:
        return self._model

    def _client(self, api_key: str) -> genai.Client:
        if api_key not in self._clients:
            self._clients[api_key] = genai.Client(api_key=api_key)
        return self._clients[api_key]

    async def generate(self, api_key: str, prompt: str) -> str:
        if not api_key:
            raise ProviderError(f"{self._model} requires GEMINI_API_KEY")

        logger.info(f"Generating image with {self._model}: {prompt[:50]!r}...")
        response = await self._client(api_key).aio.models.generate_content(
            model=self._model,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_modalities=["TEXT", "IMAGE"],
                image_config=types.ImageConfig(aspect_ratio=self._aspect_ratio),
            ),
        )

        feedback = response.prompt_feedback
        reason = _reason_name(feedback.block_reason) if feedback is not None else None
        if reason and reason != "BLOCKED_REASON_UNSPECIFIED":
            raise ProviderError(f"{self._model} blocked by safety filter ({reason})")

        candidates = response.candidates or []
        if candidates and candidates[0].content:
            for part in candidates[0].content.parts or []:
                if part.inline_data and part.inline_data.data:
                    return to_data_url(
                        part.inline_data.data,
                        part.inline_data.mime_type or "image/png",
                    )

        finish_reason = _reason_name(candidates[0].finish_reason) if candidates else None
        if finish_reason in SAFETY_FINISH_REASONS:
            raise ProviderError(f"{self._model} blocked by safety filter ({finish_reason})")
        if finish_reason:
            raise ProviderError(
                f"{self._model} response has no image data (finish reason: {finish_reason})"
            )
        raise ProviderError(f"{self._model} response has no image data")


def _reason_name(reason) -> Optional[str]:
    if reason is None:
        return None
    return getattr(reason, "name", None) or str(reason)
