"""Image provider contract."""

import base64
from abc import ABC, abstractmethod


def to_data_url(data: bytes | str, mime_type: str = "image/png") -> str:
    """Wrap raw or base64-encoded image bytes in a data URL."""
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{data}"


class ImageProvider(ABC):
    """One image generation backend in the provider chain."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider's name (usually the model id)."""
        ...

    @abstractmethod
    async def generate(self, api_key: str, prompt: str) -> str:
        """Generate one image.

        Args:
            api_key: API key for the backend (may be empty where the backend
                uses ambient credentials).
            prompt: Fully assembled generation prompt.

        Returns:
            A data URL with the generated image.

        Raises:
            Exception: Provider-specific failure; its text is used for
                retry classification.
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
