"""External service integrations."""

from .anthropic import AnthropicClient
from .base import ImageProvider
from .chain import ProviderChain, build_provider, build_providers
from .gemini import GeminiImageProvider
from .imagen import ImagenProvider

__all__ = [
    "AnthropicClient",
    "ImageProvider",
    "ProviderChain",
    "build_provider",
    "build_providers",
    "GeminiImageProvider",
    "ImagenProvider",
]
