"""Configuration management."""

import os
from pathlib import Path
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_IMAGE_PROVIDERS = [
    "gemini-2.5-flash-image",
    "imagen-3.0-generate-002",
    "gemini-2.0-flash-exp",
]

DEFAULT_RETRY_SIGNALS = [
    "429",
    "quota",
    "rate limit",
    "resource has been exhausted",
    "resource_exhausted",
    "resource exhausted",
    "503",
    "overloaded",
]


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name, "")
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or list(default)


class Config(BaseModel):
    """Application configuration."""

    # API Keys
    gemini_api_key: str = Field(
        default_factory=lambda: os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY", ""),
        description="Gemini API key used by the image providers"
    )
    anthropic_api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""),
        description="Anthropic API key (script analysis)"
    )
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID (Imagen via Vertex AI)"
    )

    # Paths
    workspace: Path = Field(
        default_factory=lambda: Path(os.getenv("STORYBOARD_WORKSPACE", ".")),
        description="Workspace directory"
    )

    # Model settings
    default_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Default Claude model for script analysis"
    )
    image_providers: list[str] = Field(
        default_factory=lambda: _env_list("STORYBOARD_IMAGE_PROVIDERS", DEFAULT_IMAGE_PROVIDERS),
        description="Image providers in fallback order"
    )

    # Generation limits
    max_scenes: int = Field(
        default_factory=lambda: int(os.getenv("STORYBOARD_MAX_SCENES", "300")),
        description="Maximum number of scenes kept from one analysis",
        gt=0,
    )
    max_retries: int = Field(
        default_factory=lambda: int(os.getenv("STORYBOARD_MAX_RETRIES", "5")),
        description="Retries per provider call on rate-limit / overload errors",
        ge=0,
    )
    retry_base_delay: float = Field(
        default_factory=lambda: float(os.getenv("STORYBOARD_RETRY_BASE_DELAY", "15.0")),
        description="First backoff delay in seconds (doubles on every retry)",
        ge=0,
    )
    analysis_max_tokens: int = Field(
        default_factory=lambda: int(os.getenv("STORYBOARD_ANALYSIS_MAX_TOKENS", "64000")),
        description="Output token cap for one script analysis response",
        gt=0,
    )
    rate_limit_delay: float = Field(
        default_factory=lambda: float(os.getenv("STORYBOARD_RATE_LIMIT_DELAY", "25.0")),
        description="Seconds to wait between two scene generations",
        ge=0,
    )
    retry_signals: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RETRY_SIGNALS),
        description="Error substrings that mark a failure as retryable"
    )

    def validate_required(self) -> None:
        """Validate that script analysis credentials are set."""
        if not self.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY not set")

    def validate_generation_required(self) -> None:
        """Validate that image generation credentials are set.

        Raises:
            ValueError: If neither an API key nor a Cloud project is configured.
        """
        if not self.gemini_api_key and not self.google_cloud_project:
            raise ValueError(
                "Missing image generation credentials: set GEMINI_API_KEY "
                "(or GOOGLE_CLOUD_PROJECT for Imagen on Vertex AI)."
            )


# Global config instance
config = Config()
