"""Google Imagen image provider (Gemini API or Vertex AI)."""

import asyncio
import logging
from typing import Optional

import google.auth
import google.auth.transport.requests
import requests

from ..config import config
from ..errors import ProviderError
from .base import ImageProvider, to_data_url

logger = logging.getLogger(__name__)


class ImagenProvider(ImageProvider):
    """Image provider for Google Imagen `:predict` models.

    With an API key the Gemini API endpoint is used. Without one the
    request goes to Vertex AI using application-default credentials.
    """

    DEFAULT_LOCATION = "us-central1"
    DEFAULT_MODEL = "imagen-3.0-generate-002"
    GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        model: Optional[str] = None,
        project_id: Optional[str] = None,
        location: str = DEFAULT_LOCATION,
        aspect_ratio: str = "16:9",
        timeout: float = 120.0,
    ) -> None:
        """Initialize the Imagen provider.

        Args:
            model: Imagen model name.
            project_id: Google Cloud project ID, used when no API key is given.
            location: GCP region for Vertex AI.
            aspect_ratio: Image aspect ratio ('1:1', '16:9', '9:16', '4:3', '3:4').
            timeout: HTTP timeout in seconds.
        """
        self._model = model or self.DEFAULT_MODEL
        self._project_id = project_id or config.google_cloud_project
        self._location = location
        self._aspect_ratio = aspect_ratio
        self._timeout = timeout

    @property
    def name(self) -> str:
        return self._model

    async def generate(self, api_key: str, prompt: str) -> str:
        # requests is blocking; keep the event loop free
        return await asyncio.to_thread(self._generate_sync, api_key, prompt)

    def _build_request(self, api_key: str) -> tuple[str, dict]:
        """Return the endpoint URL and auth headers for this call."""
        if api_key:
            url = f"{self.GEMINI_API_BASE}/models/{self._model}:predict"
            headers = {
                "x-goog-api-key": api_key,
                "Content-Type": "application/json",
            }
            return url, headers

        if not self._project_id:
            raise ProviderError(
                "Imagen needs an API key or GOOGLE_CLOUD_PROJECT for Vertex AI"
            )

        # Get credentials
        scopes = ["https://www.googleapis.com/auth/cloud-platform"]
        credentials, _ = google.auth.default(scopes=scopes)
        auth_req = google.auth.transport.requests.Request()
        credentials.refresh(auth_req)

        url = (
            f"https://{self._location}-aiplatform.googleapis.com/v1/"
            f"projects/{self._project_id}/locations/{self._location}/"
            f"publishers/google/models/{self._model}:predict"
        )
        headers = {
            "Authorization": f"Bearer {credentials.token}",
            "Content-Type": "application/json",
        }
        return url, headers

    def _generate_sync(self, api_key: str, prompt: str) -> str:
        url, headers = self._build_request(api_key)

        request_body = {
            "instances": [
                {"prompt": prompt}
            ],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": self._aspect_ratio,
            },
        }

        logger.info(f"Generating image with {self._model}: {prompt[:50]!r}...")
        response = requests.post(
            url, json=request_body, headers=headers, timeout=self._timeout
        )

        if response.status_code != 200:
            error_msg = f"{response.status_code}: {response.text[:500]}"
            logger.error(f"Imagen API error: {error_msg}")
            raise ProviderError(error_msg)

        data = response.json()

        predictions = data.get("predictions", [])
        if not predictions:
            raise ProviderError(f"{self._model} returned no predictions")

        image_data = predictions[0].get("bytesBase64Encoded")
        if not image_data:
            raise ProviderError(f"{self._model} response has no image data")

        mime_type = predictions[0].get("mimeType", "image/png")
        return to_data_url(image_data, mime_type)
