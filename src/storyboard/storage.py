"""Persist generated images to disk."""

import base64
import binascii
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
}


def decode_data_url(data_url: str) -> tuple[str, bytes]:
    """Split a base64 data URL into (mime type, raw bytes).

    Raises:
        ValueError: If the string is not a base64 data URL.
    """
    if not data_url.startswith("data:") or "," not in data_url:
        raise ValueError("Not a data URL")

    header, payload = data_url[5:].split(",", 1)
    mime_type, _, encoding = header.partition(";")
    if encoding != "base64":
        raise ValueError(f"Unsupported data URL encoding: {encoding or 'none'}")

    try:
        return mime_type or "application/octet-stream", base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def load_image(image_url: str) -> tuple[str, bytes]:
    """Read an image reference (data URL or file path) as (extension, bytes)."""
    if image_url.startswith("data:"):
        mime_type, data = decode_data_url(image_url)
        return _EXTENSIONS.get(mime_type, "png"), data

    path = Path(image_url)
    return path.suffix.lstrip(".") or "png", path.read_bytes()


class ImageStore:
    """Writes scene images as scene_NNN.<ext> files in one directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def save(self, scene_id: int, data_url: str) -> str:
        """Save an image and return its file path as the new reference.

        A regenerated image replaces the previous file of that scene.
        """
        mime_type, data = decode_data_url(data_url)
        extension = _EXTENSIONS.get(mime_type, "png")

        self._directory.mkdir(parents=True, exist_ok=True)
        for old in self._directory.glob(f"scene_{scene_id:03d}.*"):
            old.unlink()

        path = self._directory / f"scene_{scene_id:03d}.{extension}"
        path.write_bytes(data)
        logger.debug(f"Saved scene {scene_id} image to {path}")
        return str(path)
