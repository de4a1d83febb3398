"""Text report and zip archive of a storyboard."""

import logging
import zipfile
from pathlib import Path
from typing import Iterable

from .models import Scene, SceneStatus, Storyboard
from .storage import load_image

logger = logging.getLogger(__name__)


def build_report(scenes: Iterable[Scene]) -> str:
    """One status line per scene."""
    return "\n".join(
        f"Scene {scene.id}: [{scene.status.value}] {scene.error_msg or 'OK'} "
        f"- Prompt: {scene.english_prompt}"
        for scene in scenes
    )


def _archive_report(scenes: Iterable[Scene]) -> str:
    return "\n\n".join(
        f"Scene {scene.id}: [{scene.status.value}] Prompt: {scene.english_prompt}\n"
        f"Script: {scene.script_segment}"
        for scene in scenes
    )


def export_archive(storyboard: Storyboard, output_path: Path) -> int:
    """Write report.txt and every generated image into a zip archive.

    Returns:
        Number of images written.

    Raises:
        ValueError: If no scene has a generated image.
    """
    done = [
        scene for scene in storyboard.scenes
        if scene.status == SceneStatus.SUCCESS and scene.image_url
    ]
    if not done:
        raise ValueError("No generated images to export")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(output_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("report.txt", _archive_report(storyboard.scenes))
        for scene in done:
            extension, data = load_image(scene.image_url)
            archive.writestr(f"images/scene_{scene.id:03d}.{extension}", data)

    logger.info(f"Exported {len(done)} image(s) to {output_path}")
    return len(done)
