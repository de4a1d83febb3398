"""Storyboard (scene collection) data model."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

import yaml
from pydantic import BaseModel, Field

from .scene import Scene, SceneDraft, SceneStatus, WAITING_STATUSES

logger = logging.getLogger(__name__)


class StoryboardStats(BaseModel):
    """Scene counts by outcome."""

    total: int = 0
    success: int = 0
    error: int = 0
    pending: int = 0


class Storyboard(BaseModel):
    """Ordered scene collection plus the user's explicit selection."""

    title: str = Field(default="Untitled", description="Storyboard title")
    script_file: Optional[str] = Field(None, description="Path of the analyzed script")
    scenes: List[Scene] = Field(default_factory=list, description="Scenes in script order")
    selected_ids: List[int] = Field(default_factory=list, description="Explicit selection")

    @classmethod
    def from_drafts(
        cls,
        drafts: Iterable[SceneDraft],
        title: str = "Untitled",
        script_file: Optional[str] = None,
    ) -> "Storyboard":
        """Build a fresh storyboard, numbering scenes from 1 in draft order."""
        scenes = [
            Scene(
                id=i + 1,
                script_segment=draft.script_segment,
                english_prompt=draft.english_prompt,
                main_character_visible=draft.main_character_visible,
            )
            for i, draft in enumerate(drafts)
        ]
        return cls(title=title, script_file=script_file, scenes=scenes)

    @classmethod
    def from_yaml(cls, path: Path) -> "Storyboard":
        """Load storyboard from YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        storyboard = cls(**data)
        storyboard.recover_interrupted()
        return storyboard

    def to_yaml(self, path: Path) -> None:
        """Save storyboard to YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self.model_dump(mode="json"),
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )

    def get(self, scene_id: int) -> Scene:
        for scene in self.scenes:
            if scene.id == scene_id:
                return scene
        raise KeyError(f"Scene {scene_id} not found")

    def snapshot(self) -> List[Scene]:
        """Return copies of the scenes for read-only observers."""
        return [scene.model_copy(deep=True) for scene in self.scenes]

    def stats(self) -> StoryboardStats:
        success = sum(1 for s in self.scenes if s.status == SceneStatus.SUCCESS)
        error = sum(1 for s in self.scenes if s.status == SceneStatus.ERROR)
        return StoryboardStats(
            total=len(self.scenes),
            success=success,
            error=error,
            pending=len(self.scenes) - success - error,
        )

    def recover_interrupted(self) -> List[int]:
        """Reset scenes left GENERATING/RETRYING by an interrupted run.

        Returns:
            Ids of the scenes that were reset.
        """
        recovered = []
        for scene in self.scenes:
            if scene.is_in_progress:
                scene.reset()
                recovered.append(scene.id)
        if recovered:
            logger.warning(f"Reset interrupted scenes to IDLE: {recovered}")
        return recovered

    # Selection management

    def select(self, scene_ids: Iterable[int]) -> None:
        ids = set(scene_ids)
        known = {scene.id for scene in self.scenes}
        unknown = sorted(ids - known)
        if unknown:
            raise ValueError(f"Unknown scene ids: {unknown}")
        self.selected_ids = sorted(set(self.selected_ids) | ids)

    def deselect(self, scene_ids: Iterable[int]) -> None:
        ids = set(scene_ids)
        self.selected_ids = [i for i in self.selected_ids if i not in ids]

    def select_all(self) -> None:
        self.selected_ids = [scene.id for scene in self.scenes]

    def clear_selection(self) -> None:
        self.selected_ids = []

    def select_targets(self) -> List[Scene]:
        """Pick the scenes a generation run should process.

        An explicit selection wins and is used as-is, whatever the scene
        status. Without one, every waiting or failed scene is targeted.
        Both keep collection order.
        """
        if self.selected_ids:
            selected = set(self.selected_ids)
            return [scene for scene in self.scenes if scene.id in selected]
        return [
            scene for scene in self.scenes
            if scene.status in WAITING_STATUSES or scene.status == SceneStatus.ERROR
        ]

    def failed_scenes(self) -> List[Scene]:
        return [scene for scene in self.scenes if scene.status == SceneStatus.ERROR]
