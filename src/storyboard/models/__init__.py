"""Data models for the storyboard maker."""

from .scene import Scene, SceneDraft, SceneStatus
from .storyboard import Storyboard, StoryboardStats

__all__ = ["Scene", "SceneDraft", "SceneStatus", "Storyboard", "StoryboardStats"]
