"""Scene data model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class SceneStatus(str, Enum):
    """Generation status of a scene."""
    IDLE = "IDLE"
    PENDING = "PENDING"
    GENERATING = "GENERATING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    RETRYING = "RETRYING"


# Eligible for generation and not started
WAITING_STATUSES = (SceneStatus.IDLE, SceneStatus.PENDING)
IN_PROGRESS_STATUSES = (SceneStatus.GENERATING, SceneStatus.RETRYING)


class SceneDraft(BaseModel):
    """One shot as returned by script analysis, before it gets an id."""

    script_segment: str = Field(..., description="Source script text for this shot")
    english_prompt: str = Field(..., description="Visual description of the action")
    main_character_visible: bool = Field(
        default=True, description="Whether the main character appears in the shot"
    )


class Scene(BaseModel):
    """Represents a single storyboard shot.

    Status fields change only through the mark_* methods so that
    image_url is set iff SUCCESS and error_msg is set iff ERROR.
    """

    id: int = Field(..., description="Scene number in script order", gt=0)
    script_segment: str = Field(..., description="Source script text")
    english_prompt: str = Field(..., description="Generation-ready visual description")
    main_character_visible: bool = Field(default=True, description="Main character in shot")
    image_url: Optional[str] = Field(None, description="Latest generated image reference")
    status: SceneStatus = Field(default=SceneStatus.IDLE, description="Generation status")
    error_msg: Optional[str] = Field(None, description="Last failure message")
    retry_count: int = Field(default=0, description="Completed retry attempts", ge=0)

    @model_validator(mode="after")
    def _check_status_fields(self) -> "Scene":
        if (self.image_url is not None) != (self.status == SceneStatus.SUCCESS):
            raise ValueError(
                f"Scene {self.id}: image_url must be set exactly when status is SUCCESS"
            )
        if (self.error_msg is not None) != (self.status == SceneStatus.ERROR):
            raise ValueError(
                f"Scene {self.id}: error_msg must be set exactly when status is ERROR"
            )
        return self

    @property
    def is_in_progress(self) -> bool:
        return self.status in IN_PROGRESS_STATUSES

    def mark_in_progress(self, retry_mode: bool = False) -> None:
        """Move to GENERATING, or RETRYING for retry-mode batches."""
        self.image_url = None
        self.error_msg = None
        self.status = SceneStatus.RETRYING if retry_mode else SceneStatus.GENERATING

    def mark_success(self, image_url: str) -> None:
        if not image_url:
            raise ValueError("image_url cannot be empty")
        self.error_msg = None
        self.image_url = image_url
        self.status = SceneStatus.SUCCESS

    def mark_error(self, message: str) -> None:
        self.image_url = None
        self.error_msg = message or "Unknown error"
        self.status = SceneStatus.ERROR

    def reset(self) -> None:
        """Back to IDLE, dropping any previous result."""
        self.image_url = None
        self.error_msg = None
        self.status = SceneStatus.IDLE
