"""Shared fakes for storyboard tests."""

import base64

import pytest

from storyboard.models import Scene, SceneDraft, SceneStatus, Storyboard
from storyboard.services.base import ImageProvider

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


class RecordingSleep:
    """Awaitable sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class FakeProvider(ImageProvider):
    """Provider that replays scripted outcomes (results or exceptions)."""

    def __init__(self, name, outcomes=None, default=None):
        self._name = name
        self._outcomes = list(outcomes or [])
        self._default = default if default is not None else f"data:image/png;base64,{name}"
        self.calls = []

    @property
    def name(self):
        return self._name

    async def generate(self, api_key, prompt):
        self.calls.append((api_key, prompt))
        outcome = self._outcomes.pop(0) if self._outcomes else self._default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def make_storyboard(statuses):
    """Build a storyboard with one scene per status."""
    scenes = []
    for i, status in enumerate(statuses, start=1):
        scene = Scene(
            id=i,
            script_segment=f"segment {i}",
            english_prompt=f"prompt {i}",
            main_character_visible=i % 2 == 1,
        )
        if status == SceneStatus.SUCCESS:
            scene.mark_success(f"images/scene_{i:03d}.png")
        elif status == SceneStatus.ERROR:
            scene.mark_error("previous failure")
        elif status in (SceneStatus.GENERATING, SceneStatus.RETRYING):
            scene.mark_in_progress(status == SceneStatus.RETRYING)
        scenes.append(scene)
    return Storyboard(title="Test", scenes=scenes)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def drafts():
    return [
        SceneDraft(script_segment="He wakes up.", english_prompt="A man waking up", main_character_visible=True),
        SceneDraft(script_segment="The phone rings.", english_prompt="A ringing phone", main_character_visible=False),
        SceneDraft(script_segment="He answers.", english_prompt="A man answering a phone"),
    ]
