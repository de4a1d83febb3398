"""Tests for image prompt assembly."""

from storyboard.models import Scene
from storyboard.prompts import (
    ART_STYLE_PROMPT,
    MAIN_CHARACTER_PROMPT,
    RETRY_MODIFIER,
    SAFETY_PROMPT,
    build_prompt,
)


def make_scene(visible=True):
    return Scene(
        id=1,
        script_segment="이프맨이 커피를 마신다.",
        english_prompt="Drinking coffee at a desk",
        main_character_visible=visible,
    )


class TestBuildPrompt:
    def test_main_character_visible(self):
        prompt = build_prompt(make_scene(visible=True))

        assert prompt.startswith("CHARACTER:")
        assert MAIN_CHARACTER_PROMPT.strip() in prompt
        assert "Do NOT draw the 'Ifman' character" not in prompt

    def test_main_character_hidden(self):
        prompt = build_prompt(make_scene(visible=False))

        assert MAIN_CHARACTER_PROMPT.strip() not in prompt
        assert "Do NOT draw the 'Ifman' character" in prompt

    def test_includes_scene_and_fixed_fragments(self):
        prompt = build_prompt(make_scene())

        assert "SCENE ACTION: Drinking coffee at a desk" in prompt
        assert "ORIGINAL CONTEXT: 이프맨이 커피를 마신다." in prompt
        assert ART_STYLE_PROMPT.strip() in prompt
        assert SAFETY_PROMPT.strip() in prompt
        assert prompt.index("VISUAL STYLE") < prompt.index("NEGATIVE CONSTRAINTS")

    def test_retry_mode_appends_modifier(self):
        normal = build_prompt(make_scene())
        retry = build_prompt(make_scene(), retry_mode=True)

        assert not normal.endswith(RETRY_MODIFIER)
        assert retry == normal + RETRY_MODIFIER
