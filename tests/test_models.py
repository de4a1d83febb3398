"""Tests for scene and storyboard models."""

import pytest
from pydantic import ValidationError

from storyboard.models import Scene, SceneDraft, SceneStatus, Storyboard

from .conftest import make_storyboard

S = SceneStatus


class TestScene:
    def test_defaults(self):
        scene = Scene(id=1, script_segment="text", english_prompt="prompt")
        assert scene.status == S.IDLE
        assert scene.image_url is None
        assert scene.error_msg is None
        assert scene.retry_count == 0
        assert scene.main_character_visible is True

    def test_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            Scene(id=0, script_segment="text", english_prompt="prompt")

    def test_image_url_requires_success(self):
        with pytest.raises(ValidationError):
            Scene(id=1, script_segment="t", english_prompt="p", image_url="x.png")

    def test_error_requires_error_message(self):
        with pytest.raises(ValidationError):
            Scene(id=1, script_segment="t", english_prompt="p", status=S.ERROR)

    def test_success_then_retry_clears_image(self):
        scene = Scene(id=1, script_segment="t", english_prompt="p")
        scene.mark_success("a.png")
        assert scene.image_url == "a.png"

        scene.mark_in_progress(retry_mode=True)
        assert scene.status == S.RETRYING
        assert scene.image_url is None

        scene.mark_success("b.png")
        assert scene.image_url == "b.png"
        assert scene.error_msg is None

    def test_error_then_success(self):
        scene = Scene(id=1, script_segment="t", english_prompt="p")
        scene.mark_in_progress()
        assert scene.status == S.GENERATING
        scene.mark_error("quota")
        assert scene.status == S.ERROR
        assert scene.image_url is None

        scene.mark_success("a.png")
        assert scene.error_msg is None
        assert scene.status == S.SUCCESS

    def test_empty_error_message_gets_default(self):
        scene = Scene(id=1, script_segment="t", english_prompt="p")
        scene.mark_error("")
        assert scene.error_msg == "Unknown error"

    def test_mark_success_requires_url(self):
        scene = Scene(id=1, script_segment="t", english_prompt="p")
        with pytest.raises(ValueError):
            scene.mark_success("")


class TestStoryboard:
    def test_from_drafts_numbers_from_one(self, drafts):
        storyboard = Storyboard.from_drafts(drafts, title="Morning")

        assert [s.id for s in storyboard.scenes] == [1, 2, 3]
        assert all(s.status == S.IDLE for s in storyboard.scenes)
        assert all(s.retry_count == 0 for s in storyboard.scenes)
        assert storyboard.scenes[1].main_character_visible is False
        assert storyboard.scenes[2].main_character_visible is True
        assert storyboard.scenes[0].script_segment == "He wakes up."

    def test_get(self):
        storyboard = make_storyboard([S.IDLE, S.IDLE])
        assert storyboard.get(2).id == 2
        with pytest.raises(KeyError):
            storyboard.get(3)

    def test_default_targets_are_idle_and_error(self):
        storyboard = make_storyboard([S.SUCCESS, S.ERROR, S.IDLE, S.SUCCESS, S.IDLE])
        assert [s.id for s in storyboard.select_targets()] == [2, 3, 5]

    def test_selection_overrides_default(self):
        storyboard = make_storyboard([S.SUCCESS, S.ERROR, S.IDLE, S.SUCCESS])
        storyboard.select([4, 1])

        targets = storyboard.select_targets()

        assert [s.id for s in targets] == [1, 4]
        assert all(s.status == S.SUCCESS for s in targets)

    def test_select_unknown_id(self):
        storyboard = make_storyboard([S.IDLE])
        with pytest.raises(ValueError, match="Unknown scene ids"):
            storyboard.select([1, 7])
        assert storyboard.selected_ids == []

    def test_select_all_and_clear(self):
        storyboard = make_storyboard([S.IDLE, S.SUCCESS, S.ERROR])
        storyboard.select_all()
        assert storyboard.selected_ids == [1, 2, 3]

        storyboard.deselect([2])
        assert storyboard.selected_ids == [1, 3]

        storyboard.clear_selection()
        assert [s.id for s in storyboard.select_targets()] == [1, 3]

    def test_recover_interrupted(self):
        storyboard = make_storyboard([S.SUCCESS, S.ERROR, S.IDLE, S.GENERATING, S.RETRYING])

        assert storyboard.recover_interrupted() == [4, 5]
        assert [s.id for s in storyboard.select_targets()] == [2, 3, 4, 5]

    def test_stats(self):
        storyboard = make_storyboard([S.SUCCESS, S.ERROR, S.IDLE, S.GENERATING])
        stats = storyboard.stats()
        assert (stats.total, stats.success, stats.error, stats.pending) == (4, 1, 1, 2)

    def test_snapshot_is_a_copy(self):
        storyboard = make_storyboard([S.IDLE])
        snapshot = storyboard.snapshot()
        snapshot[0].mark_error("changed")
        assert storyboard.scenes[0].status == S.IDLE

    def test_yaml_round_trip_recovers_crashed_scenes(self, tmp_path):
        storyboard = make_storyboard([S.SUCCESS, S.ERROR, S.IDLE, S.GENERATING])
        storyboard.select([2])
        path = tmp_path / "storyboard.yaml"

        storyboard.to_yaml(path)
        loaded = Storyboard.from_yaml(path)

        assert [s.status for s in loaded.scenes] == [S.SUCCESS, S.ERROR, S.IDLE, S.IDLE]
        assert loaded.scenes[0].image_url == "images/scene_001.png"
        assert loaded.scenes[1].error_msg == "previous failure"
        assert loaded.selected_ids == [2]

    def test_yaml_keeps_unicode(self, tmp_path):
        draft = SceneDraft(script_segment="이프맨이 웃는다.", english_prompt="Ifman smiles")
        storyboard = Storyboard.from_drafts([draft])
        path = tmp_path / "storyboard.yaml"

        storyboard.to_yaml(path)

        assert "이프맨이 웃는다." in path.read_text(encoding="utf-8")
        assert Storyboard.from_yaml(path).scenes[0].script_segment == "이프맨이 웃는다."
