import json

import pytest

from breathwork.core.errors import ProgressStoreError
from breathwork.persistence.repository import ProgressRepository
from breathwork.persistence.store import InMemoryStore, JsonFileStore
from breathwork.progression.types import UserPreferences, UserProgress, default_achievements


class BrokenStore:
    """Store whose every read and write fails."""

    def load(self, key: str) -> str | None:
        raise ProgressStoreError(key, OSError("disk unavailable"))

    def save(self, key: str, payload: str) -> None:
        raise ProgressStoreError(key, OSError("disk full"))


def test_empty_store_loads_fresh_user():
    progress, achievements, preferences = ProgressRepository(InMemoryStore()).load_all()

    assert progress == UserProgress()
    assert progress.level == 1
    assert progress.xp_to_next_level == 500
    assert [a.id for a in achievements] == [a.id for a in default_achievements()]
    assert not any(a.earned for a in achievements)
    assert preferences == UserPreferences()


def test_partial_progress_merges_over_defaults():
    store = InMemoryStore({"progress": json.dumps({"xp": 250, "total_sessions": 3, "unknown_field": "x"})})
    progress = ProgressRepository(store).load_progress()

    assert progress.xp == 250
    assert progress.total_sessions == 3
    assert progress.level == 1
    assert progress.current_streak == 0


def test_corrupt_records_fall_back_to_defaults():
    store = InMemoryStore({"progress": "{not json", "achievements": "[[[", "settings": '"just a string"'})
    repository = ProgressRepository(store)

    assert repository.load_progress() == UserProgress()
    assert not any(a.earned for a in repository.load_achievements())
    assert repository.load_preferences() == UserPreferences()


def test_undecodable_record_falls_back_to_defaults(tmp_path):
    """A record file that is not UTF-8 is treated like any unreadable record."""
    (tmp_path / "progress.json").write_bytes(b"\xff\xfe{bad")
    store = JsonFileStore(tmp_path)

    with pytest.raises(ProgressStoreError):
        store.load("progress")
    assert ProgressRepository(store).load_progress() == UserProgress()


def test_achievements_with_non_string_ids_are_skipped():
    stored = [{"id": ["first_session"], "earned": True}, {"id": {"x": 1}}, {"id": "rhythm_master", "earned": True}]
    achievements = ProgressRepository(InMemoryStore({"achievements": json.dumps(stored)})).load_achievements()

    earned = {a.id for a in achievements if a.earned}
    assert earned == {"rhythm_master"}
    assert len(achievements) == 5


def test_invalid_values_fall_back_to_defaults():
    store = InMemoryStore({"progress": json.dumps({"xp": -10}), "settings": json.dumps({"master_volume": 400})})
    repository = ProgressRepository(store)

    assert repository.load_progress() == UserProgress()
    assert repository.load_preferences() == UserPreferences()


def test_stored_threshold_is_corrected_to_level_table():
    store = InMemoryStore({"progress": json.dumps({"level": 3, "xp": 2000, "xp_to_next_level": 999})})
    progress = ProgressRepository(store).load_progress()

    assert progress.level == 3
    assert progress.xp_to_next_level == 3500


def test_achievements_merge_by_id():
    stored = [
        {"id": "first_session", "earned": True},
        {"id": "retired_badge", "name": "Old", "xp_reward": 1, "earned": True},
    ]
    achievements = ProgressRepository(InMemoryStore({"achievements": json.dumps(stored)})).load_achievements()

    by_id = {a.id: a for a in achievements}
    assert "retired_badge" not in by_id
    assert by_id["first_session"].earned
    assert by_id["first_session"].xp_reward == 100
    assert not by_id["rhythm_master"].earned


def test_unreadable_store_falls_back_to_defaults():
    progress, achievements, preferences = ProgressRepository(BrokenStore()).load_all()
    assert progress == UserProgress()
    assert len(achievements) == 5
    assert preferences == UserPreferences()


def test_save_failure_raises_store_error():
    with pytest.raises(ProgressStoreError) as exc_info:
        ProgressRepository(BrokenStore()).save_progress(UserProgress())
    assert exc_info.value.key == "progress"


def test_saved_records_reload(tmp_path):
    repository = ProgressRepository(JsonFileStore(tmp_path / "data"))
    progress = UserProgress(level=2, xp=700, xp_to_next_level=1500, total_sessions=4, current_streak=2)
    achievements = default_achievements()
    achievements[0].earned = True

    repository.save_progress(progress)
    repository.save_achievements(achievements)
    repository.save_preferences(UserPreferences(master_volume=40, voice_guidance=False))

    reloaded = ProgressRepository(JsonFileStore(tmp_path / "data"))
    assert reloaded.load_progress() == progress
    assert [a.earned for a in reloaded.load_achievements()] == [True, False, False, False, False]
    assert reloaded.load_preferences().master_volume == 40
    assert not reloaded.load_preferences().voice_guidance


def test_json_file_store_writes_one_file_per_key(tmp_path):
    store = JsonFileStore(tmp_path)
    store.save("settings", '{"master_volume": 10}')
    store.save("settings", '{"master_volume": 20}')

    assert store.path_for("settings") == tmp_path / "settings.json"
    assert store.load("settings") == '{"master_volume": 20}'
    assert store.load("progress") is None
    assert sorted(p.name for p in tmp_path.iterdir()) == ["settings.json"]


def test_json_file_store_save_failure(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way")
    store = JsonFileStore(blocker)

    with pytest.raises(ProgressStoreError) as exc_info:
        store.save("progress", "{}")
    assert isinstance(exc_info.value.original_error, OSError)
