"""Typed access to the three persisted records.

Records:
- progress: UserProgress aggregate
- achievements: full Achievement objects, including `earned`
- settings: UserPreferences map

Each record loads independently. An absent or unreadable record falls back to
defaults; a present record is merged shallowly over defaults (missing keys
keep their defaults, unknown keys are ignored). Loading never raises.
"""

import json
from typing import Any

from loguru import logger
from pydantic import ValidationError

from breathwork.core.errors import ProgressStoreError
from breathwork.persistence.store import ProgressStore
from breathwork.progression.engine import level_threshold
from breathwork.progression.types import Achievement, UserPreferences, UserProgress, default_achievements

PROGRESS_KEY = "progress"
ACHIEVEMENTS_KEY = "achievements"
SETTINGS_KEY = "settings"


class ProgressRepository:
    def __init__(self, store: ProgressStore) -> None:
        self.store = store

    def _load_json(self, key: str) -> Any | None:
        try:
            raw = self.store.load(key)
        except ProgressStoreError as e:
            logger.bind(key=key, error=str(e)).warning("Could not read record, using defaults")
            return None
        if raw is None:
            logger.bind(key=key).debug("No stored record, using defaults")
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.bind(key=key, error=str(e)).warning("Stored record is not valid JSON, using defaults")
            return None

    def load_progress(self) -> UserProgress:
        data = self._load_json(PROGRESS_KEY)
        if not isinstance(data, dict):
            return UserProgress()
        try:
            progress = UserProgress.model_validate({**UserProgress().model_dump(), **data})
        except ValidationError as e:
            logger.bind(key=PROGRESS_KEY, errors=e.error_count()).warning("Stored progress is invalid, using defaults")
            return UserProgress()

        expected = level_threshold(progress.level)
        if progress.xp_to_next_level != expected:
            logger.bind(level=progress.level, stored=progress.xp_to_next_level, expected=expected).warning(
                "Stored level threshold disagrees with level table, correcting"
            )
            progress.xp_to_next_level = expected
        return progress

    def load_achievements(self) -> list[Achievement]:
        achievements = default_achievements()
        data = self._load_json(ACHIEVEMENTS_KEY)
        if not isinstance(data, list):
            return achievements

        stored_by_id = {item["id"]: item for item in data if isinstance(item, dict) and isinstance(item.get("id"), str)}
        merged: list[Achievement] = []
        for achievement in achievements:
            stored = stored_by_id.get(achievement.id)
            if stored is None:
                merged.append(achievement)
                continue
            try:
                merged.append(Achievement.model_validate({**achievement.model_dump(), **stored}))
            except ValidationError as e:
                logger.bind(achievement_id=achievement.id, errors=e.error_count()).warning(
                    "Stored achievement is invalid, using default"
                )
                merged.append(achievement)
        return merged

    def load_preferences(self) -> UserPreferences:
        data = self._load_json(SETTINGS_KEY)
        if not isinstance(data, dict):
            return UserPreferences()
        try:
            return UserPreferences.model_validate({**UserPreferences().model_dump(), **data})
        except ValidationError as e:
            logger.bind(key=SETTINGS_KEY, errors=e.error_count()).warning("Stored settings are invalid, using defaults")
            return UserPreferences()

    def load_all(self) -> tuple[UserProgress, list[Achievement], UserPreferences]:
        progress = self.load_progress()
        achievements = self.load_achievements()
        preferences = self.load_preferences()
        logger.bind(
            level=progress.level,
            total_sessions=progress.total_sessions,
            earned=sum(1 for a in achievements if a.earned),
        ).info("User progress loaded")
        return progress, achievements, preferences

    def save_progress(self, progress: UserProgress) -> None:
        self.store.save(PROGRESS_KEY, progress.model_dump_json())

    def save_achievements(self, achievements: list[Achievement]) -> None:
        self.store.save(ACHIEVEMENTS_KEY, json.dumps([a.model_dump(mode="json") for a in achievements]))

    def save_preferences(self, preferences: UserPreferences) -> None:
        self.store.save(SETTINGS_KEY, preferences.model_dump_json())
