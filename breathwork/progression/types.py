"""Progress, achievement and preference models.

These are the durable records of the coach. They are mutated only by the
progression engine at session completion (preferences: by explicit user
commands) and are persisted right after each mutation.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from breathwork.session.types import CompletionReason

Rarity = Literal["common", "uncommon", "rare", "epic", "legendary"]


class UserProgress(BaseModel):
    """Durable progress aggregate.

    Attributes:
        level: Current level (starts at 1)
        xp: Total experience points (never negative)
        xp_to_next_level: Threshold for the next level-up, from the level table
        total_sessions: Completed sessions
        total_minutes: Practised minutes across completed sessions
        current_streak: Consecutive practice days
        avg_quality: Running mean of session quality scores
        wellness_score: Composite of quality, streak and session count (0-100)
        last_session_date: Day of the most recent completed session
        eyes_closed_sessions: Sessions in which eye closure never dropped
            below the guidance threshold
    """

    model_config = ConfigDict(extra="ignore")

    level: int = Field(default=1, ge=1)
    xp: int = Field(default=0, ge=0)
    xp_to_next_level: int = Field(default=500, ge=0)
    total_sessions: int = Field(default=0, ge=0)
    total_minutes: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    avg_quality: float = Field(default=0.0, ge=0, le=100)
    wellness_score: int = Field(default=0, ge=0, le=100)
    last_session_date: date | None = None
    eyes_closed_sessions: int = Field(default=0, ge=0)


class Achievement(BaseModel):
    """An unlockable achievement. `earned` only ever goes from False to True."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str = ""
    xp_reward: int = Field(..., ge=0)
    rarity: Rarity = "common"
    earned: bool = False


class UserPreferences(BaseModel):
    """Persisted user settings."""

    model_config = ConfigDict(extra="ignore")

    posture_sensitivity: int = Field(default=7, ge=1, le=10)
    eye_sensitivity: int = Field(default=8, ge=1, le=10)
    master_volume: int = Field(default=75, ge=0, le=100)
    voice_guidance: bool = True
    breathing_sounds: bool = True
    smart_recommendations: bool = True
    adaptive_difficulty: bool = True
    daily_challenges: bool = True


class SessionResult(BaseModel):
    """Summary of a completed session.

    Attributes:
        quality_score: Final session quality (0-100)
        duration_minutes: Whole minutes actually practised
        xp_earned: XP awarded for the session (before achievement rewards)
        pattern_id: Pattern practised
        is_quick_mode: Whether the session was a quick session
        cycles_completed: Cycles finished before completion
        completion_reason: "cycles" when all cycles ran, "duration" when the
            session clock ran out first
        eyes_closed_throughout: Eye closure stayed at or above the guidance
            threshold for every reading taken during the session
    """

    model_config = ConfigDict(frozen=True)

    quality_score: int
    duration_minutes: int
    xp_earned: int
    pattern_id: str
    is_quick_mode: bool = False
    cycles_completed: int = 0
    completion_reason: CompletionReason = "cycles"
    eyes_closed_throughout: bool = False


def default_achievements() -> list[Achievement]:
    """Return a fresh copy of the achievement catalog, nothing earned."""
    return [
        Achievement(
            id="first_session",
            name="First Breath",
            description="Complete your first alternate-nostril session",
            xp_reward=100,
            rarity="common",
        ),
        Achievement(
            id="perfect_posture_week",
            name="Postural Perfection",
            description="Practise seven days in a row",
            xp_reward=500,
            rarity="rare",
        ),
        Achievement(
            id="mindful_eyes_master",
            name="Unwavering Focus",
            description="Keep eyes closed for an entire session 20 times",
            xp_reward=300,
            rarity="uncommon",
        ),
        Achievement(
            id="rhythm_master",
            name="Perfect Timing",
            description="Finish a session with 95+ quality",
            xp_reward=750,
            rarity="epic",
        ),
        Achievement(
            id="consistency_champion",
            name="Dedication Embodied",
            description="Practise daily for 30 consecutive days",
            xp_reward=1500,
            rarity="legendary",
        ),
    ]
