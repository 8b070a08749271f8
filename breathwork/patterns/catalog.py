"""Breathing pattern catalog.

Static table of the alternate-nostril breathing patterns offered by the coach.
Patterns are immutable and looked up by id; an unknown id falls back to the
default pattern instead of raising.
"""

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator

from breathwork.core.errors import PatternInvariantError

DEFAULT_PATTERN_ID = "standard_5_5"
QUICK_PATTERN_ID = "quick_4_4"
RECOMMENDED_PATTERN_ID = "advanced_6_6"
RECOMMENDED_DURATION_MINUTES = 15


class Pattern(BaseModel):
    """A breathing pattern.

    Attributes:
        id: Stable pattern identifier
        name: Display name
        inhale_seconds: Inhale length (must be > 0)
        hold_seconds: Retention length, 0 when the pattern has no hold
        exhale_seconds: Exhale length (must be > 0)
        xp_value: Base XP awarded for completing a session with this pattern
        optimal_duration_minutes: Recommended session length
        description: Short description shown when choosing a pattern
        difficulty: 1 (easiest) to 5
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    inhale_seconds: int
    hold_seconds: int = 0
    exhale_seconds: int
    xp_value: int = Field(..., ge=0)
    optimal_duration_minutes: int = Field(..., ge=1)
    description: str = ""
    difficulty: int = Field(default=1, ge=1, le=5)

    @model_validator(mode="after")
    def check_durations(self) -> "Pattern":
        details: list[str] = []
        if self.inhale_seconds <= 0:
            details.append("NON_POSITIVE_INHALE")
        if self.exhale_seconds <= 0:
            details.append("NON_POSITIVE_EXHALE")
        if self.hold_seconds < 0:
            details.append("NEGATIVE_HOLD")
        if details:
            raise PatternInvariantError("INVALID_PATTERN", details)
        return self

    @property
    def has_hold(self) -> bool:
        return self.hold_seconds > 0


PATTERNS: tuple[Pattern, ...] = (
    Pattern(
        id="quick_4_4",
        name="Quick Focus",
        inhale_seconds=4,
        exhale_seconds=4,
        xp_value=25,
        optimal_duration_minutes=1,
        description="Rapid centering technique for immediate calm",
        difficulty=1,
    ),
    Pattern(
        id="beginner_4_4",
        name="Foundation",
        inhale_seconds=4,
        exhale_seconds=4,
        xp_value=50,
        optimal_duration_minutes=5,
        description="Perfect for building alternate-nostril fundamentals",
        difficulty=1,
    ),
    Pattern(
        id="standard_5_5",
        name="Balanced Flow",
        inhale_seconds=5,
        exhale_seconds=5,
        xp_value=75,
        optimal_duration_minutes=15,
        description="Harmonious breathing for deep balance",
        difficulty=2,
    ),
    Pattern(
        id="advanced_6_6",
        name="Deep Harmony",
        inhale_seconds=6,
        exhale_seconds=6,
        xp_value=100,
        optimal_duration_minutes=20,
        description="Advanced pattern for profound states",
        difficulty=3,
    ),
    Pattern(
        id="master_4_7_8",
        name="Master's Breath",
        inhale_seconds=4,
        hold_seconds=7,
        exhale_seconds=8,
        xp_value=150,
        optimal_duration_minutes=25,
        description="Ultimate relaxation with retention",
        difficulty=4,
    ),
)

_PATTERNS_BY_ID: dict[str, Pattern] = {pattern.id: pattern for pattern in PATTERNS}


def list_patterns() -> list[Pattern]:
    """Return all patterns in catalog order."""
    return list(PATTERNS)


def get_pattern(pattern_id: str | None, default_id: str = DEFAULT_PATTERN_ID) -> Pattern:
    """Look up a pattern by id.

    Args:
        pattern_id: Requested pattern id
        default_id: Pattern returned when the id is unknown

    Returns:
        The requested pattern, or the default pattern when the id is unknown.
        Never raises for an unknown id.
    """
    if pattern_id is not None and pattern_id in _PATTERNS_BY_ID:
        return _PATTERNS_BY_ID[pattern_id]

    fallback = _PATTERNS_BY_ID.get(default_id, _PATTERNS_BY_ID[DEFAULT_PATTERN_ID])
    logger.bind(requested=pattern_id, fallback=fallback.id).warning("Unknown breathing pattern, using default")
    return fallback
