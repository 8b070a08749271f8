"""Sensor reading and live metric models."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

SCORE_MIN = 0.0
SCORE_MAX = 100.0


def clamp_score(value: float) -> float:
    return max(SCORE_MIN, min(SCORE_MAX, float(value)))


class MetricsReading(BaseModel):
    """One already-scored reading from the external metrics feed.

    Values outside 0-100 are clamped on ingestion rather than rejected,
    since the feed is a noisy sensor abstraction.
    """

    model_config = ConfigDict(frozen=True)

    posture: float
    eye_closure: float
    head_stability: float
    breath_rhythm: float

    @field_validator("posture", "eye_closure", "head_stability", "breath_rhythm")
    @classmethod
    def clamp(cls, value: float) -> float:
        return clamp_score(value)


class LiveMetrics(BaseModel):
    """Live session metrics.

    `confidence` and `session_quality` are derived by the quality engine and
    are never set from a reading.
    """

    posture: float = Field(default=92.0, ge=0, le=100)
    eye_closure: float = Field(default=98.0, ge=0, le=100)
    head_stability: float = Field(default=89.0, ge=0, le=100)
    breath_rhythm: float = Field(default=94.0, ge=0, le=100)
    confidence: int = Field(default=85, ge=0, le=100)
    session_quality: int = Field(default=0, ge=0, le=100)
