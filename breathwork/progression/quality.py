"""Live session quality computation.

Properties:
- Deterministic: same readings and breath count always produce the same score
- Bounded: every score is clamped into 0-100

Weights:
- posture 0.25
- eye closure 0.20
- breath rhythm 0.30
- head stability 0.15
- consistency 0.10 (mild fatigue penalty growing with breath count)
"""

import math

from breathwork.metrics.types import LiveMetrics, clamp_score

QUALITY_WEIGHTS: dict[str, float] = {
    "posture": 0.25,
    "eye_closure": 0.20,
    "breath_rhythm": 0.30,
    "head_stability": 0.15,
    "consistency": 0.10,
}

# Sensor noise tolerance: timing estimates never report below this.
ACCURACY_FLOOR = 70.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(value + 0.5)


def breathing_accuracy(elapsed_in_phase: float, target_duration: float) -> float:
    """Score how closely the elapsed phase time matches the target.

    Args:
        elapsed_in_phase: Seconds since the current phase began
        target_duration: Target phase length in seconds (> 0)

    Returns:
        Accuracy score in [70, 100]
    """
    if target_duration <= 0:
        return ACCURACY_FLOOR
    timing_error = abs(elapsed_in_phase - target_duration) / target_duration
    score = max(0.0, 100.0 - 100.0 * timing_error)
    return max(ACCURACY_FLOOR, score)


def consistency_score(breath_count: int) -> float:
    return max(0.0, 100.0 - 2.0 * breath_count)


def session_quality(metrics: LiveMetrics, breath_count: int) -> int:
    """Weighted session quality, rounded and clamped to 0-100."""
    weighted = (
        metrics.posture * QUALITY_WEIGHTS["posture"]
        + metrics.eye_closure * QUALITY_WEIGHTS["eye_closure"]
        + metrics.breath_rhythm * QUALITY_WEIGHTS["breath_rhythm"]
        + metrics.head_stability * QUALITY_WEIGHTS["head_stability"]
        + consistency_score(breath_count) * QUALITY_WEIGHTS["consistency"]
    )
    return int(clamp_score(round_half_up(weighted)))


def confidence(metrics: LiveMetrics) -> int:
    """Mean of the four sensor scores."""
    total = metrics.posture + metrics.eye_closure + metrics.head_stability + metrics.breath_rhythm
    return int(clamp_score(round_half_up(total / 4)))
