"""Live metrics tracking.

Consumes readings from the external metrics feed (ambient poll, roughly every
2 seconds) and refreshes breathing-rhythm and session quality from the
session's own timing (in-session refresh, roughly every 0.5 seconds).
Produces coaching guidance when posture, eye closure or head stability drop.
"""

from dataclasses import dataclass
from typing import Literal

from loguru import logger

from breathwork.metrics.types import LiveMetrics, MetricsReading
from breathwork.patterns.catalog import Pattern
from breathwork.progression.quality import breathing_accuracy, confidence, session_quality
from breathwork.session.types import SessionState

Severity = Literal["info", "success", "warning", "error"]

# Session quality a fresh session starts from, before any refresh.
INITIAL_SESSION_QUALITY = 85

POSTURE_GUIDANCE_THRESHOLD = 70.0
EYE_CLOSURE_GUIDANCE_THRESHOLD = 80.0
HEAD_STABILITY_GUIDANCE_THRESHOLD = 75.0


@dataclass(frozen=True)
class Guidance:
    message: str
    severity: Severity = "warning"


def guidance_for(metrics: LiveMetrics) -> list[Guidance]:
    """Coaching cues for the current readings, in display order."""
    cues: list[Guidance] = []
    if metrics.posture < POSTURE_GUIDANCE_THRESHOLD:
        cues.append(Guidance("Gently straighten your spine and relax your shoulders"))
    if metrics.eye_closure < EYE_CLOSURE_GUIDANCE_THRESHOLD:
        cues.append(Guidance("Softly close your eyes for better focus"))
    if metrics.head_stability < HEAD_STABILITY_GUIDANCE_THRESHOLD:
        cues.append(Guidance("Keep your head steady and centered"))
    return cues


class LiveMetricsTracker:
    """Owns the LiveMetrics snapshot for the coach."""

    def __init__(self, metrics: LiveMetrics | None = None) -> None:
        self._metrics = metrics or LiveMetrics()
        self._eyes_closed_throughout = True
        self._session_readings = 0

    @property
    def metrics(self) -> LiveMetrics:
        return self._metrics.model_copy()

    @property
    def eyes_closed_throughout(self) -> bool:
        """True when at least one in-session reading arrived and none showed open eyes."""
        return self._session_readings > 0 and self._eyes_closed_throughout

    def reset_for_session(self) -> None:
        self._metrics.session_quality = INITIAL_SESSION_QUALITY
        self._eyes_closed_throughout = True
        self._session_readings = 0

    def feed(self, reading: MetricsReading, *, session_active: bool = False) -> LiveMetrics:
        """Apply an external reading and recompute confidence.

        Args:
            reading: Scored sensor reading
            session_active: Whether a breathing session is running; eye
                closure is only tracked for the session while it is

        Returns:
            Snapshot of the updated metrics
        """
        self._metrics.posture = reading.posture
        self._metrics.eye_closure = reading.eye_closure
        self._metrics.head_stability = reading.head_stability
        self._metrics.breath_rhythm = reading.breath_rhythm
        self._metrics.confidence = confidence(self._metrics)

        if session_active:
            self._session_readings += 1
            if reading.eye_closure < EYE_CLOSURE_GUIDANCE_THRESHOLD:
                self._eyes_closed_throughout = False

        logger.bind(
            posture=reading.posture,
            eye_closure=reading.eye_closure,
            head_stability=reading.head_stability,
            breath_rhythm=reading.breath_rhythm,
            confidence=self._metrics.confidence,
        ).trace("Metrics reading applied")
        return self.metrics

    def refresh(self, state: SessionState, pattern: Pattern, now: float) -> LiveMetrics | None:
        """Overwrite breath rhythm from phase timing and recompute quality.

        Only runs during inhale and exhale phases of an unpaused session.

        Returns:
            Updated snapshot, or None when nothing was refreshed
        """
        if state.paused or state.in_cycle_pause or state.phase_started_at is None:
            return None
        if state.phase == "inhale":
            target = pattern.inhale_seconds
        elif state.phase == "exhale":
            target = pattern.exhale_seconds
        else:
            return None

        elapsed = max(0.0, now - state.phase_started_at)
        self._metrics.breath_rhythm = float(round(breathing_accuracy(elapsed, target)))
        self._metrics.session_quality = session_quality(self._metrics, state.breath_count)
        return self.metrics

