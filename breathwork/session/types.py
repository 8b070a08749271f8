"""Session configuration and state.

SessionConfig is created once per session request and never mutated.
SessionState is owned exclusively by a single SessionOrchestrator for the
lifetime of one session.
"""

from dataclasses import dataclass
from typing import Literal

from breathwork.patterns.catalog import Pattern

Phase = Literal["idle", "preparing", "inhale", "hold", "exhale", "complete"]
Nostril = Literal["left", "right"]
CompletionReason = Literal["cycles", "duration"]

BREATHING_PHASES: frozenset[str] = frozenset({"inhale", "hold", "exhale"})


@dataclass(frozen=True)
class SessionConfig:
    """Immutable request for one practice session.

    Attributes:
        pattern: Breathing pattern to practice
        duration_minutes: Requested session length in minutes
        is_quick_mode: Quick sessions run a fixed number of cycles
    """

    pattern: Pattern
    duration_minutes: int
    is_quick_mode: bool = False


@dataclass
class SessionState:
    """Mutable state of the session in progress.

    Attributes:
        phase: Current phase (idle until started, complete is terminal)
        active_nostril: Nostril the current phase is performed through
        cycle_index: Completed cycles so far (0-based index of current cycle)
        total_cycles: Number of cycles the session runs for (>= 1)
        breath_count: Phase transitions since the first inhale (monotonic)
        paused: True while the user has paused the session
        in_cycle_pause: True during the short rest between cycles
        preparation_remaining: Countdown value during the preparing phase
        session_started_at: Clock reading when start() was called
        breathing_started_at: Clock reading when the first inhale began
        phase_started_at: Clock reading when the current phase began
    """

    phase: Phase = "idle"
    active_nostril: Nostril = "left"
    cycle_index: int = 0
    total_cycles: int = 1
    breath_count: int = 0
    paused: bool = False
    in_cycle_pause: bool = False
    preparation_remaining: int = 0
    session_started_at: float | None = None
    breathing_started_at: float | None = None
    phase_started_at: float | None = None

    @property
    def is_active(self) -> bool:
        return self.phase not in ("idle", "complete")

    @property
    def is_breathing(self) -> bool:
        return self.phase in BREATHING_PHASES


def flip_nostril(nostril: Nostril) -> Nostril:
    return "right" if nostril == "left" else "left"
