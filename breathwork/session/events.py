"""Session event contracts and the synchronous event bus.

The orchestrator and the coach never call into a UI. They emit these events
and collaborators (renderers, audio, persistence reporters) subscribe to them.
Events are immutable snapshots; subscribers never receive live core state.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, Literal

from loguru import logger

from breathwork.metrics.types import LiveMetrics
from breathwork.progression.types import Achievement, SessionResult, UserProgress
from breathwork.session.types import Nostril, Phase

Severity = Literal["info", "success", "warning", "error"]


@dataclass(frozen=True)
class PhaseChanged:
    name: ClassVar[str] = "phase_changed"

    phase: Phase
    nostril: Nostril


@dataclass(frozen=True)
class CountdownTick:
    """Seconds left in the current phase, or in the preparation countdown."""

    name: ClassVar[str] = "countdown_tick"

    seconds_remaining: int


@dataclass(frozen=True)
class SessionClockTick:
    """Seconds left on the session-wide clock."""

    name: ClassVar[str] = "session_clock_tick"

    seconds_remaining: int


@dataclass(frozen=True)
class CycleCompleted:
    name: ClassVar[str] = "cycle_completed"

    cycle_index: int
    total_cycles: int


@dataclass(frozen=True)
class SessionCompleted:
    name: ClassVar[str] = "session_completed"

    result: SessionResult


@dataclass(frozen=True)
class ProgressChanged:
    name: ClassVar[str] = "progress_changed"

    progress: UserProgress


@dataclass(frozen=True)
class AchievementUnlocked:
    name: ClassVar[str] = "achievement_unlocked"

    achievement: Achievement


@dataclass(frozen=True)
class MetricsUpdated:
    name: ClassVar[str] = "metrics_updated"

    metrics: LiveMetrics


@dataclass(frozen=True)
class Notify:
    name: ClassVar[str] = "notify"

    message: str
    severity: Severity = "info"


SessionEvent = (
    PhaseChanged
    | CountdownTick
    | SessionClockTick
    | CycleCompleted
    | SessionCompleted
    | ProgressChanged
    | AchievementUnlocked
    | MetricsUpdated
    | Notify
)

EventHandler = Callable[[SessionEvent], None]


class EventBus:
    """Synchronous fan-out of events to subscribers, in subscription order."""

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register a handler.

        Returns:
            Callable that removes the handler again
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def emit(self, event: SessionEvent) -> None:
        logger.bind(event_name=event.name).debug("[SESSION_EVENT] {event}", event=event)
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.bind(event_name=event.name, handler=getattr(handler, "__name__", repr(handler))).opt(
                    exception=True
                ).warning("Event handler failed")

