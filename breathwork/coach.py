"""Breathing coach host.

Holds at most one SessionOrchestrator at a time, routes commands to it, feeds
the live metrics tracker and applies the progression engine when a session
completes. A new orchestrator is created for every session and dropped when
the session completes or is stopped.

Commands:
- start_session / start_quick_session / start_recommended_session
- pause_toggle / stop_session
- tick (1 Hz), feed_metrics (ambient poll), refresh_metrics (in-session)
- select_pattern / set_duration / update_preferences / reset_preferences
"""

import time
from collections.abc import Callable
from datetime import date

from loguru import logger

from breathwork.config.settings import Settings, settings
from breathwork.core.errors import ProgressStoreError
from breathwork.metrics.live import LiveMetricsTracker, guidance_for
from breathwork.metrics.types import LiveMetrics, MetricsReading
from breathwork.patterns.catalog import (
    QUICK_PATTERN_ID,
    RECOMMENDED_DURATION_MINUTES,
    RECOMMENDED_PATTERN_ID,
    Pattern,
    get_pattern,
)
from breathwork.persistence.repository import ProgressRepository
from breathwork.progression.engine import ProgressionEngine
from breathwork.progression.types import SessionResult, UserPreferences
from breathwork.session.events import (
    AchievementUnlocked,
    EventBus,
    MetricsUpdated,
    Notify,
    ProgressChanged,
    SessionCompleted,
)
from breathwork.session.orchestrator import SessionOrchestrator
from breathwork.session.types import CompletionReason, SessionConfig

MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 120


class BreathingCoach:
    """Host application for breathing sessions.

    Attributes:
        events: Bus every session, progress and notification event goes through
        progress: Durable progress aggregate
        achievements: Achievement list with earned flags
        preferences: Persisted user settings
        selected_pattern: Pattern used by start_session() without a config
        duration_minutes: Duration used by start_session() without a config
        last_result: Result of the most recently completed session
    """

    def __init__(
        self,
        repository: ProgressRepository,
        *,
        events: EventBus | None = None,
        app_settings: Settings = settings,
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.events = events or EventBus()
        self._repository = repository
        self._settings = app_settings
        self._clock = clock
        self._today = today

        self.progress, self.achievements, self.preferences = repository.load_all()
        self._engine = ProgressionEngine(self.progress, self.achievements)
        self._metrics = LiveMetricsTracker()
        self._orchestrator: SessionOrchestrator | None = None

        self.selected_pattern: Pattern = get_pattern(app_settings.default_pattern_id)
        self.duration_minutes: int = app_settings.default_duration_minutes
        self.last_result: SessionResult | None = None

    @property
    def orchestrator(self) -> SessionOrchestrator | None:
        return self._orchestrator

    @property
    def is_session_active(self) -> bool:
        return self._orchestrator is not None and self._orchestrator.state.is_active

    @property
    def metrics(self) -> LiveMetrics:
        return self._metrics.metrics

    # -----------------------------
    # Session commands
    # -----------------------------

    def start_session(self, config: SessionConfig | None = None, now: float | None = None) -> bool:
        """Start a session with `config`, or with the selected pattern and duration.

        Returns:
            False when a session is already running
        """
        if self.is_session_active:
            logger.debug("start_session ignored, a session is already active")
            return False

        config = config or SessionConfig(pattern=self.selected_pattern, duration_minutes=self.duration_minutes)
        pause_seconds = (
            self._settings.quick_inter_cycle_pause_seconds
            if config.is_quick_mode
            else self._settings.inter_cycle_pause_seconds
        )
        orchestrator = SessionOrchestrator(
            config,
            self.events,
            inter_cycle_pause_seconds=pause_seconds,
            on_complete=self._handle_completion,
        )
        self._orchestrator = orchestrator
        self._metrics.reset_for_session()
        return orchestrator.start(self._now(now))

    def start_quick_session(self, now: float | None = None) -> bool:
        pattern = get_pattern(QUICK_PATTERN_ID)
        config = SessionConfig(pattern=pattern, duration_minutes=pattern.optimal_duration_minutes, is_quick_mode=True)
        started = self.start_session(config, now)
        if started:
            self.events.emit(Notify("Quick practice starting", "success"))
        return started

    def start_recommended_session(self, now: float | None = None) -> bool:
        config = SessionConfig(pattern=get_pattern(RECOMMENDED_PATTERN_ID), duration_minutes=RECOMMENDED_DURATION_MINUTES)
        return self.start_session(config, now)

    def pause_toggle(self, now: float | None = None) -> bool:
        """Pause or resume the running session. No-op without an active breathing phase."""
        if self._orchestrator is None:
            return False
        if not self._orchestrator.toggle_pause(self._now(now)):
            return False
        if self._orchestrator.state.paused:
            self.events.emit(Notify("Session paused", "info"))
        else:
            self.events.emit(Notify("Resuming session", "info"))
        return True

    def stop_session(self) -> bool:
        """Abandon the running session without any reward."""
        if self._orchestrator is None or not self._orchestrator.stop():
            return False
        self._orchestrator = None
        self.events.emit(Notify("Session stopped", "warning"))
        return True

    def tick(self, now: float | None = None) -> None:
        if self._orchestrator is not None:
            self._orchestrator.tick(self._now(now))

    # -----------------------------
    # Metrics
    # -----------------------------

    def feed_metrics(self, reading: MetricsReading) -> LiveMetrics:
        """Apply a reading from the external metrics feed.

        During a non-quick session, low posture, eye closure or head
        stability produce guidance notifications.
        """
        active = self.is_session_active
        snapshot = self._metrics.feed(reading, session_active=active)
        self.events.emit(MetricsUpdated(snapshot))

        if active and self._orchestrator is not None and not self._orchestrator.config.is_quick_mode:
            for cue in guidance_for(snapshot):
                self.events.emit(Notify(cue.message, cue.severity))
        return snapshot

    def refresh_metrics(self, now: float | None = None) -> LiveMetrics | None:
        """Recompute breath rhythm and quality from the session's own timing."""
        if self._orchestrator is None or not self._orchestrator.state.is_breathing:
            return None
        snapshot = self._metrics.refresh(self._orchestrator.state, self._orchestrator.pattern, self._now(now))
        if snapshot is not None:
            self.events.emit(MetricsUpdated(snapshot))
        return snapshot

    # -----------------------------
    # Configuration commands
    # -----------------------------

    def select_pattern(self, pattern_id: str) -> Pattern:
        """Select a pattern and adopt its optimal duration."""
        self.selected_pattern = get_pattern(pattern_id, self._settings.default_pattern_id)
        self.duration_minutes = self.selected_pattern.optimal_duration_minutes
        logger.bind(pattern_id=self.selected_pattern.id, duration_minutes=self.duration_minutes).info("Pattern selected")
        return self.selected_pattern

    def set_duration(self, minutes: int) -> int:
        self.duration_minutes = max(MIN_DURATION_MINUTES, min(MAX_DURATION_MINUTES, int(minutes)))
        return self.duration_minutes

    def update_preferences(self, **changes: object) -> UserPreferences:
        """Merge `changes` into the preferences and persist them.

        Unknown keys are ignored.

        Raises:
            pydantic.ValidationError: If a known key gets an invalid value
        """
        merged = {**self.preferences.model_dump(), **changes}
        self.preferences = UserPreferences.model_validate(merged)
        if self._save(preferences_only=True):
            self.events.emit(Notify("Settings saved successfully", "success"))
        return self.preferences

    def reset_preferences(self) -> UserPreferences:
        self.preferences = UserPreferences()
        if self._save(preferences_only=True):
            self.events.emit(Notify("Settings reset to defaults", "success"))
        return self.preferences

    # -----------------------------
    # Completion
    # -----------------------------

    def _handle_completion(self, orchestrator: SessionOrchestrator, reason: CompletionReason, now: float) -> None:
        config = orchestrator.config
        quality = self._metrics.metrics.session_quality
        outcome = self._engine.complete_session(
            pattern=config.pattern,
            session_quality=quality,
            session_minutes=orchestrator.session_minutes(now),
            duration_minutes=config.duration_minutes,
            is_quick_mode=config.is_quick_mode,
            today=self._today(),
            cycles_completed=min(orchestrator.state.cycle_index, orchestrator.state.total_cycles),
            completion_reason=reason,
            eyes_closed_throughout=self._metrics.eyes_closed_throughout,
        )
        self._orchestrator = None
        self.last_result = outcome.result

        self.events.emit(SessionCompleted(outcome.result))
        for achievement in outcome.unlocked:
            self.events.emit(AchievementUnlocked(achievement.model_copy()))
            self.events.emit(Notify(f"Achievement Unlocked: {achievement.name}", "success"))
        if outcome.level_ups:
            self.events.emit(Notify(f"Level Up! You are now Level {self.progress.level}", "success"))

        self._save()
        self.events.emit(ProgressChanged(self.progress.model_copy()))

    def _save(self, preferences_only: bool = False) -> bool:
        """Persist records. Failures are reported, in-memory state is kept."""
        try:
            if not preferences_only:
                self._repository.save_progress(self.progress)
                self._repository.save_achievements(self.achievements)
            self._repository.save_preferences(self.preferences)
        except ProgressStoreError as e:
            logger.bind(key=e.key, error=str(e.original_error)).warning("Could not save user progress")
            self.events.emit(Notify("Could not save your progress", "error"))
            return False
        logger.debug("User progress saved")
        return True

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now
