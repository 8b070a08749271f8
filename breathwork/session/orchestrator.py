"""Session orchestrator: the alternate-nostril breathing state machine.

One orchestrator instance drives exactly one session:

    idle -> preparing -> inhale -> (hold) -> exhale -> inhale -> ... -> complete

Time only moves through tick(now), called at 1 Hz by whatever scheduler hosts
the orchestrator (asyncio loop, test harness, simulated clock). Every pending
timer is an explicit named deadline in `_deadlines`, so stopping a session
clears all of them synchronously and late ticks find nothing to act on.

Rules:
- inhale -> hold when the pattern has a hold, else -> exhale with a nostril flip
- hold -> exhale with a nostril flip
- exhale -> inhale through the same nostril
- every phase entry after the first inhale increments breath_count
- a cycle completes whenever breath_count is a multiple of breaths_per_cycle
- the session completes when all cycles ran or the session clock expires,
  whichever happens first
"""

import math
from collections.abc import Callable
from dataclasses import replace

from loguru import logger

from breathwork.patterns.catalog import Pattern
from breathwork.session.cycles import breaths_per_cycle, calculate_cycles
from breathwork.session.events import CountdownTick, CycleCompleted, EventBus, PhaseChanged, SessionClockTick
from breathwork.session.types import CompletionReason, Phase, SessionConfig, SessionState, flip_nostril

PREPARATION_STEPS = 3
DEFAULT_PHASE_SECONDS = 4

PREPARATION_TIMER = "preparation"
PHASE_TIMER = "phase"
CYCLE_PAUSE_TIMER = "cycle_pause"
SESSION_TIMER = "session"

CompletionHandler = Callable[["SessionOrchestrator", CompletionReason, float], None]


class SessionOrchestrator:
    """Drives one breathing session through its phases.

    Attributes:
        config: Immutable session request
        state: Mutable session state, owned by this instance
        completion_reason: Terminal trigger that ended the session, if any
    """

    def __init__(
        self,
        config: SessionConfig,
        events: EventBus,
        *,
        inter_cycle_pause_seconds: float = 1.5,
        on_complete: CompletionHandler | None = None,
    ) -> None:
        self.config = config
        self.state = SessionState(
            total_cycles=calculate_cycles(config.pattern, config.duration_minutes, config.is_quick_mode),
        )
        self.completion_reason: CompletionReason | None = None
        self.completed_at: float | None = None

        self._events = events
        self._inter_cycle_pause_seconds = inter_cycle_pause_seconds
        self._on_complete = on_complete
        self._breaths_per_cycle = breaths_per_cycle(config.pattern)
        self._deadlines: dict[str, float] = {}
        self._finished = False

    @property
    def pattern(self) -> Pattern:
        return self.config.pattern

    @property
    def total_duration_seconds(self) -> float:
        return self.config.duration_minutes * 60

    @property
    def pending_timers(self) -> frozenset[str]:
        """Names of the timers currently armed."""
        return frozenset(self._deadlines)

    def snapshot(self) -> SessionState:
        return replace(self.state)

    def phase_duration_for(self, phase: Phase) -> int:
        if phase == "inhale":
            return self.pattern.inhale_seconds
        if phase == "hold":
            return self.pattern.hold_seconds
        if phase == "exhale":
            return self.pattern.exhale_seconds
        return DEFAULT_PHASE_SECONDS

    def session_minutes(self, now: float) -> int:
        """Whole minutes elapsed since start()."""
        if self.state.session_started_at is None:
            return 0
        return max(0, math.floor((now - self.state.session_started_at) / 60))

    # -----------------------------
    # Commands
    # -----------------------------

    def start(self, now: float) -> bool:
        """Begin the preparation countdown. Only valid once, from idle.

        Returns:
            True if the session started
        """
        if self.state.phase != "idle" or self._finished:
            logger.bind(phase=self.state.phase).debug("start() ignored, session already started")
            return False

        self.state.phase = "preparing"
        self.state.session_started_at = now
        self.state.preparation_remaining = PREPARATION_STEPS
        self._deadlines[PREPARATION_TIMER] = now + 1

        logger.bind(
            pattern_id=self.pattern.id,
            duration_minutes=self.config.duration_minutes,
            total_cycles=self.state.total_cycles,
            quick=self.config.is_quick_mode,
        ).info("Session started")
        self._events.emit(PhaseChanged(phase="preparing", nostril=self.state.active_nostril))
        self._events.emit(CountdownTick(seconds_remaining=PREPARATION_STEPS))
        return True

    def tick(self, now: float) -> None:
        """Advance the session clock to `now`.

        Ticks arriving before start() or after stop()/completion are ignored.
        """
        if not self.state.is_active:
            return

        if self.state.phase == "preparing":
            self._tick_preparation(now)
            return

        # Session clock keeps running while paused.
        if self._tick_session_clock(now):
            return

        if self.state.paused:
            return

        if self.state.in_cycle_pause:
            if now >= self._deadlines.get(CYCLE_PAUSE_TIMER, now):
                self._end_cycle_pause(now)
            return

        started_at = self.state.phase_started_at if self.state.phase_started_at is not None else now
        remaining = self.phase_duration_for(self.state.phase) - (now - started_at)
        if remaining <= 0:
            self.advance_phase(now)
        else:
            self._events.emit(CountdownTick(seconds_remaining=math.ceil(remaining)))

    def advance_phase(self, now: float) -> None:
        """Move to the next phase once the current one has elapsed."""
        state = self.state
        if not state.is_breathing or state.in_cycle_pause:
            return

        if state.phase == "inhale" and self.pattern.has_hold:
            state.phase = "hold"
        elif state.phase in ("inhale", "hold"):
            state.phase = "exhale"
            state.active_nostril = flip_nostril(state.active_nostril)
        else:
            state.phase = "inhale"

        state.breath_count += 1
        state.phase_started_at = now

        if state.breath_count % self._breaths_per_cycle == 0:
            state.cycle_index += 1
            logger.bind(cycle=state.cycle_index, total_cycles=state.total_cycles).debug("Cycle completed")
            self._events.emit(CycleCompleted(cycle_index=state.cycle_index, total_cycles=state.total_cycles))

            if state.cycle_index >= state.total_cycles:
                self._complete(now, "cycles")
                return

            state.in_cycle_pause = True
            self._deadlines.pop(PHASE_TIMER, None)
            self._deadlines[CYCLE_PAUSE_TIMER] = now + self._inter_cycle_pause_seconds
            return

        self._enter_phase(now)

    def pause(self, now: float) -> bool:
        """Suspend the phase countdown. No-op unless a breathing phase is running."""
        if not self.state.is_breathing or self.state.paused:
            return False
        self.state.paused = True
        self._deadlines.pop(PHASE_TIMER, None)
        logger.bind(phase=self.state.phase, breath_count=self.state.breath_count).info("Session paused")
        return True

    def resume(self, now: float) -> bool:
        """Resume a paused session.

        The interrupted phase restarts at its full length: elapsed progress in
        that phase is discarded.
        """
        if not self.state.is_breathing or not self.state.paused:
            return False
        self.state.paused = False
        logger.bind(phase=self.state.phase).info("Session resumed")
        if not self.state.in_cycle_pause:
            self.state.phase_started_at = now
            self._enter_phase(now)
        return True

    def toggle_pause(self, now: float) -> bool:
        if self.state.paused:
            return self.resume(now)
        return self.pause(now)

    def stop(self) -> bool:
        """Abandon the session: phase goes to idle and every timer is cleared.

        No completion reward is applied. No-op when idle or already complete.
        """
        if not self.state.is_active:
            return False
        previous = self.state.phase
        self._deadlines.clear()
        self.state.phase = "idle"
        self.state.paused = False
        self.state.in_cycle_pause = False
        self._finished = True
        logger.bind(phase=previous, cycle=self.state.cycle_index, breath_count=self.state.breath_count).info(
            "Session stopped"
        )
        return True

    # -----------------------------
    # Internals
    # -----------------------------

    def _tick_preparation(self, now: float) -> None:
        deadline = self._deadlines.get(PREPARATION_TIMER)
        if deadline is None or now < deadline:
            return

        self.state.preparation_remaining -= 1
        if self.state.preparation_remaining > 0:
            self._deadlines[PREPARATION_TIMER] = deadline + 1
            self._events.emit(CountdownTick(seconds_remaining=self.state.preparation_remaining))
            return

        self._deadlines.pop(PREPARATION_TIMER, None)
        self._begin_breathing(now)

    def _begin_breathing(self, now: float) -> None:
        state = self.state
        state.phase = "inhale"
        state.active_nostril = "left"
        state.breath_count = 0
        state.cycle_index = 0
        state.breathing_started_at = now
        state.phase_started_at = now
        self._deadlines[SESSION_TIMER] = now + self.total_duration_seconds
        self._enter_phase(now)
        self._events.emit(SessionClockTick(seconds_remaining=math.ceil(self.total_duration_seconds)))

    def _enter_phase(self, now: float) -> None:
        duration = self.phase_duration_for(self.state.phase)
        self._deadlines[PHASE_TIMER] = now + duration
        self._events.emit(PhaseChanged(phase=self.state.phase, nostril=self.state.active_nostril))
        self._events.emit(CountdownTick(seconds_remaining=duration))

    def _end_cycle_pause(self, now: float) -> None:
        self.state.in_cycle_pause = False
        self._deadlines.pop(CYCLE_PAUSE_TIMER, None)
        self.state.phase_started_at = now
        self._enter_phase(now)

    def _tick_session_clock(self, now: float) -> bool:
        deadline = self._deadlines.get(SESSION_TIMER)
        if deadline is None:
            return False
        remaining = deadline - now
        if remaining <= 0:
            self._complete(now, "duration")
            return True
        self._events.emit(SessionClockTick(seconds_remaining=math.ceil(remaining)))
        return False

    def _complete(self, now: float, reason: CompletionReason) -> None:
        self._deadlines.clear()
        self.state.phase = "complete"
        self.state.paused = False
        self.state.in_cycle_pause = False
        self.completion_reason = reason
        self.completed_at = now
        self._finished = True

        logger.bind(
            reason=reason,
            cycles=self.state.cycle_index,
            total_cycles=self.state.total_cycles,
            breath_count=self.state.breath_count,
        ).info("Session complete")
        self._events.emit(PhaseChanged(phase="complete", nostril=self.state.active_nostril))
        if self._on_complete is not None:
            self._on_complete(self, reason, now)
