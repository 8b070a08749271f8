import asyncio

import pytest

from breathwork.coach import BreathingCoach
from breathwork.config.settings import Settings
from breathwork.metrics.types import MetricsReading
from breathwork.patterns.catalog import get_pattern
from breathwork.runtime.scheduler import SessionRunner, SteadyMetricsSource
from breathwork.session.types import SessionConfig

STEADY = MetricsReading(posture=90, eye_closure=95, head_stability=90, breath_rhythm=92)


class SteppingClock:
    """Advances one second every time it is read."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


class ExplodingSource:
    def read(self) -> MetricsReading | None:
        raise RuntimeError("camera disconnected")


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(
        _env_file=None,
        tick_interval_seconds=0.001,
        ambient_poll_interval_seconds=0.001,
        metrics_refresh_interval_seconds=0.001,
    )


@pytest.fixture
def fast_coach(repository, events, fast_settings) -> BreathingCoach:
    return BreathingCoach(repository, events=events, app_settings=fast_settings)


@pytest.mark.asyncio
async def test_runner_drives_session_to_completion(fast_coach, fast_settings):
    fast_coach.start_session(SessionConfig(pattern=get_pattern("master_4_7_8"), duration_minutes=1), now=0.0)
    runner = SessionRunner(
        fast_coach,
        metrics_source=SteadyMetricsSource(STEADY),
        app_settings=fast_settings,
        clock=SteppingClock(),
    )

    await asyncio.wait_for(runner.run(), timeout=5)

    assert not fast_coach.is_session_active
    assert fast_coach.last_result is not None
    assert fast_coach.progress.total_sessions == 1


@pytest.mark.asyncio
async def test_runner_without_session_returns_immediately(fast_coach, fast_settings):
    runner = SessionRunner(fast_coach, app_settings=fast_settings)
    await asyncio.wait_for(runner.run(), timeout=1)
    assert fast_coach.last_result is None


@pytest.mark.asyncio
async def test_cancelling_runner_stops_session(fast_coach, fast_settings):
    """No driver outlives a cancelled run, and the session is abandoned."""
    fast_coach.start_session(now=0.0)
    runner = SessionRunner(fast_coach, app_settings=fast_settings, clock=lambda: 0.0)

    task = asyncio.create_task(runner.run())
    await asyncio.sleep(0.02)
    assert fast_coach.is_session_active

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert not fast_coach.is_session_active
    assert fast_coach.progress.total_sessions == 0


@pytest.mark.asyncio
async def test_driver_failure_propagates_and_stops_session(fast_coach, fast_settings):
    fast_coach.start_session(now=0.0)
    runner = SessionRunner(
        fast_coach,
        metrics_source=ExplodingSource(),
        app_settings=fast_settings,
        clock=lambda: 0.0,
    )

    with pytest.raises(RuntimeError, match="camera disconnected"):
        await asyncio.wait_for(runner.run(), timeout=5)

    assert not fast_coach.is_session_active
