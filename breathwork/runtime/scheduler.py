"""Asyncio drivers for a running session.

Three periodic drivers share one event loop:
- tick: 1 Hz phase and session countdown
- ambient poll: ~2 s readings from the metrics source, regardless of session state
- refresh: ~0.5 s in-session breath-rhythm and quality refresh

Every handler runs synchronously to completion between awaits, so updates to
session state are serial and never re-entrant.
"""

import asyncio
import time
from collections.abc import Callable
from typing import Protocol

from loguru import logger

from breathwork.coach import BreathingCoach
from breathwork.config.settings import Settings, settings
from breathwork.metrics.types import MetricsReading


class MetricsSource(Protocol):
    def read(self) -> MetricsReading | None:
        """Return the latest scored reading, or None when none is available."""
        ...


class SteadyMetricsSource:
    """Metrics source that always reports the same reading."""

    def __init__(self, reading: MetricsReading) -> None:
        self.reading = reading

    def read(self) -> MetricsReading | None:
        return self.reading


class SessionRunner:
    """Runs the coach's periodic drivers until the active session ends."""

    def __init__(
        self,
        coach: BreathingCoach,
        *,
        metrics_source: MetricsSource | None = None,
        app_settings: Settings = settings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.coach = coach
        self.metrics_source = metrics_source
        self._settings = app_settings
        self._clock = clock
        self._finished = asyncio.Event()

    async def run(self) -> None:
        """Drive the active session until it completes or is stopped.

        Cancelling the run stops the session, so no driver outlives it.
        """
        if not self.coach.is_session_active:
            logger.warning("SessionRunner.run() called without an active session")
            return

        self._finished.clear()
        tasks = [
            asyncio.create_task(self._periodic("tick", self._settings.tick_interval_seconds, self._on_tick)),
            asyncio.create_task(
                self._periodic("ambient_poll", self._settings.ambient_poll_interval_seconds, self._on_ambient_poll)
            ),
            asyncio.create_task(
                self._periodic("refresh", self._settings.metrics_refresh_interval_seconds, self._on_refresh)
            ),
        ]
        try:
            await self._finished.wait()
        finally:
            for task in tasks:
                task.cancel()
            results = await asyncio.gather(*tasks, return_exceptions=True)
            if self.coach.is_session_active:
                self.coach.stop_session()
            logger.debug("Session drivers stopped")

        for result in results:
            if isinstance(result, Exception):
                raise result

    async def _periodic(self, name: str, interval: float, handler: Callable[[], None]) -> None:
        while not self._finished.is_set():
            await asyncio.sleep(interval)
            try:
                handler()
            except Exception:
                logger.bind(driver=name).opt(exception=True).error("Session driver failed")
                self._finished.set()
                raise

    def _on_tick(self) -> None:
        self.coach.tick(self._clock())
        if not self.coach.is_session_active:
            self._finished.set()

    def _on_ambient_poll(self) -> None:
        if self.metrics_source is None:
            return
        reading = self.metrics_source.read()
        if reading is not None:
            self.coach.feed_metrics(reading)

    def _on_refresh(self) -> None:
        self.coach.refresh_metrics(self._clock())
