"""Root conftest for all tests.

Shared fixtures: an in-memory progress store, an event recorder and a coach
with a fixed calendar day and a clock that only moves when told to.
"""

from datetime import date

import pytest
from loguru import logger

from breathwork.coach import BreathingCoach
from breathwork.config.settings import Settings
from breathwork.persistence.repository import ProgressRepository
from breathwork.persistence.store import InMemoryStore
from breathwork.session.events import EventBus

TODAY = date(2026, 10, 19)


class EventRecorder:
    """Subscriber that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list = []

    def __call__(self, event) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> list:
        return [event for event in self.events if isinstance(event, event_type)]

    def clear(self) -> None:
        self.events.clear()


class ManualClock:
    """Clock that returns `now` until advanced."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep test output free of loguru's default stderr sink."""
    logger.remove()
    yield


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def events(recorder: EventRecorder) -> EventBus:
    bus = EventBus()
    bus.subscribe(recorder)
    return bus


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def repository(store: InMemoryStore) -> ProgressRepository:
    return ProgressRepository(store)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def coach(repository: ProgressRepository, events: EventBus, test_settings: Settings, clock: ManualClock) -> BreathingCoach:
    return BreathingCoach(repository, events=events, app_settings=test_settings, clock=clock, today=lambda: TODAY)
