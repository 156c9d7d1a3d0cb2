"""Shared fakes: in-memory storage, a controllable clock and a recording dispatcher."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from alarmhook.domain.scheduler import Scheduler
from alarmhook.domain.store import AlarmStore
from alarmhook.domain.trigger import TriggerEngine
from alarmhook.ports.outbound import SUCCESS, DeliveryOutcome

PRIMARY_URL = "https://primary.example.com/hook"

# Wednesday
START = datetime(2025, 8, 27, 15, 0, tzinfo=timezone.utc)


class MemoryStorage:
    def __init__(self, records=None, fail=False):
        self.records = list(records or [])
        self.saves = 0
        self.fail = fail

    def load_all(self):
        return [dict(r) for r in self.records]

    def save_all(self, records):
        if self.fail:
            raise OSError("disk full")
        self.records = list(records)
        self.saves += 1


class FakeClock:
    """Settable clock with a sleep that moves it forward.

    ``sleep`` only advances while ``sleeps_allowed`` is positive; after that it
    parks until cancelled, so a re-armed timer just sits there.
    """

    def __init__(self, now: datetime):
        self.now = now
        self.sleeps = []
        self.sleeps_allowed = 0

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        if self.sleeps_allowed <= 0:
            await asyncio.Event().wait()
        self.sleeps_allowed -= 1
        self.now += timedelta(seconds=seconds)


class FakeDispatcher:
    """Records every send; per-URL outcomes (or exceptions) can be preset."""

    def __init__(self, outcomes=None):
        self.outcomes = dict(outcomes or {})
        self.calls = []

    async def send(self, url, payload, timeout=None):
        self.calls.append((url, payload, timeout))
        outcome = self.outcomes.get(url)
        if outcome is None:
            return DeliveryOutcome(kind=SUCCESS, status_code=200, reason="OK", body="ok")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def urls(self):
        return [url for url, _, _ in self.calls]


@pytest.fixture
def clock():
    return FakeClock(START)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return AlarmStore(storage)


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def engine(store, dispatcher, clock):
    return TriggerEngine(store, dispatcher, PRIMARY_URL, timeout=10.0, clock=clock)


@pytest.fixture
def scheduler(store, engine, clock):
    return Scheduler(store, engine, clock=clock, sleep=clock.sleep)


@pytest.fixture
def eventually():
    """Poll ``predicate`` on the real loop until true (or fail after ``timeout``)."""

    async def _wait(predicate, timeout=2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not reached in time")
            await asyncio.sleep(0.01)

    return _wait
