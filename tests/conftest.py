"""
Shared fixtures.

Every test gets its own Database driven by a controllable clock, so dates
("today", created_at ordering, month windows) are deterministic.
"""

from datetime import datetime, timedelta

import pytest

from yosan.config import YosanSettings
from yosan.orchestrator import create_app_components
from yosan.queries import LiveQueries, LiveQueryManager
from yosan.store import Database

# A Monday
FIXED_NOW = datetime(2026, 10, 19, 10, 0)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db(clock):
    return Database(clock=clock)


@pytest.fixture
def manager(db):
    manager = LiveQueryManager(db, max_notification_rounds=10)
    yield manager
    manager.close()


@pytest.fixture
def live(manager):
    return LiveQueries(manager)


@pytest.fixture
def config():
    return YosanSettings(_env_file=None, seed_default_data=False, json_logs=False)


@pytest.fixture
def app(config, clock):
    app = create_app_components(settings=config, clock=clock)
    yield app
    app.close()
