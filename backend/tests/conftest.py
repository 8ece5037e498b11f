import pytest
from fastapi.testclient import TestClient

from lineserver.core.config import RelaySettings
from lineserver.main import create_app
from lineserver.services.relay_service import RelayService

START_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced millisecond clock"""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return RelaySettings(journalist_secret="s3cret", sweep_interval_seconds=3600)


@pytest.fixture
def relay(settings, clock):
    return RelayService(settings, clock=clock)


@pytest.fixture
def client(settings, relay):
    # No context manager: the lifespan (and its sweeper thread) stays off
    app = create_app(settings=settings, relay=relay)
    return TestClient(app)


@pytest.fixture
def user_hash():
    return "a" * 32
