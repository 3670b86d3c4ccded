"""Shared fixtures for the security layer tests."""

import pytest

from foodlink.app.core.config import Settings
from foodlink.app.core.security import SecurityService
from foodlink.app.core.storage import InMemoryKeyValueStore


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        allowed_origins=["https://foodlink.example", "http://localhost:3000"],
    )


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(max_bytes=1024)


@pytest.fixture
def security(test_settings, clock, store) -> SecurityService:
    return SecurityService(settings=test_settings, storage=store, clock=clock)
