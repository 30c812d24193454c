import os

# Configure before asap_agent.config is first imported
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DEEPSEEK_API_KEY", "")
os.environ.setdefault("OPENROUTER_API_KEY", "")

import pytest

from asap_agent.cache import SimilarityResponseCache
from asap_agent.exceptions import StorageError
from asap_agent.storage import MemoryStorage


class FakeClock:
    """Manually advanced epoch-milliseconds clock."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FailingStorage:
    """Storage whose reads and/or writes always fail."""

    def __init__(self, fail_load: bool = True, fail_save: bool = True):
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.save_attempts = 0

    def load(self, key):
        if self.fail_load:
            raise StorageError("quota exceeded")
        return None

    def save(self, key, blob):
        self.save_attempts += 1
        if self.fail_save:
            raise StorageError("quota exceeded")

    def delete(self, key):
        if self.fail_save:
            raise StorageError("quota exceeded")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def cache(storage, clock):
    return SimilarityResponseCache(storage=storage, max_size=50, ttl_ms=24 * 60 * 60 * 1000, clock=clock)
