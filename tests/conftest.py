"""
Shared pytest fixtures and configuration for all tests.
"""
import os
from unittest.mock import MagicMock

import pytest

# Hypothesis configuration for property-based testing
from hypothesis import settings, Verbosity, Phase

from session.record import SessionRecord
from session.redis_store import RedisSessionDataStore
from session.serializer import JsonAttributeSerializer
from tests.fakes import FakeExecutor, FakeRedis

# Configure Hypothesis profiles for different environments
# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,  # Print failing examples for debugging
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,  # Reproducible results in CI
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],  # Skip shrinking for speed
)

# Load profile from environment variable HYPOTHESIS_PROFILE, default to "default"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture
def fake_redis() -> FakeRedis:
    """In-memory Redis double."""
    return FakeRedis()


@pytest.fixture
def fake_executor(fake_redis: FakeRedis) -> FakeExecutor:
    """Executor running operations against fake_redis."""
    return FakeExecutor(fake_redis)


@pytest.fixture
def serializer() -> JsonAttributeSerializer:
    return JsonAttributeSerializer()


@pytest.fixture
def clock() -> MagicMock:
    """Wall clock returning a fixed epoch-millisecond time."""
    return MagicMock(return_value=1_700_000_000_000)


@pytest.fixture
def store(fake_executor, serializer, clock):
    """Started RedisSessionDataStore over the fake executor."""
    session_store = RedisSessionDataStore(fake_executor, serializer, clock=clock)
    session_store.start()
    yield session_store
    session_store.stop()


@pytest.fixture
def sample_record() -> SessionRecord:
    """Sample session with a 30 minute idle timeout."""
    return SessionRecord(
        id="node0abc123",
        context_path="/shop",
        virtual_host="0.0.0.0",
        created=1_699_999_000_000,
        accessed=1_699_999_500_000,
        last_accessed=1_699_999_900_000,
        max_inactive_ms=1_800_000,
        cookie_set=1_699_999_000_000,
        attributes={"user": "alice", "cart": [1, 2, 3]},
    )


@pytest.fixture
def mock_redis() -> MagicMock:
    """Create a mock Redis client for unit tests."""
    mock = MagicMock()
    mock.ping = MagicMock(return_value=True)
    mock.exists = MagicMock(return_value=0)
    mock.delete = MagicMock(return_value=1)
    return mock
