"""Unit test fixtures (mocks and stubs).

Provides mock objects for testing without external dependencies.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from reply_labeler.dispatch.dispatcher import Dispatcher
from reply_labeler.models.verdict import ClassificationVerdict


@pytest.fixture
def mock_async_redis():
    """Mock AsyncRedis client for unit tests (async)."""
    mock = AsyncMock()
    mock.incr = AsyncMock(return_value=1)
    mock.set = AsyncMock(return_value=True)
    mock.get = AsyncMock(return_value=None)
    mock.hset = AsyncMock(return_value=1)
    mock.hgetall = AsyncMock(return_value={})
    mock.lpush = AsyncMock(return_value=1)
    mock.ltrim = AsyncMock(return_value=True)
    mock.lrange = AsyncMock(return_value=[])
    mock.llen = AsyncMock(return_value=0)
    mock.delete = AsyncMock(return_value=1)
    mock.zadd = AsyncMock(return_value=1)
    mock.zcard = AsyncMock(return_value=0)
    mock.zrevrange = AsyncMock(return_value=[])
    # pipeline() is synchronous; queued commands run on execute()
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    mock.pipeline = MagicMock(return_value=pipe)
    return mock


@pytest.fixture
def mock_dispatcher():
    """Mock Dispatcher: every emission is sent, every audit succeeds."""
    mock = MagicMock(spec=Dispatcher)
    mock.emit = AsyncMock(return_value=True)
    mock.audit = AsyncMock(return_value="1")
    return mock


@pytest.fixture
def mock_oracle():
    """Mock oracle client returning an all-false verdict."""
    mock = AsyncMock()
    mock.classify = AsyncMock(
        return_value=ClassificationVerdict(
            flags={"bad_faith": False, "off_topic": False, "funny": False}
        )
    )
    mock.health_check = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def mock_post_source():
    """Mock PostSource (PostFetcher stand-in)."""
    mock = AsyncMock()
    mock.fetch_post = AsyncMock()
    return mock
