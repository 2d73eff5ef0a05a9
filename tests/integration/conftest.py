"""Integration test fixtures (service checks and prerequisites).

Provides fixtures for checking if external services are available.
Integration tests are skipped if required services are not running.
"""

import pytest
from redis.asyncio import Redis as AsyncRedis


@pytest.fixture
async def real_async_redis_client():
    """Real AsyncRedis client instance for integration tests (async).

    Skips tests if Redis is not reachable at localhost:6379.
    Uses database 15 (test database).
    """
    client = AsyncRedis.from_url("redis://localhost:6379/15", decode_responses=True)
    try:
        await client.ping()
    except Exception as e:
        await client.aclose()
        pytest.skip(f"Redis not available: {e}")

    # Clear test database before test
    await client.flushdb()

    yield client

    # Clear test database after test
    await client.flushdb()
    await client.aclose()


@pytest.fixture
def integration_settings(test_settings):
    """Settings for integration tests with Redis-backed persistence."""
    return test_settings.model_copy(
        update={
            "REDIS_URL": "redis://localhost:6379/15",  # Test database
            "LOGGED_LABELS": ["bad-faith", "off-topic", "funny"],
            "LOG_NO_LABEL": True,
            "EMIT_DEDUPE_TTL_SECONDS": 60,
        }
    )
