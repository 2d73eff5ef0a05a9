"""
Unit tests for AuditRepository, EmissionLedger and DeadLetterRepository.
"""

import json
from datetime import datetime, timezone

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from reply_labeler.models.audit import AuditEntry
from reply_labeler.persistence.exceptions import AuditWriteError
from reply_labeler.persistence.repository import (
    AuditRepository,
    DeadLetterRepository,
    EmissionLedger,
)


@pytest.fixture
def sample_entry():
    """Sample AuditEntry for testing."""
    return AuditEntry(
        parent_did="did:plc:op",
        author_did="did:plc:replier",
        parent_uri="at://did:plc:op/app.bsky.feed.post/3kparent",
        author_uri="at://did:plc:replier/app.bsky.feed.post/3kreply",
        parent_text="parent",
        author_text="reply",
        label="bad-faith",
        created_at=datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc),
    )


class TestAuditRepository:

    async def test_save_writes_hash_and_indexes(self, mock_async_redis, sample_entry):
        mock_async_redis.incr.return_value = 42
        repository = AuditRepository(mock_async_redis)

        entry_id = await repository.save(sample_entry)

        assert entry_id == "42"
        mock_async_redis.incr.assert_awaited_once_with("labeler:audit:next_id")

        mock_async_redis.pipeline.assert_called_once_with(transaction=True)
        pipe = mock_async_redis.pipeline.return_value
        pipe.execute.assert_awaited_once()

        key, = pipe.hset.call_args.args
        mapping = pipe.hset.call_args.kwargs["mapping"]
        assert key == "labeler:audit:entry:42"
        assert mapping["label"] == "bad-faith"
        assert mapping["parent_did"] == "did:plc:op"
        assert all(isinstance(value, str) for value in mapping.values())

        score = sample_entry.created_at.timestamp()
        zadd_calls = [call.args for call in pipe.zadd.call_args_list]
        assert zadd_calls == [
            ("labeler:audit:index", {"42": score}),
            ("labeler:audit:label:bad-faith", {"42": score}),
            ("labeler:audit:parent:did:plc:op", {"42": score}),
        ]

    async def test_save_failure_raises_audit_write_error(self, mock_async_redis, sample_entry):
        mock_async_redis.pipeline.return_value.execute.side_effect = RedisConnectionError("down")
        repository = AuditRepository(mock_async_redis)

        with pytest.raises(AuditWriteError) as exc_info:
            await repository.save(sample_entry)

        assert exc_info.value.details["label"] == "bad-faith"

    async def test_get_round_trips_mapping(self, mock_async_redis, sample_entry):
        mock_async_redis.hgetall.return_value = sample_entry.to_redis_mapping()
        repository = AuditRepository(mock_async_redis)

        entry = await repository.get("1")

        assert entry == sample_entry

    async def test_get_missing_returns_none(self, mock_async_redis):
        repository = AuditRepository(mock_async_redis)

        assert await repository.get("404") is None

    async def test_get_recent_reads_index_newest_first(self, mock_async_redis, sample_entry):
        mock_async_redis.zrevrange.return_value = ["2", "1"]
        mock_async_redis.hgetall.side_effect = [sample_entry.to_redis_mapping(), {}]
        repository = AuditRepository(mock_async_redis)

        entries = await repository.get_recent(limit=10)

        mock_async_redis.zrevrange.assert_awaited_once_with("labeler:audit:index", 0, 9)
        assert entries == [sample_entry]

    async def test_count_by_label(self, mock_async_redis):
        mock_async_redis.zcard.return_value = 3
        repository = AuditRepository(mock_async_redis)

        assert await repository.count_by_label("funny") == 3
        mock_async_redis.zcard.assert_awaited_once_with("labeler:audit:label:funny")


class TestEmissionLedger:

    async def test_claim_uses_set_nx_with_ttl(self, mock_async_redis):
        ledger = EmissionLedger(mock_async_redis, ttl_seconds=600)

        assert await ledger.claim("at://x", "funny") is True
        mock_async_redis.set.assert_awaited_once_with(
            "labeler:emitted:funny:at://x", "1", nx=True, ex=600
        )

    async def test_claim_of_existing_pair_fails(self, mock_async_redis):
        mock_async_redis.set.return_value = None
        ledger = EmissionLedger(mock_async_redis, ttl_seconds=600)

        assert await ledger.claim("at://x", "funny") is False

    async def test_redis_outage_degrades_to_no_dedupe(self, mock_async_redis):
        mock_async_redis.set.side_effect = RedisConnectionError("down")
        ledger = EmissionLedger(mock_async_redis, ttl_seconds=600)

        assert await ledger.claim("at://x", "funny") is True

    async def test_release_deletes_key(self, mock_async_redis):
        ledger = EmissionLedger(mock_async_redis, ttl_seconds=600)

        await ledger.release("at://x", "funny")

        mock_async_redis.delete.assert_awaited_once_with("labeler:emitted:funny:at://x")

    def test_ttl_must_be_positive(self, mock_async_redis):
        with pytest.raises(ValueError):
            EmissionLedger(mock_async_redis, ttl_seconds=0)


class TestDeadLetterRepository:

    async def test_save_pushes_and_trims(self, mock_async_redis, create_event):
        event = create_event(parent_uri="at://did:plc:op/app.bsky.feed.post/3kparent")
        dlq = DeadLetterRepository(mock_async_redis, max_entries=100)

        saved = await dlq.save(event, ValueError("boom"))

        assert saved is True
        key, payload = mock_async_redis.lpush.await_args.args
        assert key == "labeler:dlq"
        data = json.loads(payload)
        assert data["uri"] == event.uri
        assert data["error_type"] == "ValueError"
        assert data["error"] == "boom"
        assert data["event"]["commit"]["rkey"] == "3kreply"
        mock_async_redis.ltrim.assert_awaited_once_with("labeler:dlq", 0, 99)

    async def test_save_failure_returns_false(self, mock_async_redis, create_event):
        mock_async_redis.lpush.side_effect = RedisConnectionError("down")
        dlq = DeadLetterRepository(mock_async_redis)

        assert await dlq.save(create_event(), ValueError("boom")) is False

    async def test_get_entries_decodes_json(self, mock_async_redis):
        mock_async_redis.lrange.return_value = ['{"uri": "at://x"}']
        dlq = DeadLetterRepository(mock_async_redis)

        assert await dlq.get_entries(limit=5) == [{"uri": "at://x"}]
        mock_async_redis.lrange.assert_awaited_once_with("labeler:dlq", 0, 4)
