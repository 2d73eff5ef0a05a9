"""
Repository pattern for Redis-based persistence.

Storage Strategy:
- Audit entries: Hash per entry, key = "labeler:audit:entry:{id}", id from INCR
- Audit indexes: Sorted sets (score = created_at timestamp)
    "labeler:audit:index", "labeler:audit:label:{label}", "labeler:audit:parent:{did}"
- Emission ledger: "labeler:emitted:{label}:{uri}" with SET NX EX (dedupe window)
- DLQ entries: List "labeler:dlq" with JSON entries, capped at DLQ_MAX_ENTRIES
- Audit entries never expire and are never deleted by this service
"""

import json
from datetime import datetime, timezone
from typing import Optional

import structlog
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from reply_labeler.persistence.exceptions import AuditWriteError
from reply_labeler.models.audit import AuditEntry
from reply_labeler.models.events import StreamEvent
from reply_labeler.monitoring.metrics import dlq_entries_total

logger = structlog.get_logger(__name__)


class AuditRepository:
    """
    Append-only audit log of labeling decisions.
    """

    ID_KEY = "labeler:audit:next_id"
    ENTRY_PREFIX = "labeler:audit:entry:"
    INDEX_KEY = "labeler:audit:index"
    LABEL_INDEX_PREFIX = "labeler:audit:label:"
    PARENT_INDEX_PREFIX = "labeler:audit:parent:"

    def __init__(self, redis_client: AsyncRedis):
        """
        Args:
            redis_client: AsyncRedis client instance (decode_responses=True)
        """
        self.redis = redis_client

    async def save(self, entry: AuditEntry) -> str:
        """
        Write one audit entry.

        Returns:
            The new entry id

        Raises:
            AuditWriteError: if any Redis command fails
        """
        try:
            entry_id = str(await self.redis.incr(self.ID_KEY))
            score = entry.created_at.timestamp()

            # hash and indexes land together (MULTI/EXEC)
            pipe = self.redis.pipeline(transaction=True)
            pipe.hset(f"{self.ENTRY_PREFIX}{entry_id}", mapping=entry.to_redis_mapping())
            pipe.zadd(self.INDEX_KEY, {entry_id: score})
            pipe.zadd(f"{self.LABEL_INDEX_PREFIX}{entry.label}", {entry_id: score})
            pipe.zadd(f"{self.PARENT_INDEX_PREFIX}{entry.parent_did}", {entry_id: score})
            await pipe.execute()
        except RedisError as e:
            raise AuditWriteError(
                f"failed to write audit entry: {e}",
                details={"label": entry.label, "author_uri": entry.author_uri},
            ) from e

        logger.info(
            "Saved audit entry",
            entry_id=entry_id,
            label=entry.label,
            author_uri=entry.author_uri,
        )
        return entry_id

    async def get(self, entry_id: str) -> Optional[AuditEntry]:
        data = await self.redis.hgetall(f"{self.ENTRY_PREFIX}{entry_id}")
        if not data:
            return None
        return AuditEntry.model_validate(data)

    async def get_recent(self, limit: int = 100) -> list[AuditEntry]:
        """
        Most recent entries, newest first.
        """
        return await self._load_index(self.INDEX_KEY, limit)

    async def get_by_parent(self, parent_did: str, limit: int = 100) -> list[AuditEntry]:
        return await self._load_index(f"{self.PARENT_INDEX_PREFIX}{parent_did}", limit)

    async def count_by_label(self, label: str) -> int:
        return await self.redis.zcard(f"{self.LABEL_INDEX_PREFIX}{label}")

    async def _load_index(self, index_key: str, limit: int) -> list[AuditEntry]:
        entry_ids = await self.redis.zrevrange(index_key, 0, limit - 1)
        entries = []
        for entry_id in entry_ids:
            entry = await self.get(entry_id)
            if entry is not None:
                entries.append(entry)
        return entries


class EmissionLedger:
    """
    Remembers emitted (uri, label) pairs for a dedupe window.

    Redelivered or edited posts would otherwise be labeled twice. Ledger
    failures never block emission: a Redis outage degrades to "no dedupe".
    """

    KEY_PREFIX = "labeler:emitted:"

    def __init__(self, redis_client: AsyncRedis, ttl_seconds: int):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    def _key(self, uri: str, label: str) -> str:
        return f"{self.KEY_PREFIX}{label}:{uri}"

    async def claim(self, uri: str, label: str) -> bool:
        """
        Reserve the pair for emission.

        Returns:
            False if the pair was already emitted inside the window
        """
        try:
            claimed = await self.redis.set(self._key(uri, label), "1", nx=True, ex=self.ttl_seconds)
        except RedisError as e:
            logger.warning("Emission ledger unavailable, emitting without dedupe", error=str(e))
            return True
        return bool(claimed)

    async def release(self, uri: str, label: str) -> None:
        """Forget the pair (used when the emission itself failed)."""
        try:
            await self.redis.delete(self._key(uri, label))
        except RedisError as e:
            logger.warning("Failed to release emission ledger key", error=str(e), uri=uri, label=label)


class DeadLetterRepository:
    """
    Dead letter queue for events dropped because of an error.

    Best effort: a failure to dead-letter is logged, never raised, so it
    cannot stop the consumer.
    """

    DLQ_KEY = "labeler:dlq"

    def __init__(self, redis_client: AsyncRedis, max_entries: int = 10000):
        self.redis = redis_client
        self.max_entries = max_entries

    async def save(self, event: StreamEvent, error: Exception) -> bool:
        """
        Push a failed event to the DLQ.

        Returns:
            True if saved successfully
        """
        reason = type(error).__name__
        try:
            dlq_entry = {
                "uri": event.uri,
                "did": event.did,
                "time_us": event.time_us,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error_type": reason,
                "error": str(error),
                "details": getattr(error, "details", {}),
                "event": event.model_dump(mode="json"),
            }

            await self.redis.lpush(self.DLQ_KEY, json.dumps(dlq_entry, default=str))
            await self.redis.ltrim(self.DLQ_KEY, 0, self.max_entries - 1)
        except RedisError as e:
            logger.error("Failed to save to DLQ", error=str(e), uri=event.uri, exc_info=True)
            return False

        dlq_entries_total.labels(reason=reason).inc()
        logger.info("Saved to DLQ", uri=event.uri, error_type=reason)
        return True

    async def get_entries(self, limit: int = 100) -> list[dict]:
        """
        DLQ entries for manual review, newest first.
        """
        entries_json = await self.redis.lrange(self.DLQ_KEY, 0, limit - 1)
        return [json.loads(entry) for entry in entries_json]

    async def size(self) -> int:
        return await self.redis.llen(self.DLQ_KEY)
