"""
Redis persistence layer.

- redis_client.py: Redis connection pooling (asyncio)
- repository.py: audit log, emission ledger and dead letter queue

Storage Strategy:
- Audit entries stored as hashes with sorted-set indexes (no TTL)
- Emission ledger keys expire after EMIT_DEDUPE_TTL_SECONDS
- DLQ entries stored in a Redis List (capped at DLQ_MAX_ENTRIES)
"""

from reply_labeler.persistence.redis_client import (
    RedisClient,
    get_async_redis_client,
)
from reply_labeler.persistence.repository import (
    AuditRepository,
    EmissionLedger,
    DeadLetterRepository,
)
from reply_labeler.persistence.exceptions import AuditWriteError

__all__ = [
    "RedisClient",
    "get_async_redis_client",
    "AuditRepository",
    "EmissionLedger",
    "DeadLetterRepository",
    "AuditWriteError",
]
