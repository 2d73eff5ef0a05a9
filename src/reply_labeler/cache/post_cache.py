"""
Bounded post cache.

Maps post URI -> Post with a fixed per-entry TTL and LRU eviction once
`capacity` is exceeded. Lookups go through `get()`, which fetches on a miss
and stores only successful results, so failed lookups are retried on the
next request for the same URI.

Not thread-safe. The pipeline processes one event at a time.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Protocol

import structlog

from reply_labeler.models.posts import Post
from reply_labeler.monitoring.metrics import post_cache_requests_total


logger = structlog.get_logger(__name__)


class PostSource(Protocol):
    """Anything that can fetch a post by URI (PostFetcher in production)."""

    async def fetch_post(self, uri: str) -> Post:
        ...


@dataclass
class _Entry:
    post: Post
    expires_at: float


class PostCache:
    """LRU + TTL cache with a get-or-fetch interface."""

    def __init__(
        self,
        source: PostSource,
        capacity: int = 100,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            source: Post fetcher used on a miss
            capacity: Maximum number of entries kept
            ttl_seconds: Lifetime of an entry from the moment it was stored
            clock: Monotonic time source (injectable for tests)
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.source = source
        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()

    async def get(self, uri: str) -> Post:
        """
        Return the post for `uri`, fetching it on a miss.

        Raises whatever the source raises (PostNotFound, InvalidRecord,
        PostFetchError); nothing is stored in that case.
        """
        entry = self._entries.get(uri)
        if entry is not None:
            if entry.expires_at > self._clock():
                self._entries.move_to_end(uri)
                post_cache_requests_total.labels(result="hit").inc()
                return entry.post
            del self._entries[uri]
            post_cache_requests_total.labels(result="expired").inc()
        else:
            post_cache_requests_total.labels(result="miss").inc()

        post = await self.source.fetch_post(uri)
        self.put(uri, post)
        return post

    def put(self, uri: str, post: Post) -> None:
        self._entries[uri] = _Entry(post=post, expires_at=self._clock() + self.ttl_seconds)
        self._entries.move_to_end(uri)
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted post from cache", uri=evicted)

    def __contains__(self, uri: str) -> bool:
        entry = self._entries.get(uri)
        return entry is not None and entry.expires_at > self._clock()

    def __len__(self) -> int:
        return len(self._entries)
