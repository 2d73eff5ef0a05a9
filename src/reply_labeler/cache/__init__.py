"""
Caching layer.

- post_cache.py: LRU + TTL cache of fetched parent posts
"""

from reply_labeler.cache.post_cache import PostCache, PostSource

__all__ = ["PostCache", "PostSource"]
