"""
Reply Labeler for Bluesky watched operators.

Consumes the Jetstream firehose, classifies replies and quote-posts aimed at
watched operators and routes the verdict to moderation labels:
- Ancestor resolution (reply parent, quoted record)
- Parent post lookup with an LRU + TTL cache
- Classification via an OpenAI-compatible chat completions endpoint
- Label emission to a labeler service and audit logging to Redis

Architecture: single sequential asyncio consumer + httpx clients + Redis
"""

__version__ = "0.1.0"
