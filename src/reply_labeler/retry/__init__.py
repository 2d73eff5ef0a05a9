"""
Retry policy for external boundaries.

- RetryPolicy: attempt budget and exponential backoff
- retry_async: run a coroutine factory under a policy
"""

from reply_labeler.retry.policy import NO_RETRY, RetryPolicy, retry_async

__all__ = ["NO_RETRY", "RetryPolicy", "retry_async"]
