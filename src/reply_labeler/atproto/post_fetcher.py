"""
Post fetcher backed by the Bluesky AppView.

Uses `app.bsky.feed.getPosts` over httpx AsyncClient:

    GET /xrpc/app.bsky.feed.getPosts?uris=<at-uri>

Response:
{
    "posts": [
        {"uri": "at://...", "cid": "...", "author": {"did": "did:plc:..."}, "record": {...}}
    ]
}
"""

from typing import Optional

import httpx
import structlog
from pydantic import ValidationError

from reply_labeler.atproto.exceptions import (
    InvalidRecord,
    PostFetchError,
    PostNotFound,
)
from reply_labeler.models.enums import POST_COLLECTION
from reply_labeler.models.posts import Post, PostRecord


logger = structlog.get_logger(__name__)


class PostFetcher:
    """
    Remote post lookup by canonical AT-URI.

    Holds a persistent AsyncClient for connection pooling; call `close()`
    on shutdown.
    """

    GET_POSTS = "/xrpc/app.bsky.feed.getPosts"

    def __init__(
        self,
        base_url: str = "https://public.api.bsky.app",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: AppView (or PDS) URL serving app.bsky.feed.getPosts
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def fetch_post(self, uri: str) -> Post:
        """
        Fetch a single post.

        Raises:
            PostNotFound: AppView returned no posts
            InvalidRecord: the record is not a decodable app.bsky.feed.post
            PostFetchError: transport or HTTP status failure
        """
        client = await self._get_client()
        try:
            response = await client.get(self.GET_POSTS, params={"uris": uri})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise PostFetchError(
                f"AppView returned {e.response.status_code} for getPosts",
                details={"uri": uri, "status": e.response.status_code, "body": e.response.text[:500]},
            ) from e
        except httpx.HTTPError as e:
            raise PostFetchError(
                f"failed to get post: {e}",
                details={"uri": uri, "error_type": type(e).__name__},
            ) from e
        except ValueError as e:
            raise PostFetchError(
                "AppView returned a non-JSON body",
                details={"uri": uri},
            ) from e

        posts = (data.get("posts") or []) if isinstance(data, dict) else []
        if not posts:
            raise PostNotFound("failed to get posts (empty response)", details={"uri": uri})

        view = posts[0]
        if not isinstance(view, dict):
            raise InvalidRecord(
                "failed to get post (invalid post view)",
                details={"uri": uri, "type": type(view).__name__},
            )
        raw_record = view.get("record") or {}
        if not isinstance(raw_record, dict):
            raise InvalidRecord(
                "failed to get post (invalid record)",
                details={"uri": uri, "type": type(raw_record).__name__},
            )
        if raw_record.get("$type", POST_COLLECTION) != POST_COLLECTION:
            raise InvalidRecord(
                "failed to get post (invalid record)",
                details={"uri": uri, "type": raw_record.get("$type")},
            )

        try:
            record = PostRecord.model_validate(raw_record)
        except ValidationError as e:
            raise InvalidRecord(
                "failed to get post (invalid record)",
                details={"uri": uri, "errors": e.errors()[:5]},
            ) from e

        author_did = (view.get("author") or {}).get("did", "")
        logger.debug("Fetched post", uri=uri, author_did=author_did)
        return Post(uri=view.get("uri", uri), author_did=author_did, record=record)

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
