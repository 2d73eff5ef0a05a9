"""
Unit tests for PostFetcher (AppView getPosts) using httpx.MockTransport.
"""

import httpx
import pytest

from reply_labeler.atproto.exceptions import InvalidRecord, PostFetchError, PostNotFound
from reply_labeler.atproto.post_fetcher import PostFetcher


URI = "at://did:plc:op/app.bsky.feed.post/3kparent"


def make_fetcher(handler) -> PostFetcher:
    return PostFetcher(base_url="http://appview.test", transport=httpx.MockTransport(handler))


async def test_fetch_post_success():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["uris"] = request.url.params.get("uris")
        return httpx.Response(
            200,
            json={
                "posts": [
                    {
                        "uri": URI,
                        "cid": "bafy",
                        "author": {"did": "did:plc:op", "handle": "op.test"},
                        "record": {"$type": "app.bsky.feed.post", "text": "hello", "createdAt": "x"},
                    }
                ]
            },
        )

    fetcher = make_fetcher(handler)
    post = await fetcher.fetch_post(URI)
    await fetcher.close()

    assert seen == {"path": "/xrpc/app.bsky.feed.getPosts", "uris": URI}
    assert post.uri == URI
    assert post.author_did == "did:plc:op"
    assert post.text == "hello"


async def test_empty_posts_raises_not_found():
    fetcher = make_fetcher(lambda request: httpx.Response(200, json={"posts": []}))

    with pytest.raises(PostNotFound) as exc_info:
        await fetcher.fetch_post(URI)

    assert "empty response" in exc_info.value.message


async def test_non_post_record_raises_invalid_record():
    def handler(request):
        return httpx.Response(
            200,
            json={"posts": [{"uri": URI, "author": {"did": "did:plc:op"}, "record": {"$type": "app.bsky.feed.like"}}]},
        )

    fetcher = make_fetcher(handler)

    with pytest.raises(InvalidRecord):
        await fetcher.fetch_post(URI)


async def test_undecodable_record_raises_invalid_record():
    def handler(request):
        return httpx.Response(
            200,
            json={"posts": [{"uri": URI, "author": {"did": "did:plc:op"}, "record": {"text": 42}}]},
        )

    fetcher = make_fetcher(handler)

    with pytest.raises(InvalidRecord):
        await fetcher.fetch_post(URI)


async def test_http_error_status_raises_fetch_error():
    fetcher = make_fetcher(lambda request: httpx.Response(502, text="bad gateway"))

    with pytest.raises(PostFetchError) as exc_info:
        await fetcher.fetch_post(URI)

    assert exc_info.value.details["status"] == 502


async def test_transport_error_raises_fetch_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    fetcher = make_fetcher(handler)

    with pytest.raises(PostFetchError):
        await fetcher.fetch_post(URI)


async def test_non_json_body_raises_fetch_error():
    fetcher = make_fetcher(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(PostFetchError):
        await fetcher.fetch_post(URI)


@pytest.mark.parametrize(
    "posts",
    [
        [{"uri": URI, "author": {"did": "did:plc:op"}, "record": "oops"}],
        [{"uri": URI, "author": {"did": "did:plc:op"}, "record": ["a"]}],
        ["oops"],
    ],
)
async def test_wrongly_shaped_post_raises_invalid_record(posts):
    fetcher = make_fetcher(lambda request: httpx.Response(200, json={"posts": posts}))

    with pytest.raises(InvalidRecord):
        await fetcher.fetch_post(URI)


async def test_wrongly_shaped_quote_embed_raises_invalid_record():
    record = {
        "$type": "app.bsky.feed.post",
        "text": "hello",
        "embed": {"$type": "app.bsky.embed.recordWithMedia", "record": {"record": "oops"}},
    }
    fetcher = make_fetcher(
        lambda request: httpx.Response(
            200, json={"posts": [{"uri": URI, "author": {"did": "did:plc:op"}, "record": record}]}
        )
    )

    with pytest.raises(InvalidRecord):
        await fetcher.fetch_post(URI)
