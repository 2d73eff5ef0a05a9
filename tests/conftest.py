"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import json
from typing import Any, Optional

import pytest

from reply_labeler.config import Settings
from reply_labeler.models.events import StreamEvent
from reply_labeler.models.posts import Post, PostRecord


OP_DID = "did:plc:watchedoperator"
LOG_OP_DID = "did:plc:logonlyoperator"
REPLIER_DID = "did:plc:replier"
PARENT_URI = f"at://{OP_DID}/app.bsky.feed.post/3kparent"


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Settings are frozen; derive variants with model_copy:
        def test_something(test_settings):
            settings = test_settings.model_copy(update={"DRY_RUN": True})
    """
    return Settings(
        # === Application ===
        APP_NAME="Reply Labeler (Test)",
        APP_VERSION="0.1.0",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Operators ===
        WATCHED_OPS=[OP_DID],
        WATCHED_LOG_OPS=[LOG_OP_DID],

        # === Policy ===
        PROFILE="classifier",
        ORACLE_FIELDS=["bad_faith", "off_topic", "funny"],
        LOGGED_LABELS=[],
        LOG_NO_LABEL=False,

        # === Endpoints ===
        LABELER_URL="http://labeler.test",
        LABELER_KEY="test-key",
        ORACLE_BASE_URL="http://oracle.test",
        APPVIEW_URL="http://appview.test",

        # === Redis ===
        REDIS_URL=None,

        PROMETHEUS_ENABLED=False,  # Disable metrics server in tests
    )


@pytest.fixture
def create_record():
    """Factory fixture to build raw app.bsky.feed.post record dicts.

    Usage:
        def test_something(create_record):
            record = create_record(text="hi", parent_uri=PARENT_URI)
    """
    def _create(
        text: str = "a reply",
        parent_uri: Optional[str] = None,
        quote_uri: Optional[str] = None,
        with_media: bool = False,
        links: tuple[str, ...] = (),
        external_uri: Optional[str] = None,
    ) -> dict[str, Any]:
        record: dict[str, Any] = {
            "$type": "app.bsky.feed.post",
            "text": text,
            "createdAt": "2025-01-01T12:00:00.000Z",
        }
        if parent_uri is not None:
            record["reply"] = {
                "parent": {"uri": parent_uri, "cid": "bafyparent"},
                "root": {"uri": parent_uri, "cid": "bafyparent"},
            }
        if quote_uri is not None:
            quoted = {"uri": quote_uri, "cid": "bafyquoted"}
            if with_media:
                record["embed"] = {
                    "$type": "app.bsky.embed.recordWithMedia",
                    "record": {"$type": "app.bsky.embed.record", "record": quoted},
                    "media": {"$type": "app.bsky.embed.images", "images": []},
                }
            else:
                record["embed"] = {"$type": "app.bsky.embed.record", "record": quoted}
        if external_uri is not None:
            record["embed"] = {
                "$type": "app.bsky.embed.external",
                "external": {"uri": external_uri, "title": "", "description": ""},
            }
        if links:
            record["facets"] = [
                {
                    "index": {"byteStart": 0, "byteEnd": 1},
                    "features": [{"$type": "app.bsky.richtext.facet#link", "uri": link}],
                }
                for link in links
            ]
        return record

    return _create


@pytest.fixture
def create_event(create_record):
    """Factory fixture to build Jetstream commit events.

    Usage:
        def test_something(create_event):
            event = create_event(parent_uri=PARENT_URI, text="lol")
    """
    def _create(
        did: str = REPLIER_DID,
        rkey: str = "3kreply",
        operation: str = "create",
        collection: str = "app.bsky.feed.post",
        time_us: int = 1_700_000_000_000_000,
        record: Optional[dict[str, Any]] = None,
        **record_kwargs,
    ) -> StreamEvent:
        if record is None and operation != "delete":
            record = create_record(**record_kwargs)
        return StreamEvent.model_validate(
            {
                "did": did,
                "time_us": time_us,
                "kind": "commit",
                "commit": {
                    "rev": "3krev",
                    "operation": operation,
                    "collection": collection,
                    "rkey": rkey,
                    "record": record,
                    "cid": "bafyreply",
                },
            }
        )

    return _create


@pytest.fixture
def event_json(create_event):
    """Factory fixture returning an event as a raw websocket message."""
    def _create(**kwargs) -> str:
        return json.dumps(create_event(**kwargs).model_dump(mode="json"))

    return _create


@pytest.fixture
def parent_post(create_record) -> Post:
    """The watched operator's post that replies answer."""
    return Post(
        uri=PARENT_URI,
        author_did=OP_DID,
        record=PostRecord.model_validate(create_record(text="Here is my opinion")),
    )
