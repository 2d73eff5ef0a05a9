"""
AT Protocol helpers.

Components:
- AtUri: AT-URI parsing
- resolve_ancestor: reply parent / quoted record resolution
- PostFetcher: app.bsky.feed.getPosts lookups
- exceptions: record and lookup errors
"""

from reply_labeler.atproto.at_uri import AtUri
from reply_labeler.atproto.ancestor import Ancestor, find_ancestor_uri, resolve_ancestor
from reply_labeler.atproto.post_fetcher import PostFetcher
from reply_labeler.atproto.exceptions import (
    ATProtoError,
    MalformedReference,
    InvalidURI,
    PostNotFound,
    InvalidRecord,
    PostFetchError,
)

__all__ = [
    "AtUri",
    "Ancestor",
    "find_ancestor_uri",
    "resolve_ancestor",
    "PostFetcher",
    "ATProtoError",
    "MalformedReference",
    "InvalidURI",
    "PostNotFound",
    "InvalidRecord",
    "PostFetchError",
]
