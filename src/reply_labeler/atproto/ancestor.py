"""
Ancestor resolution.

Finds the post a record replies to or quotes, in priority order:
1. reply.parent
2. quoted record (app.bsky.embed.record)
3. quoted record with media (app.bsky.embed.recordWithMedia)
"""

from dataclasses import dataclass
from typing import Optional

from reply_labeler.atproto.at_uri import AtUri
from reply_labeler.atproto.exceptions import MalformedReference
from reply_labeler.models.posts import PostRecord


@dataclass(frozen=True)
class Ancestor:
    """The referenced post: its URI and the author DID taken from it."""

    uri: str
    author_did: str
    via: str  # "reply" or "quote"


def find_ancestor_uri(record: PostRecord) -> tuple[str, str]:
    """
    Return (uri, via) for the first non-empty reference, or ("", "").

    Raises:
        MalformedReference: reply ref present without a parent uri
    """
    if record.reply is not None:
        if record.reply.parent is None or not record.reply.parent.uri:
            raise MalformedReference("badly formatted reply ref (no parent)")
        return record.reply.parent.uri, "reply"

    if record.embed is not None:
        quoted = record.embed.quoted_uri()
        if quoted:
            return quoted, "quote"

    return "", ""


def resolve_ancestor(record: PostRecord) -> Optional[Ancestor]:
    """
    Resolve the ancestor of a post record.

    Returns:
        Ancestor, or None when the record neither replies nor quotes

    Raises:
        MalformedReference: reply ref present without a parent uri
        InvalidURI: the reference is not a valid AT-URI
    """
    uri, via = find_ancestor_uri(record)
    if not uri:
        return None

    parsed = AtUri.parse(uri)
    return Ancestor(uri=uri, author_did=parsed.authority, via=via)
