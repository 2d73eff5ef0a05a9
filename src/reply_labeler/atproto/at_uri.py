"""
AT-URI parsing.

    at://<authority>[/<collection>[/<rkey>]]

The authority is either a DID (did:plc:..., did:web:...) or a handle.
Query strings and fragments are not allowed in record references.
"""

import re
from dataclasses import dataclass

from reply_labeler.atproto.exceptions import InvalidURI


_DID_RE = re.compile(r"^did:[a-z]+:[a-zA-Z0-9._:%-]*[a-zA-Z0-9._-]$")
_HANDLE_RE = re.compile(
    r"^([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+"
    r"[a-zA-Z]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$"
)
_NSID_RE = re.compile(r"^[a-zA-Z]([a-zA-Z0-9-]*)(\.[a-zA-Z0-9-]+)+$")
_RKEY_RE = re.compile(r"^[a-zA-Z0-9._:~-]{1,512}$")

MAX_URI_LENGTH = 8192


@dataclass(frozen=True)
class AtUri:
    """Parsed AT-URI."""

    authority: str
    collection: str = ""
    rkey: str = ""

    @property
    def is_did(self) -> bool:
        return self.authority.startswith("did:")

    @classmethod
    def parse(cls, text: str) -> "AtUri":
        """
        Parse an AT-URI string.

        Raises:
            InvalidURI: if the string is not a valid AT-URI
        """
        if not text or len(text) > MAX_URI_LENGTH:
            raise InvalidURI("AT-URI is empty or too long", details={"uri": text[:200]})
        if not text.startswith("at://"):
            raise InvalidURI("AT-URI must start with at://", details={"uri": text})
        if "?" in text or "#" in text:
            raise InvalidURI("AT-URI must not contain a query or fragment", details={"uri": text})

        parts = text[len("at://"):].split("/")
        if len(parts) > 3 or any(part == "" for part in parts):
            raise InvalidURI("AT-URI has an invalid path", details={"uri": text})

        authority = parts[0]
        if not (_DID_RE.match(authority) or _HANDLE_RE.match(authority)):
            raise InvalidURI("AT-URI authority is not a DID or handle", details={"uri": text})

        collection = parts[1] if len(parts) > 1 else ""
        if collection and not _NSID_RE.match(collection):
            raise InvalidURI("AT-URI collection is not an NSID", details={"uri": text})

        rkey = parts[2] if len(parts) > 2 else ""
        if rkey and not _RKEY_RE.match(rkey):
            raise InvalidURI("AT-URI record key is invalid", details={"uri": text})

        return cls(authority=authority, collection=collection, rkey=rkey)

    def __str__(self) -> str:
        return "at://" + "/".join(part for part in (self.authority, self.collection, self.rkey) if part)
