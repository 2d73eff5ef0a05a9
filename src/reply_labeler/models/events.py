"""
Jetstream event models.

One StreamEvent per websocket message. Events are consumed once and never
persisted (except as dead letters, see persistence.repository).
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from reply_labeler.models.enums import POST_COLLECTION, CommitOperation


class CommitInfo(BaseModel):
    """Commit payload of a `kind == "commit"` event."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    rev: Optional[str] = None
    operation: CommitOperation
    collection: str
    rkey: str
    record: Optional[dict[str, Any]] = Field(
        default=None, description="Raw record payload (absent for deletes)"
    )
    cid: Optional[str] = None


class StreamEvent(BaseModel):
    """A single Jetstream message."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    did: str = Field(..., description="Author DID of the commit")
    time_us: int = Field(default=0, description="Jetstream cursor (unix micros)")
    kind: str = Field(default="commit", description="commit, identity or account")
    commit: Optional[CommitInfo] = None

    @property
    def uri(self) -> str:
        """Canonical AT-URI of the committed record."""
        if self.commit is None:
            return f"at://{self.did}"
        return f"at://{self.did}/{self.commit.collection}/{self.commit.rkey}"

    @property
    def is_post_write(self) -> bool:
        """True for create/update commits to the post collection."""
        return (
            self.kind == "commit"
            and self.commit is not None
            and self.commit.operation in (CommitOperation.CREATE, CommitOperation.UPDATE)
            and self.commit.collection == POST_COLLECTION
        )
