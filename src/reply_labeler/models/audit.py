"""
Audit entry model.

One entry per logged labeling decision. Entries are append-only: nothing in
this service updates or deletes them.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEntry(BaseModel):
    """Durable record of a labeling decision."""

    model_config = ConfigDict(frozen=True)

    parent_did: str = Field(..., description="Author of the ancestor post")
    author_did: str = Field(..., description="Author of the reply")
    parent_uri: str
    author_uri: str
    parent_text: str = ""
    author_text: str = ""
    label: str = Field(..., description="Label name, or 'no-labels'")
    created_at: datetime = Field(default_factory=_utcnow)

    def to_redis_mapping(self) -> dict[str, str]:
        """Flatten into a Redis hash mapping (all values as strings)."""
        data = self.model_dump(mode="json")
        return {key: str(value) for key, value in data.items()}
