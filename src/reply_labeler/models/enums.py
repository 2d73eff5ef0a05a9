"""
Enumerations for Reply Labeler data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


POST_COLLECTION = "app.bsky.feed.post"


class LabelEnum(str, Enum):
    """
    Closed vocabulary of moderation labels.

    Declaration order is the stable emission order. NO_LABELS is never sent
    to the labeler, it only tags audit entries for replies that received no
    label.
    """

    BAD_FAITH = "bad-faith"
    OFF_TOPIC = "off-topic"
    FUNNY = "funny"
    POL_LINK = "pol-link"
    NO_LABELS = "no-labels"

    @classmethod
    def emittable(cls) -> list["LabelEnum"]:
        """Labels the labeler service accepts."""
        return [label for label in cls if label is not cls.NO_LABELS]


class CommitOperation(str, Enum):
    """Repository commit operation carried by a Jetstream event."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
