"""
Watched operator registry.

Built once at startup from Settings and never mutated. Membership is exact
string equality on DIDs and is checked before any network call, so replies
to unwatched authors cost nothing beyond decoding the event.
"""

from dataclasses import dataclass, field
from typing import Iterable

from reply_labeler.config import Settings


@dataclass(frozen=True)
class OperatorRegistry:
    """Immutable sets of label-eligible and log-only operator DIDs."""

    label_eligible: frozenset[str] = field(default_factory=frozenset)
    log_only: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_dids(
        cls, label_eligible: Iterable[str], log_only: Iterable[str] = ()
    ) -> "OperatorRegistry":
        return cls(
            label_eligible=frozenset(did.strip() for did in label_eligible if did.strip()),
            log_only=frozenset(did.strip() for did in log_only if did.strip()),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "OperatorRegistry":
        return cls.from_dids(settings.WATCHED_OPS, settings.WATCHED_LOG_OPS)

    def is_label_eligible(self, did: str) -> bool:
        return did in self.label_eligible

    def is_watched(self, did: str) -> bool:
        return did in self.label_eligible or did in self.log_only

    def __len__(self) -> int:
        return len(self.label_eligible | self.log_only)
