"""
Classification verdict returned by the oracle (or the domain-link classifier).
"""

from pydantic import BaseModel, ConfigDict, Field


class ClassificationVerdict(BaseModel):
    """
    Boolean judgments about a reply relative to its parent.

    `flags` holds exactly the fields the classifier was asked for
    (bad_faith, off_topic, funny by default; pol_link for the domain-link
    profile). Missing flags read as False. Verdicts are never cached.
    """

    model_config = ConfigDict(frozen=True)

    flags: dict[str, bool] = Field(default_factory=dict)

    @property
    def bad_faith(self) -> bool:
        return self.flags.get("bad_faith", False)

    @property
    def off_topic(self) -> bool:
        return self.flags.get("off_topic", False)

    @property
    def funny(self) -> bool:
        return self.flags.get("funny", False)

    @property
    def pol_link(self) -> bool:
        return self.flags.get("pol_link", False)

    def is_set(self, flag: str) -> bool:
        return self.flags.get(flag, False)
