"""
Declarative label policy.

One DecisionEngine serves every deployment profile; the policy says which
verdict flags map to which labels and which labels are logged:

- classifier: bad_faith -> bad-faith, off_topic -> off-topic, funny -> funny
  (restricted to ORACLE_FIELDS, so a single-label deployment is just
  ORACLE_FIELDS=bad_faith)
- domain-link: pol_link -> pol-link
"""

from dataclasses import dataclass, field
from typing import Iterable

from reply_labeler.config import Settings
from reply_labeler.models.enums import LabelEnum


@dataclass(frozen=True)
class LabelRule:
    """A verdict flag that produces a label when true."""

    flag: str
    label: LabelEnum


# Declaration order is the emission order
DEFAULT_RULES: tuple[LabelRule, ...] = (
    LabelRule("bad_faith", LabelEnum.BAD_FAITH),
    LabelRule("off_topic", LabelEnum.OFF_TOPIC),
    LabelRule("funny", LabelEnum.FUNNY),
    LabelRule("pol_link", LabelEnum.POL_LINK),
)


def rules_for_flags(flags: Iterable[str]) -> tuple[LabelRule, ...]:
    """Default rules restricted to `flags`, keeping the stable order."""
    wanted = set(flags)
    unknown = wanted - {rule.flag for rule in DEFAULT_RULES}
    if unknown:
        raise ValueError(f"no label rule for verdict flags: {sorted(unknown)}")
    return tuple(rule for rule in DEFAULT_RULES if rule.flag in wanted)


@dataclass(frozen=True)
class LabelPolicy:
    """
    Which labels a verdict produces and which of them are audited.

    Emission eligibility depends on the operator, not the policy, and is
    decided by the engine through the OperatorRegistry.
    """

    rules: tuple[LabelRule, ...] = DEFAULT_RULES
    logged_labels: frozenset[str] = field(default_factory=frozenset)
    log_no_label: bool = False
    persistence_enabled: bool = False

    def __post_init__(self):
        known = {label.value for label in LabelEnum.emittable()}
        unknown = set(self.logged_labels) - known
        if unknown:
            raise ValueError(f"unknown logged labels: {sorted(unknown)}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "LabelPolicy":
        if settings.PROFILE == "domain-link":
            rules = rules_for_flags(["pol_link"])
        else:
            rules = rules_for_flags(settings.ORACLE_FIELDS)
        return cls(
            rules=rules,
            logged_labels=frozenset(settings.LOGGED_LABELS),
            log_no_label=settings.LOG_NO_LABEL,
            persistence_enabled=settings.persistence_enabled,
        )

    def should_log(self, label: LabelEnum) -> bool:
        return self.persistence_enabled and label.value in self.logged_labels

    @property
    def should_log_no_label(self) -> bool:
        return self.persistence_enabled and self.log_no_label
