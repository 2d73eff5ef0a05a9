"""
Label decision logic.

Components:
- LabelPolicy / LabelRule: declarative flag -> label mapping and logging policy
- DecisionEngine: verdict -> labels -> emission/audit
- OracleClassifier / DomainLinkClassifier: verdict producers
- domains: flagged domain matching for the domain-link profile
"""

from reply_labeler.decision.policy import DEFAULT_RULES, LabelPolicy, LabelRule, rules_for_flags
from reply_labeler.decision.engine import (
    DecisionEngine,
    DecisionOutcome,
    LabelAction,
    LabelContext,
)
from reply_labeler.decision.classifiers import (
    Classifier,
    DomainLinkClassifier,
    OracleClassifier,
)
from reply_labeler.decision.domains import extract_links, is_flagged_domain, normalize_host

__all__ = [
    "DEFAULT_RULES",
    "LabelPolicy",
    "LabelRule",
    "rules_for_flags",
    "DecisionEngine",
    "DecisionOutcome",
    "LabelAction",
    "LabelContext",
    "Classifier",
    "DomainLinkClassifier",
    "OracleClassifier",
    "extract_links",
    "is_flagged_domain",
    "normalize_host",
]
