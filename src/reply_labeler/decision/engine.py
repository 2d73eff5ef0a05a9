"""
Decision engine.

Maps a ClassificationVerdict to labels and routes each label:

- emit:  the parent author is label-eligible
- audit: the label is in LOGGED_LABELS and persistence is configured

Both, either or neither may happen for a label. With no labels at all, a
single "no-labels" audit entry is written when LOG_NO_LABEL is enabled.

Failure semantics:
- LabelerHTTPError aborts the remaining labels of the event (fail fast)
- AuditWriteError is logged and counted; the remaining labels still run
"""

from dataclasses import dataclass, field

import structlog

from reply_labeler.decision.policy import LabelPolicy
from reply_labeler.dispatch.dispatcher import Dispatcher
from reply_labeler.models.audit import AuditEntry
from reply_labeler.models.enums import LabelEnum
from reply_labeler.models.verdict import ClassificationVerdict
from reply_labeler.operators import OperatorRegistry
from reply_labeler.persistence.exceptions import AuditWriteError


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LabelContext:
    """The reply being judged and the ancestor it answers."""

    parent_did: str
    parent_uri: str
    parent_text: str
    author_did: str
    author_uri: str
    author_text: str

    def audit_entry(self, label: str) -> AuditEntry:
        return AuditEntry(
            parent_did=self.parent_did,
            author_did=self.author_did,
            parent_uri=self.parent_uri,
            author_uri=self.author_uri,
            parent_text=self.parent_text,
            author_text=self.author_text,
            label=label,
        )


@dataclass(frozen=True)
class LabelAction:
    """What to do with one label."""

    label: LabelEnum
    emit: bool
    audit: bool


@dataclass
class DecisionOutcome:
    """What actually happened while applying a plan."""

    labels: list[LabelEnum] = field(default_factory=list)
    emitted: list[LabelEnum] = field(default_factory=list)
    deduplicated: list[LabelEnum] = field(default_factory=list)
    audited: list[LabelEnum] = field(default_factory=list)
    audit_failures: list[LabelEnum] = field(default_factory=list)


class DecisionEngine:
    """Turns verdicts into emission and audit side effects."""

    def __init__(self, policy: LabelPolicy, operators: OperatorRegistry, dispatcher: Dispatcher):
        self.policy = policy
        self.operators = operators
        self.dispatcher = dispatcher

    def labels_for(self, verdict: ClassificationVerdict) -> list[LabelEnum]:
        """Labels whose flag is true, in the policy's stable order."""
        return [rule.label for rule in self.policy.rules if verdict.is_set(rule.flag)]

    def plan(self, verdict: ClassificationVerdict, parent_did: str) -> list[LabelAction]:
        """
        Pure routing decision for a verdict. Performs no I/O.
        """
        labels = self.labels_for(verdict)
        if not labels:
            if self.policy.should_log_no_label:
                return [LabelAction(label=LabelEnum.NO_LABELS, emit=False, audit=True)]
            return []

        may_emit = self.operators.is_label_eligible(parent_did)
        return [
            LabelAction(label=label, emit=may_emit, audit=self.policy.should_log(label))
            for label in labels
        ]

    async def apply(self, context: LabelContext, verdict: ClassificationVerdict) -> DecisionOutcome:
        """
        Execute the plan for `verdict`.

        Raises:
            LabelerHTTPError: an emission failed; later labels were not processed
        """
        outcome = DecisionOutcome(labels=self.labels_for(verdict))
        actions = self.plan(verdict, context.parent_did)

        if not outcome.labels:
            logger.info("Determined that reply needs no label")

        for action in actions:
            if action.emit:
                sent = await self.dispatcher.emit(context.author_uri, action.label.value)
                if sent:
                    outcome.emitted.append(action.label)
                else:
                    outcome.deduplicated.append(action.label)

            if action.audit:
                try:
                    await self.dispatcher.audit(context.audit_entry(action.label.value))
                except AuditWriteError as e:
                    outcome.audit_failures.append(action.label)
                    logger.error(
                        "Failed to write audit entry",
                        label=action.label.value,
                        error=e.message,
                        details=e.details,
                    )
                else:
                    outcome.audited.append(action.label)

        if outcome.labels:
            logger.info(
                "Applied labeling decision",
                labels=[label.value for label in outcome.labels],
                emitted=[label.value for label in outcome.emitted],
                audited=[label.value for label in outcome.audited],
            )
        return outcome
