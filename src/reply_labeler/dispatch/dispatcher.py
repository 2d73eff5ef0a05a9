"""
Emission/audit dispatcher.

Performs the two side effects of a labeling decision:
- emit(uri, label): POST to the labeler (dry-run, dedupe and retry aware)
- audit(entry): append an AuditEntry to the store

The two are independent and not transactional. A label can be emitted but
not logged, or logged but not emitted, when one of them fails.
"""

from typing import Optional

import structlog

from reply_labeler.dispatch.exceptions import AuditWriteError, LabelerHTTPError
from reply_labeler.dispatch.labeler_client import LabelerClient
from reply_labeler.models.audit import AuditEntry
from reply_labeler.monitoring.metrics import (
    audit_entries_total,
    audit_failures_total,
    labels_deduplicated_total,
    labels_emitted_total,
)
from reply_labeler.persistence.repository import AuditRepository, EmissionLedger
from reply_labeler.retry.policy import NO_RETRY, RetryPolicy, retry_async


logger = structlog.get_logger(__name__)


def is_transient_labeler_error(error: Exception) -> bool:
    return isinstance(error, LabelerHTTPError) and error.is_transient


class Dispatcher:
    """Side-effecting half of the decision engine."""

    def __init__(
        self,
        labeler: LabelerClient,
        audit_repository: Optional[AuditRepository] = None,
        ledger: Optional[EmissionLedger] = None,
        dry_run: bool = False,
        retry_policy: RetryPolicy = NO_RETRY,
    ):
        """
        Args:
            labeler: Labeler emission client
            audit_repository: Audit store, None when persistence is off
            ledger: Emission ledger for dedupe, None to disable
            dry_run: Log emissions instead of sending them
            retry_policy: Retry budget for transient labeler failures
        """
        self.labeler = labeler
        self.audit_repository = audit_repository
        self.ledger = ledger
        self.dry_run = dry_run
        self.retry_policy = retry_policy

    @property
    def persistence_enabled(self) -> bool:
        return self.audit_repository is not None

    async def emit(self, uri: str, label: str) -> bool:
        """
        Emit a label.

        Returns:
            True if the label was sent (or would have been, in dry-run),
            False if the ledger already held the pair

        Raises:
            LabelerHTTPError: the labeler rejected the emission
        """
        if self.dry_run:
            logger.info("Dry run: would emit label", uri=uri, label=label)
            return True

        if self.ledger is not None and not await self.ledger.claim(uri, label):
            labels_deduplicated_total.labels(label=label).inc()
            logger.info("Label already emitted, skipping", uri=uri, label=label)
            return False

        try:
            await retry_async(
                lambda: self.labeler.emit(uri, label),
                self.retry_policy,
                is_transient_labeler_error,
                name="labeler",
            )
        except LabelerHTTPError:
            if self.ledger is not None:
                await self.ledger.release(uri, label)
            raise

        labels_emitted_total.labels(label=label).inc()
        logger.info("Emitted label", uri=uri, label=label)
        return True

    async def audit(self, entry: AuditEntry) -> str:
        """
        Write an audit entry.

        Raises:
            AuditWriteError: persistence is not configured or the write failed
        """
        if self.audit_repository is None:
            raise AuditWriteError("audit requested but no persistent store is configured")

        try:
            entry_id = await self.audit_repository.save(entry)
        except AuditWriteError:
            audit_failures_total.inc()
            raise

        audit_entries_total.labels(label=entry.label).inc()
        return entry_id

    async def close(self):
        await self.labeler.close()
