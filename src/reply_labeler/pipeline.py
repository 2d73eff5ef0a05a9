"""
Reply classification & labeling pipeline.

Per post event:
    decode record -> resolve ancestor -> operator filter -> parent lookup
    -> classify -> decide & dispatch

Cheap checks run first: events without an ancestor or whose ancestor author
is not watched never reach the network. Errors propagate to the consumer,
which logs them and moves on to the next event.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog
from pydantic import ValidationError

from reply_labeler.atproto.ancestor import resolve_ancestor
from reply_labeler.atproto.exceptions import InvalidRecord
from reply_labeler.cache.post_cache import PostCache
from reply_labeler.decision.classifiers import Classifier
from reply_labeler.decision.engine import DecisionEngine, LabelContext
from reply_labeler.models.enums import LabelEnum
from reply_labeler.models.events import StreamEvent
from reply_labeler.models.posts import Post, PostRecord
from reply_labeler.monitoring.metrics import events_processed_total
from reply_labeler.operators import OperatorRegistry


logger = structlog.get_logger(__name__)


class PipelineStatus(str, Enum):
    IGNORED = "ignored"
    NO_ANCESTOR = "no_ancestor"
    NOT_WATCHED = "not_watched"
    EMPTY_TEXT = "empty_text"
    UNLABELED = "unlabeled"
    LABELED = "labeled"


@dataclass(frozen=True)
class PipelineResult:
    status: PipelineStatus
    labels: tuple[LabelEnum, ...] = ()
    emitted: tuple[LabelEnum, ...] = ()
    audited: tuple[LabelEnum, ...] = ()


class ReplyPipeline:
    """Processes one post event at a time."""

    def __init__(
        self,
        operators: OperatorRegistry,
        post_cache: PostCache,
        classifier: Classifier,
        engine: DecisionEngine,
    ):
        self.operators = operators
        self.post_cache = post_cache
        self.classifier = classifier
        self.engine = engine

    async def handle_event(self, event: StreamEvent) -> PipelineResult:
        """
        Run the pipeline for one event.

        Raises:
            MalformedReference, InvalidURI, InvalidRecord: bad record shape
            PostNotFound, PostFetchError: ancestor unavailable
            OracleError subclasses: classification unavailable
            LabelerHTTPError: emission failed
        """
        if not event.is_post_write:
            return self._finish(PipelineStatus.IGNORED)

        try:
            record = PostRecord.model_validate(event.commit.record or {})
        except ValidationError as e:
            raise InvalidRecord(
                "failed to decode post record",
                details={"uri": event.uri, "errors": len(e.errors())},
            ) from e

        ancestor = resolve_ancestor(record)
        if ancestor is None:
            return self._finish(PipelineStatus.NO_ANCESTOR)

        if not self.operators.is_watched(ancestor.author_did):
            return self._finish(PipelineStatus.NOT_WATCHED)

        reply = Post(uri=event.uri, author_did=event.did, record=record)

        with structlog.contextvars.bound_contextvars(
            reply_uri=event.uri,
            parent_did=ancestor.author_did,
            reply_did=event.did,
        ):
            logger.info("Ingested reply to watched op", via=ancestor.via)

            if self.classifier.requires_text and not reply.text.strip():
                logger.info("Post contained no text, skipping")
                return self._finish(PipelineStatus.EMPTY_TEXT)

            parent: Optional[Post] = None
            if self.classifier.requires_parent:
                parent = await self.post_cache.get(ancestor.uri)

            verdict = await self.classifier.classify(parent, reply)

            context = LabelContext(
                parent_did=ancestor.author_did,
                parent_uri=ancestor.uri,
                parent_text=parent.text if parent is not None else "",
                author_did=event.did,
                author_uri=event.uri,
                author_text=reply.text,
            )
            outcome = await self.engine.apply(context, verdict)

        status = PipelineStatus.LABELED if outcome.labels else PipelineStatus.UNLABELED
        return self._finish(
            status,
            labels=tuple(outcome.labels),
            emitted=tuple(outcome.emitted),
            audited=tuple(outcome.audited),
        )

    def _finish(self, status: PipelineStatus, **kwargs) -> PipelineResult:
        events_processed_total.labels(status=status.value).inc()
        return PipelineResult(status=status, **kwargs)
