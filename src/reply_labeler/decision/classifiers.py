"""
Classifiers the pipeline can run.

OracleClassifier asks the classification oracle about (parent, reply).
DomainLinkClassifier looks only at the reply's links and never needs the
parent post, so the pipeline skips the parent fetch for it.
"""

from typing import Iterable, Optional, Protocol

import structlog

from reply_labeler.decision.domains import extract_links, is_flagged_domain, normalize_domain
from reply_labeler.llm.base_client import BaseOracleClient
from reply_labeler.models.posts import Post
from reply_labeler.models.verdict import ClassificationVerdict


logger = structlog.get_logger(__name__)


class Classifier(Protocol):
    requires_parent: bool
    requires_text: bool

    async def classify(self, parent: Optional[Post], reply: Post) -> ClassificationVerdict:
        ...


class OracleClassifier:
    """Adapter from the oracle client to the Classifier protocol."""

    requires_parent = True
    requires_text = True

    def __init__(self, oracle: BaseOracleClient):
        self.oracle = oracle

    async def classify(self, parent: Optional[Post], reply: Post) -> ClassificationVerdict:
        if parent is None:
            raise ValueError("OracleClassifier requires the parent post")
        return await self.oracle.classify(parent.text, reply.text)


class DomainLinkClassifier:
    """Flags replies linking to any configured domain."""

    requires_parent = False
    requires_text = False

    def __init__(self, domains: Iterable[str]):
        self.domains = tuple(d for d in map(normalize_domain, domains) if d)
        if not self.domains:
            raise ValueError("DomainLinkClassifier needs at least one domain")

    async def classify(self, parent: Optional[Post], reply: Post) -> ClassificationVerdict:
        matched = [link for link in extract_links(reply.record) if is_flagged_domain(link, self.domains)]
        if matched:
            logger.debug("Reply links to flagged domain", links=matched)
        return ClassificationVerdict(flags={"pol_link": bool(matched)})
