"""
Abstract base client for the classification oracle.

Defines the interface the pipeline depends on, so the oracle stays a
replaceable black box: anything that turns (parent text, reply text) into a
ClassificationVerdict can stand in for it.
"""

from abc import ABC, abstractmethod

import structlog

from reply_labeler.models.verdict import ClassificationVerdict


logger = structlog.get_logger(__name__)


class BaseOracleClient(ABC):
    """
    Abstract base class for classification oracle clients.

    Responsibilities:
    - Send the classification request with a deadline
    - Parse and validate the verdict
    - Map every failure onto the OracleError taxonomy

    Does NOT handle:
    - Deciding which labels follow from a verdict (DecisionEngine)
    - Per-event error handling (the consumer logs and drops)
    """

    def __init__(self, base_url: str, timeout: float = 30.0):
        """
        Args:
            base_url: Base URL of the oracle server (e.g. http://localhost:1234)
            timeout: Per-classification deadline in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        logger.info(
            "Initialized oracle client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            timeout=timeout,
        )

    @abstractmethod
    async def classify(self, parent_text: str, reply_text: str) -> ClassificationVerdict:
        """
        Classify a reply relative to its parent.

        Raises:
            OracleTimeoutError: deadline exceeded
            OracleConnectionError: server unreachable
            OracleHTTPError: non-success status
            OracleSchemaViolation: response does not match the verdict schema
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Lightweight reachability check. Must not raise.
        """
        pass

    async def close(self):
        """
        Close client connections. Default implementation does nothing.
        """
        logger.debug("Closing oracle client", client_class=self.__class__.__name__)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"timeout={self.timeout}s)"
        )
