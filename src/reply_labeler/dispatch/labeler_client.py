"""
Labeler emission client.

    POST {labeler_url}/emit
    authorization: Bearer <key>
    {"uri": "at://...", "label": "bad-faith"}

The labeler answers 200 with an empty body on success, 400 for unknown
labels or missing fields, 403 for a bad key.
"""

from typing import Optional

import httpx
import structlog

from reply_labeler.dispatch.exceptions import LabelerHTTPError


logger = structlog.get_logger(__name__)


class LabelerClient:
    """Authenticated client for the labeler's emit endpoint."""

    EMIT_PATH = "/emit"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Labeler event emission URL
            api_key: Emission key sent as a bearer token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers={"authorization": f"Bearer {self.api_key}"},
            )
        return self._client

    async def emit(self, uri: str, label: str) -> None:
        """
        Emit one label for one subject URI.

        Raises:
            LabelerHTTPError: any status other than 200, or no response
        """
        client = await self._get_client()
        try:
            response = await client.post(self.EMIT_PATH, json={"uri": uri, "label": label})
        except httpx.HTTPError as e:
            raise LabelerHTTPError(
                0, details={"error_type": type(e).__name__, "error": str(e), "uri": uri, "label": label}
            ) from e

        if response.status_code != httpx.codes.OK:
            raise LabelerHTTPError(
                response.status_code, response.text, details={"uri": uri, "label": label}
            )

        logger.debug("Labeler accepted label", uri=uri, label=label)

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
