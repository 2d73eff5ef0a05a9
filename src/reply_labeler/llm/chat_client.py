"""
Classification oracle client for OpenAI-compatible chat completions servers
(LM Studio, vLLM, llama.cpp server, OpenAI).

POST /v1/chat/completions with a json_schema response_format; the verdict is
read from choices[0].message.content.
"""

import asyncio
import time
from typing import Optional

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from reply_labeler.llm.base_client import BaseOracleClient
from reply_labeler.llm.exceptions import (
    OracleConnectionError,
    OracleError,
    OracleHTTPError,
    OracleSchemaViolation,
    OracleTimeoutError,
)
from reply_labeler.llm.prompt_builder import PromptBuilder
from reply_labeler.models.llm_models import ChatRequest, ChatResponse
from reply_labeler.models.verdict import ClassificationVerdict
from reply_labeler.monitoring.metrics import oracle_failures_total, oracle_latency_seconds
from reply_labeler.retry.policy import NO_RETRY, RetryPolicy, retry_async
from reply_labeler.validation.exceptions import ValidationError
from reply_labeler.validation.stage1_json_parse import Stage1JSONParse
from reply_labeler.validation.stage2_schema import Stage2SchemaValidation


logger = structlog.get_logger(__name__)


def is_transient_oracle_error(error: Exception) -> bool:
    if isinstance(error, OracleConnectionError):
        return True
    if isinstance(error, OracleHTTPError):
        return error.is_transient
    return False


class ChatCompletionsClient(BaseOracleClient):
    """
    Oracle client speaking the chat completions protocol over httpx.

    Features:
    - Structured output via response_format.json_schema (strict)
    - Bearer or x-api-key authentication
    - Hard per-classification deadline (asyncio.wait_for) spanning retries
    - Two-stage verdict validation (JSON parse, JSON Schema)
    - Optional retry of transient failures (off by default)
    """

    def __init__(
        self,
        prompt_builder: PromptBuilder,
        base_url: str = "http://localhost:1234",
        endpoint: str = "/v1/chat/completions",
        timeout: float = 30.0,
        api_key: Optional[str] = None,
        api_key_type: str = "bearer",
        retry_policy: RetryPolicy = NO_RETRY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            prompt_builder: Builds requests and the verdict schema
            base_url: Oracle server URL
            endpoint: Path of the chat completions endpoint
            timeout: Deadline in seconds for one classification, retries included
            api_key: Optional API key
            api_key_type: "bearer" (authorization header) or "x-api-key"
            retry_policy: Retry budget for transient failures
            transport: Optional httpx transport (tests use MockTransport)
        """
        super().__init__(base_url, timeout)
        self.prompt_builder = prompt_builder
        self.endpoint = endpoint or "/v1/chat/completions"
        self.api_key = api_key
        self.api_key_type = api_key_type
        self.retry_policy = retry_policy
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        self.stage1 = Stage1JSONParse()
        self.stage2 = Stage2SchemaValidation(prompt_builder.build_schema(allow_additional=True))

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers=self._headers(),
            )
            logger.debug("Created new httpx AsyncClient", base_url=self.base_url)
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {"accept": "application/json"}
        if self.api_key:
            if self.api_key_type == "bearer":
                headers["authorization"] = f"Bearer {self.api_key}"
            elif self.api_key_type == "x-api-key":
                headers["x-api-key"] = self.api_key
        return headers

    async def classify(self, parent_text: str, reply_text: str) -> ClassificationVerdict:
        """
        Classify one reply. The deadline covers every attempt and backoff.
        """
        request = self.prompt_builder.build_request(parent_text, reply_text)
        start_time = time.monotonic()
        try:
            return await asyncio.wait_for(
                retry_async(
                    lambda: self._classify_once(request),
                    self.retry_policy,
                    is_transient_oracle_error,
                    name="oracle",
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            error = OracleTimeoutError(
                f"classification exceeded {self.timeout}s deadline",
                details={"timeout": self.timeout},
            )
            self._record_failure(error, start_time)
            raise error from e

    async def _classify_once(self, request: ChatRequest) -> ClassificationVerdict:
        start_time = time.monotonic()
        try:
            verdict = await self._send_and_parse(request)
        except OracleError as e:
            self._record_failure(e, start_time)
            raise

        latency = time.monotonic() - start_time
        oracle_latency_seconds.labels(model=request.model, success="true").observe(latency)
        logger.info(
            "Oracle classification successful",
            model=request.model,
            latency_ms=int(latency * 1000),
            flags=verdict.flags,
        )
        return verdict

    def _record_failure(self, error: OracleError, start_time: float) -> None:
        latency = time.monotonic() - start_time
        oracle_latency_seconds.labels(
            model=self.prompt_builder.model, success="false"
        ).observe(latency)
        oracle_failures_total.labels(error_type=type(error).__name__).inc()
        logger.warning(
            "Oracle classification failed",
            error_type=type(error).__name__,
            error=error.message,
            latency_ms=int(latency * 1000),
        )

    async def _send_and_parse(self, request: ChatRequest) -> ClassificationVerdict:
        response = await self._send_chat_request(request)

        if not response.choices:
            raise OracleSchemaViolation(
                "model gave bad response (no choices)",
                details={"response_id": response.id},
            )

        content = response.choices[0].message.content
        try:
            data = self.stage1.validate(content)
            data = self.stage2.validate(data)
        except ValidationError as e:
            raise OracleSchemaViolation(
                f"model gave bad response, not structured: {e.message}",
                details=e.details,
            ) from e

        return ClassificationVerdict(
            flags={name: bool(data[name]) for name in self.prompt_builder.fields}
        )

    async def _send_chat_request(self, request: ChatRequest) -> ChatResponse:
        """
        Send the request and decode the response envelope.

        Raises:
            OracleTimeoutError, OracleConnectionError, OracleHTTPError,
            OracleSchemaViolation (envelope not decodable)
        """
        client = await self._get_client()

        logger.debug(
            "Sending classification request",
            model=request.model,
            endpoint=self.endpoint,
            messages=len(request.messages),
        )

        try:
            response = await client.post(self.endpoint, json=request.to_payload())
        except httpx.TimeoutException as e:
            raise OracleTimeoutError(
                f"request timeout after {self.timeout}s",
                details={"timeout": self.timeout, "error_type": type(e).__name__},
            ) from e
        except httpx.HTTPError as e:
            raise OracleConnectionError(
                f"error sending request: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        if not response.is_success:
            raise OracleHTTPError(response.status_code, response.text)

        try:
            return ChatResponse.model_validate_json(response.content)
        except PydanticValidationError as e:
            raise OracleSchemaViolation(
                "error unmarshaling response",
                details={"body": response.text[:500], "errors": len(e.errors())},
            ) from e

    async def health_check(self) -> bool:
        """
        Check oracle reachability via GET /v1/models.
        """
        try:
            client = await self._get_client()
            response = await client.get("/v1/models", timeout=5.0)
            response.raise_for_status()
            logger.debug("Oracle health check passed")
            return True
        except Exception as e:
            logger.warning("Oracle health check failed", error=str(e))
            return False

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed oracle client connection")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
