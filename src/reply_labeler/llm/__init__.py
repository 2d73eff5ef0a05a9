"""
Classification oracle client.

Components:
- BaseOracleClient: abstract interface the pipeline depends on
- ChatCompletionsClient: OpenAI-compatible implementation (LM Studio)
- PromptBuilder: system instruction, verdict schema and chat request
- exceptions: oracle error taxonomy
"""

from reply_labeler.llm.base_client import BaseOracleClient
from reply_labeler.llm.chat_client import ChatCompletionsClient, is_transient_oracle_error
from reply_labeler.llm.prompt_builder import FIELD_DEFINITIONS, PromptBuilder
from reply_labeler.llm.exceptions import (
    OracleError,
    OracleConnectionError,
    OracleTimeoutError,
    OracleHTTPError,
    OracleSchemaViolation,
)

__all__ = [
    "BaseOracleClient",
    "ChatCompletionsClient",
    "is_transient_oracle_error",
    "FIELD_DEFINITIONS",
    "PromptBuilder",
    "OracleError",
    "OracleConnectionError",
    "OracleTimeoutError",
    "OracleHTTPError",
    "OracleSchemaViolation",
]
