"""
Wire models for the OpenAI-compatible chat completions API.

These models are internal to the LLM layer. The business result of a
classification is ClassificationVerdict, not ChatResponse.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class JSONSchemaSpec(BaseModel):
    name: str = "message_classification"
    schema_: dict[str, Any] = Field(..., alias="schema")
    strict: bool = True

    model_config = ConfigDict(populate_by_name=True)


class ResponseFormat(BaseModel):
    type: Literal["json_schema", "json_object", "text"] = "json_schema"
    json_schema: Optional[JSONSchemaSpec] = None


class ChatRequest(BaseModel):
    """
    Request body for POST /v1/chat/completions.

    Serialize with `to_payload()` so the schema field keeps its wire name.
    """

    model_config = ConfigDict(frozen=True)

    model: str = Field(..., description="Model identifier loaded on the server")
    messages: list[ChatMessage]
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, ge=1)
    response_format: Optional[ResponseFormat] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ChatChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: int = 0
    message: ChatMessage
    finish_reason: Optional[str] = None


class ChatResponse(BaseModel):
    """Response envelope. Only `choices[0].message.content` is used."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    object: Optional[str] = None
    created: Optional[int] = None
    model: Optional[str] = None
    choices: list[ChatChoice] = Field(default_factory=list)
