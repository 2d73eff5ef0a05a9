"""
Pydantic data models for the Reply Labeler.

Includes:
- Enums (LabelEnum, CommitOperation)
- Stream models (StreamEvent, CommitInfo)
- Post models (PostRecord, Post, ReplyRef, Embed, Facet)
- ClassificationVerdict and AuditEntry
- Chat completions wire models (ChatRequest, ChatResponse)
"""

from reply_labeler.models.enums import (
    POST_COLLECTION,
    LabelEnum,
    CommitOperation,
)
from reply_labeler.models.events import CommitInfo, StreamEvent
from reply_labeler.models.posts import (
    StrongRef,
    ReplyRef,
    ExternalLink,
    Embed,
    Facet,
    PostRecord,
    Post,
)
from reply_labeler.models.verdict import ClassificationVerdict
from reply_labeler.models.audit import AuditEntry
from reply_labeler.models.llm_models import (
    ChatMessage,
    JSONSchemaSpec,
    ResponseFormat,
    ChatRequest,
    ChatChoice,
    ChatResponse,
)

__all__ = [
    # Enums
    "POST_COLLECTION",
    "LabelEnum",
    "CommitOperation",
    # Stream
    "CommitInfo",
    "StreamEvent",
    # Posts
    "StrongRef",
    "ReplyRef",
    "ExternalLink",
    "Embed",
    "Facet",
    "PostRecord",
    "Post",
    # Classification and audit
    "ClassificationVerdict",
    "AuditEntry",
    # Chat completions
    "ChatMessage",
    "JSONSchemaSpec",
    "ResponseFormat",
    "ChatRequest",
    "ChatChoice",
    "ChatResponse",
]
