"""
Prompt builder for classification requests.

Responsible for:
- Rendering the system instruction from a Jinja2 template
- Building the JSON Schema for the configured verdict fields
- Constructing the complete ChatRequest (system + parent + reply turns)
"""

from pathlib import Path
from typing import Optional, Sequence

import structlog
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from reply_labeler.models.llm_models import (
    ChatMessage,
    ChatRequest,
    JSONSchemaSpec,
    ResponseFormat,
)


logger = structlog.get_logger(__name__)


DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"

# Verdict fields the oracle understands: name -> (schema description, prompt phrase)
FIELD_DEFINITIONS: dict[str, tuple[str, str]] = {
    "bad_faith": (
        "Whether the reply to the parent is bad faith or not.",
        "a bad faith reply",
    ),
    "off_topic": (
        "Whether the reply to the parent is off topic.",
        "an off topic reply",
    ),
    "funny": (
        "Whether the reply to the parent is funny.",
        "a funny reply",
    ),
}


class PromptBuilder:
    """
    Build chat requests for reply classification.

    The field list decides both the prompt wording and the schema, so a
    single-label deployment is just `fields=["bad_faith"]`.
    """

    def __init__(
        self,
        model: str,
        fields: Sequence[str] = ("bad_faith", "off_topic", "funny"),
        temperature: float = 0.7,
        max_tokens: int = 100,
        templates_dir: Optional[Path] = None,
    ):
        """
        Args:
            model: Model identifier loaded on the oracle server
            fields: Verdict fields to request, in order
            temperature: Sampling temperature
            max_tokens: Maximum completion tokens
            templates_dir: Directory containing system_prompt.j2

        Raises:
            ValueError: unknown or empty field list
        """
        if not fields:
            raise ValueError("at least one verdict field is required")
        unknown = [f for f in fields if f not in FIELD_DEFINITIONS]
        if unknown:
            raise ValueError(
                f"unknown verdict fields {unknown}; expected a subset of {list(FIELD_DEFINITIONS)}"
            )

        self.model = model
        self.fields = list(dict.fromkeys(fields))
        self.temperature = temperature
        self.max_tokens = max_tokens

        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir or DEFAULT_TEMPLATES_DIR)),
            undefined=StrictUndefined,
            trim_blocks=False,
            keep_trailing_newline=False,
        )
        self._system_prompt: Optional[str] = None

        logger.info("PromptBuilder initialized", model=model, fields=self.fields)

    def build_schema(self, allow_additional: bool = False) -> dict:
        """
        JSON Schema forcing an object with one required boolean per field.

        The strict form goes out in `response_format`. Replies are checked
        with `allow_additional=True` so extra keys from a server that ignores
        `strict` are tolerated; only `self.fields` are ever read.
        """
        return {
            "type": "object",
            "properties": {
                name: {"type": "boolean", "description": FIELD_DEFINITIONS[name][0]}
                for name in self.fields
            },
            "required": list(self.fields),
            "additionalProperties": allow_additional,
        }

    def build_system_prompt(self) -> str:
        """Render (once) the fixed system instruction."""
        if self._system_prompt is None:
            template = self.env.get_template("system_prompt.j2")
            self._system_prompt = template.render(
                fields=[
                    {"name": name, "question": FIELD_DEFINITIONS[name][1]}
                    for name in self.fields
                ],
                field_names=self.fields,
            ).strip()
        return self._system_prompt

    def build_request(self, parent_text: str, reply_text: str) -> ChatRequest:
        """
        Build the complete chat request.

        Parent and reply go in as two separate user turns, in that order.
        """
        return ChatRequest(
            model=self.model,
            messages=[
                ChatMessage(role="system", content=self.build_system_prompt()),
                ChatMessage(role="user", content=parent_text),
                ChatMessage(role="user", content=reply_text),
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format=ResponseFormat(
                type="json_schema",
                json_schema=JSONSchemaSpec(
                    name="message_classification",
                    schema=self.build_schema(),
                    strict=True,
                ),
            ),
        )
