"""
Stage 2: JSON Schema Validation.

Validate the parsed dict against the verdict schema sent in
`response_format`. Servers that ignore `strict: true` are caught here.
"""

import structlog
from jsonschema import Draft7Validator

from .exceptions import SchemaValidationError

logger = structlog.get_logger(__name__)


class Stage2SchemaValidation:
    """
    Stage 2 validator: Validate against the verdict JSON Schema.
    """

    def __init__(self, schema: dict):
        """
        Args:
            schema: JSON Schema (as built by PromptBuilder.build_schema)
        """
        Draft7Validator.check_schema(schema)
        self.schema = schema
        self._validator = Draft7Validator(schema)

    def validate(self, data: dict) -> dict:
        """
        Raises:
            SchemaValidationError: listing every violation found
        """
        errors = sorted(self._validator.iter_errors(data), key=lambda e: list(e.path))
        if errors:
            messages = []
            for error in errors:
                path = ".".join(str(p) for p in error.path) or "<root>"
                messages.append(f"{path}: {error.message}")
            raise SchemaValidationError(
                f"Oracle response failed schema validation with {len(errors)} error(s)",
                validation_errors=messages,
            )

        logger.debug("Stage 2: verdict matches schema")
        return data
