"""
Validation of oracle responses.

Stages:
1. Stage1JSONParse: strip markdown fences, parse a JSON object
2. Stage2SchemaValidation: validate against the verdict JSON Schema
"""

from reply_labeler.validation.stage1_json_parse import Stage1JSONParse, strip_code_fence
from reply_labeler.validation.stage2_schema import Stage2SchemaValidation
from reply_labeler.validation.exceptions import (
    ValidationError,
    JSONParseError,
    SchemaValidationError,
)

__all__ = [
    "Stage1JSONParse",
    "Stage2SchemaValidation",
    "strip_code_fence",
    "ValidationError",
    "JSONParseError",
    "SchemaValidationError",
]
