"""
Tool call validation schemas.

Every inbound WebSocket message must match the ``ToolCallMessage`` envelope.
After the ``tool`` field is resolved, the ``arguments`` dict is validated
against the tool-specific model via ``validate_tool_arguments()``; REST and
``/tools`` calls go through the same function.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from serieskeeper.errors import ValidationInputError
from serieskeeper.schemas.knowledge import (
    CheckReferencePayload,
    GetKnowledgeStatePayload,
    SetKnowledgeStatePayload,
    ToolSchemaModel,
    ValidateScenePayload,
)

logger = logging.getLogger("serieskeeper.schemas.tool_messages")

# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------

class ToolCallMessage(BaseModel):
    """Top-level WebSocket tool call envelope."""
    id: Optional[str] = Field(default=None, max_length=200, description="Caller correlation id")
    tool: str = Field(..., description="Tool to invoke")
    arguments: Dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Declarations and dispatch table
# ---------------------------------------------------------------------------

TOOL_DESCRIPTIONS: dict[str, str] = {
    "set_character_knowledge_state": "Track what a character knows at a specific story point",
    "check_character_can_reference": (
        "Validate if a character can reference specific information at a given point in the story"
    ),
    "get_character_knowledge_state": (
        "Get the complete knowledge state for a character at a specific point in the story"
    ),
    "validate_scene_against_knowledge": (
        "Validate if scene dialogue/thoughts respect character knowledge boundaries"
    ),
}

_TOOL_SCHEMAS: dict[str, type[ToolSchemaModel]] = {
    "set_character_knowledge_state": SetKnowledgeStatePayload,
    "check_character_can_reference": CheckReferencePayload,
    "get_character_knowledge_state": GetKnowledgeStatePayload,
    "validate_scene_against_knowledge": ValidateScenePayload,
}

VALID_TOOLS = frozenset(_TOOL_SCHEMAS)


def tool_declarations() -> list[dict]:
    """Name, description and JSON input schema for every tool."""
    declarations = []
    for name, schema in _TOOL_SCHEMAS.items():
        input_schema = schema.model_json_schema()
        input_schema.pop("title", None)
        declarations.append({
            "name": name,
            "description": TOOL_DESCRIPTIONS[name],
            "inputSchema": input_schema,
        })
    return declarations


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def format_validation_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(l) for l in e['loc']) or 'arguments'}: {e['msg']}"
        for e in exc.errors()
    )


def validate_tool_arguments(tool: str, raw_arguments: Any) -> BaseModel:
    """
    Validate *raw_arguments* against the schema for *tool*.

    Returns the validated payload model. Raises ``ValidationInputError`` for
    an unknown tool, a non-object argument list, or field errors.
    """
    schema = _TOOL_SCHEMAS.get(tool)
    if schema is None:
        raise ValidationInputError(f"Unknown tool: {tool}")
    if raw_arguments is None:
        raw_arguments = {}
    if not isinstance(raw_arguments, dict):
        raise ValidationInputError(f"Invalid arguments for '{tool}': expected a JSON object")

    try:
        return schema.model_validate(raw_arguments)
    except ValidationError as exc:
        errors = format_validation_errors(exc)
        logger.info("tool_validation_failed | tool=%s | errors=%s", tool, errors)
        raise ValidationInputError(f"Invalid arguments for '{tool}': {errors}") from exc
