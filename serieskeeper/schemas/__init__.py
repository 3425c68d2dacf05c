# Knowledge State Schema Definitions
from .knowledge import (
    StoryPosition,
    ToolSchemaModel,
    KnowledgeStateValue,
    ConfidenceLevel,
    ContentType,
    Severity,
    CONFIRMED_STATES,
    # Tool payloads
    SetKnowledgeStatePayload,
    CheckReferencePayload,
    GetKnowledgeStatePayload,
    ValidateScenePayload,
    # Ledger rows and derived results
    KnowledgeFact,
    EffectiveKnowledgeState,
    KnowledgeIssue,
    ValidationResult,
    ReferenceCheck,
)

# Tool call envelope and dispatch table
from .tool_messages import (
    ToolCallMessage,
    VALID_TOOLS,
    tool_declarations,
    validate_tool_arguments,
)

__all__ = [
    "StoryPosition",
    "ToolSchemaModel",
    "KnowledgeStateValue",
    "ConfidenceLevel",
    "ContentType",
    "Severity",
    "CONFIRMED_STATES",
    # Tool payloads
    "SetKnowledgeStatePayload",
    "CheckReferencePayload",
    "GetKnowledgeStatePayload",
    "ValidateScenePayload",
    # Ledger rows and derived results
    "KnowledgeFact",
    "EffectiveKnowledgeState",
    "KnowledgeIssue",
    "ValidationResult",
    "ReferenceCheck",
    # Tool call envelope
    "ToolCallMessage",
    "VALID_TOOLS",
    "tool_declarations",
    "validate_tool_arguments",
]
