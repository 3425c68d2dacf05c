"""
Knowledge State Schema Definitions

Pydantic models for the character knowledge ledger and everything derived
from it. The ``*Payload`` models double as tool argument schemas: their JSON
schema is what an agent sees in the tool declaration.

Usage:
    from serieskeeper.schemas import SetKnowledgeStatePayload, KnowledgeFact

    payload = SetKnowledgeStatePayload(
        character_id=7, book_id=1, chapter_id=3,
        knowledge_item="killer's identity", knowledge_state="unaware",
    )
"""
from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


KnowledgeStateValue = Literal["knows", "knows_with_protection", "suspects", "unaware", "memory_gap"]
ConfidenceLevel = Literal["certain", "probable", "suspected"]
ContentType = Literal["dialogue", "internal_thought", "narration"]
Severity = Literal["critical", "high", "medium"]

CONFIRMED_STATES = frozenset({"knows", "knows_with_protection"})


@dataclasses.dataclass(frozen=True, order=True)
class StoryPosition:
    """A point in the series: (book ordinal, chapter ordinal).

    Field order gives the narrative's total order, so positions compare with
    the ordinary operators.
    """
    book: int
    chapter: int

    def __str__(self) -> str:
        return f"book {self.book}, chapter {self.chapter}"


class ToolSchemaModel(BaseModel):
    """
    Base model for tool arguments.

    Function-calling APIs reject ``additionalProperties`` and ``anyOf``, so the
    JSON schema is flattened: the former is removed everywhere and
    ``Optional[X]`` is collapsed to ``X``.
    """
    model_config = ConfigDict(extra="forbid")

    @classmethod
    def model_json_schema(cls, **kwargs):
        schema = super().model_json_schema(**kwargs)
        cls._simplify(schema)
        return schema

    @staticmethod
    def _simplify(schema: Any) -> None:
        """Recursively strip additionalProperties and nullable anyOf wrappers."""
        if isinstance(schema, dict):
            schema.pop("additionalProperties", None)
            variants = schema.get("anyOf")
            if isinstance(variants, list):
                non_null = [v for v in variants if v != {"type": "null"}]
                if len(non_null) == 1 and len(non_null) < len(variants):
                    del schema["anyOf"]
                    schema.update(non_null[0])
                    if schema.get("default", ...) is None:
                        del schema["default"]
            for value in schema.values():
                ToolSchemaModel._simplify(value)
        elif isinstance(schema, list):
            for item in schema:
                ToolSchemaModel._simplify(item)


# ---------------------------------------------------------------------------
# Tool payloads
# ---------------------------------------------------------------------------

class SetKnowledgeStatePayload(ToolSchemaModel):
    character_id: int = Field(..., description="Character ID")
    book_id: int = Field(..., description="Book ID")
    chapter_id: int = Field(..., description="Chapter ID")
    knowledge_item: str = Field(
        ..., min_length=1, max_length=500,
        description="The specific information or knowledge being tracked",
    )
    knowledge_state: KnowledgeStateValue = Field(..., description="Knowledge state")
    source: Optional[str] = Field(default=None, description="How the character learned this information")
    confidence_level: Optional[ConfidenceLevel] = Field(
        default=None, description="How certain the character is about this knowledge"
    )
    can_act_on: bool = Field(default=True, description="Whether the character can act on this information")
    can_reference_directly: bool = Field(
        default=True, description="Whether the character can directly reference this information"
    )
    can_reference_indirectly: bool = Field(
        default=True, description="Whether the character can indirectly reference this information"
    )
    restrictions: Optional[str] = Field(
        default=None, description="Any specific limitations on how the character can use this knowledge"
    )
    internal_thought_ok: bool = Field(
        default=True, description="Whether the character can reference this in internal thoughts"
    )
    dialogue_restriction: Optional[str] = Field(
        default=None, description="Specific restrictions on how this can be used in dialogue"
    )

    @field_validator(
        "can_act_on", "can_reference_directly", "can_reference_indirectly", "internal_thought_ok",
        mode="before",
    )
    @classmethod
    def _null_flag_is_default(cls, value):
        return True if value is None else value


class CheckReferencePayload(ToolSchemaModel):
    character_id: int = Field(..., description="Character ID")
    knowledge_item: str = Field(
        ..., min_length=1, max_length=500,
        description="The specific information or knowledge being checked",
    )
    at_chapter: int = Field(..., description="Chapter ID to check knowledge state at")


class GetKnowledgeStatePayload(ToolSchemaModel):
    character_id: int = Field(..., description="Character ID")
    chapter_id: int = Field(..., description="Chapter ID to get knowledge state at")


class ValidateScenePayload(ToolSchemaModel):
    character_id: int = Field(..., description="Character ID")
    chapter_id: int = Field(..., description="Chapter ID where the scene occurs")
    scene_content: str = Field(..., max_length=100_000, description="The content of the scene to validate")
    content_type: Optional[ContentType] = Field(
        default=None, description="Type of content (defaults to dialogue)"
    )


# ---------------------------------------------------------------------------
# Ledger rows and derived results
# ---------------------------------------------------------------------------

class KnowledgeFact(BaseModel):
    """One assertion about one character and one knowledge item at one position."""
    id: Optional[int] = None
    character_id: int
    book_id: int
    chapter_id: int
    position: StoryPosition
    knowledge_item: str
    knowledge_state: KnowledgeStateValue
    confidence_level: Optional[ConfidenceLevel] = None
    source: Optional[str] = None
    can_act_on: bool = True
    can_reference_directly: bool = True
    can_reference_indirectly: bool = True
    internal_thought_ok: bool = True
    restrictions: Optional[str] = None
    dialogue_restriction: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_confirmed(self) -> bool:
        return self.knowledge_state in CONFIRMED_STATES


class EffectiveKnowledgeState(BaseModel):
    """A character's knowledge as of one story position, split into four buckets."""
    character_id: int
    at_chapter: Optional[int] = None
    position: StoryPosition
    confirmed_knowledge: List[KnowledgeFact] = Field(default_factory=list)
    suspected_but_unconfirmed: List[KnowledgeFact] = Field(default_factory=list)
    explicitly_doesnt_know: List[KnowledgeFact] = Field(default_factory=list)
    memory_gaps: List[KnowledgeFact] = Field(default_factory=list)

    def buckets(self) -> Dict[str, List[KnowledgeFact]]:
        return {
            "confirmed_knowledge": self.confirmed_knowledge,
            "suspected_but_unconfirmed": self.suspected_but_unconfirmed,
            "explicitly_doesnt_know": self.explicitly_doesnt_know,
            "memory_gaps": self.memory_gaps,
        }


class KnowledgeIssue(BaseModel):
    knowledge_item: str
    violation_type: str
    severity: Severity
    suggestion: str


class ValidationResult(BaseModel):
    valid: bool = True
    violations: List[KnowledgeIssue] = Field(default_factory=list)
    warnings: List[KnowledgeIssue] = Field(default_factory=list)


class ReferenceCheck(BaseModel):
    can_reference: bool
    reason: str
    knowledge_state: Optional[KnowledgeStateValue] = None
    confidence_level: Optional[ConfidenceLevel] = None
    internal_thought_ok: bool = False
    dialogue_restriction: Optional[str] = None
    limitation: Optional[str] = None
