"""
Knowledge service: the four knowledge operations exposed to agents.

Wires the registry, ledger, resolver and validator together around one
session factory and shapes every result as plain JSON-compatible data.
"""
from __future__ import annotations

import time
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from serieskeeper.config import get_settings
from serieskeeper.knowledge.ledger import KnowledgeLedger
from serieskeeper.knowledge.registry import StoryRegistry
from serieskeeper.knowledge.resolver import TemporalResolver
from serieskeeper.knowledge.scanners import ContentScanner, get_scanner
from serieskeeper.knowledge.validator import ReferenceValidator, check_reference
from serieskeeper.schemas.knowledge import (
    CheckReferencePayload,
    GetKnowledgeStatePayload,
    SetKnowledgeStatePayload,
    ValidateScenePayload,
)
from serieskeeper.schemas.tool_messages import validate_tool_arguments
from serieskeeper.utils.logging_config import get_logger

logger = get_logger("serieskeeper.knowledge")


class KnowledgeService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        scanner: Optional[ContentScanner] = None,
    ):
        settings = get_settings()
        self.registry = StoryRegistry(session_factory)
        self.ledger = KnowledgeLedger(session_factory, self.registry)
        self.resolver = TemporalResolver(self.ledger)
        self.validator = ReferenceValidator(scanner or get_scanner(settings.content_scanner))
        self.default_content_type = settings.default_content_type

    async def call(self, tool: str, arguments: Any) -> dict:
        """Validate ``arguments`` for ``tool`` and run the matching operation."""
        payload = validate_tool_arguments(tool, arguments)
        handler = getattr(self, tool)
        started = time.monotonic()
        result = await handler(payload)
        logger.info(
            "tool call complete",
            extra={
                "tool": tool,
                "character_id": getattr(payload, "character_id", None),
                "chapter_id": getattr(payload, "chapter_id", getattr(payload, "at_chapter", None)),
                "duration_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        return result

    async def set_character_knowledge_state(self, payload: SetKnowledgeStatePayload) -> dict:
        fact, created = await self.ledger.set_fact(payload)
        verb = "created" if created else "updated"
        logger.info(
            f"knowledge state {verb}",
            extra={
                "character_id": payload.character_id,
                "chapter_id": payload.chapter_id,
                "knowledge_item": payload.knowledge_item,
                "knowledge_state": payload.knowledge_state,
                "event_type": "knowledge_state_set",
            },
        )
        return {
            "success": True,
            "knowledge_state": fact.model_dump(mode="json"),
            "message": f"Character knowledge state for '{payload.knowledge_item}' successfully {verb}",
        }

    async def check_character_can_reference(self, payload: CheckReferencePayload) -> dict:
        position = await self.registry.position_for(payload.character_id, payload.at_chapter)
        fact = await self.resolver.resolve_item(payload.character_id, payload.knowledge_item, position)
        return check_reference(fact).model_dump(mode="json")

    async def get_character_knowledge_state(self, payload: GetKnowledgeStatePayload) -> dict:
        position = await self.registry.position_for(payload.character_id, payload.chapter_id)
        state = await self.resolver.resolve(payload.character_id, position, at_chapter=payload.chapter_id)
        return state.model_dump(mode="json")

    async def validate_scene_against_knowledge(self, payload: ValidateScenePayload) -> dict:
        position = await self.registry.position_for(payload.character_id, payload.chapter_id)
        state = await self.resolver.resolve(payload.character_id, position, at_chapter=payload.chapter_id)
        content_type = payload.content_type or self.default_content_type
        result = self.validator.validate(state, payload.scene_content, content_type)
        if not result.valid:
            logger.info(
                "scene violates knowledge boundaries",
                extra={
                    "character_id": payload.character_id,
                    "chapter_id": payload.chapter_id,
                    "event_type": "knowledge_violation",
                    "metadata": {
                        "content_type": content_type,
                        "violations": [v.knowledge_item for v in result.violations],
                    },
                },
            )
        return result.model_dump(mode="json")
