"""Character knowledge REST endpoints, scoped to a series."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query

from serieskeeper.app import get_knowledge_service
from serieskeeper.config import get_settings
from serieskeeper.errors import KnowledgeError, ValidationInputError, http_status_for
from serieskeeper.knowledge.service import KnowledgeService
from serieskeeper.schemas.tool_messages import validate_tool_arguments
from serieskeeper.utils.logging_config import SeriesAdapter, get_logger

router = APIRouter(prefix="/api/character-knowledge")

_logger = get_logger("serieskeeper.routes.knowledge")


async def enforce_series_boundary(
    x_series_id: Optional[int] = Header(default=None),
    series_id: Optional[int] = Query(default=None),
) -> Optional[int]:
    """Series the request is scoped to, from the ``x-series-id`` header or ``series_id`` query."""
    resolved = x_series_id if x_series_id is not None else series_id
    if resolved is None and get_settings().require_series_header:
        raise HTTPException(
            status_code=400,
            detail="Series ID required in header x-series-id or query parameter series_id",
        )
    return resolved


async def _run_tool(
    service: KnowledgeService,
    tool: str,
    arguments: Dict[str, Any],
    series_id: Optional[int],
) -> dict:
    logger = SeriesAdapter(_logger, series_id=series_id)
    try:
        payload = validate_tool_arguments(tool, arguments)
        if series_id is not None:
            await service.registry.require("series", series_id)
            owner = await service.registry.character_series(payload.character_id)
            if owner != series_id:
                raise ValidationInputError(
                    f"Character with ID {payload.character_id} does not belong to series {series_id}"
                )
        return await getattr(service, tool)(payload)
    except KnowledgeError as e:
        logger.info(f"{tool} rejected: {e}", extra={"tool": tool, "event_type": type(e).__name__})
        raise HTTPException(status_code=http_status_for(e), detail=str(e)) from e


# 1. Track what character knows at specific story point
@router.post("/set-state")
async def set_state(
    body: Dict[str, Any] = Body(...),
    series_id: Optional[int] = Depends(enforce_series_boundary),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return await _run_tool(service, "set_character_knowledge_state", body, series_id)


# 2. Validate if character can reference specific information
@router.get("/can-reference")
async def can_reference(
    character_id: Optional[str] = None,
    knowledge_item: Optional[str] = None,
    at_chapter: Optional[str] = None,
    series_id: Optional[int] = Depends(enforce_series_boundary),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    arguments = {
        "character_id": character_id,
        "knowledge_item": knowledge_item,
        "at_chapter": at_chapter,
    }
    return await _run_tool(
        service,
        "check_character_can_reference",
        {k: v for k, v in arguments.items() if v is not None},
        series_id,
    )


# 3. Get complete knowledge state for character
@router.get("/state/{character_id}/at-chapter/{chapter_id}")
async def get_state(
    character_id: int,
    chapter_id: int,
    series_id: Optional[int] = Depends(enforce_series_boundary),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return await _run_tool(
        service,
        "get_character_knowledge_state",
        {"character_id": character_id, "chapter_id": chapter_id},
        series_id,
    )


# 4. Validate scene dialogue/thoughts against knowledge boundaries
@router.post("/validate-scene")
async def validate_scene(
    body: Dict[str, Any] = Body(...),
    series_id: Optional[int] = Depends(enforce_series_boundary),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return await _run_tool(service, "validate_scene_against_knowledge", body, series_id)
