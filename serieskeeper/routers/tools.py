"""Tool listing/call, health check and server info endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from serieskeeper.app import get_tool_dispatcher, manager
from serieskeeper.config import get_settings
from serieskeeper.database import get_session_factory
from serieskeeper.tools.dispatcher import ToolDispatcher
from serieskeeper.utils.logging_config import get_logger

router = APIRouter()

logger = get_logger("serieskeeper.routes.tools")


@router.get("/tools")
async def list_tools(dispatcher: ToolDispatcher = Depends(get_tool_dispatcher)):
    return {"tools": dispatcher.list_tools()}


@router.post("/tools/{tool_name}")
async def call_tool(
    tool_name: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
    dispatcher: ToolDispatcher = Depends(get_tool_dispatcher),
):
    """Invoke a tool; failures come back as an ``isError`` envelope with status 200."""
    return await dispatcher.call_tool(tool_name, arguments or {})


@router.get("/health")
async def health(session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory)):
    settings = get_settings()
    try:
        async with session_factory() as db:
            await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("health check failed", exc_info=True, extra={"event_type": "health"})
        return JSONResponse(status_code=500, content={
            "server": settings.app_name,
            "status": "unhealthy",
            "error": str(e),
        })
    return {
        "server": settings.app_name,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {"healthy": True},
        "websocket_connections": len(manager.active_connections),
    }


@router.get("/info")
async def info(dispatcher: ToolDispatcher = Depends(get_tool_dispatcher)):
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "tools": [
            {"name": tool["name"], "description": tool["description"]}
            for tool in dispatcher.list_tools()
        ],
    }
