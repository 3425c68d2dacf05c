"""
Tool dispatch: declarations, argument validation and result envelopes.

Results use the MCP ``CallToolResult`` shape so any tool-calling client can
consume them unchanged::

    {"content": [{"type": "text", "text": "<json>"}]}
    {"content": [{"type": "text", "text": "Error executing <tool>: <msg>"}], "isError": true}
"""
from __future__ import annotations

import json
from typing import Any

from serieskeeper.errors import KnowledgeError
from serieskeeper.knowledge.service import KnowledgeService
from serieskeeper.schemas.tool_messages import tool_declarations
from serieskeeper.utils.logging_config import get_logger

logger = get_logger("serieskeeper.tools")


def format_success(data: Any) -> dict:
    text = data if isinstance(data, str) else json.dumps(data, indent=2, default=str)
    return {"content": [{"type": "text", "text": text}]}


def format_error(tool: str, error: Exception) -> dict:
    return {
        "content": [{"type": "text", "text": f"Error executing {tool}: {error}"}],
        "isError": True,
    }


class ToolDispatcher:
    def __init__(self, service: KnowledgeService):
        self.service = service

    def list_tools(self) -> list[dict]:
        return tool_declarations()

    async def call_tool(self, name: str, arguments: Any) -> dict:
        try:
            result = await self.service.call(name, arguments)
        except KnowledgeError as e:
            logger.warning(
                f"Error executing tool {name}: {e}",
                extra={"tool": name, "event_type": type(e).__name__},
            )
            return format_error(name, e)
        return format_success(result)
