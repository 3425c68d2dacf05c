import json

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from serieskeeper.app import manager
from serieskeeper.config import get_settings
from serieskeeper.schemas.tool_messages import (
    VALID_TOOLS,
    ToolCallMessage,
    format_validation_errors,
)
from serieskeeper.utils.logging_config import get_logger

_logger = get_logger("serieskeeper.ws.handler")


async def tools_websocket_endpoint(websocket: WebSocket):
    """Tool-call channel: one JSON request in, one ``tool_result`` out."""
    await manager.connect(websocket)
    _logger.info("WebSocket connected", extra={"event_type": "ws_connect"})

    dispatcher = websocket.app.state.tool_dispatcher
    max_bytes = get_settings().max_message_bytes

    try:
        while True:
            data = await websocket.receive_text()

            # Size validation
            if len(data.encode("utf-8", errors="replace")) > max_bytes:
                await manager.send_json({"type": "error", "code": "MESSAGE_TOO_LARGE",
                                         "message": f"Message exceeds {max_bytes // 1024}KB limit"}, websocket)
                continue

            try:
                raw = json.loads(data)
            except (json.JSONDecodeError, ValueError) as exc:
                await manager.send_json({"type": "error", "code": "INVALID_JSON",
                    "message": f"Malformed JSON: {exc}"}, websocket)
                continue

            if not isinstance(raw, dict):
                await manager.send_json({"type": "error", "code": "INVALID_FORMAT",
                    "message": "Expected a JSON object"}, websocket)
                continue

            try:
                message = ToolCallMessage.model_validate(raw)
            except ValidationError as exc:
                await manager.send_json({"type": "error", "code": "INVALID_FORMAT",
                    "message": format_validation_errors(exc)}, websocket)
                continue

            if message.tool not in VALID_TOOLS:
                await manager.send_json({"type": "error", "code": "UNKNOWN_TOOL", "id": message.id,
                    "message": f"Unknown tool: {message.tool}"}, websocket)
                continue

            # Dispatch to handler
            result = await dispatcher.call_tool(message.tool, message.arguments)
            await manager.send_json({
                "type": "tool_result",
                "id": message.id,
                "tool": message.tool,
                "content": result["content"],
                "isError": result.get("isError", False),
            }, websocket)

    except WebSocketDisconnect:
        _logger.info("WebSocket disconnected", extra={"event_type": "ws_disconnect"})
    except Exception as e:
        _logger.exception("Fatal error in WebSocket loop", extra={"event_type": "ws_error"})
        try:
            await manager.send_json({"type": "error", "code": "INTERNAL_ERROR", "message": str(e)}, websocket)
        except (WebSocketDisconnect, RuntimeError):
            _logger.info("Error frame not delivered, socket already closed", extra={"event_type": "ws_error"})
    finally:
        manager.disconnect(websocket)
