"""FastAPI application factory, CORS, service wiring and WebSocket connection manager."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from serieskeeper.config import get_settings
from serieskeeper.database import create_tables, make_engine, make_session_factory
from serieskeeper.knowledge.service import KnowledgeService
from serieskeeper.tools.dispatcher import ToolDispatcher
from serieskeeper.utils.logging_config import get_logger

logger = get_logger("serieskeeper.app")


def init_app_state(app: FastAPI, engine: AsyncEngine) -> None:
    """Build the session factory and services for ``engine`` and attach them to ``app.state``."""
    session_factory = make_session_factory(engine)
    service = KnowledgeService(session_factory)
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.knowledge_service = service
    app.state.tool_dispatcher = ToolDispatcher(service)


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = make_engine()
    # Ensure tables exist
    await create_tables(engine)
    init_app_state(app, engine)
    logger.info("service started", extra={"event_type": "startup"})
    yield
    await engine.dispose()
    logger.info("service stopped", extra={"event_type": "shutdown"})


settings = get_settings()

app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_knowledge_service(request: Request) -> KnowledgeService:
    return request.app.state.knowledge_service


def get_tool_dispatcher(request: Request) -> ToolDispatcher:
    return request.app.state.tool_dispatcher


# --- Connection Manager ---
class ConnectionManager:
    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def send_json(self, message: dict, websocket: WebSocket):
        await websocket.send_json(message)


manager = ConnectionManager()
