"""Server entry point: ``uvicorn serieskeeper.main:app``."""
from dotenv import load_dotenv
load_dotenv()

from serieskeeper.app import app
from serieskeeper.routers import knowledge, story_structure, tools
from serieskeeper.ws.handler import tools_websocket_endpoint

app.include_router(knowledge.router)
app.include_router(story_structure.router)
app.include_router(tools.router)

# --- WebSocket Endpoint ---
app.add_api_websocket_route("/ws/tools", tools_websocket_endpoint)
