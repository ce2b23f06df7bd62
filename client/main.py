"""
LanDrop client: FastAPI application entry point.

Builds the session against the local backend process, serves the REST API
and a WebSocket that pushes device/notification changes to the UI.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from api.routes import init_routes, router
from api.websocket import ConnectionManager
from backend.http import HttpBackend
from config import API_HOST, API_PORT, BACKEND_URL
from session import LanDropSession
from transfer.picker import TkFilePicker

# --- Logging ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# --- Service singletons ---
backend = HttpBackend()
session = LanDropSession(backend=backend, file_picker=TkFilePicker())
ws_manager = ConnectionManager()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start/stop the session."""
    logger.info(f"Starting LanDrop client against backend {BACKEND_URL}...")

    # Wire up store change broadcasting
    session.registry.on_change(ws_manager.publish_devices)
    session.feed.on_change(ws_manager.publish_notifications)

    try:
        await session.start()
        logger.info(f"LanDrop client ready, API: {API_HOST}:{API_PORT}")
        yield
    except Exception as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        raise
    finally:
        logger.info("Shutting down LanDrop client...")
        await session.close()
        await backend.aclose()


# --- FastAPI app ---
app = FastAPI(
    title="LanDrop",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173", "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Inject the session into routes
init_routes(session)
app.include_router(router)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await ws_manager.connect(websocket)
    try:
        while True:
            # Keep the connection alive; we don't expect client messages
            await websocket.receive_text()
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)
    except Exception:
        await ws_manager.disconnect(websocket)


def run() -> None:
    import uvicorn

    uvicorn.run(
        app,
        host=API_HOST,
        port=API_PORT,
        log_level="info",
    )


if __name__ == "__main__":
    run()
