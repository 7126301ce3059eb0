# codecollab/main.py

from __future__ import annotations

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codecollab.core import state
from codecollab.core.config import settings
from codecollab.core.logging import setup_logging, get_logger
from codecollab.api.routes import root, health, metrics, rooms, run_code
from codecollab.api import websocket as websocket_module
from codecollab.api.socketio_server import create_socketio_server

# Configure logging first
setup_logging()
logger = get_logger(__name__)

# FastAPI app
app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# REST routes
app.include_router(root.router)
app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(rooms.router)
app.include_router(run_code.router)

# WebSocket routes
app.include_router(websocket_module.router)

# Socket.IO wraps the FastAPI app; everything outside /socket.io/ falls through
sio = create_socketio_server(settings.CORS_ALLOWED_ORIGINS)
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)


@app.on_event("startup")
async def startup_event():
    logger.info("🚀 Application starting - collaborative rooms enabled")
    if not state.runner.configured:
        logger.warning("RUNNER_URL not set - /api/run-code will answer 503")


@app.on_event("shutdown")
async def on_shutdown():
    state.sessions.close_all()
    await state.runner.close()
    logger.info("Application stopped")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("codecollab.main:asgi_app", host=settings.HOST, port=settings.PORT)
