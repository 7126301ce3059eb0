# codecollab/api/routes/root.py

from fastapi import APIRouter

from codecollab import __version__
from codecollab.services.events import EVENT_NAMES

router = APIRouter()


@router.get("/")
async def root():
    """
    Root endpoint - API information.

    Returns basic info about the API and the event protocol it speaks.
    """
    return {
        "message": "Code Collab Rooms",
        "version": __version__,
        "conflict_policy": "last-writer-wins",
        "events": list(EVENT_NAMES),
        "endpoints": {
            "socketio": "/socket.io",
            "websocket": "/ws",
            "rooms": "/rooms",
            "run_code": "/api/run-code",
            "health": "/health",
            "metrics": "/metrics",
        },
    }
