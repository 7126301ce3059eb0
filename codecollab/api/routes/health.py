# codecollab/api/routes/health.py

from fastapi import APIRouter

from codecollab.core import state

router = APIRouter()

@router.get("/health")
async def health():
    """
    Health check endpoint.

    Returns current status with connection and room counts.

    Returns:
        dict: Status, connection count, room count
    """
    return {
        "status": "healthy",
        "connections": len(state.sessions),
        "rooms": len(state.registry),
    }
