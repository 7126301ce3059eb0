# codecollab/api/routes/rooms.py

from typing import List

from fastapi import APIRouter, HTTPException

from codecollab.core import state
from codecollab.models.models import RoomSummary

router = APIRouter()

# ============================================================================
# ROOM INSPECTION ENDPOINTS
# ============================================================================

@router.get("/rooms", response_model=List[RoomSummary])
async def list_rooms():
    """
    List live rooms.

    Rooms only exist while they have members, so every entry has at least
    one member. The buffer itself is not exposed, only its length.
    """
    return [room.to_summary() for room in state.registry.list_rooms()]


@router.get("/rooms/{room_id}", response_model=RoomSummary)
async def get_room(room_id: str):
    """
    Get details of a specific room.

    Raises:
        HTTPException: 404 if room not found
    """
    room = state.registry.get_room(room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return room.to_summary()
