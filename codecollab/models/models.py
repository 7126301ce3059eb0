# codecollab/models/models.py
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Payload(BaseModel):
    # Browser clients attach extra fields freely; only the known ones matter.
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("room", check_fields=False)
    @classmethod
    def strip_room(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Room id is required")
        return value


class RoomRequest(_Payload):
    """Body of createRoom/joinRoom/leaveRoom when sent as an object."""

    room: str = Field(alias="roomId")
    username: Optional[str] = None
    language_id: Optional[int] = Field(default=None, alias="languageId")


class CodeChangePayload(_Payload):
    room: str
    code: str


class ChatMessagePayload(_Payload):
    room: str
    message: str
    timestamp: Optional[str] = None
    id: Optional[str] = None
    sender: Optional[str] = None


class TypingPayload(_Payload):
    room: str
    username: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")


class StopTypingPayload(_Payload):
    room: str
    user_id: Optional[str] = Field(default=None, alias="userId")


class ChatMessage(BaseModel):
    """Chat message as relayed to the other members of a room. Never stored."""

    message: str
    timestamp: str
    id: str
    sender: str


class RoomSummary(BaseModel):
    id: str
    language_id: int
    member_count: int
    members: List[str]
    typing: List[str]
    code_length: int
    created_at: str


class RunCodeRequest(_Payload):
    code: str
    language_id: int = Field(alias="languageId")
    stdin: Optional[str] = None


class RunCodeResponse(BaseModel):
    stdout: str = ""
    stderr: str = ""
