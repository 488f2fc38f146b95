"""
WebSocket 프레임 스키마

클라이언트 -> 서버: join / leave / message / typing
서버 -> 클라이언트: join / leave / message / activeUsers / typing
"""
from typing import Annotated, Any, Dict, Literal, Optional, Union
from pydantic import Field, TypeAdapter, validator

from hall.schemas.room import CamelModel
from hall.schemas.message import Message, MessageKind


class EventUser(CamelModel):
    id: Optional[int] = None
    username: str


class JoinUser(EventUser):
    @validator('username')
    def username_not_blank(cls, v):
        if not v.strip():
            raise ValueError('username must not be empty')
        return v


class JoinEvent(CamelModel):
    type: Literal["join"]
    room_id: int
    user: JoinUser


class LeaveEvent(CamelModel):
    type: Literal["leave"]
    room_id: int
    user: Optional[EventUser] = None


class MessagePayload(CamelModel):
    user_id: Optional[int] = None
    username: str
    content: str = Field(..., min_length=1)
    type: MessageKind = "text"
    file_public_id: Optional[str] = None


class MessageEvent(CamelModel):
    type: Literal["message"]
    room_id: int
    message: MessagePayload


class TypingEvent(CamelModel):
    type: Literal["typing"]
    room_id: int
    user: EventUser
    is_typing: bool


InboundEvent = Annotated[
    Union[JoinEvent, LeaveEvent, MessageEvent, TypingEvent],
    Field(discriminator="type"),
]

_inbound_adapter = TypeAdapter(InboundEvent)


def parse_inbound(payload: Any):
    """디코딩된 JSON 객체를 이벤트 모델로 변환 (실패 시 pydantic.ValidationError)"""
    return _inbound_adapter.validate_python(payload)


# --- 서버 -> 클라이언트 프레임 ---

def join_frame(room_id: int, username: str) -> Dict[str, Any]:
    return {"type": "join", "roomId": room_id, "user": {"username": username}}


def leave_frame(room_id: int, username: str) -> Dict[str, Any]:
    return {"type": "leave", "roomId": room_id, "user": {"username": username}}


def active_users_frame(count: int) -> Dict[str, Any]:
    return {"type": "activeUsers", "count": count}


def message_frame(room_id: int, message) -> Dict[str, Any]:
    return {
        "type": "message",
        "roomId": room_id,
        "message": Message.model_validate(message).model_dump(mode="json", by_alias=True),
    }
