from pydantic import validator
from typing import Optional, Literal
from datetime import datetime
from hall.core.utils import ensure_utc
from hall.schemas.room import CamelModel

MessageKind = Literal["text", "image", "file"]


class Message(CamelModel):
    """저장된 메시지 (REST 응답 및 message 브로드캐스트에 동일하게 사용)"""
    id: int
    room_id: int
    user_id: Optional[int] = None
    username: str
    content: str
    type: MessageKind = "text"
    file_public_id: Optional[str] = None
    created_at: datetime

    @validator('created_at')
    def as_utc(cls, value):
        return ensure_utc(value)
