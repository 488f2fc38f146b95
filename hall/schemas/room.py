from pydantic import BaseModel, Field, validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from hall.core.config import settings
from hall.core.utils import ensure_utc


class CamelModel(BaseModel):
    """프런트엔드와 주고받는 JSON은 camelCase 키를 사용"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class RoomJoinRequest(CamelModel):
    password: str = Field(..., min_length=settings.MIN_ROOM_PASSWORD_LENGTH)
    username: str = Field(..., min_length=1)

    @validator('username')
    def username_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Display name is required')
        return v.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "password": "northern-lights",
                "username": "Astrid"
            }
        }


class RoomJoinResponse(CamelModel):
    room_id: int
    created_at: datetime

    @validator('created_at')
    def as_utc(cls, value):
        return ensure_utc(value)


class ActiveUser(CamelModel):
    id: int
    room_id: int
    user_id: Optional[int] = None
    username: str
    last_seen: datetime

    @validator('last_seen')
    def as_utc(cls, value):
        return ensure_utc(value)
