from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from hall.models.chat_room import ChatRoom
from hall.core.utils import utc_now
import logging

logger = logging.getLogger(__name__)


def get_room_by_password(db: Session, password: str) -> Optional[ChatRoom]:
    return db.query(ChatRoom).filter(ChatRoom.password == password).first()


def get_room(db: Session, room_id: int) -> Optional[ChatRoom]:
    return db.query(ChatRoom).filter(ChatRoom.id == room_id).first()


def create_room(db: Session, password: str) -> ChatRoom:
    try:
        db_room = ChatRoom(password=password, created_at=utc_now())
        db.add(db_room)
        db.commit()
        db.refresh(db_room)
        return db_room
    except Exception:
        db.rollback()
        raise


def get_or_create_room(db: Session, password: str) -> ChatRoom:
    """비밀번호로 방을 찾고, 없으면 새로 만듭니다. (멱등)"""
    room = get_room_by_password(db, password)
    if room:
        return room
    try:
        room = create_room(db, password)
        logger.info("Created room", extra={"room_id": room.id})
        return room
    except IntegrityError:
        # 같은 비밀번호로 동시에 생성된 경우 먼저 만들어진 방을 사용
        room = get_room_by_password(db, password)
        if room is None:
            raise
        return room
