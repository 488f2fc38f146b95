from typing import List, Optional
from sqlalchemy.orm import Session
from hall.models.message import Message, MessageType
from hall.core.utils import utc_now


def create_message(
    db: Session,
    room_id: int,
    username: str,
    content: str,
    type: str = MessageType.TEXT.value,
    user_id: Optional[int] = None,
    file_public_id: Optional[str] = None,
) -> Message:
    """메시지를 저장하고 서버가 부여한 id/created_at이 채워진 레코드를 반환합니다."""
    try:
        db_message = Message(
            room_id=room_id,
            user_id=user_id,
            username=username,
            content=content,
            type=type or MessageType.TEXT.value,
            file_public_id=file_public_id,
            created_at=utc_now(),
        )
        db.add(db_message)
        db.commit()
        db.refresh(db_message)
        return db_message
    except Exception:
        db.rollback()
        raise


def get_room_messages(db: Session, room_id: int) -> List[Message]:
    # created_at으로 정렬하되, 같은 시간대의 메시지는 id로 정렬
    return db.query(Message).filter(
        Message.room_id == room_id
    ).order_by(
        Message.created_at.asc(),
        Message.id.asc()
    ).all()


def get_message_count(db: Session, room_id: int) -> int:
    return db.query(Message).filter(Message.room_id == room_id).count()


def delete_room_messages(db: Session, room_id: int) -> int:
    """방의 메시지를 모두 삭제합니다. 방(비밀번호) 레코드는 유지됩니다."""
    try:
        deleted = db.query(Message).filter(
            Message.room_id == room_id
        ).delete(synchronize_session=False)
        db.commit()
        return deleted
    except Exception:
        db.rollback()
        raise
