"""
방별 접속자(presence) 관리

(room_id, username) 쌍마다 레코드는 최대 1개입니다. 입장/활동 시 last_seen을
갱신하고, 정상적으로 종료되지 않은 연결이 남긴 레코드는 주기적인 정리 작업이
삭제합니다.
"""
from datetime import timedelta
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from hall.models.active_user import ActiveUser
from hall.core.utils import utc_now


def _get(db: Session, room_id: int, username: str) -> Optional[ActiveUser]:
    return db.query(ActiveUser).filter(
        ActiveUser.room_id == room_id,
        ActiveUser.username == username
    ).first()


def list_active(db: Session, room_id: int) -> List[ActiveUser]:
    return db.query(ActiveUser).filter(ActiveUser.room_id == room_id).all()


def count_active(db: Session, room_id: int) -> int:
    return db.query(ActiveUser).filter(ActiveUser.room_id == room_id).count()


def upsert(db: Session, room_id: int, username: str, user_id: Optional[int] = None) -> ActiveUser:
    """이미 접속 중이면 last_seen만 갱신하고, 아니면 새로 추가합니다."""
    existing = _get(db, room_id, username)
    if existing:
        existing.last_seen = utc_now()
        db.commit()
        db.refresh(existing)
        return existing

    try:
        active_user = ActiveUser(
            room_id=room_id,
            user_id=user_id,
            username=username,
            last_seen=utc_now(),
        )
        db.add(active_user)
        db.commit()
        db.refresh(active_user)
        return active_user
    except IntegrityError:
        # 동시에 같은 닉네임으로 입장한 경우 유니크 제약 위반 -> 기존 레코드 갱신
        db.rollback()
        existing = _get(db, room_id, username)
        if existing is None:
            raise
        existing.last_seen = utc_now()
        db.commit()
        db.refresh(existing)
        return existing


def remove(db: Session, room_id: int, username: str) -> None:
    try:
        db.query(ActiveUser).filter(
            ActiveUser.room_id == room_id,
            ActiveUser.username == username
        ).delete(synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise


def touch(db: Session, room_id: int, username: str) -> None:
    """last_seen 갱신 (레코드가 없으면 아무 것도 하지 않음)"""
    try:
        db.query(ActiveUser).filter(
            ActiveUser.room_id == room_id,
            ActiveUser.username == username
        ).update({ActiveUser.last_seen: utc_now()}, synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise


def sweep_stale(db: Session, timeout: timedelta) -> int:
    """last_seen이 timeout보다 오래된 레코드를 모든 방에서 삭제합니다."""
    cutoff = utc_now() - timeout
    try:
        deleted = db.query(ActiveUser).filter(
            ActiveUser.last_seen < cutoff
        ).delete(synchronize_session=False)
        db.commit()
        return deleted
    except Exception:
        db.rollback()
        raise
