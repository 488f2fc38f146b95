from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from hall.api import deps
from hall.core.exceptions import DatabaseError, ErrorCode
from hall.crud import crud_room, crud_message, crud_active_user
from hall.schemas.room import RoomJoinRequest, RoomJoinResponse, ActiveUser
from hall.schemas.message import Message

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/join", response_model=RoomJoinResponse, summary="비밀번호로 방 입장 (없으면 생성)")
def join_room(
    room_in: RoomJoinRequest,
    db: Session = Depends(deps.get_db)
):
    """
    비밀번호에 해당하는 방을 찾거나 새로 만들고 방 ID를 반환합니다.

    실제 입장(접속자 등록, 입장 알림)은 이후 WebSocket join 이벤트로 이루어집니다.
    """
    try:
        room = crud_room.get_or_create_room(db, room_in.password)
    except SQLAlchemyError as e:
        logger.error(f"Error joining room: {e}", exc_info=True)
        raise DatabaseError(f"Failed to join room: {e}", error_code=ErrorCode.ROOM_JOIN_FAILED)

    return RoomJoinResponse(room_id=room.id, created_at=room.created_at)

@router.get("/{room_id}/messages", response_model=List[Message])
def get_room_messages(
    room_id: int,
    db: Session = Depends(deps.get_db)
):
    """방의 메시지 기록 (오래된 순). 없는 방이면 빈 목록"""
    try:
        messages = crud_message.get_room_messages(db, room_id)
    except SQLAlchemyError as e:
        logger.error(f"Error loading messages of room {room_id}: {e}", exc_info=True)
        raise DatabaseError(f"Failed to get messages: {e}", error_code=ErrorCode.HISTORY_LOAD_FAILED)
    return [Message.model_validate(message) for message in messages]

@router.get("/{room_id}/users", response_model=List[ActiveUser])
def get_active_users(
    room_id: int,
    db: Session = Depends(deps.get_db)
):
    """방에 접속 중인 사용자 목록. 없는 방이면 빈 목록"""
    try:
        users = crud_active_user.list_active(db, room_id)
    except SQLAlchemyError as e:
        logger.error(f"Error loading active users of room {room_id}: {e}", exc_info=True)
        raise DatabaseError(f"Failed to get active users: {e}", error_code=ErrorCode.PRESENCE_LOAD_FAILED)
    return [ActiveUser.model_validate(user) for user in users]
