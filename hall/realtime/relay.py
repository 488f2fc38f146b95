"""
실시간 이벤트 릴레이

WebSocket으로 들어온 join / leave / message / typing 이벤트를 해석해서
접속자 기록과 메시지를 갱신하고, 같은 방의 연결들에게 이벤트를 전달합니다.

- join, message: 보낸 연결을 포함한 방 전체에 전달
- typing: 보낸 연결을 제외하고 전달
- leave: 남아있는 연결들에게 전달, 방이 비면 정리(purge) 실행

잘못된 프레임이나 처리 중 오류는 로그만 남기고 연결은 유지합니다.
"""
import json
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hall.crud import crud_active_user, crud_message, crud_room
from hall.core.error_tracking import error_tracker
from hall.realtime.connection import Connection, Joined, NotJoinedError, UNJOINED
from hall.realtime.purge import RoomPurger
from hall.realtime.registry import RoomRegistry
from hall.schemas import events

logger = logging.getLogger(__name__)


class EventRelay:
    def __init__(
        self,
        registry: RoomRegistry,
        session_factory: Callable[[], Session],
        purger: RoomPurger,
    ):
        self.registry = registry
        self.session_factory = session_factory
        self.purger = purger

    @contextmanager
    def _session(self):
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    # --- 진입점 ---

    async def handle_frame(self, connection: Connection, raw: str) -> None:
        """프레임 하나를 처리합니다. 어떤 오류도 호출자에게 전파하지 않습니다."""
        try:
            payload = json.loads(raw)
            event = events.parse_inbound(payload)
        except (ValueError, PydanticValidationError) as e:
            # json.JSONDecodeError도 ValueError
            logger.warning(f"Ignoring malformed frame on connection {connection.id}: {e}")
            return

        try:
            if isinstance(event, events.JoinEvent):
                await self.join(connection, event)
            elif isinstance(event, events.LeaveEvent):
                await self.leave(connection)
            elif isinstance(event, events.MessageEvent):
                await self.message(connection, event)
            elif isinstance(event, events.TypingEvent):
                await self.typing(connection, payload)
        except NotJoinedError as e:
            logger.warning(f"Ignoring frame on connection {connection.id}: {e}")
        except SQLAlchemyError as e:
            logger.error(f"Store error while handling '{event.type}' event: {e}", exc_info=True)
            error_tracker.capture_relay_error(e, event.type, connection.id)
        except Exception as e:
            logger.error(f"Unexpected error while handling '{event.type}' event: {e}", exc_info=True)
            error_tracker.capture_relay_error(e, event.type, connection.id)

    async def handle_disconnect(self, connection: Connection) -> None:
        """소켓 종료: join 상태였다면 leave와 동일하게 처리"""
        if connection.joined is None:
            return
        try:
            await self.leave(connection)
        except Exception as e:
            logger.error(f"Error while cleaning up connection {connection.id}: {e}", exc_info=True)
            error_tracker.capture_relay_error(e, "close", connection.id)

    # --- 이벤트 처리 ---

    async def join(self, connection: Connection, event: events.JoinEvent) -> None:
        room_id = event.room_id
        username = event.user.username

        # REST join으로 만들어지지 않은 방 ID는 무시 (presence가 없는 등록 방지)
        with self._session() as db:
            if crud_room.get_room(db, room_id) is None:
                logger.warning(f"Ignoring join for unknown room {room_id} on connection {connection.id}")
                return

        # 다른 방으로 옮기면 이전 방은 정상 퇴장 처리 (비면 정리)
        current = connection.joined
        if current is not None and current.room_id != room_id:
            await self.leave(connection)
            current = None

        async with self.registry.room_lock(room_id):
            connection.state = Joined(room_id=room_id, username=username)
            self.registry.register(room_id, connection)

            with self._session() as db:
                # 같은 방에서 닉네임만 바꾸면 이전 닉네임의 접속 기록만 제거 (방은 비지 않음)
                if current is not None and current.username != username:
                    crud_active_user.remove(db, room_id, current.username)
                crud_active_user.upsert(db, room_id, username, user_id=event.user.id)
                count = crud_active_user.count_active(db, room_id)

            logger.info(f"{username} joined room {room_id}", extra={"room_id": room_id, "connection": connection.id})
            await self.broadcast(room_id, events.join_frame(room_id, username))
            await self.broadcast(room_id, events.active_users_frame(count))

    async def leave(self, connection: Connection) -> None:
        state = connection.require_joined("leave")
        room_id, username = state.room_id, state.username

        async with self.registry.room_lock(room_id):
            connection.state = UNJOINED
            became_empty = self.registry.deregister(room_id, connection)

            try:
                with self._session() as db:
                    crud_active_user.remove(db, room_id, username)
            except SQLAlchemyError as e:
                # 남은 레코드는 주기적인 presence 정리 작업이 삭제
                logger.error(f"Failed to remove presence of {username} in room {room_id}: {e}", exc_info=True)
                error_tracker.capture_relay_error(e, "leave", connection.id, room_id=room_id)

            await self.broadcast(room_id, events.leave_frame(room_id, username))
            logger.info(f"{username} left room {room_id}", extra={"room_id": room_id, "connection": connection.id})

            if became_empty:
                # 남은 연결이 없으므로 activeUsers 브로드캐스트는 생략
                await self.purger.purge(room_id)
                return

            with self._session() as db:
                count = crud_active_user.count_active(db, room_id)
            await self.broadcast(room_id, events.active_users_frame(count))

    async def message(self, connection: Connection, event: events.MessageEvent) -> None:
        state = connection.require_joined("message")
        room_id = state.room_id
        payload = event.message

        async with self.registry.room_lock(room_id):
            with self._session() as db:
                saved = crud_message.create_message(
                    db,
                    room_id=room_id,
                    user_id=payload.user_id,
                    username=payload.username,
                    content=payload.content,
                    type=payload.type,
                    file_public_id=payload.file_public_id,
                )
                # 브로드캐스트 페이로드는 저장된 레코드(서버가 부여한 id/created_at) 기준
                frame = events.message_frame(room_id, saved)
                crud_active_user.touch(db, room_id, state.username)

            logger.debug(f"Message {frame['message']['id']} stored in room {room_id}")
            await self.broadcast(room_id, frame)

    async def typing(self, connection: Connection, payload: Dict[str, Any]) -> None:
        state = connection.require_joined("typing")
        async with self.registry.room_lock(state.room_id):
            await self.broadcast(state.room_id, payload, exclude=connection)

    # --- 브로드캐스트 ---

    async def broadcast(
        self,
        room_id: int,
        payload: Dict[str, Any],
        exclude: Optional[Connection] = None,
    ) -> int:
        """
        방의 현재 연결들에게 전송합니다. (fire-and-forget)

        열려있지 않은 연결은 건너뛰고, 전송에 실패한 연결은 이후 브로드캐스트에서
        제외됩니다. 실패는 다른 수신자나 호출자에게 영향을 주지 않습니다.
        전송에 성공한 연결 수를 반환합니다.
        """
        delivered = 0
        for connection in self.registry.connections_of(room_id):
            if connection is exclude or not connection.is_open:
                continue
            if await connection.send_json(payload):
                delivered += 1
        return delivered


def build_relay(session_factory: Optional[Callable[[], Session]] = None, attachment_store=None) -> EventRelay:
    """기본 구성(프로세스 전역 레지스트리 + SessionLocal + Cloudinary)으로 릴레이 생성"""
    if session_factory is None:
        from hall.db.session import SessionLocal
        session_factory = SessionLocal
    if attachment_store is None:
        from hall.realtime.attachments import get_attachment_store
        attachment_store = get_attachment_store()
    return EventRelay(
        registry=RoomRegistry(),
        session_factory=session_factory,
        purger=RoomPurger(session_factory, attachment_store),
    )
