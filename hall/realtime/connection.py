"""
WebSocket 연결 래퍼

연결 상태는 명시적인 태그 타입으로 관리합니다.
  - Unjoined: 아직 join 이벤트를 처리하지 않음
  - Joined(room_id, username): join 이후
"""
import uuid
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Unjoined:
    pass


@dataclass(frozen=True)
class Joined:
    room_id: int
    username: str


UNJOINED = Unjoined()

ConnectionState = Union[Unjoined, Joined]


class NotJoinedError(Exception):
    """join 이전에 방 관련 이벤트가 들어온 경우"""

    def __init__(self, event_type: str):
        super().__init__(f"'{event_type}' event received before join")
        self.event_type = event_type


class Connection:
    """방 레지스트리에 등록되는 단위. 동일성(identity)으로 구분합니다."""

    def __init__(self, websocket):
        self.websocket = websocket
        self.id = uuid.uuid4().hex[:12]
        self.state: ConnectionState = UNJOINED
        # 전송 실패 이후에는 브로드캐스트 대상에서 제외 (레지스트리 정리는 close 처리에서)
        self.send_failed = False

    @property
    def joined(self) -> Optional[Joined]:
        return self.state if isinstance(self.state, Joined) else None

    def require_joined(self, event_type: str) -> Joined:
        if not isinstance(self.state, Joined):
            raise NotJoinedError(event_type)
        return self.state

    @property
    def is_open(self) -> bool:
        if self.send_failed:
            return False
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_json(self, payload: Dict[str, Any]) -> bool:
        """전송 실패는 예외 대신 False로 알립니다."""
        try:
            await self.websocket.send_json(payload)
            return True
        except Exception as e:
            self.send_failed = True
            logger.warning(f"Send failed on connection {self.id}: {e}")
            return False

    def __repr__(self) -> str:
        return f"<Connection {self.id} {self.state}>"
