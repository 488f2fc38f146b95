from fastapi import APIRouter, Depends, WebSocket
import logging

from hall.api import deps
from hall.realtime.connection import Connection
from hall.realtime.relay import EventRelay

router = APIRouter()
logger = logging.getLogger(__name__)

@router.websocket("/ws")
async def chat_websocket(
    websocket: WebSocket,
    relay: EventRelay = Depends(deps.get_relay)
):
    """
    채팅 WebSocket

    한 프레임에 JSON 객체 하나 (join / leave / message / typing).
    잘못된 프레임은 무시되고 연결은 유지됩니다.
    """
    await websocket.accept()
    connection = Connection(websocket)
    logger.debug(f"WebSocket connected: {connection.id}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            if message.get("text") is not None:
                raw = message["text"]
            else:
                raw = (message.get("bytes") or b"").decode("utf-8", errors="replace")
            await relay.handle_frame(connection, raw)
    finally:
        # 정상 종료든 비정상 종료든 leave와 동일하게 정리
        await relay.handle_disconnect(connection)
        logger.debug(f"WebSocket closed: {connection.id}")
