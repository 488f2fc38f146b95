"""
방 정리 (privacy purge)

방의 마지막 연결이 끊기면 메시지 기록과 외부 첨부파일을 삭제합니다.
방 레코드(비밀번호)는 남겨두므로 같은 비밀번호로 다시 들어오면 같은 방 ID에
빈 기록으로 입장하게 됩니다.
"""
import logging
from dataclasses import dataclass
from typing import Callable

from sqlalchemy.orm import Session

from hall.crud import crud_message
from hall.core.error_tracking import error_tracker

logger = logging.getLogger(__name__)


@dataclass
class PurgeResult:
    room_id: int
    messages_deleted: int
    attachments_requested: int
    attachments_failed: bool = False


class RoomPurger:
    def __init__(self, session_factory: Callable[[], Session], attachment_store):
        self.session_factory = session_factory
        self.attachment_store = attachment_store

    async def purge(self, room_id: int) -> PurgeResult:
        db = self.session_factory()
        try:
            messages = crud_message.get_room_messages(db, room_id)
            attachments = [
                (message.type, message.file_public_id)
                for message in messages
                if message.has_attachment
            ]

            # 첨부파일 삭제는 최선 노력(best-effort): 실패해도 재시도하지 않고 메시지 삭제는 계속 진행
            attachments_failed = False
            if attachments:
                try:
                    report = await self.attachment_store.delete_attachments(attachments)
                    logger.info(
                        f"Deleted attachments for room {room_id}",
                        extra={
                            "room_id": room_id,
                            "deleted": len(report.deleted),
                            "not_found": len(report.not_found),
                        }
                    )
                except Exception as e:
                    attachments_failed = True
                    logger.error(f"Attachment deletion failed for room {room_id}: {e}", exc_info=True)
                    error_tracker.capture_purge_error(e, room_id, len(attachments))

            deleted = crud_message.delete_room_messages(db, room_id)
            logger.info(
                f"Purged room {room_id}",
                extra={"room_id": room_id, "messages_deleted": deleted}
            )
            return PurgeResult(
                room_id=room_id,
                messages_deleted=deleted,
                attachments_requested=len(attachments),
                attachments_failed=attachments_failed,
            )
        finally:
            db.close()
