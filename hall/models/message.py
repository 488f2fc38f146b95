import enum
from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from hall.db.base_class import Base


class MessageType(str, enum.Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


# 외부(Cloudinary)에 업로드된 첨부파일을 가진 메시지 타입
ATTACHMENT_TYPES = (MessageType.IMAGE.value, MessageType.FILE.value)


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_room_id_created_at", "room_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(Integer, ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, nullable=True)
    username = Column(String, nullable=False)  # 사용자 테이블과 연결하지 않고 닉네임을 그대로 저장
    content = Column(Text, nullable=False)  # 텍스트 또는 이미지/파일 URL
    type = Column(String, nullable=False, default=MessageType.TEXT.value)
    file_public_id = Column(String, nullable=True)  # 방 정리 시 첨부파일 삭제용

    room = relationship("ChatRoom", back_populates="messages")

    @property
    def has_attachment(self) -> bool:
        return self.type in ATTACHMENT_TYPES and bool(self.file_public_id)
