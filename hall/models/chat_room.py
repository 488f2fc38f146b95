from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from hall.db.base_class import Base

class ChatRoom(Base):
    __tablename__ = "chat_rooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # 방 비밀번호가 곧 입장 키이므로 유일해야 함
    password = Column(String, unique=True, nullable=False, index=True)

    messages = relationship("Message", back_populates="room", passive_deletes=True)
