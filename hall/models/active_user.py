from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from hall.db.base_class import Base
from hall.core.utils import utc_now

class ActiveUser(Base):
    """방에 현재 접속 중인 사용자 (presence)"""
    __tablename__ = "active_users"
    __table_args__ = (
        UniqueConstraint("room_id", "username", name="uq_active_users_room_username"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(Integer, ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=True)
    username = Column(String, nullable=False)
    last_seen = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
