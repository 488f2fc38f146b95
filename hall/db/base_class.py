from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import Column, DateTime
from hall.core.utils import utc_now

class Base(DeclarativeBase):
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
