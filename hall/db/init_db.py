from sqlalchemy.exc import OperationalError
from hall.db.base import Base
from hall.db.session import engine
import logging
import time

logger = logging.getLogger(__name__)

def init_db(bind=None, max_retries: int = 5) -> None:
    """테이블 생성 (운영 환경의 스키마 변경은 alembic 마이그레이션으로 관리)"""
    bind = bind or engine
    for attempt in range(max_retries):
        try:
            Base.metadata.create_all(bind=bind)
            logger.info("Database tables are ready")
            return
        except OperationalError as e:
            logger.warning(f"Database connection failed (attempt {attempt + 1}/{max_retries}): {e}")
            if attempt < max_retries - 1:
                time.sleep(2 * (attempt + 1))
                continue
            logger.error("Failed to create database tables after all retries")
            raise

if __name__ == "__main__":
    init_db()
