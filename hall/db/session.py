from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
from hall.core.config import settings


def create_db_engine(database_url: str):
    """DATABASE_URL에 맞는 엔진 생성 (로컬 개발용 SQLite / 운영용 PostgreSQL)"""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},  # presence 정리 스케줄러 스레드와 공유
            echo=False,
        )
    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=1800,  # 30분마다 연결 재활용
        pool_timeout=30,
        echo=False,
        connect_args={
            "connect_timeout": 15,
            "application_name": "hall_api"
        }
    )


engine = create_db_engine(settings.SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
