from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import validator
import logging

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    # API 설정
    PROJECT_NAME: str = "Hall Chat API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # 환경 설정
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # 로깅 설정
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # Database settings
    DATABASE_URL: str = "sqlite:///./hall.db"
    SQLALCHEMY_DATABASE_URL: Optional[str] = None

    # CORS 설정
    BACKEND_CORS_ORIGINS_STR: Optional[str] = None

    # 접속자(presence) 정리 설정
    ENABLE_PRESENCE_SWEEP: bool = True
    PRESENCE_TIMEOUT_SECONDS: int = 300  # 5분 동안 활동이 없으면 접속자 목록에서 제거
    PRESENCE_SWEEP_INTERVAL_SECONDS: int = 60

    # 비밀번호/닉네임 입력 제한
    MIN_ROOM_PASSWORD_LENGTH: int = 6

    # Cloudinary (첨부파일 삭제용)
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None
    CLOUDINARY_API_BASE_URL: str = "https://api.cloudinary.com/v1_1"
    ATTACHMENT_DELETE_TIMEOUT_SECONDS: float = 10.0

    # 에러 추적
    SENTRY_DSN: Optional[str] = None

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        logger.info(f"Environment: {self.ENVIRONMENT}")

    @validator("SQLALCHEMY_DATABASE_URL", pre=True, always=True)
    def assemble_db_url(cls, v: Optional[str], values: dict) -> str:
        if v:
            return v
        return values.get("DATABASE_URL", "")

    @property
    def BACKEND_CORS_ORIGINS(self) -> List[str]:
        if self.BACKEND_CORS_ORIGINS_STR is None or self.BACKEND_CORS_ORIGINS_STR == "":
            return ["http://localhost:5173", "http://localhost:3000"]
        if self.BACKEND_CORS_ORIGINS_STR == "*":
            return ["*"]
        return [i.strip() for i in self.BACKEND_CORS_ORIGINS_STR.split(",")]

    @property
    def attachments_configured(self) -> bool:
        return bool(
            self.CLOUDINARY_CLOUD_NAME
            and self.CLOUDINARY_API_KEY
            and self.CLOUDINARY_API_SECRET
        )

    class Config:
        case_sensitive = True
        env_file = ".env"

settings = Settings()
