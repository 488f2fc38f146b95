"""
로깅 설정

모든 로그는 한 줄짜리 JSON으로 출력됩니다. relay/purge 로그의 extra 필드
(room_id, connection, messages_deleted 등)는 최상위 키로 함께 기록되어
방 단위로 검색할 수 있습니다.
"""
import logging
import logging.config
import os
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from hall.core.config import settings

# LogRecord 기본 속성 (extra 필드와 구분하기 위함)
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

# 요청/쿼리 단위로 로그를 남기는 라이브러리는 WARNING 이상만
_QUIET_LOGGERS = (
    "uvicorn.access",
    "sqlalchemy.engine",
    "apscheduler",
    "httpx",
    "httpcore",
    "websockets",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_object = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_object["exc_info"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in log_object and key not in _RESERVED_ATTRS:
                log_object[key] = value

        return json.dumps(log_object, ensure_ascii=False, default=str)


def build_logging_config(log_level: str, log_file: Optional[str]) -> Dict[str, Any]:
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {"class": "logging.StreamHandler", "formatter": "json"},
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"json": {"()": JsonFormatter}},
        "handlers": handlers,
        "root": {"level": log_level.upper(), "handlers": list(handlers)},
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
    }


def setup_logging(log_level: str = settings.LOG_LEVEL, log_file: Optional[str] = settings.LOG_FILE):
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

    logging.config.dictConfig(build_logging_config(log_level, log_file))
    logging.getLogger(__name__).info(
        f"Logging initialized. Level: {log_level}, File logging: {bool(log_file)}"
    )


# main.py의 startup 이벤트에서 호출
def init_logging():
    setup_logging()
