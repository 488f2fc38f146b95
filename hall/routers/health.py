from fastapi import APIRouter, Depends
from datetime import datetime
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging
from hall.api import deps
from hall.core.utils import KST
from hall.realtime.relay import EventRelay

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/health", tags=["health"])
def health_check(
    db: Session = Depends(deps.get_db),
    relay: EventRelay = Depends(deps.get_http_relay)
):
    """
    헬스 체크 엔드포인트

    API 서버 상태와 현재 열려있는 방/연결 수를 반환합니다.
    """
    try:
        db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as e:
        logger.warning(f"Health check database probe failed: {e}")
        database_ok = False

    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "ok" if database_ok else "unavailable",
        "rooms": relay.registry.room_count(),
        "connections": relay.registry.connection_count(),
        "timestamp": datetime.now(KST).isoformat(),
    }
