import logging
from datetime import timedelta
from typing import Callable, Optional
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session
from hall.core.config import settings
from hall.crud import crud_active_user

logger = logging.getLogger(__name__)

def sweep_stale_presence(
    session_factory: Optional[Callable[[], Session]] = None,
    timeout_seconds: Optional[int] = None,
) -> int:
    """
    오래된 접속자(presence) 레코드를 정리하는 스케줄러 작업

    close 핸들러를 거치지 않고 끊긴 연결(클라이언트 크래시, 네트워크 단절 등)이
    남긴 레코드를 삭제합니다. activeUsers 브로드캐스트는 하지 않습니다.
    """
    if session_factory is None:
        from hall.db.session import SessionLocal
        session_factory = SessionLocal
    timeout = timedelta(seconds=timeout_seconds or settings.PRESENCE_TIMEOUT_SECONDS)

    db = session_factory()
    try:
        deleted = crud_active_user.sweep_stale(db, timeout)
        if deleted:
            logger.info(f"Presence sweep removed {deleted} stale record(s)")
        return deleted
    except Exception as e:
        logger.error(f"Presence sweep 중 오류 발생: {str(e)}", exc_info=True)
        return 0
    finally:
        db.close()

def init_scheduler(session_factory: Optional[Callable[[], Session]] = None) -> BackgroundScheduler:
    """
    스케줄러 초기화 및 작업 등록
    """
    scheduler = BackgroundScheduler(timezone="UTC")

    # 기본 60초마다 5분 이상 활동이 없는 접속자 정리
    scheduler.add_job(
        sweep_stale_presence,
        IntervalTrigger(seconds=settings.PRESENCE_SWEEP_INTERVAL_SECONDS),
        kwargs={"session_factory": session_factory},
        id="sweep_stale_presence",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    return scheduler
