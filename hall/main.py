from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from hall.core.config import settings
from hall.api.api_v1.api import api_router
from hall.api.api_v1.endpoints import ws
from hall.db.init_db import init_db
from hall.core.error_handlers import setup_error_handlers
from hall.core.error_tracking import init_sentry
from hall.core.logging_config import init_logging
from hall.core.scheduler import init_scheduler
from hall.realtime.relay import build_relay
import logging

logger = logging.getLogger(__name__)

description = """
## Hall Chat API

비밀번호로 입장하는 휘발성 그룹 채팅 API입니다.

* **REST**: 비밀번호로 방 찾기/생성, 메시지 기록, 접속자 목록
* **WebSocket** (`/ws`): join / leave / message / typing 이벤트 실시간 전달

방의 마지막 연결이 끊기면 해당 방의 메시지 기록과 첨부파일은 삭제됩니다.
"""

tags_metadata = [
    {
        "name": "rooms",
        "description": "채팅방 입장, 메시지 기록, 접속자 조회 API입니다."
    },
    {
        "name": "health",
        "description": "서버 상태 확인 API입니다."
    }
]

# 환경별 문서 접근 설정
docs_url = f"{settings.API_PREFIX}/docs" if settings.ENVIRONMENT == "development" else None
openapi_url = f"{settings.API_PREFIX}/openapi.json" if settings.ENVIRONMENT == "development" else None

app = FastAPI(
    title=settings.PROJECT_NAME,
    description=description,
    version=settings.VERSION,
    openapi_url=openapi_url,
    docs_url=docs_url,
    redoc_url=None,
    openapi_tags=tags_metadata,
    debug=settings.DEBUG
)

# 에러 추적 초기화 (Sentry)
init_sentry()

# 글로벌 에러 핸들러 설정
setup_error_handlers(app)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def startup_event():
    # 로깅 시스템 초기화
    init_logging()

    init_db()

    # 방 레지스트리는 프로세스 메모리에만 존재 (재시작 시 클라이언트가 다시 join)
    app.state.relay = build_relay()

    # 접속자 정리 스케줄러 시작 (선택적)
    if settings.ENABLE_PRESENCE_SWEEP:
        app.state.scheduler = init_scheduler()
        app.state.scheduler.start()
        logger.info("Presence sweep scheduler started")

    logger.info("Hall API server started")

@app.on_event("shutdown")
async def shutdown_event():
    """애플리케이션 종료 시 정리 작업"""
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.shutdown(wait=False)

    logger.info("Hall API server stopped")

app.include_router(api_router, prefix=settings.API_PREFIX)
app.include_router(ws.router)

@app.get("/", tags=["root"])
def read_root():
    """
    API 루트 엔드포인트
    """
    response = {
        "message": "Welcome to Hall Chat API",
        "version": settings.VERSION,
    }

    if settings.ENVIRONMENT == "development":
        response["docs_url"] = f"{settings.API_PREFIX}/docs"

    return response
