import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.httpx import HttpxIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from hall.core.config import settings
from typing import Dict, Any, Optional

# 방 비밀번호는 방 자체에 대한 접근 권한이므로 Sentry로 보내지 않음
_SCRUBBED_KEYS = {"password"}


def _scrub_room_password(event: Dict[str, Any], hint: Dict[str, Any]) -> Dict[str, Any]:
    request = event.get("request") or {}
    data = request.get("data")
    if isinstance(data, dict):
        for key in _SCRUBBED_KEYS & data.keys():
            data[key] = "[Filtered]"
    return event


def init_sentry():
    """SENTRY_DSN이 설정된 경우에만 Sentry 초기화"""
    if not settings.SENTRY_DSN:
        return
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
            HttpxIntegration(),
            # 에러 전송은 ErrorTracker가 직접 하므로 로그 기반 이벤트는 끔
            LoggingIntegration(level=None, event_level=None),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,
        before_send=_scrub_room_password,
        environment=settings.ENVIRONMENT,
        release=settings.VERSION,
    )


class ErrorTracker:
    """에러 추적 도우미 (SENTRY_DSN이 없으면 sentry_sdk가 아무 것도 보내지 않음)"""

    @staticmethod
    def capture_exception(
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        extra: Optional[Dict[str, Any]] = None,
        tags: Optional[Dict[str, str]] = None,
    ):
        with sentry_sdk.new_scope() as scope:
            if context:
                for key, value in context.items():
                    scope.set_context(key, value if isinstance(value, dict) else {"value": value})

            if extra:
                for key, value in extra.items():
                    scope.set_extra(key, value)

            scope.set_tag("error_type", type(error).__name__)
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)

            sentry_sdk.capture_exception(error)

    def capture_relay_error(
        self,
        error: Exception,
        event_type: str,
        connection_id: str,
        room_id: Optional[int] = None,
    ):
        """WebSocket 이벤트 처리 중 삼켜진 예외"""
        relay_context: Dict[str, Any] = {"event": event_type, "connection": connection_id}
        if room_id is not None:
            relay_context["room_id"] = room_id
        self.capture_exception(error, context={"relay": relay_context}, tags={"component": "relay"})

    def capture_purge_error(self, error: Exception, room_id: int, attachments: int):
        """방 정리 중 첨부파일 삭제 실패"""
        self.capture_exception(
            error,
            context={"purge": {"room_id": room_id, "attachments": attachments}},
            tags={"component": "purge"},
        )


# 전역 에러 추적기
error_tracker = ErrorTracker()
