from fastapi import Request, FastAPI
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict, List, Optional
import logging

from hall.core.exceptions import (
    APIError, ErrorCode, ErrorSeverity,
    ValidationError, create_error_response
)
from hall.core.error_tracking import error_tracker
from hall.core.config import settings

logger = logging.getLogger("error_handler")

def setup_error_handlers(app: FastAPI) -> None:
    """REST 라우트용 글로벌 에러 핸들러 등록 (WebSocket 프레임 오류는 relay가 처리)"""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        _log_and_track_error(request, exc)
        return create_error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """라우팅 단계의 404/405 등을 같은 응답 형식으로 변환"""
        api_error = _convert_http_exception_to_api_error(exc)
        _log_and_track_error(request, api_error)
        return create_error_response(api_error)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        pydantic 검증 실패는 422 대신 400으로 응답

        경로의 roomId가 정수가 아니면 INVALID_ROOM_ID, 그 외(join 요청 본문 등)는
        VALIDATION_ERROR입니다.
        """
        field_errors = _field_errors(exc.errors())
        if any(error["field"] == "path -> room_id" for error in field_errors):
            api_error = ValidationError(
                message="Room id in path is not an integer",
                field_errors=field_errors,
                error_code=ErrorCode.INVALID_ROOM_ID,
            )
        else:
            api_error = ValidationError(
                message="Request validation failed",
                field_errors=field_errors,
            )
        _log_and_track_error(request, api_error)
        return create_error_response(api_error)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        """엔드포인트에서 변환하지 못한 저장소 오류"""
        api_error = APIError(
            error_code=ErrorCode.DATABASE_ERROR,
            message=f"Database error: {exc}",
            status_code=500,
            severity=ErrorSeverity.HIGH
        )
        _log_and_track_error(request, api_error, original_exception=exc)
        return create_error_response(api_error)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        api_error = APIError(
            error_code=ErrorCode.INTERNAL_SERVER_ERROR,
            message=f"Unexpected error: {exc}" if settings.DEBUG else "Internal server error",
            status_code=500,
            severity=ErrorSeverity.CRITICAL
        )
        _log_and_track_error(request, api_error, original_exception=exc)
        return create_error_response(api_error)

def _field_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    return [
        {
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in errors
    ]

def _log_and_track_error(
    request: Request,
    error: APIError,
    original_exception: Optional[Exception] = None
) -> None:
    """심각도에 따라 로그 레벨을 정하고, HIGH 이상은 Sentry로 전송"""
    severe = error.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL)

    request_info = {
        "method": request.method,
        "path": request.url.path,
        "client_ip": request.client.host if request.client else "unknown",
    }

    logger.log(
        logging.ERROR if severe else logging.WARNING,
        f"{error.error_code.value}: {error.detail}",
        exc_info=original_exception,
        extra={
            "error_id": error.error_id,
            "status_code": error.status_code,
            "severity": error.severity.value,
            "request_info": request_info,
        }
    )

    if severe:
        error_tracker.capture_exception(
            original_exception or error,
            context={
                "error": {"error_id": error.error_id, "error_code": error.error_code.value},
                "request_info": request_info,
            },
            tags={"component": "rest"},
        )

def _convert_http_exception_to_api_error(exc: StarletteHTTPException) -> APIError:
    status_code_mapping = {
        404: ErrorCode.NOT_FOUND,
        405: ErrorCode.METHOD_NOT_ALLOWED,
    }
    error_code = status_code_mapping.get(exc.status_code, ErrorCode.INTERNAL_SERVER_ERROR)

    return APIError(
        error_code=error_code,
        message=str(exc.detail),
        status_code=exc.status_code,
        user_message=str(exc.detail) if exc.status_code < 500 else None,
        severity=ErrorSeverity.HIGH if exc.status_code >= 500 else ErrorSeverity.LOW
    )
