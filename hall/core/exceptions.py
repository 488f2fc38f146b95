from typing import Dict, Any, Optional, List
from fastapi import HTTPException
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
import uuid
from enum import Enum

class ErrorCode(str, Enum):
    """REST 응답의 error.code 값"""

    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    # 입력 검증
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ROOM_ID = "INVALID_ROOM_ID"

    # 저장소
    DATABASE_ERROR = "DATABASE_ERROR"
    ROOM_JOIN_FAILED = "ROOM_JOIN_FAILED"
    HISTORY_LOAD_FAILED = "HISTORY_LOAD_FAILED"
    PRESENCE_LOAD_FAILED = "PRESENCE_LOAD_FAILED"

class ErrorSeverity(str, Enum):
    """HIGH 이상만 Sentry로 전송"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

# 클라이언트에 그대로 보여주는 메시지
USER_MESSAGES = {
    ErrorCode.INTERNAL_SERVER_ERROR: "Internal server error",
    ErrorCode.NOT_FOUND: "Not found",
    ErrorCode.METHOD_NOT_ALLOWED: "Method not allowed",
    ErrorCode.VALIDATION_ERROR: "Invalid input",
    ErrorCode.INVALID_ROOM_ID: "Invalid room ID",
    ErrorCode.DATABASE_ERROR: "Database error",
    ErrorCode.ROOM_JOIN_FAILED: "Failed to join room",
    ErrorCode.HISTORY_LOAD_FAILED: "Failed to get messages",
    ErrorCode.PRESENCE_LOAD_FAILED: "Failed to get active users",
}

class APIError(HTTPException):
    """error_id로 로그와 응답을 연결하는 API 에러"""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 500,
        user_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.user_message = user_message or USER_MESSAGES.get(error_code, "Unknown error")
        self.details = details or {}
        self.severity = severity
        self.error_id = str(uuid.uuid4())
        self.timestamp = datetime.now(timezone.utc).isoformat()

class ValidationError(APIError):
    """요청 본문/경로 검증 실패 (400)"""

    def __init__(
        self,
        message: str,
        field_errors: Optional[List[Dict[str, str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=400,
            details={"field_errors": field_errors or []},
            severity=ErrorSeverity.LOW
        )

class DatabaseError(APIError):
    """저장소 실패 (500)"""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.DATABASE_ERROR):
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=500,
            severity=ErrorSeverity.HIGH
        )

def create_error_response(error: APIError) -> JSONResponse:
    """
    에러 응답 본문

    최상위 message는 프런트엔드가 바로 표시하는 문자열이고,
    error 객체는 로그와 대조하기 위한 상세 정보입니다.
    """
    return JSONResponse(
        status_code=error.status_code,
        content={
            "message": error.user_message,
            "error": {
                "code": error.error_code.value,
                "details": error.details,
                "error_id": error.error_id,
                "timestamp": error.timestamp,
            }
        }
    )
