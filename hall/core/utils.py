from datetime import datetime, timezone
import pytz

KST = pytz.timezone('Asia/Seoul')

def utc_now() -> datetime:
    """데이터베이스 저장용 현재 시간 (UTC, timezone-aware)"""
    return datetime.now(timezone.utc)

def ensure_utc(dt: datetime) -> datetime:
    """naive datetime은 UTC로 간주합니다. (SQLite는 tzinfo를 보존하지 않음)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
