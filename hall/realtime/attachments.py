"""
외부 첨부파일(Cloudinary) 삭제 클라이언트

업로드 서명/업로드 자체는 프런트엔드가 담당하고, 서버는 방이 비었을 때
남아있는 첨부파일을 public_id 목록으로 일괄 삭제만 합니다.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import httpx

from hall.core.config import settings

logger = logging.getLogger(__name__)

# Admin API는 한 번에 최대 100개의 public_id 삭제를 허용
MAX_IDS_PER_REQUEST = 100

# 메시지 타입 -> Cloudinary resource_type
RESOURCE_TYPES = {
    "image": "image",
    "file": "raw",
}


class AttachmentDeletionError(Exception):
    """첨부파일 삭제 요청 실패 (report에는 실패 전후로 처리된 결과가 담김)"""

    def __init__(self, message: str, report: Optional["DeletionReport"] = None):
        super().__init__(message)
        self.report = report


@dataclass
class DeletionReport:
    deleted: List[str] = field(default_factory=list)
    not_found: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class CloudinaryAttachmentStore:
    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        base_url: str = "https://api.cloudinary.com/v1_1",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _resources_url(self, resource_type: str) -> str:
        return f"{self.base_url}/{self.cloud_name}/resources/{resource_type}/upload"

    async def delete_attachments(self, attachments: Iterable[Tuple[str, str]]) -> DeletionReport:
        """(message_type, public_id) 목록을 resource_type별로 묶어 일괄 삭제합니다."""
        grouped: Dict[str, List[str]] = defaultdict(list)
        for message_type, public_id in attachments:
            resource_type = RESOURCE_TYPES.get(message_type)
            if resource_type and public_id not in grouped[resource_type]:
                grouped[resource_type].append(public_id)

        report = DeletionReport()
        if not grouped:
            return report

        # 요청 하나가 실패해도 나머지 묶음은 계속 요청하고, 실패는 마지막에 모아서 알림
        errors: List[str] = []
        async with httpx.AsyncClient(
            auth=(self.api_key, self.api_secret),
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            for resource_type, public_ids in grouped.items():
                for start in range(0, len(public_ids), MAX_IDS_PER_REQUEST):
                    chunk = public_ids[start:start + MAX_IDS_PER_REQUEST]
                    try:
                        response = await client.delete(
                            self._resources_url(resource_type),
                            params=[("public_ids[]", public_id) for public_id in chunk],
                        )
                    except httpx.HTTPError as e:
                        error = f"{resource_type}: request failed: {e}"
                    else:
                        if response.status_code == 200:
                            result = response.json().get("deleted", {})
                            for public_id in chunk:
                                if result.get(public_id) == "deleted":
                                    report.deleted.append(public_id)
                                else:
                                    report.not_found.append(public_id)
                            continue
                        error = f"{resource_type}: Cloudinary responded {response.status_code}: {response.text[:200]}"

                    logger.warning(f"Attachment deletion of {len(chunk)} id(s) failed ({error})")
                    report.failed.extend(chunk)
                    errors.append(error)

        if errors:
            raise AttachmentDeletionError(
                f"{len(errors)} Cloudinary request(s) failed: {'; '.join(errors)}",
                report=report,
            )
        return report


class DisabledAttachmentStore:
    """Cloudinary 설정이 없을 때 사용 (삭제 요청을 건너뜀)"""

    async def delete_attachments(self, attachments: Iterable[Tuple[str, str]]) -> DeletionReport:
        pending = list(attachments)
        if pending:
            logger.warning(
                f"Attachment host is not configured; skipping deletion of {len(pending)} attachment(s)"
            )
        return DeletionReport()


def get_attachment_store():
    if not settings.attachments_configured:
        return DisabledAttachmentStore()
    return CloudinaryAttachmentStore(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        base_url=settings.CLOUDINARY_API_BASE_URL,
        timeout=settings.ATTACHMENT_DELETE_TIMEOUT_SECONDS,
    )
