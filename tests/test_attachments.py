"""Cloudinary batch deletion client."""

import base64

import httpx
import pytest

from hall.core.config import settings
from hall.realtime.attachments import (
    MAX_IDS_PER_REQUEST,
    AttachmentDeletionError,
    CloudinaryAttachmentStore,
    DisabledAttachmentStore,
    get_attachment_store,
)

pytestmark = pytest.mark.anyio


class CloudinaryStub:
    """Answers Admin API delete requests and keeps them for inspection."""

    def __init__(self, status_code: int = 200, missing: tuple = ()) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.missing = set(missing)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": {"message": "nope"}})
        ids = request.url.params.get_list("public_ids[]")
        deleted = {public_id: "not_found" if public_id in self.missing else "deleted" for public_id in ids}
        return httpx.Response(200, json={"deleted": deleted, "partial": False})


def make_store(stub: CloudinaryStub) -> CloudinaryAttachmentStore:
    return CloudinaryAttachmentStore(
        cloud_name="hall-demo",
        api_key="key-123",
        api_secret="secret-456",
        base_url="https://api.cloudinary.test/v1_1/",
        transport=httpx.MockTransport(stub),
    )


async def test_ids_are_grouped_by_resource_type() -> None:
    stub = CloudinaryStub()
    store = make_store(stub)

    report = await store.delete_attachments(
        [("image", "fjord"), ("file", "map.pdf"), ("image", "glacier"), ("image", "fjord")]
    )

    by_path = {r.url.path: r.url.params.get_list("public_ids[]") for r in stub.requests}
    assert by_path == {
        "/v1_1/hall-demo/resources/image/upload": ["fjord", "glacier"],
        "/v1_1/hall-demo/resources/raw/upload": ["map.pdf"],
    }
    assert all(r.method == "DELETE" for r in stub.requests)
    assert sorted(report.deleted) == ["fjord", "glacier", "map.pdf"]
    assert report.not_found == []


async def test_requests_use_basic_auth() -> None:
    stub = CloudinaryStub()

    await make_store(stub).delete_attachments([("image", "fjord")])

    expected = base64.b64encode(b"key-123:secret-456").decode()
    assert stub.requests[0].headers["authorization"] == f"Basic {expected}"


async def test_large_batches_are_chunked() -> None:
    stub = CloudinaryStub()
    ids = [f"img-{i}" for i in range(MAX_IDS_PER_REQUEST * 2 + 5)]

    report = await make_store(stub).delete_attachments([("image", public_id) for public_id in ids])

    sizes = [len(r.url.params.get_list("public_ids[]")) for r in stub.requests]
    assert sizes == [MAX_IDS_PER_REQUEST, MAX_IDS_PER_REQUEST, 5]
    assert len(report.deleted) == len(ids)


async def test_missing_ids_are_reported_separately() -> None:
    stub = CloudinaryStub(missing=("glacier",))

    report = await make_store(stub).delete_attachments([("image", "fjord"), ("image", "glacier")])

    assert report.deleted == ["fjord"]
    assert report.not_found == ["glacier"]


async def test_text_messages_never_reach_the_host() -> None:
    stub = CloudinaryStub()

    report = await make_store(stub).delete_attachments([("text", "whatever")])

    assert stub.requests == []
    assert report.deleted == []


async def test_error_status_raises() -> None:
    stub = CloudinaryStub(status_code=401)

    with pytest.raises(AttachmentDeletionError, match="401"):
        await make_store(stub).delete_attachments([("image", "fjord")])


async def test_failed_group_does_not_stop_the_others() -> None:
    requests: list[httpx.Request] = []

    def image_host_down(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if "/image/" in request.url.path:
            return httpx.Response(500, text="upstream error")
        ids = request.url.params.get_list("public_ids[]")
        return httpx.Response(200, json={"deleted": {public_id: "deleted" for public_id in ids}})

    store = CloudinaryAttachmentStore(
        cloud_name="hall-demo",
        api_key="key-123",
        api_secret="secret-456",
        transport=httpx.MockTransport(image_host_down),
    )

    with pytest.raises(AttachmentDeletionError, match="500") as excinfo:
        await store.delete_attachments([("image", "fjord"), ("file", "map.pdf")])

    assert sorted(r.url.path for r in requests) == [
        "/v1_1/hall-demo/resources/image/upload",
        "/v1_1/hall-demo/resources/raw/upload",
    ]
    assert excinfo.value.report.deleted == ["map.pdf"]
    assert excinfo.value.report.failed == ["fjord"]


async def test_failed_chunk_does_not_stop_later_chunks() -> None:
    sizes: list[int] = []

    def first_chunk_fails(request: httpx.Request) -> httpx.Response:
        ids = request.url.params.get_list("public_ids[]")
        sizes.append(len(ids))
        if len(sizes) == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, json={"deleted": {public_id: "deleted" for public_id in ids}})

    store = CloudinaryAttachmentStore(
        cloud_name="hall-demo",
        api_key="key-123",
        api_secret="secret-456",
        transport=httpx.MockTransport(first_chunk_fails),
    )
    ids = [f"img-{i}" for i in range(MAX_IDS_PER_REQUEST + 3)]

    with pytest.raises(AttachmentDeletionError) as excinfo:
        await store.delete_attachments([("image", public_id) for public_id in ids])

    assert sizes == [MAX_IDS_PER_REQUEST, 3]
    assert len(excinfo.value.report.failed) == MAX_IDS_PER_REQUEST
    assert excinfo.value.report.deleted == ids[MAX_IDS_PER_REQUEST:]


async def test_transport_error_raises() -> None:
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    store = CloudinaryAttachmentStore(
        cloud_name="hall-demo",
        api_key="key-123",
        api_secret="secret-456",
        transport=httpx.MockTransport(unreachable),
    )

    with pytest.raises(AttachmentDeletionError):
        await store.delete_attachments([("file", "map.pdf")])


async def test_disabled_store_skips_deletion() -> None:
    report = await DisabledAttachmentStore().delete_attachments([("image", "fjord")])

    assert report.deleted == []
    assert report.not_found == []


def test_store_selection_follows_configuration(monkeypatch) -> None:
    monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", None)
    assert isinstance(get_attachment_store(), DisabledAttachmentStore)

    monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "hall-demo")
    monkeypatch.setattr(settings, "CLOUDINARY_API_KEY", "key-123")
    monkeypatch.setattr(settings, "CLOUDINARY_API_SECRET", "secret-456")
    store = get_attachment_store()
    assert isinstance(store, CloudinaryAttachmentStore)
    assert store.cloud_name == "hall-demo"
