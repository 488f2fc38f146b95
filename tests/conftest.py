"""Test fixtures: in-memory database, fake sockets, recording attachment host."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.websockets import WebSocketState

from hall.api import deps
from hall.core.config import settings
from hall.db.base import Base
from hall.realtime.attachments import DeletionReport
from hall.realtime.connection import Connection
from hall.realtime.relay import build_relay


class FakeWebSocket:
    """Stands in for a Starlette WebSocket; records every frame sent to it."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.fail_sends = False

    async def send_json(self, payload: dict) -> None:
        if self.fail_sends:
            raise RuntimeError("socket is gone")
        self.sent.append(payload)

    def frames(self, frame_type: str) -> list[dict]:
        return [frame for frame in self.sent if frame.get("type") == frame_type]

    def types(self) -> list[str]:
        return [frame["type"] for frame in self.sent]


class RecordingAttachmentStore:
    """Records batch deletion requests instead of calling the attachment host."""

    def __init__(self) -> None:
        self.calls: list[list[tuple[str, str]]] = []
        self.fail = False

    async def delete_attachments(self, attachments) -> DeletionReport:
        batch = list(attachments)
        self.calls.append(batch)
        if self.fail:
            raise RuntimeError("attachment host unavailable")
        return DeletionReport(deleted=[public_id for _, public_id in batch])


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def attachment_store() -> RecordingAttachmentStore:
    return RecordingAttachmentStore()


@pytest.fixture
def relay(session_factory, attachment_store):
    return build_relay(session_factory, attachment_store)


@pytest.fixture
def make_connection():
    def factory() -> tuple[Connection, FakeWebSocket]:
        websocket = FakeWebSocket()
        return Connection(websocket), websocket

    return factory


@pytest.fixture
def client(session_factory, relay, monkeypatch):
    """TestClient running the real app against the in-memory database."""
    from hall import main

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    monkeypatch.setattr(main, "init_logging", lambda: None)
    monkeypatch.setattr(main, "init_db", lambda: None)
    monkeypatch.setattr(main, "build_relay", lambda: relay)
    monkeypatch.setattr(settings, "ENABLE_PRESENCE_SWEEP", False)
    main.app.dependency_overrides[deps.get_db] = override_get_db

    with TestClient(main.app) as test_client:
        yield test_client

    main.app.dependency_overrides.clear()
