from typing import Generator
from fastapi import Request, WebSocket
from sqlalchemy.orm import Session
from hall.db.session import SessionLocal
from hall.realtime.relay import EventRelay

def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_relay(websocket: WebSocket) -> EventRelay:
    return websocket.app.state.relay

def get_http_relay(request: Request) -> EventRelay:
    return request.app.state.relay
