"""
방 ID -> 살아있는 연결 집합 (프로세스 메모리)

프로세스 재시작 시 비어있는 상태로 다시 시작하며, 클라이언트는 재접속 후
join을 다시 보내야 합니다. 같은 방에 대한 join/leave/브로드캐스트는
room_lock()으로 직렬화합니다.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Set

from hall.realtime.connection import Connection


class _RoomLock:
    def __init__(self):
        self.lock = asyncio.Lock()
        self.holders = 0


class RoomRegistry:
    def __init__(self):
        self._rooms: Dict[int, Set[Connection]] = {}
        self._locks: Dict[int, _RoomLock] = {}

    @asynccontextmanager
    async def room_lock(self, room_id: int):
        entry = self._locks.get(room_id)
        if entry is None:
            entry = self._locks[room_id] = _RoomLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            # 대기 중인 작업이 없고 방도 비었으면 락 제거
            if entry.holders == 0 and room_id not in self._rooms:
                self._locks.pop(room_id, None)

    def register(self, room_id: int, connection: Connection) -> None:
        self._rooms.setdefault(room_id, set()).add(connection)

    def deregister(self, room_id: int, connection: Connection) -> bool:
        """연결을 제거하고, 이 호출로 방이 비게 되었으면 True를 반환합니다."""
        connections = self._rooms.get(room_id)
        if not connections or connection not in connections:
            return False
        connections.discard(connection)
        if not connections:
            del self._rooms[room_id]
            return True
        return False

    def connections_of(self, room_id: int) -> Set[Connection]:
        return set(self._rooms.get(room_id, ()))

    def is_empty(self, room_id: int) -> bool:
        return not self._rooms.get(room_id)

    def room_count(self) -> int:
        return len(self._rooms)

    def connection_count(self) -> int:
        return sum(len(connections) for connections in self._rooms.values())
