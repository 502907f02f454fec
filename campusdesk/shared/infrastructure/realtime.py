"""
Real-time Connection Registry
=============================

In-process WebSocket registry partitioned into broadcast rooms.

Every authenticated connection joins two rooms on connect:
- ``user_<id>``: private channel for that user
- ``role_<role>``: shared channel for everyone holding the role

Delivery is best-effort: a socket that fails to receive is dropped from
every room it belongs to. Single-process only.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Set

from fastapi import WebSocket

from campusdesk.config import role_room, user_room
from campusdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(eq=False)
class ClientConnection:
    """A single WebSocket connection and the rooms it joined."""
    websocket: WebSocket
    user_id: str
    role: str
    rooms: Set[str] = field(default_factory=set)
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ConnectionManager:
    """
    Tracks live connections per room and emits events to rooms.

    Used as the real-time sink for complaint notifications.
    """

    def __init__(self):
        self._rooms: Dict[str, Set[ClientConnection]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: str, role: str) -> ClientConnection:
        """Accept the socket and join its private and role rooms."""
        await websocket.accept()
        connection = ClientConnection(websocket=websocket, user_id=str(user_id), role=str(role))

        async with self._lock:
            for room in (user_room(user_id), role_room(role)):
                self._rooms.setdefault(room, set()).add(connection)
                connection.rooms.add(room)

        logger.info("Realtime client connected", extra={"user_id": str(user_id), "role": str(role)})
        return connection

    async def disconnect(self, connection: ClientConnection) -> None:
        """Remove a connection from every room it joined."""
        async with self._lock:
            for room in list(connection.rooms):
                members = self._rooms.get(room)
                if members is not None:
                    members.discard(connection)
                    if not members:
                        del self._rooms[room]
            connection.rooms.clear()

        logger.info("Realtime client disconnected", extra={"user_id": connection.user_id})

    async def emit(self, room: str, event: str, data: Dict[str, Any]) -> int:
        """
        Send ``{"event": event, "data": data}`` to every member of ``room``.

        Returns:
            Number of connections the message was delivered to
        """
        members = list(self._rooms.get(room, ()))
        if not members:
            return 0

        message = {"event": event, "data": data}
        delivered = 0
        dead: List[ClientConnection] = []

        for connection in members:
            try:
                await connection.websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(
                    "Realtime send failed, dropping connection",
                    extra={"room": room, "user_id": connection.user_id, "error": str(e)}
                )
                dead.append(connection)

        for connection in dead:
            await self.disconnect(connection)

        return delivered

    def room_size(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    @property
    def connection_count(self) -> int:
        unique = set()
        for members in self._rooms.values():
            unique.update(members)
        return len(unique)


connection_manager = ConnectionManager()
