"""
WebSocket connection registry and presence fan-out.

Holds the live sockets of this process and the room membership used for
broadcast scoping. Persistent presence state lives in PresenceTracker; this
class only delivers messages.
"""

import logging
from typing import Dict, Optional, Set

from fastapi import WebSocket

from src.app.services.presence_events import PresenceEvent, PresenceEventKind

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        self.connections: Dict[str, WebSocket] = {}
        self.users: Dict[str, dict] = {}
        self.rooms: Dict[str, Set[str]] = {}

    def connect(self, connection_id: str, websocket: WebSocket, user: dict) -> None:
        self.connections[connection_id] = websocket
        self.users[connection_id] = user

    def disconnect(self, connection_id: str) -> None:
        self.connections.pop(connection_id, None)
        self.users.pop(connection_id, None)
        self._drop_from_rooms(connection_id)

    def _drop_from_rooms(self, connection_id: str) -> None:
        for members in self.rooms.values():
            members.discard(connection_id)
        self.rooms = {room: members for room, members in self.rooms.items() if members}

    def join(self, connection_id: str, room: str) -> None:
        self._drop_from_rooms(connection_id)
        self.rooms.setdefault(room, set()).add(connection_id)

    def leave(self, connection_id: str, room: str) -> None:
        members = self.rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self.rooms[room]

    async def send(self, connection_id: str, event: str, data: dict) -> bool:
        websocket = self.connections.get(connection_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json({"event": event, "data": data})
            return True
        except Exception as e:
            # Socket already closing; its own handler cleans up
            logger.warning(f"Failed to send {event} to {connection_id}: {e}")
            return False

    async def broadcast(
        self, event: str, data: dict, exclude: Optional[str] = None
    ) -> None:
        for connection_id in list(self.connections):
            if connection_id != exclude:
                await self.send(connection_id, event, data)

    async def broadcast_to_room(
        self, room: str, event: str, data: dict, exclude: Optional[str] = None
    ) -> None:
        for connection_id in list(self.rooms.get(room, ())):
            if connection_id != exclude:
                await self.send(connection_id, event, data)

    def _user_payload(self, event: PresenceEvent) -> dict:
        payload = {"user_id": event.user_id}
        user = self.users.get(event.connection_id)
        if user:
            payload.update(user)
        return payload

    async def handle_presence_event(self, event: PresenceEvent) -> None:
        """PresenceEventBus subscriber: push tracker events to connected clients"""
        payload = self._user_payload(event)

        if event.kind == PresenceEventKind.joined:
            await self.broadcast("presence:join", payload, exclude=event.connection_id)
        elif event.kind == PresenceEventKind.left:
            payload["reason"] = event.reason
            self._drop_from_rooms(event.connection_id)
            await self.broadcast("presence:leave", payload, exclude=event.connection_id)
        elif event.kind == PresenceEventKind.room_joined:
            self.join(event.connection_id, event.room)
            await self.broadcast_to_room(
                event.room,
                "presence:join",
                {**payload, "room": event.room},
                exclude=event.connection_id,
            )
        elif event.kind == PresenceEventKind.room_left:
            self.leave(event.connection_id, event.room)
            await self.broadcast_to_room(
                event.room, "presence:leave", {**payload, "room": event.room}
            )
