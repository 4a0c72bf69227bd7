"""
Presence Tracker

Maps live connections to users, rooms and liveness timestamps.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import AsyncContextManager, Callable, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel

from src.libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import PresenceSession
from .presence_events import PresenceEvent, PresenceEventBus, PresenceEventKind

logger = logging.getLogger(__name__)

ONLINE_WINDOW = timedelta(seconds=60)
STALE_AFTER = timedelta(seconds=60)

UnitOfWorkFactory = Callable[[], AsyncContextManager[UnitOfWork]]


class PresenceInfo(BaseModel):
    """Detached snapshot of a presence session"""

    connection_id: str
    user_id: UUID
    connected_at: datetime
    last_seen: datetime
    current_room: Optional[str] = None

    @classmethod
    def from_session(cls, session: PresenceSession) -> "PresenceInfo":
        return cls(
            connection_id=session.connection_id,
            user_id=session.user_id,
            connected_at=session.connected_at,
            last_seen=session.last_seen,
            current_room=session.current_room,
        )


class OnlineUser(BaseModel):
    """An online user joined with their most recent connection"""

    user_id: UUID
    first_name: str
    last_name: str
    role: str
    connected_at: datetime
    current_room: Optional[str] = None


def _latest_per_user(sessions: List[PresenceInfo]) -> List[PresenceInfo]:
    latest: Dict[UUID, PresenceInfo] = {}
    for info in sessions:
        current = latest.get(info.user_id)
        if current is None or (info.connected_at, info.last_seen) > (
            current.connected_at,
            current.last_seen,
        ):
            latest[info.user_id] = info
    return sorted(latest.values(), key=lambda s: s.connected_at, reverse=True)


class PresenceTracker:
    """
    Presence session bookkeeping keyed by connection ID.

    Business Rules:
    - open() is idempotent per connection ID (reconnect overwrites)
    - heartbeat() on a reaped connection is a no-op
    - A connection is in at most one room at a time
    - "Online" means last_seen within the online window, counted once per user
    - sweep_stale() removes sessions older than the staleness threshold and is
      safe to run while other connections open, beat and close
    - Every state change publishes a PresenceEvent after it is committed
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        events: PresenceEventBus,
        clock: Callable[[], datetime] = utc_now,
        online_window: timedelta = ONLINE_WINDOW,
        stale_after: timedelta = STALE_AFTER,
    ):
        self.uow_factory = uow_factory
        self.events = events
        self.clock = clock
        self.online_window = online_window
        self.stale_after = stale_after

    async def open(self, connection_id: str, user_id: UUID) -> PresenceInfo:
        now = self.clock()
        async with self.uow_factory() as uow:
            session = await uow.presence_sessions.upsert(
                PresenceSession(
                    connection_id=connection_id,
                    user_id=user_id,
                    connected_at=now,
                    last_seen=now,
                )
            )
            info = PresenceInfo.from_session(session)
            await uow.commit()

        logger.info(f"Presence opened: connection={connection_id} user={user_id}")
        await self.events.publish(
            PresenceEvent(
                kind=PresenceEventKind.joined,
                user_id=str(user_id),
                connection_id=connection_id,
            )
        )
        return info

    async def heartbeat(self, connection_id: str) -> bool:
        """Update last_seen. Returns False if the connection was already reaped."""
        async with self.uow_factory() as uow:
            touched = await uow.presence_sessions.touch(connection_id, self.clock())
            await uow.commit()
        return touched

    async def join_room(self, connection_id: str, room: str) -> Result[PresenceInfo]:
        """
        Move a connection into a room, leaving its previous room if any.

        Errors:
            - INVALID_ROOM: Empty room name
            - PRESENCE_NOT_FOUND: Connection has no presence session
        """
        if not room:
            return Return.err(Error("INVALID_ROOM", "Room name required"))

        async with self.uow_factory() as uow:
            session = await uow.presence_sessions.get(connection_id)
            if session is None:
                return Return.err(
                    Error("PRESENCE_NOT_FOUND", "Connection is not registered")
                )
            info = PresenceInfo.from_session(session)
            now = self.clock()
            if not await uow.presence_sessions.set_room(connection_id, room, now):
                return Return.err(
                    Error("PRESENCE_NOT_FOUND", "Connection is not registered")
                )
            await uow.commit()

        previous_room = info.current_room
        info.current_room = room
        info.last_seen = now
        user_id = str(info.user_id)

        if previous_room and previous_room != room:
            await self.events.publish(
                PresenceEvent(
                    kind=PresenceEventKind.room_left,
                    user_id=user_id,
                    connection_id=connection_id,
                    room=previous_room,
                )
            )
        await self.events.publish(
            PresenceEvent(
                kind=PresenceEventKind.room_joined,
                user_id=user_id,
                connection_id=connection_id,
                room=room,
            )
        )
        return Return.ok(info)

    async def leave_room(self, connection_id: str, room: str) -> Result[PresenceInfo]:
        """
        Leave a room. Leaving a room the connection is not in changes nothing.

        Errors:
            - INVALID_ROOM: Empty room name
            - PRESENCE_NOT_FOUND: Connection has no presence session
        """
        if not room:
            return Return.err(Error("INVALID_ROOM", "Room name required"))

        async with self.uow_factory() as uow:
            session = await uow.presence_sessions.get(connection_id)
            if session is None:
                return Return.err(
                    Error("PRESENCE_NOT_FOUND", "Connection is not registered")
                )
            info = PresenceInfo.from_session(session)
            if info.current_room != room:
                return Return.ok(info)
            now = self.clock()
            if not await uow.presence_sessions.set_room(connection_id, None, now):
                return Return.err(
                    Error("PRESENCE_NOT_FOUND", "Connection is not registered")
                )
            await uow.commit()

        info.current_room = None
        info.last_seen = now
        await self.events.publish(
            PresenceEvent(
                kind=PresenceEventKind.room_left,
                user_id=str(info.user_id),
                connection_id=connection_id,
                room=room,
            )
        )
        return Return.ok(info)

    async def close(self, connection_id: str) -> bool:
        """Delete the session now. Returns False if it was already gone."""
        async with self.uow_factory() as uow:
            removed = await uow.presence_sessions.delete(connection_id)
            info = PresenceInfo.from_session(removed) if removed else None
            await uow.commit()

        if info is None:
            return False

        logger.info(f"Presence closed: connection={connection_id} user={info.user_id}")
        await self.events.publish(
            PresenceEvent(
                kind=PresenceEventKind.left,
                user_id=str(info.user_id),
                connection_id=connection_id,
                room=info.current_room,
                reason="disconnect",
            )
        )
        return True

    async def list_online(self) -> List[PresenceInfo]:
        """Sessions seen within the online window, one (most recent) per user"""
        return _latest_per_user(await self._seen_within_window())

    async def list_online_users(self, room: Optional[str] = None) -> List[OnlineUser]:
        """
        Online users with their profile, optionally only those in a room.
        """
        sessions = await self._seen_within_window()
        if room is not None:
            sessions = [s for s in sessions if s.current_room == room]
        latest = _latest_per_user(sessions)

        async with self.uow_factory() as uow:
            users = await uow.users.get_many_by_ids([s.user_id for s in latest])
            profiles = {
                user.id: (user.first_name, user.last_name, user.role.value)
                for user in users
            }

        online = []
        for info in latest:
            if info.user_id not in profiles:
                continue
            first_name, last_name, role = profiles[info.user_id]
            online.append(
                OnlineUser(
                    user_id=info.user_id,
                    first_name=first_name,
                    last_name=last_name,
                    role=role,
                    connected_at=info.connected_at,
                    current_room=info.current_room,
                )
            )
        return online

    async def list_room_viewers(self, room: str) -> List[OnlineUser]:
        return await self.list_online_users(room=room)

    async def list_user_sessions(self, user_id: UUID) -> List[PresenceInfo]:
        async with self.uow_factory() as uow:
            sessions = await uow.presence_sessions.list_by_user(user_id)
            return [PresenceInfo.from_session(s) for s in sessions]

    async def count_online_by_role(self) -> Dict[str, int]:
        return dict(Counter(user.role for user in await self.list_online_users()))

    async def sweep_stale(self) -> int:
        """
        Delete sessions whose last_seen is older than the staleness threshold.

        Returns:
            Number of sessions evicted by this sweep
        """
        cutoff = self.clock() - self.stale_after
        evicted: List[PresenceInfo] = []
        async with self.uow_factory() as uow:
            for session in await uow.presence_sessions.list_stale(cutoff):
                info = PresenceInfo.from_session(session)
                if await uow.presence_sessions.delete_if_stale(
                    info.connection_id, cutoff
                ):
                    evicted.append(info)
            await uow.commit()

        for info in evicted:
            await self.events.publish(
                PresenceEvent(
                    kind=PresenceEventKind.left,
                    user_id=str(info.user_id),
                    connection_id=info.connection_id,
                    room=info.current_room,
                    reason="stale",
                )
            )
        if evicted:
            logger.info(f"Cleaned up {len(evicted)} stale presence sessions")
        return len(evicted)

    async def _seen_within_window(self) -> List[PresenceInfo]:
        cutoff = self.clock() - self.online_window
        async with self.uow_factory() as uow:
            sessions = await uow.presence_sessions.list_seen_since(cutoff)
            return [PresenceInfo.from_session(s) for s in sessions]
