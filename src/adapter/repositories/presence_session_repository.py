from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import col, delete, select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.presence_session_repository import IPresenceSessionRepository
from src.domain.entities import PresenceSession


class PresenceSessionRepository(IPresenceSessionRepository):
    """
    Presence session repository implementation using SQLModel.

    Mutations are single UPDATE/DELETE statements keyed by connection_id so
    that a row removed concurrently (disconnect vs. sweep) results in a
    zero-row statement instead of a stale-object flush error.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, connection_id: str) -> Optional[PresenceSession]:
        """Get presence session by connection ID"""
        stmt = select(PresenceSession).where(
            PresenceSession.connection_id == connection_id
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def upsert(self, presence: PresenceSession) -> PresenceSession:
        """Create the session or overwrite the one with the same connection ID"""
        existing = await self.get(presence.connection_id)
        if existing is None:
            self.session.add(presence)
            target = presence
        else:
            existing.user_id = presence.user_id
            existing.connected_at = presence.connected_at
            existing.last_seen = presence.last_seen
            self.session.add(existing)
            target = existing
        await self.session.flush()
        await self.session.refresh(target)
        return target

    async def touch(self, connection_id: str, seen_at: datetime) -> bool:
        stmt = (
            update(PresenceSession)
            .where(PresenceSession.connection_id == connection_id)
            .values(last_seen=seen_at)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def set_room(
        self, connection_id: str, room: Optional[str], seen_at: datetime
    ) -> bool:
        stmt = (
            update(PresenceSession)
            .where(PresenceSession.connection_id == connection_id)
            .values(current_room=room, last_seen=seen_at)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def delete(self, connection_id: str) -> Optional[PresenceSession]:
        existing = await self.get(connection_id)
        if existing is None:
            return None
        stmt = delete(PresenceSession).where(
            PresenceSession.connection_id == connection_id
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return existing if result.rowcount > 0 else None

    async def list_seen_since(self, cutoff: datetime) -> List[PresenceSession]:
        stmt = select(PresenceSession).where(col(PresenceSession.last_seen) > cutoff)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_stale(self, cutoff: datetime) -> List[PresenceSession]:
        stmt = select(PresenceSession).where(col(PresenceSession.last_seen) < cutoff)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def delete_if_stale(self, connection_id: str, cutoff: datetime) -> bool:
        # Re-checks last_seen so a heartbeat that landed after list_stale wins
        stmt = delete(PresenceSession).where(
            PresenceSession.connection_id == connection_id,
            col(PresenceSession.last_seen) < cutoff,
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def list_by_user(self, user_id: UUID) -> List[PresenceSession]:
        stmt = (
            select(PresenceSession)
            .where(PresenceSession.user_id == user_id)
            .order_by(col(PresenceSession.connected_at).desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())
