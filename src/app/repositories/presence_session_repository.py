from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import PresenceSession


class IPresenceSessionRepository(ABC):
    """Presence session repository interface - application layer"""

    @abstractmethod
    async def get(self, connection_id: str) -> Optional[PresenceSession]:
        """Get presence session by connection ID"""
        pass

    @abstractmethod
    async def upsert(self, presence: PresenceSession) -> PresenceSession:
        """Create the session or overwrite the one with the same connection ID"""
        pass

    @abstractmethod
    async def touch(self, connection_id: str, seen_at: datetime) -> bool:
        """Update last_seen. Returns False if the session no longer exists."""
        pass

    @abstractmethod
    async def set_room(
        self, connection_id: str, room: Optional[str], seen_at: datetime
    ) -> bool:
        """Set (or clear with None) the current room and update last_seen"""
        pass

    @abstractmethod
    async def delete(self, connection_id: str) -> Optional[PresenceSession]:
        """Delete the session. Returns the deleted row, or None if already gone."""
        pass

    @abstractmethod
    async def list_seen_since(self, cutoff: datetime) -> List[PresenceSession]:
        """Sessions with last_seen after cutoff"""
        pass

    @abstractmethod
    async def list_stale(self, cutoff: datetime) -> List[PresenceSession]:
        """Sessions with last_seen before cutoff"""
        pass

    @abstractmethod
    async def delete_if_stale(self, connection_id: str, cutoff: datetime) -> bool:
        """Delete the session only if it is still older than cutoff"""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: UUID) -> List[PresenceSession]:
        """All sessions of a user, most recent connection first"""
        pass
