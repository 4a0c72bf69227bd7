"""
Presence Session Entity

One row per live real-time connection.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now


class PresenceSession(SQLModel, table=True):
    """
    PresenceSession entity - associates a connection with a user and a room.

    Business Rules:
    - connection_id is unique per live connection (reconnects overwrite)
    - At most one active room per connection
    - last_seen only moves forward (heartbeats, room changes)
    - Deleted on disconnect or by the staleness sweep
    """

    __tablename__ = "presence_sessions"

    connection_id: str = Field(primary_key=True, max_length=128)
    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)

    current_room: Optional[str] = Field(default=None, max_length=255, index=True)

    # Timestamps
    connected_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    last_seen: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_presence_last_seen", "last_seen"),)
