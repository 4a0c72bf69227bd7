"""
Refresh Token Entity

Ledger of issued refresh tokens, keyed by their jti.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now


class RefreshToken(SQLModel, table=True):
    """
    RefreshToken entity - one row per refresh token issuance.

    Business Rules:
    - token_id is the jti claim of the signed token and is unique
    - revoked only ever goes from False to True
    - Rows are never deleted (audit trail)
    - Tokens rotate on each refresh: new row inserted, old row revoked
    """

    __tablename__ = "refresh_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    token_id: str = Field(unique=True, index=True, max_length=128)

    revoked: bool = Field(default=False)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_refresh_token_expires_at", "expires_at"),
        Index("idx_refresh_token_revoked", "revoked"),
    )
