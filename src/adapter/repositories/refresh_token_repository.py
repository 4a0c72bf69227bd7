from typing import Optional
from uuid import UUID

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.refresh_token_repository import IRefreshTokenRepository
from src.domain.base import utc_now
from src.domain.entities import RefreshToken


class RefreshTokenRepository(IRefreshTokenRepository):
    """Refresh token ledger implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, token: RefreshToken) -> RefreshToken:
        """Record a newly issued refresh token"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def get_by_token_id(self, token_id: str) -> Optional[RefreshToken]:
        """Get refresh token record by its jti"""
        stmt = select(RefreshToken).where(RefreshToken.token_id == token_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def revoke(self, token_id: str) -> bool:
        """
        Conditional update: only a row that is still unrevoked matches, so two
        concurrent callers cannot both observe a successful revoke.
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token_id == token_id, RefreshToken.revoked == False)
            .values(revoked=True, revoked_at=utc_now())
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_all_by_user_id(self, user_id: UUID) -> int:
        """Revoke all outstanding tokens for a user"""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked == False)
            .values(revoked=True, revoked_at=utc_now())
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
