from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.domain.entities import RefreshToken


class IRefreshTokenRepository(ABC):
    """Refresh token ledger interface - application layer"""

    @abstractmethod
    async def create(self, token: RefreshToken) -> RefreshToken:
        """Record a newly issued refresh token"""
        pass

    @abstractmethod
    async def get_by_token_id(self, token_id: str) -> Optional[RefreshToken]:
        """Get refresh token record by its jti"""
        pass

    @abstractmethod
    async def revoke(self, token_id: str) -> bool:
        """
        Mark a token revoked if it is not already.

        Returns True only if this call flipped the flag.
        """
        pass

    @abstractmethod
    async def revoke_all_by_user_id(self, user_id: UUID) -> int:
        """Revoke all outstanding tokens for a user. Returns count."""
        pass
