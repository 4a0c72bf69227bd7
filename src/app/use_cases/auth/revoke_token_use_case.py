"""
Revoke Token Use Case

Revokes a refresh token by jti. Always reports success.
"""

import logging
from typing import Optional

from src.libs.result import Result, Return
from src.app.services.token_service import TokenService
from src.app.services.unit_of_work import UnitOfWork
from .dtos import LogoutResponse

logger = logging.getLogger(__name__)


class RevokeTokenUseCase:
    """
    Use case for revoking a refresh token.

    Business Rules:
    - Idempotent: unknown or already revoked ids are a successful no-op
    - Never returns an error; storage failures are logged and reported as success
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, token_id: Optional[str]) -> Result[bool]:
        """
        Execute revoke use case.

        Args:
            token_id: jti of the refresh token

        Returns:
            Result with True if this call revoked the token, False otherwise
        """
        if not token_id:
            return Return.ok(False)

        try:
            async with self.uow:
                revoked = await self.uow.refresh_tokens.revoke(token_id)
                await self.uow.commit()
        except Exception:
            logger.exception("Failed to revoke refresh token")
            return Return.ok(False)

        return Return.ok(revoked)


class LogoutUseCase:
    """
    Use case for logout with a refresh token.

    Business Rules:
    - The jti is read without verification so expired tokens can still log out
    - Garbage input logs out "successfully"
    """

    def __init__(self, uow: UnitOfWork, tokens: TokenService):
        self.uow = uow
        self.tokens = tokens

    async def execute(self, refresh_token: str) -> Result[LogoutResponse]:
        token_id = self.tokens.peek_token_id(refresh_token)
        await RevokeTokenUseCase(self.uow).execute(token_id)
        return Return.ok(LogoutResponse(message="Logged out successfully"))
