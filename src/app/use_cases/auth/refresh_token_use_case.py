"""
Refresh Token Use Case

Handles access token refresh with refresh token rotation.
"""

import logging

from src.libs.result import Error, Result, Return
from src.app.services.errors import TokenError
from src.app.services.token_service import TokenService
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import RefreshToken
from .dtos import RefreshTokenResponse
from .token_errors import token_error

logger = logging.getLogger(__name__)

TOKEN_REVOKED = Error(
    "REFRESH_TOKEN_REVOKED", "Refresh token has been revoked. Please log in again."
)


class RefreshTokenUseCase:
    """
    Use case for refreshing access tokens.

    Business Rules:
    - Token must verify (signature, expiry) and be of type refresh
    - Token's jti must exist in the ledger and must not be revoked
    - Rotation order: issue new pair -> persist new record -> revoke old record
    - The old record is revoked with a conditional update in the same
      transaction; if another refresh already revoked it, this one is rolled
      back so at most one rotation per token succeeds
    """

    def __init__(self, uow: UnitOfWork, tokens: TokenService):
        self.uow = uow
        self.tokens = tokens

    async def execute(self, refresh_token: str) -> Result[RefreshTokenResponse]:
        """
        Execute refresh token use case.

        Args:
            refresh_token: The refresh token to verify and rotate

        Returns:
            Result with RefreshTokenResponse containing new tokens, or Error

        Errors:
            - TOKEN_EXPIRED / INVALID_TOKEN / MALFORMED_TOKEN / WRONG_TOKEN_TYPE
            - REFRESH_TOKEN_NOT_FOUND: jti unknown to the ledger
            - REFRESH_TOKEN_REVOKED: Token already rotated or logged out
            - USER_NOT_FOUND: Owner no longer exists
        """
        try:
            claims = self.tokens.verify_refresh(refresh_token)
        except TokenError as exc:
            return Return.err(token_error(exc))

        async with self.uow:
            record = await self.uow.refresh_tokens.get_by_token_id(claims.jti)

            if record is None or str(record.user_id) != claims.user_id:
                return Return.err(
                    Error("REFRESH_TOKEN_NOT_FOUND", "Refresh token not found")
                )

            if record.revoked:
                logger.warning(f"Revoked refresh token presented for user {record.user_id}")
                return Return.err(TOKEN_REVOKED)

            user = await self.uow.users.get_by_id(record.user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            user_id = user.id
            access_token = self.tokens.issue_access(user_id, user.role)
            new_refresh = self.tokens.issue_refresh(user_id)

            await self.uow.refresh_tokens.create(
                RefreshToken(
                    user_id=user_id,
                    token_id=new_refresh.token_id,
                    expires_at=new_refresh.expires_at,
                )
            )

            if not await self.uow.refresh_tokens.revoke(record.token_id):
                # A concurrent refresh rotated this token first
                await self.uow.rollback()
                logger.warning(f"Concurrent refresh rejected for user {user_id}")
                return Return.err(TOKEN_REVOKED)

            await self.uow.commit()

            logger.info(f"Rotated refresh token for user {user_id}")
            return Return.ok(
                RefreshTokenResponse(
                    access_token=access_token,
                    refresh_token=new_refresh.token,
                )
            )
