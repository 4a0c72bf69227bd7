"""
Login Use Case

Handles user authentication and returns an access/refresh token pair.
"""

import logging

from src.libs.result import Error, Result, Return
from src.app.services.errors import MalformedHashError
from src.app.services.password_hasher import PasswordHasher
from src.app.services.token_service import TokenService
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import RefreshToken, normalize_email
from .dtos import LoginResponse, UserInfo

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = Error("INVALID_CREDENTIALS", "Invalid email or password")


class LoginUseCase:
    """
    Use case for user login and token issuance.

    Business Rules:
    - Same error for unknown email and wrong password (no enumeration)
    - Constant-time password comparison; unknown emails still pay for a
      bcrypt check
    - Issues a 15 minute access token and a 7 day refresh token
    - Persists the refresh token record (revoked=False) before returning
    """

    def __init__(self, uow: UnitOfWork, tokens: TokenService, hasher: PasswordHasher):
        self.uow = uow
        self.tokens = tokens
        self.hasher = hasher

    async def execute(self, email: str, password: str) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            email: User email (any case, surrounding whitespace ignored)
            password: Plain text password

        Returns:
            Result with LoginResponse containing user and tokens, or Error
        """
        async with self.uow:
            user = await self.uow.users.get_by_email(normalize_email(email))

            if user is None:
                self.hasher.verify_dummy(password)
                return Return.err(INVALID_CREDENTIALS)

            try:
                password_valid = self.hasher.verify(password, user.password_hash)
            except MalformedHashError:
                logger.error(f"Stored password hash for user {user.id} is malformed")
                password_valid = False

            if not password_valid:
                return Return.err(INVALID_CREDENTIALS)

            access_token = self.tokens.issue_access(user.id, user.role)
            refresh = self.tokens.issue_refresh(user.id)

            await self.uow.refresh_tokens.create(
                RefreshToken(
                    user_id=user.id,
                    token_id=refresh.token_id,
                    expires_at=refresh.expires_at,
                )
            )
            await self.uow.commit()

            logger.info(f"User {user.id} logged in")
            return Return.ok(
                LoginResponse(
                    user=UserInfo.from_user(user),
                    access_token=access_token,
                    refresh_token=refresh.token,
                )
            )
