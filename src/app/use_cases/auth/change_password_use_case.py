"""
Change Password Use Case

Replaces a user's password after re-verifying the current one.
"""

import logging
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.errors import MalformedHashError
from src.app.services.password_hasher import PasswordHasher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from .dtos import ChangePasswordResponse

logger = logging.getLogger(__name__)


class ChangePasswordUseCase:
    """
    Use case for changing a password.

    Business Rules:
    - Current password is re-verified before the new one is considered
    - New password must be at least 8 characters
    - New password must differ from the current one
    - Outstanding refresh tokens are revoked only when revoke_tokens is set
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        min_password_length: int = 8,
        revoke_tokens: bool = False,
    ):
        self.uow = uow
        self.hasher = hasher
        self.min_password_length = min_password_length
        self.revoke_tokens = revoke_tokens

    async def execute(
        self, user_id: UUID, old_password: str, new_password: str
    ) -> Result[ChangePasswordResponse]:
        """
        Execute change password use case.

        Errors:
            - USER_NOT_FOUND: No such user
            - INCORRECT_PASSWORD: Current password does not match
            - WEAK_PASSWORD: New password shorter than the minimum
            - SAME_PASSWORD: New password equals the current one
            - INVALID_PASSWORD_HASH: Stored hash is corrupt
        """
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            try:
                password_valid = self.hasher.verify(old_password, user.password_hash)
            except MalformedHashError:
                logger.error(f"Stored password hash for user {user.id} is malformed")
                return Return.err(
                    Error("INVALID_PASSWORD_HASH", "Stored credentials are corrupt")
                )

            if not password_valid:
                return Return.err(
                    Error("INCORRECT_PASSWORD", "Current password is incorrect")
                )

            if len(new_password) < self.min_password_length:
                return Return.err(
                    Error(
                        "WEAK_PASSWORD",
                        f"Password must be at least {self.min_password_length} characters",
                    )
                )

            if new_password == old_password:
                return Return.err(
                    Error(
                        "SAME_PASSWORD",
                        "New password must be different from current password",
                    )
                )

            user.password_hash = self.hasher.hash(new_password)
            user.updated_at = utc_now()
            await self.uow.users.update(user)

            revoked_count = 0
            if self.revoke_tokens:
                revoked_count = await self.uow.refresh_tokens.revoke_all_by_user_id(
                    user.id
                )

            await self.uow.commit()

            logger.info(f"Password changed for user {user.id}")
            return Return.ok(
                ChangePasswordResponse(
                    message="Password changed successfully",
                    revoked_tokens=revoked_count,
                )
            )
