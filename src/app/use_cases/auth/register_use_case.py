"""
Register Use Case

Creates a student account with a hashed password.
"""

import logging

from src.libs.result import Error, Result, Return
from src.app.services.password_hasher import PasswordHasher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import User, UserRole, normalize_email
from .dtos import RegisterCommand, RegisterResponse, UserInfo

logger = logging.getLogger(__name__)


class RegisterUseCase:
    """
    Use case for user registration.

    Business Rules:
    - Email is trimmed and lowercased before any check
    - Email must belong to the school domain (@hogwarts.edu)
    - Password must be at least 8 characters
    - Email must not already be registered
    - New users are STUDENTs
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        allowed_domain: str = "hogwarts.edu",
        min_password_length: int = 8,
    ):
        self.uow = uow
        self.hasher = hasher
        self.allowed_domain = allowed_domain
        self.min_password_length = min_password_length

    async def execute(self, command: RegisterCommand) -> Result[RegisterResponse]:
        """
        Execute register use case.

        Args:
            command: RegisterCommand with email, password and names

        Returns:
            Result with RegisterResponse, or Error

        Errors:
            - INVALID_EMAIL_DOMAIN: Email outside the school domain
            - WEAK_PASSWORD: Password shorter than the minimum
            - EMAIL_ALREADY_EXISTS: Email already registered
        """
        email = normalize_email(command.email)

        if self.allowed_domain and not email.endswith(f"@{self.allowed_domain}"):
            return Return.err(
                Error(
                    "INVALID_EMAIL_DOMAIN",
                    f"Email must end with @{self.allowed_domain}",
                )
            )

        if len(command.password) < self.min_password_length:
            return Return.err(
                Error(
                    "WEAK_PASSWORD",
                    f"Password must be at least {self.min_password_length} characters",
                )
            )

        async with self.uow:
            existing_user = await self.uow.users.get_by_email(email)
            if existing_user:
                return Return.err(
                    Error("EMAIL_ALREADY_EXISTS", "Email already registered")
                )

            user = User(
                email=email,
                password_hash=self.hasher.hash(command.password),
                first_name=command.first_name.strip(),
                last_name=command.last_name.strip(),
                role=UserRole.STUDENT,
            )
            user = await self.uow.users.create(user)
            await self.uow.commit()

            logger.info(f"Registered user {user.id}")
            return Return.ok(RegisterResponse(user=UserInfo.from_user(user)))
