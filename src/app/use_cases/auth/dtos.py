"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for auth domain.
Provides type safety and clear contracts between layers.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.domain.entities import User


# ============================================================================
# Command DTOs
# ============================================================================


class RegisterCommand(BaseModel):
    """
    Register command - represents validated registration intent

    Created by API layer after request validation passes.
    """

    email: str
    password: str
    first_name: str
    last_name: str


# ============================================================================
# Response DTOs
# ============================================================================


class UserInfo(BaseModel):
    """Public user profile. Never carries the password hash."""

    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    house: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserInfo":
        return cls(
            id=str(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role.value,
            house=user.house,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class RegisterResponse(BaseModel):
    """Response for user registration use case"""

    user: UserInfo


class LoginResponse(BaseModel):
    """Response for user login use case"""

    user: UserInfo
    access_token: str
    refresh_token: str


class RefreshTokenResponse(BaseModel):
    """Response for refresh token use case"""

    access_token: str
    refresh_token: str


class LogoutResponse(BaseModel):
    """Response for logout use case"""

    message: str


class ChangePasswordResponse(BaseModel):
    """Response for change password use case"""

    message: str
    revoked_tokens: int = 0
