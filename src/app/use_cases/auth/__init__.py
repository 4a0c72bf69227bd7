"""
Authentication Use Cases

Token lifecycle: register, login, refresh (rotation), revoke/logout,
password change and access verification.
"""

from .register_use_case import RegisterUseCase
from .login_use_case import LoginUseCase
from .refresh_token_use_case import RefreshTokenUseCase
from .revoke_token_use_case import LogoutUseCase, RevokeTokenUseCase
from .change_password_use_case import ChangePasswordUseCase
from .verify_access_use_case import VerifyAccessUseCase
from .get_profile_use_case import GetProfileUseCase
from .dtos import (
    RegisterCommand,
    RegisterResponse,
    UserInfo,
    LoginResponse,
    RefreshTokenResponse,
    LogoutResponse,
    ChangePasswordResponse,
)

__all__ = [
    # Use Cases
    "RegisterUseCase",
    "LoginUseCase",
    "RefreshTokenUseCase",
    "RevokeTokenUseCase",
    "LogoutUseCase",
    "ChangePasswordUseCase",
    "VerifyAccessUseCase",
    "GetProfileUseCase",
    # DTOs - Commands
    "RegisterCommand",
    # DTOs - Responses
    "RegisterResponse",
    "LoginResponse",
    "RefreshTokenResponse",
    "LogoutResponse",
    "ChangePasswordResponse",
    # DTOs - Nested Models
    "UserInfo",
]
