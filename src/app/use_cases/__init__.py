"""
Use Cases

Organized by domain folder:
- auth/: Authentication and token lifecycle
"""

from .auth import (
    RegisterUseCase,
    LoginUseCase,
    RefreshTokenUseCase,
    RevokeTokenUseCase,
    LogoutUseCase,
    ChangePasswordUseCase,
    VerifyAccessUseCase,
    GetProfileUseCase,
)

__all__ = [
    "RegisterUseCase",
    "LoginUseCase",
    "RefreshTokenUseCase",
    "RevokeTokenUseCase",
    "LogoutUseCase",
    "ChangePasswordUseCase",
    "VerifyAccessUseCase",
    "GetProfileUseCase",
]
