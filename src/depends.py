from contextlib import asynccontextmanager
from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.app.services.password_hasher import PasswordHasher
from src.app.services.presence_tracker import PresenceTracker
from src.app.services.token_service import TokenClaims, TokenService
from src.app.use_cases.auth import VerifyAccessUseCase
from src.app.use_cases.auth.token_errors import TOKEN_ERRORS
from src.app.services.errors import TokenErrorKind
from src.libs.result import Error

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@asynccontextmanager
async def open_unit_of_work():
    """Unit of work with its own session, for work outside a request"""
    async with AsyncSessionLocal() as session:
        async with SqlAlchemyUnitOfWork(session) as uow:
            yield uow


def get_config(request: Request):
    return request.app.state.config


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_presence_tracker(request: Request) -> PresenceTracker:
    return request.app.state.presence_tracker


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
    """
    Dependency to extract and verify the access token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Verified access token claims (user_id, role)

    Raises:
        ClientError: 401 with TOKEN_EXPIRED, INVALID_TOKEN, MALFORMED_TOKEN or
            WRONG_TOKEN_TYPE
    """
    if credentials is None:
        raise ClientError(
            Error("AUTHENTICATION_REQUIRED", "Access token required"), status_code=401
        )

    result = VerifyAccessUseCase(tokens).execute(credentials.credentials)

    if result.is_err():
        raise ClientError(result.error, status_code=401)

    try:
        UUID(result.value.user_id)
    except ValueError:
        raise ClientError(TOKEN_ERRORS[TokenErrorKind.MALFORMED], status_code=401)

    return result.value
