"""
Token Service

Issues and verifies the signed access and refresh tokens.
"""

import calendar
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Callable, Optional, Union
from uuid import UUID

from jose import JWTError, jwt
from pydantic import BaseModel, Field, StrictInt, ValidationError, model_validator

from src.domain.base import utc_now
from src.domain.entities import TokenType, UserRole
from .errors import ConfigurationError, TokenError, TokenErrorKind

SUPPORTED_ALGORITHMS = ("HS256", "HS384", "HS512")

ACCESS_TOKEN_TTL = timedelta(minutes=15)
REFRESH_TOKEN_TTL = timedelta(days=7)


class TokenClaims(BaseModel):
    """Verified token payload"""

    user_id: str = Field(min_length=1)
    type: TokenType
    iat: StrictInt
    exp: StrictInt
    role: Optional[str] = None
    jti: Optional[str] = None

    @model_validator(mode="after")
    def check_type_specific_claims(self) -> "TokenClaims":
        if self.type == TokenType.access and not self.role:
            raise ValueError("access token is missing role")
        if self.type == TokenType.refresh and not self.jti:
            raise ValueError("refresh token is missing jti")
        return self


@dataclass(frozen=True)
class IssuedRefreshToken:
    token: str
    token_id: str
    expires_at: datetime


class TokenService:
    """
    Token issuer and verifier.

    Business Rules:
    - Access tokens: {user_id, role, type=access, iat, exp=iat+15m}, stateless
    - Refresh tokens: {user_id, type=refresh, jti, iat, exp=iat+7d}
    - Secret and algorithm are fixed at construction; a missing secret is a
      ConfigurationError so the process fails at startup, not per request
    - verify() checks structure, then signature, then expiry, then claim shape
    - verify() never touches storage and does not enforce the token type;
      verify_access()/verify_refresh() add the type check
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = ACCESS_TOKEN_TTL,
        refresh_ttl: timedelta = REFRESH_TOKEN_TTL,
        clock: Callable[[], datetime] = utc_now,
    ):
        if not secret:
            raise ConfigurationError("JWT_SECRET is not configured")
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"Unsupported JWT algorithm: {algorithm}")
        self._secret = secret
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.clock = clock

    def _timestamp(self) -> int:
        return calendar.timegm(self.clock().utctimetuple())

    def _sign(self, payload: dict) -> str:
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue_access(self, user_id: Union[UUID, str], role: Union[UserRole, str]) -> str:
        """
        Create a signed access token.

        Args:
            user_id: User UUID
            role: User role (STUDENT, PREFECT, ...)

        Returns:
            JWT string
        """
        now = self._timestamp()
        payload = {
            "user_id": str(user_id),
            "role": role.value if isinstance(role, UserRole) else role,
            "type": TokenType.access.value,
            "iat": now,
            "exp": now + int(self.access_ttl.total_seconds()),
        }
        return self._sign(payload)

    def issue_refresh(self, user_id: Union[UUID, str]) -> IssuedRefreshToken:
        """
        Create a signed refresh token with a fresh jti.

        Args:
            user_id: User UUID

        Returns:
            IssuedRefreshToken with the JWT string, its jti and expiry, which
            the caller persists in the refresh token ledger
        """
        now = self._timestamp()
        exp = now + int(self.refresh_ttl.total_seconds())
        token_id = f"{user_id}_{now * 1000}_{secrets.token_hex(4)}"
        payload = {
            "user_id": str(user_id),
            "type": TokenType.refresh.value,
            "jti": token_id,
            "iat": now,
            "exp": exp,
        }
        return IssuedRefreshToken(
            token=self._sign(payload),
            token_id=token_id,
            expires_at=datetime.fromtimestamp(exp, UTC).replace(tzinfo=None),
        )

    def verify(self, token: str) -> TokenClaims:
        """
        Verify a token and return its claims.

        Raises:
            TokenError: MALFORMED, INVALID_SIGNATURE or EXPIRED
        """
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise TokenError(TokenErrorKind.MALFORMED, "Token is malformed") from exc

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                # Expiry is checked below against the injected clock
                options={"verify_exp": False, "verify_iat": False, "verify_nbf": False},
            )
        except JWTError as exc:
            raise TokenError(
                TokenErrorKind.INVALID_SIGNATURE, "Token signature is invalid"
            ) from exc

        exp = payload.get("exp")
        if (
            isinstance(exp, (int, float))
            and not isinstance(exp, bool)
            and exp <= self._timestamp()
        ):
            raise TokenError(TokenErrorKind.EXPIRED, "Token has expired")

        try:
            return TokenClaims.model_validate(payload)
        except ValidationError as exc:
            raise TokenError(
                TokenErrorKind.MALFORMED, "Token claims are malformed"
            ) from exc

    def verify_access(self, token: str) -> TokenClaims:
        claims = self.verify(token)
        if claims.type != TokenType.access:
            raise TokenError(TokenErrorKind.WRONG_TYPE, "Expected an access token")
        return claims

    def verify_refresh(self, token: str) -> TokenClaims:
        claims = self.verify(token)
        if claims.type != TokenType.refresh:
            raise TokenError(TokenErrorKind.WRONG_TYPE, "Expected a refresh token")
        return claims

    @staticmethod
    def peek_token_id(token: str) -> Optional[str]:
        """Read the jti without verifying anything. None if unreadable."""
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return None
        token_id = claims.get("jti") if isinstance(claims, dict) else None
        if isinstance(token_id, str) and token_id:
            return token_id
        return None
