from datetime import timedelta
from uuid import uuid4

import pytest
from jose import jwt

from src.app.services.errors import ConfigurationError, TokenError, TokenErrorKind
from src.app.services.token_service import TokenService
from src.domain.entities import TokenType, UserRole
from tests.unit.conftest import TEST_SECRET


def test_access_token_claims(token_service: TokenService):
    user_id = uuid4()

    token = token_service.issue_access(user_id, UserRole.PREFECT)
    claims = token_service.verify(token)

    assert claims.type == TokenType.access
    assert claims.user_id == str(user_id)
    assert claims.role == "PREFECT"
    assert claims.jti is None
    assert claims.exp - claims.iat == 900


def test_refresh_token_claims(token_service: TokenService):
    user_id = uuid4()

    issued = token_service.issue_refresh(user_id)
    claims = token_service.verify(issued.token)

    assert claims.type == TokenType.refresh
    assert claims.jti == issued.token_id
    assert claims.jti.startswith(f"{user_id}_")
    assert claims.role is None
    assert claims.exp - claims.iat == 604800


def test_refresh_token_expiry_matches_ledger_record(token_service: TokenService, clock):
    issued = token_service.issue_refresh(uuid4())

    assert issued.expires_at == clock() + timedelta(days=7)


def test_refresh_token_ids_are_unique(token_service: TokenService):
    user_id = uuid4()

    token_ids = {token_service.issue_refresh(user_id).token_id for _ in range(20)}

    assert len(token_ids) == 20


def test_token_is_three_segment_jws(token_service: TokenService):
    token = token_service.issue_access(uuid4(), UserRole.STUDENT)

    assert token.count(".") == 2
    assert jwt.get_unverified_header(token)["alg"] == "HS256"


def test_access_token_expires_after_ttl(token_service: TokenService, clock):
    token = token_service.issue_access(uuid4(), UserRole.STUDENT)

    clock.advance(899)
    assert token_service.verify(token).type == TokenType.access

    clock.advance(2)
    with pytest.raises(TokenError) as exc_info:
        token_service.verify(token)
    assert exc_info.value.kind == TokenErrorKind.EXPIRED


def test_refresh_token_expires_after_ttl(token_service: TokenService, clock):
    issued = token_service.issue_refresh(uuid4())

    clock.advance(604800 + 1)
    with pytest.raises(TokenError) as exc_info:
        token_service.verify_refresh(issued.token)
    assert exc_info.value.kind == TokenErrorKind.EXPIRED


def test_token_signed_with_other_secret_is_invalid_signature(token_service, clock):
    other = TokenService(secret="some-other-secret", clock=clock)
    token = other.issue_access(uuid4(), UserRole.STUDENT)

    with pytest.raises(TokenError) as exc_info:
        token_service.verify(token)
    assert exc_info.value.kind == TokenErrorKind.INVALID_SIGNATURE


def test_expired_token_with_other_secret_is_still_invalid_signature(token_service, clock):
    other = TokenService(secret="some-other-secret", clock=clock)
    token = other.issue_access(uuid4(), UserRole.STUDENT)

    clock.advance(3600)
    with pytest.raises(TokenError) as exc_info:
        token_service.verify(token)
    assert exc_info.value.kind == TokenErrorKind.INVALID_SIGNATURE


@pytest.mark.parametrize("token", ["", "garbage", "a.b", "a.b.c", "...."])
def test_malformed_token(token_service: TokenService, token):
    with pytest.raises(TokenError) as exc_info:
        token_service.verify(token)
    assert exc_info.value.kind == TokenErrorKind.MALFORMED


def test_signed_token_with_unknown_type_is_malformed(token_service, clock):
    payload = {"user_id": str(uuid4()), "type": "session", "iat": 0, "exp": 2**40}
    token = jwt.encode(payload, TEST_SECRET, algorithm="HS256")

    with pytest.raises(TokenError) as exc_info:
        token_service.verify(token)
    assert exc_info.value.kind == TokenErrorKind.MALFORMED


def test_signed_refresh_token_without_jti_is_malformed(token_service):
    payload = {"user_id": str(uuid4()), "type": "refresh", "iat": 0, "exp": 2**40}
    token = jwt.encode(payload, TEST_SECRET, algorithm="HS256")

    with pytest.raises(TokenError) as exc_info:
        token_service.verify(token)
    assert exc_info.value.kind == TokenErrorKind.MALFORMED


@pytest.mark.parametrize("field", ["exp", "iat"])
def test_signed_token_with_string_timestamp_is_malformed(token_service, field):
    payload = {"user_id": str(uuid4()), "type": "access", "role": "STUDENT", "iat": 0, "exp": 2**40}
    payload[field] = "1"
    token = jwt.encode(payload, TEST_SECRET, algorithm="HS256")

    with pytest.raises(TokenError) as exc_info:
        token_service.verify(token)
    assert exc_info.value.kind == TokenErrorKind.MALFORMED


def test_verify_access_rejects_refresh_token(token_service: TokenService):
    issued = token_service.issue_refresh(uuid4())

    with pytest.raises(TokenError) as exc_info:
        token_service.verify_access(issued.token)
    assert exc_info.value.kind == TokenErrorKind.WRONG_TYPE


def test_verify_refresh_rejects_access_token(token_service: TokenService):
    token = token_service.issue_access(uuid4(), UserRole.AUROR)

    with pytest.raises(TokenError) as exc_info:
        token_service.verify_refresh(token)
    assert exc_info.value.kind == TokenErrorKind.WRONG_TYPE


def test_peek_token_id(token_service: TokenService):
    issued = token_service.issue_refresh(uuid4())

    assert TokenService.peek_token_id(issued.token) == issued.token_id
    assert TokenService.peek_token_id(token_service.issue_access(uuid4(), "STUDENT")) is None
    assert TokenService.peek_token_id("garbage") is None


def test_missing_secret_is_configuration_error():
    with pytest.raises(ConfigurationError):
        TokenService(secret="")


def test_unsupported_algorithm_is_configuration_error():
    with pytest.raises(ConfigurationError):
        TokenService(secret=TEST_SECRET, algorithm="RS256")
