from uuid import uuid4

import pytest

from src.app.use_cases.auth.login_use_case import LoginUseCase
from src.domain.entities import RefreshToken, TokenType, User, UserRole


def make_user(hasher, password="SecurePass123!", **kwargs) -> User:
    return User(
        id=kwargs.pop("id", uuid4()),
        email=kwargs.pop("email", "test.student@hogwarts.edu"),
        password_hash=hasher.hash(password),
        first_name="Test",
        last_name="Student",
        role=kwargs.pop("role", UserRole.STUDENT),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_successful_login(mock_uow, token_service, hasher):
    """Valid credentials return the public profile and a token pair"""
    user = make_user(hasher)
    mock_uow.users.get_by_email.return_value = user

    use_case = LoginUseCase(mock_uow, token_service, hasher)
    result = await use_case.execute("test.student@hogwarts.edu", "SecurePass123!")

    assert result.is_ok()
    data = result.value
    assert data.user.id == str(user.id)
    assert data.user.email == "test.student@hogwarts.edu"
    assert data.user.role == "STUDENT"
    assert "password_hash" not in data.user.model_dump()
    assert data.access_token != data.refresh_token

    access = token_service.verify_access(data.access_token)
    refresh = token_service.verify_refresh(data.refresh_token)
    assert access.user_id == str(user.id)
    assert access.role == "STUDENT"
    assert refresh.type == TokenType.refresh

    mock_uow.refresh_tokens.create.assert_called_once()
    record = mock_uow.refresh_tokens.create.call_args.args[0]
    assert isinstance(record, RefreshToken)
    assert record.token_id == refresh.jti
    assert record.user_id == user.id
    assert record.revoked is False
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_login_normalizes_email(mock_uow, token_service, hasher):
    mock_uow.users.get_by_email.return_value = make_user(hasher)

    use_case = LoginUseCase(mock_uow, token_service, hasher)
    result = await use_case.execute("  Test.Student@Hogwarts.EDU ", "SecurePass123!")

    assert result.is_ok()
    mock_uow.users.get_by_email.assert_called_once_with("test.student@hogwarts.edu")


@pytest.mark.asyncio
async def test_wrong_password_and_unknown_email_fail_identically(
    mock_uow, token_service, hasher
):
    """No account enumeration: both failures carry the same code and message"""
    use_case = LoginUseCase(mock_uow, token_service, hasher)

    mock_uow.users.get_by_email.return_value = make_user(hasher)
    wrong_password = await use_case.execute("test.student@hogwarts.edu", "WrongPass!")

    mock_uow.users.get_by_email.return_value = None
    unknown_email = await use_case.execute("nobody@hogwarts.edu", "SecurePass123!")

    assert wrong_password.is_err()
    assert unknown_email.is_err()
    assert wrong_password.error.code == "INVALID_CREDENTIALS"
    assert wrong_password.error == unknown_email.error
    assert wrong_password.error.message == unknown_email.error.message
    mock_uow.refresh_tokens.create.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_malformed_stored_hash_is_invalid_credentials(
    mock_uow, token_service, hasher
):
    user = make_user(hasher)
    user.password_hash = "corrupted"
    mock_uow.users.get_by_email.return_value = user

    use_case = LoginUseCase(mock_uow, token_service, hasher)
    result = await use_case.execute("test.student@hogwarts.edu", "SecurePass123!")

    assert result.is_err()
    assert result.error.code == "INVALID_CREDENTIALS"
