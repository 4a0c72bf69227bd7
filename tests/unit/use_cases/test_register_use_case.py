import pytest

from src.app.use_cases.auth import RegisterCommand, RegisterUseCase
from src.domain.entities import User, UserRole


def command(**overrides) -> RegisterCommand:
    data = {
        "email": "test.student@hogwarts.edu",
        "password": "SecurePass123!",
        "first_name": "Test",
        "last_name": "Student",
    }
    data.update(overrides)
    return RegisterCommand(**data)


@pytest.mark.asyncio
async def test_successful_register(mock_uow, hasher):
    mock_uow.users.get_by_email.return_value = None
    mock_uow.users.create.side_effect = lambda user: user

    result = await RegisterUseCase(mock_uow, hasher).execute(
        command(email="  Test.Student@Hogwarts.edu")
    )

    assert result.is_ok()
    assert result.value.user.email == "test.student@hogwarts.edu"
    assert result.value.user.role == "STUDENT"

    created = mock_uow.users.create.call_args.args[0]
    assert isinstance(created, User)
    assert created.role == UserRole.STUDENT
    assert hasher.verify("SecurePass123!", created.password_hash)
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_register_outside_school_domain(mock_uow, hasher):
    result = await RegisterUseCase(mock_uow, hasher).execute(
        command(email="draco@durmstrang.edu")
    )

    assert result.is_err()
    assert result.error.code == "INVALID_EMAIL_DOMAIN"
    mock_uow.users.create.assert_not_called()


@pytest.mark.asyncio
async def test_register_weak_password(mock_uow, hasher):
    result = await RegisterUseCase(mock_uow, hasher).execute(command(password="1234567"))

    assert result.is_err()
    assert result.error.code == "WEAK_PASSWORD"


@pytest.mark.asyncio
async def test_register_duplicate_email(mock_uow, hasher):
    mock_uow.users.get_by_email.return_value = User(
        email="test.student@hogwarts.edu",
        password_hash="x",
        first_name="Test",
        last_name="Student",
    )

    result = await RegisterUseCase(mock_uow, hasher).execute(command())

    assert result.is_err()
    assert result.error.code == "EMAIL_ALREADY_EXISTS"
    mock_uow.commit.assert_not_called()
