from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, EmailStr, Field

from src.api.error import ClientError, ServerError
from src.app.services.password_hasher import PasswordHasher
from src.app.services.token_service import TokenClaims, TokenService
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    RegisterCommand,
    RegisterResponse,
    RegisterUseCase,
    LoginUseCase,
    RefreshTokenUseCase,
    LogoutUseCase,
    ChangePasswordUseCase,
    GetProfileUseCase,
    LoginResponse,
    RefreshTokenResponse,
    LogoutResponse,
    ChangePasswordResponse,
    UserInfo,
)
from src.app.use_cases.auth.token_errors import TOKEN_ERROR_CODES
from src.depends import (
    get_config,
    get_current_user,
    get_password_hasher,
    get_token_service,
    get_unit_of_work,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class RegisterRequest(BaseModel):
    """
    Register HTTP request payload

    Password length is a business rule (WEAK_PASSWORD), so it is not
    constrained here.
    """

    email: EmailStr = Field(..., description="School email address")
    password: str = Field(..., description="Password (min 8 chars)")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


@router.post(
    "/register", status_code=status.HTTP_201_CREATED, response_model=RegisterResponse
)
async def register(
    request: RegisterRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    config=Depends(get_config),
):
    """
    Create a STUDENT account for a school email address.

    Raises:
        - 400 Bad Request: Wrong email domain or weak password
        - 409 Conflict: Email already registered
        - 500 Internal Server Error: Server error
    """
    command = RegisterCommand(
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
    )

    use_case = RegisterUseCase(
        uow,
        hasher,
        allowed_domain=config.ALLOWED_EMAIL_DOMAIN,
        min_password_length=config.PASSWORD_MIN_LENGTH,
    )
    result = await use_case.execute(command)

    if result.is_err():
        error = result.error
        if error.code in ("INVALID_EMAIL_DOMAIN", "WEAK_PASSWORD"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        elif error.code == "EMAIL_ALREADY_EXISTS":
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        raise ServerError(error)

    return result.value


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, description="User email address")
    password: str = Field(..., min_length=1, description="User password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    request: LoginRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    tokens: TokenService = Depends(get_token_service),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    """
    Authenticate with email and password and receive a token pair.

    Raises:
        - 401 Unauthorized: Invalid credentials (same answer for unknown email
          and wrong password)
        - 500 Internal Server Error: Server error
    """
    use_case = LoginUseCase(uow, tokens, hasher)
    result = await use_case.execute(request.email, request.password)

    if result.is_err():
        error = result.error
        if error.code == "INVALID_CREDENTIALS":
            raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
        raise ServerError(error)

    return result.value


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token")


@router.post(
    "/refresh", status_code=status.HTTP_200_OK, response_model=RefreshTokenResponse
)
async def refresh(
    request: RefreshRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Exchange a refresh token for a new pair. The presented token is revoked.

    Raises:
        - 401 Unauthorized: Invalid, expired, unknown or already used token
        - 500 Internal Server Error: Server error
    """
    use_case = RefreshTokenUseCase(uow, tokens)
    result = await use_case.execute(request.refresh_token)

    if result.is_err():
        error = result.error
        if error.code in TOKEN_ERROR_CODES or error.code in (
            "REFRESH_TOKEN_NOT_FOUND",
            "REFRESH_TOKEN_REVOKED",
            "USER_NOT_FOUND",
        ):
            raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
        raise ServerError(error)

    return result.value


LOGOUT_REQUEST_BODY = {
    "requestBody": {
        "required": False,
        "content": {
            "application/json": {
                "schema": {
                    "type": "object",
                    "properties": {"refresh_token": {"type": "string"}},
                }
            }
        },
    }
}


@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    response_model=LogoutResponse,
    openapi_extra=LOGOUT_REQUEST_BODY,
)
async def logout(
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Revoke the given refresh token. Always succeeds.

    The body is read by hand so a missing or unparseable body still logs out.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None
    refresh_token = body.get("refresh_token") if isinstance(body, dict) else None
    if not isinstance(refresh_token, str):
        refresh_token = ""

    use_case = LogoutUseCase(uow, tokens)
    result = await use_case.execute(refresh_token)
    return result.value


@router.get("/me", status_code=status.HTTP_200_OK, response_model=UserInfo)
async def me(
    current_user: TokenClaims = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Profile of the authenticated user.

    Raises:
        - 401 Unauthorized: Missing or invalid access token
        - 404 Not Found: User no longer exists
    """
    use_case = GetProfileUseCase(uow)
    result = await use_case.execute(UUID(current_user.user_id))

    if result.is_err():
        error = result.error
        if error.code == "USER_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., description="New password (min 8 chars)")


@router.put(
    "/change-password",
    status_code=status.HTTP_200_OK,
    response_model=ChangePasswordResponse,
)
async def change_password(
    request: ChangePasswordRequest,
    current_user: TokenClaims = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    config=Depends(get_config),
):
    """
    Change the authenticated user's password.

    Raises:
        - 400 Bad Request: Weak new password or same as current
        - 401 Unauthorized: Current password incorrect
        - 404 Not Found: User no longer exists
        - 500 Internal Server Error: Stored hash is corrupt
    """
    use_case = ChangePasswordUseCase(
        uow,
        hasher,
        min_password_length=config.PASSWORD_MIN_LENGTH,
        revoke_tokens=config.REVOKE_TOKENS_ON_PASSWORD_CHANGE,
    )
    result = await use_case.execute(
        UUID(current_user.user_id), request.current_password, request.new_password
    )

    if result.is_err():
        error = result.error
        if error.code in ("WEAK_PASSWORD", "SAME_PASSWORD"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        elif error.code == "INCORRECT_PASSWORD":
            raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
        elif error.code == "USER_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value
