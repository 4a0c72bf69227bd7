from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel
from .error import ClientError, ServerError
from .utils.connection_manager import ConnectionManager
from src.app.services.password_hasher import PasswordHasher
from src.app.services.presence_events import PresenceEventBus
from src.app.services.presence_sweeper import PresenceSweeper
from src.app.services.presence_tracker import PresenceTracker
from src.app.services.token_service import TokenService
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request")
    error_dict = {
        "code": "VALIDATION_ERROR",
        "message": f"{field}: {message}" if field else message,
    }
    logger.warning(f"Validation error: {error_dict}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"error": error_dict}
    )


def create_app(ApplicationConfig, uow_factory=None) -> FastAPI:
    """
    Build the application and its long-lived services.

    Raises:
        ConfigurationError: JWT_SECRET missing or unsupported JWT_ALGORITHM
    """
    if uow_factory is None:
        from src.depends import open_unit_of_work

        uow_factory = open_unit_of_work

    token_service = TokenService(
        secret=ApplicationConfig.JWT_SECRET,
        algorithm=ApplicationConfig.JWT_ALGORITHM,
        access_ttl=timedelta(seconds=ApplicationConfig.ACCESS_TOKEN_TTL_SECONDS),
        refresh_ttl=timedelta(seconds=ApplicationConfig.REFRESH_TOKEN_TTL_SECONDS),
    )
    password_hasher = PasswordHasher(rounds=ApplicationConfig.BCRYPT_ROUNDS)

    events = PresenceEventBus()
    connections = ConnectionManager()
    events.subscribe(connections.handle_presence_event)

    presence_tracker = PresenceTracker(
        uow_factory,
        events,
        online_window=timedelta(seconds=ApplicationConfig.PRESENCE_ONLINE_WINDOW_SECONDS),
        stale_after=timedelta(seconds=ApplicationConfig.PRESENCE_STALE_AFTER_SECONDS),
    )
    presence_sweeper = PresenceSweeper(
        presence_tracker,
        interval_seconds=ApplicationConfig.PRESENCE_SWEEP_INTERVAL_SECONDS,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if ApplicationConfig.DB_AUTO_CREATE:
            from src.depends import engine

            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        if ApplicationConfig.PRESENCE_SWEEP_ENABLED:
            presence_sweeper.start()
        try:
            yield
        finally:
            await presence_sweeper.stop()

    app = FastAPI(title="Marauder's Map API", version="0.1.0", lifespan=lifespan)

    app.state.config = ApplicationConfig
    app.state.token_service = token_service
    app.state.password_hasher = password_hasher
    app.state.uow_factory = uow_factory
    app.state.presence_events = events
    app.state.connections = connections
    app.state.presence_tracker = presence_tracker
    app.state.presence_sweeper = presence_sweeper

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from src.api.routes import auth, health_check, presence, websocket

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, prefix=ApplicationConfig.API_PREFIX, tags=["Authentication"])
    app.include_router(presence.router, prefix=ApplicationConfig.API_PREFIX, tags=["Presence"])
    app.include_router(websocket.router, tags=["WebSocket"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    return app
