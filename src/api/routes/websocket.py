import asyncio
import json
import logging
from uuid import UUID, uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from src.app.use_cases.auth import GetProfileUseCase, VerifyAccessUseCase

logger = logging.getLogger(__name__)

router = APIRouter()

# Application close codes (4000-4999)
CLOSE_UNAUTHORIZED = 4401


def _error(code: str, message: str) -> dict:
    return {"code": code, "message": message}


async def _release(tracker, connections, connection_id: str) -> None:
    await tracker.close(connection_id)
    connections.disconnect(connection_id)


@router.websocket("/ws")
async def presence_socket(websocket: WebSocket):
    """
    Live presence channel.

    The access token is passed as the ``token`` query parameter. Clients send
    ``{"event": ..., "data": {...}}`` messages and receive the same shape.
    """
    state = websocket.app.state
    tracker = state.presence_tracker
    connections = state.connections

    result = VerifyAccessUseCase(state.token_service).execute(
        websocket.query_params.get("token", "")
    )
    if result.is_err():
        logger.warning(f"WebSocket authentication failed: {result.error.code}")
        await websocket.close(code=CLOSE_UNAUTHORIZED, reason=result.error.message)
        return

    try:
        user_id = UUID(result.value.user_id)
    except ValueError:
        await websocket.close(code=CLOSE_UNAUTHORIZED, reason="Token is malformed")
        return

    async with state.uow_factory() as uow:
        profile = await GetProfileUseCase(uow).execute(user_id)
    if profile.is_err():
        await websocket.close(code=CLOSE_UNAUTHORIZED, reason=profile.error.message)
        return

    await websocket.accept()
    connection_id = uuid4().hex
    user = {
        "first_name": profile.value.first_name,
        "last_name": profile.value.last_name,
        "role": profile.value.role,
    }
    close_code = None

    try:
        connections.connect(connection_id, websocket, {"user": user})
        await tracker.open(connection_id, user_id)
        await connections.send(
            connection_id,
            "connection:acknowledged",
            {"connection_id": connection_id, "user": {"user_id": str(user_id), **user}},
        )

        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000), frame.get("reason"))
            raw = frame.get("text")
            if raw is None:
                await connections.send(
                    connection_id, "error", _error("INVALID_MESSAGE", "Expected a text frame")
                )
                continue
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await connections.send(
                    connection_id, "error", _error("INVALID_JSON", "Invalid JSON message")
                )
                continue
            if not isinstance(message, dict):
                await connections.send(
                    connection_id, "error", _error("INVALID_MESSAGE", "Expected an object")
                )
                continue

            event = message.get("event")
            data = message.get("data")
            if not isinstance(data, dict):
                data = {}

            if event == "heartbeat":
                # Reaped by the sweeper while the socket stayed up
                if not await tracker.heartbeat(connection_id):
                    await tracker.open(connection_id, user_id)
            elif event == "room:join":
                joined = await tracker.join_room(connection_id, data.get("room") or "")
                if joined.is_err():
                    await connections.send(
                        connection_id, "error", _error(joined.error.code, joined.error.message)
                    )
                else:
                    await connections.send(
                        connection_id, "room:joined", {"room": joined.value.current_room}
                    )
            elif event == "room:leave":
                room = data.get("room") or ""
                left = await tracker.leave_room(connection_id, room)
                if left.is_err():
                    await connections.send(
                        connection_id, "error", _error(left.error.code, left.error.message)
                    )
                else:
                    await connections.send(connection_id, "room:left", {"room": room})
            elif event in ("typing:start", "typing:stop"):
                incident_id = data.get("incident_id")
                if incident_id is None:
                    continue
                await connections.broadcast_to_room(
                    f"incident:{incident_id}",
                    "presence:typing",
                    {
                        "user_id": str(user_id),
                        "first_name": user["first_name"],
                        "last_name": user["last_name"],
                        "incident_id": incident_id,
                        "is_typing": event == "typing:start",
                    },
                    exclude=connection_id,
                )
            else:
                await connections.send(
                    connection_id, "error", _error("UNKNOWN_EVENT", f"Unknown event: {event}")
                )
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: connection={connection_id}")
    except Exception:
        logger.exception(f"WebSocket handler failed: connection={connection_id}")
        close_code = status.WS_1011_INTERNAL_ERROR
    finally:
        # Cleanup must finish even when the handler itself is cancelled
        await asyncio.shield(_release(tracker, connections, connection_id))

    if close_code is not None:
        await websocket.close(code=close_code, reason="Presence is unavailable")
