from unittest.mock import AsyncMock, MagicMock

import pytest

from src.api.utils.connection_manager import ConnectionManager
from src.app.services.presence_events import PresenceEvent, PresenceEventKind


def fake_socket():
    websocket = MagicMock()
    websocket.send_json = AsyncMock()
    return websocket


def sent(websocket):
    return [call.args[0] for call in websocket.send_json.call_args_list]


@pytest.fixture
def manager():
    manager = ConnectionManager()
    for name in ("c1", "c2", "c3"):
        manager.connect(name, fake_socket(), {"user": {"first_name": name}})
    return manager


@pytest.mark.asyncio
async def test_joined_is_broadcast_to_others(manager):
    await manager.handle_presence_event(
        PresenceEvent(kind=PresenceEventKind.joined, user_id="u1", connection_id="c1")
    )

    assert sent(manager.connections["c1"]) == []
    assert sent(manager.connections["c2"]) == [
        {"event": "presence:join", "data": {"user_id": "u1", "user": {"first_name": "c1"}}}
    ]


@pytest.mark.asyncio
async def test_room_events_are_scoped_to_room(manager):
    manager.join("c2", "incident:7")

    await manager.handle_presence_event(
        PresenceEvent(
            kind=PresenceEventKind.room_joined,
            user_id="u1",
            connection_id="c1",
            room="incident:7",
        )
    )

    assert manager.rooms["incident:7"] == {"c1", "c2"}
    assert sent(manager.connections["c2"])[0]["data"]["room"] == "incident:7"
    assert sent(manager.connections["c3"]) == []
    assert sent(manager.connections["c1"]) == []


@pytest.mark.asyncio
async def test_room_left_notifies_remaining_members(manager):
    manager.join("c1", "incident:7")
    manager.join("c2", "incident:7")

    await manager.handle_presence_event(
        PresenceEvent(
            kind=PresenceEventKind.room_left,
            user_id="u1",
            connection_id="c1",
            room="incident:7",
        )
    )

    assert manager.rooms["incident:7"] == {"c2"}
    assert sent(manager.connections["c2"])[0]["event"] == "presence:leave"
    assert sent(manager.connections["c1"]) == []


@pytest.mark.asyncio
async def test_left_drops_room_membership_and_carries_reason(manager):
    manager.join("c1", "incident:7")

    await manager.handle_presence_event(
        PresenceEvent(
            kind=PresenceEventKind.left,
            user_id="u1",
            connection_id="c1",
            room="incident:7",
            reason="stale",
        )
    )

    assert "incident:7" not in manager.rooms
    message = sent(manager.connections["c3"])[0]
    assert message["event"] == "presence:leave"
    assert message["data"]["reason"] == "stale"


def test_join_moves_between_rooms(manager):
    manager.join("c1", "incident:1")
    manager.join("c1", "incident:2")

    assert manager.rooms == {"incident:2": {"c1"}}


@pytest.mark.asyncio
async def test_failed_send_is_reported_not_raised(manager):
    manager.connections["c2"].send_json.side_effect = RuntimeError("closed")

    assert await manager.send("c2", "heartbeat", {}) is False
    assert await manager.send("missing", "heartbeat", {}) is False

    await manager.broadcast("presence:join", {"user_id": "u1"})
    assert len(sent(manager.connections["c3"])) == 1


def test_disconnect_forgets_connection(manager):
    manager.join("c1", "incident:1")

    manager.disconnect("c1")

    assert "c1" not in manager.connections
    assert "c1" not in manager.users
    assert manager.rooms == {}
