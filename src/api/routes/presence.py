from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from src.app.services.presence_tracker import OnlineUser, PresenceTracker
from src.app.services.token_service import TokenClaims
from src.depends import get_current_user, get_presence_tracker

router = APIRouter(prefix="/presence", tags=["Presence"])


class OnlineUsersResponse(BaseModel):
    online: List[OnlineUser]
    total: int


class OnlineByRoleResponse(BaseModel):
    by_role: Dict[str, int]
    total: int


class IncidentViewersResponse(BaseModel):
    incident_id: int
    viewers: List[OnlineUser]
    total: int


class SessionInfo(BaseModel):
    connection_id: str
    connected_at: datetime
    last_seen: datetime
    current_room: Optional[str] = None


class CurrentUserPresenceResponse(BaseModel):
    user_id: UUID
    online: bool
    sessions: List[SessionInfo]


def incident_room(incident_id: int) -> str:
    return f"incident:{incident_id}"


@router.get("/online", status_code=status.HTTP_200_OK, response_model=OnlineUsersResponse)
async def online_users(
    current_user: TokenClaims = Depends(get_current_user),
    tracker: PresenceTracker = Depends(get_presence_tracker),
):
    """Users seen within the online window, most recent connection first"""
    online = await tracker.list_online_users()
    return OnlineUsersResponse(online=online, total=len(online))


@router.get(
    "/online/by-role", status_code=status.HTTP_200_OK, response_model=OnlineByRoleResponse
)
async def online_by_role(
    current_user: TokenClaims = Depends(get_current_user),
    tracker: PresenceTracker = Depends(get_presence_tracker),
):
    counts = await tracker.count_online_by_role()
    return OnlineByRoleResponse(by_role=counts, total=sum(counts.values()))


@router.get(
    "/incident/{incident_id}",
    status_code=status.HTTP_200_OK,
    response_model=IncidentViewersResponse,
)
async def incident_viewers(
    incident_id: int,
    current_user: TokenClaims = Depends(get_current_user),
    tracker: PresenceTracker = Depends(get_presence_tracker),
):
    """Online users whose connection is currently in the incident's room"""
    viewers = await tracker.list_room_viewers(incident_room(incident_id))
    return IncidentViewersResponse(
        incident_id=incident_id, viewers=viewers, total=len(viewers)
    )


@router.get(
    "/current-user",
    status_code=status.HTTP_200_OK,
    response_model=CurrentUserPresenceResponse,
)
async def current_user_presence(
    current_user: TokenClaims = Depends(get_current_user),
    tracker: PresenceTracker = Depends(get_presence_tracker),
):
    user_id = UUID(current_user.user_id)
    sessions = await tracker.list_user_sessions(user_id)
    return CurrentUserPresenceResponse(
        user_id=user_id,
        online=bool(sessions),
        sessions=[
            SessionInfo(
                connection_id=s.connection_id,
                connected_at=s.connected_at,
                last_seen=s.last_seen,
                current_room=s.current_room,
            )
            for s in sessions
        ],
    )
