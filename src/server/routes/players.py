"""
Players Routes

Read-only view of who is currently visible in the world.
"""

from fastapi import APIRouter, Depends, Request

from src.relay import SessionRegistry

from ..models import PlayersResponse

router = APIRouter(prefix="/players", tags=["players"])


def get_registry(request: Request) -> SessionRegistry:
    """The session registry owned by the running app."""
    return request.app.state.registry


@router.get("", response_model=PlayersResponse)
async def list_players(registry: SessionRegistry = Depends(get_registry)) -> PlayersResponse:
    """
    Snapshot of joined players.

    `players` has the same shape a new connection receives in `players:init`;
    `connections` also counts sockets that have not joined yet.
    """
    players = registry.snapshot()
    return PlayersResponse(players=players, total=len(players), connections=len(registry))
