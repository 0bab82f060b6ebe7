"""
World Routes

Read-only access to the static map, for tools and page loads that want it
before opening a socket.
"""

from fastapi import APIRouter, Depends, Request

from src.relay import WorldMap

from ..models import WorldResponse

router = APIRouter(prefix="/world", tags=["world"])


def get_world(request: Request) -> WorldMap:
    """The world map owned by the running app."""
    return request.app.state.world


@router.get("", response_model=WorldResponse)
async def get_world_map(world: WorldMap = Depends(get_world)) -> dict:
    """Spawn points, objectives and respawn cooldown (the `map:data` payload)."""
    return world.to_payload()
