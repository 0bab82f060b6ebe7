"""
Cubefield Relay Core Types

Connections, player state and the outbound notifications the registry produces.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


# =============================================================================
# Event Names
# =============================================================================

class RelayEvent(str, Enum):
    """Socket event names used on the wire."""
    # Server -> client, on connect
    MAP_DATA = "map:data"
    PLAYERS_INIT = "players:init"

    # Client -> server
    JOIN = "player:join"
    RESPAWN = "player:respawn"

    # Server -> peers / requester
    JOINED = "player:joined"
    JOINED_YOU = "player:joined:you"
    RESPAWN_DENIED = "player:respawn:denied"
    META = "player:meta"
    REMOVE = "player:remove"

    # Both directions
    UPDATE = "player:update"


# =============================================================================
# World Geometry
# =============================================================================

@dataclass(frozen=True)
class Vector3:
    """World coordinates. Frozen so a position is only ever replaced whole."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


SpawnPoint = Vector3


@dataclass(frozen=True)
class Objective:
    """Named marker on the map. Informational only."""
    position: Vector3
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {**self.position.to_dict(), "name": self.name}


# =============================================================================
# Players
# =============================================================================

@dataclass
class PlayerState:
    """Public state of a joined connection, as seen by peers."""
    position: Vector3
    name: str
    color: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position.to_dict(),
            "name": self.name,
            "color": self.color,
        }


@dataclass
class Connection:
    """
    One live transport session.

    state is None until the connection joins; last_respawn_at is None until
    a respawn has been granted.
    """
    id: str
    state: Optional[PlayerState] = None
    last_respawn_at: Optional[float] = None

    @property
    def is_joined(self) -> bool:
        return self.state is not None


# =============================================================================
# Outbound Notifications
# =============================================================================

@dataclass
class Emission:
    """
    A single outbound notification.

    With `to` set the event goes to that connection only; otherwise it goes to
    every connection except `skip`.
    """
    event: RelayEvent
    payload: dict[str, Any] = field(default_factory=dict)
    to: Optional[str] = None
    skip: Optional[str] = None

    @property
    def is_broadcast(self) -> bool:
        return self.to is None


def unicast(event: RelayEvent, payload: dict[str, Any], to: str) -> Emission:
    return Emission(event=event, payload=payload, to=to)


def broadcast_except(event: RelayEvent, payload: dict[str, Any], skip: Optional[str]) -> Emission:
    return Emission(event=event, payload=payload, skip=skip)


# =============================================================================
# Respawn Results
# =============================================================================

@dataclass
class RespawnAccepted:
    state: PlayerState
    color_changed: bool = False


@dataclass
class RespawnDenied:
    remaining: int  # whole seconds, rounded up


RespawnResult = Union[RespawnAccepted, RespawnDenied]
