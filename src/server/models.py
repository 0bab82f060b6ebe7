"""
Pydantic Models for the Cubefield Relay

Wire models for Socket.IO payloads and REST responses.

Inbound models never fail validation: malformed fields are coerced to None
and the registry substitutes its defaults.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional

from src.relay.validation import coerce_index, coerce_position, normalize_color


def _none_unless_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _none_unless_index(value: Any) -> Optional[int]:
    # Range checks need the map, so they happen in the registry.
    return coerce_index(value)


# =============================================================================
# Shared Models
# =============================================================================

class PositionData(BaseModel):
    """World position."""
    x: float
    y: float
    z: float


class PlayerStateData(BaseModel):
    """Public player state."""
    position: PositionData
    name: str
    color: str


class ObjectiveData(PositionData):
    """Named map marker."""
    name: str


# =============================================================================
# Inbound Socket.IO Payloads
# =============================================================================

class _LenientModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def parse(cls, data: Any):
        """Build the model from whatever the client sent."""
        if isinstance(data, BaseModel):
            data = data.model_dump()
        if not isinstance(data, dict):
            data = {}
        return cls.model_validate(data)


class JoinRequest(_LenientModel):
    """`player:join` payload."""
    name: Optional[str] = None
    spawn_index: Optional[int] = Field(default=None, alias="spawnIndex")
    color: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value):
        return _none_unless_str(value)

    @field_validator("spawn_index", mode="before")
    @classmethod
    def _spawn_index(cls, value):
        return _none_unless_index(value)

    @field_validator("color", mode="before")
    @classmethod
    def _color(cls, value):
        return normalize_color(value)


class RespawnRequest(_LenientModel):
    """`player:respawn` payload."""
    spawn_index: Optional[int] = Field(default=None, alias="spawnIndex")
    color: Optional[str] = None

    @field_validator("spawn_index", mode="before")
    @classmethod
    def _spawn_index(cls, value):
        return _none_unless_index(value)

    @field_validator("color", mode="before")
    @classmethod
    def _color(cls, value):
        return normalize_color(value)


class UpdateRequest(_LenientModel):
    """`player:update` payload from a client. The sender is implied."""
    position: Optional[PositionData] = None

    @field_validator("position", mode="before")
    @classmethod
    def _position(cls, value):
        position = coerce_position(value)
        return position.to_dict() if position is not None else None


# =============================================================================
# REST Responses
# =============================================================================

class WorldResponse(BaseModel):
    """Static map data; the same shape as the `map:data` event."""
    model_config = ConfigDict(populate_by_name=True)

    spawn_points: list[PositionData] = Field(default_factory=list, alias="spawnPoints")
    objectives: list[ObjectiveData] = Field(default_factory=list)
    respawn_cooldown_ms: int = Field(alias="respawnCooldownMs")


class PlayersResponse(BaseModel):
    """Snapshot of joined players; `players` matches the `players:init` event."""
    players: dict[str, PlayerStateData] = Field(default_factory=dict)
    total: int = 0
    connections: int = 0


class HealthResponse(BaseModel):
    status: str = "healthy"
    service: str = "cubefield-relay"
