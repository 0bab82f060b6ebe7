"""
Cubefield Relay Core

Transport-independent player-state synchronization:
- Session Registry: connection lifecycle, join, position updates, respawn
- World Map: static spawn points, objectives and respawn cooldown
- Input coercion: malformed client fields become safe defaults
"""

from .types import (
    RelayEvent,
    Vector3, SpawnPoint, Objective,
    PlayerState, Connection,
    Emission, unicast, broadcast_except,
    RespawnAccepted, RespawnDenied, RespawnResult,
)

from .validation import (
    normalize_color, random_color, resolve_color,
    coerce_index, parse_spawn_index, resolve_name, default_name,
    coerce_position,
)

from .world import WorldMap, WorldMapError, load_world_map, DEFAULT_RESPAWN_COOLDOWN_MS

from .registry import SessionRegistry, monotonic_ms

__all__ = [
    'RelayEvent',
    'Vector3', 'SpawnPoint', 'Objective',
    'PlayerState', 'Connection',
    'Emission', 'unicast', 'broadcast_except',
    'RespawnAccepted', 'RespawnDenied', 'RespawnResult',
    'normalize_color', 'random_color', 'resolve_color',
    'coerce_index', 'parse_spawn_index', 'resolve_name', 'default_name',
    'coerce_position',
    'WorldMap', 'WorldMapError', 'load_world_map', 'DEFAULT_RESPAWN_COOLDOWN_MS',
    'SessionRegistry', 'monotonic_ms',
]
