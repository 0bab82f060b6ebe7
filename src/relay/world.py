"""
World Map

Static, process-wide map data: spawn points, objectives and the respawn
cooldown. Loaded once at startup and never mutated afterwards.
"""

import json
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .types import Objective, SpawnPoint, Vector3
from .validation import coerce_position, parse_spawn_index


DEFAULT_RESPAWN_COOLDOWN_MS = 5000


class WorldMapError(ValueError):
    """Raised when map data cannot be used to run the relay."""


@dataclass(frozen=True)
class WorldMap:
    """Spawn points, objectives and respawn rules shared by every connection."""
    spawn_points: tuple[SpawnPoint, ...]
    objectives: tuple[Objective, ...] = ()
    respawn_cooldown_ms: int = DEFAULT_RESPAWN_COOLDOWN_MS
    # Where auto-joined connections appear before choosing a spawn.
    default_position: Vector3 = field(default_factory=lambda: Vector3(0.0, 0.5, 0.0))

    def __post_init__(self):
        if not self.spawn_points:
            raise WorldMapError("world map needs at least one spawn point")
        if self.respawn_cooldown_ms < 0:
            raise WorldMapError("respawn cooldown cannot be negative")

    def pick_spawn(self, requested_index: Any, rng: random.Random) -> SpawnPoint:
        """
        Choose a spawn point.

        Clients may ask for a specific spawn; the request is honored only when
        it is a valid index. Anything else gets a uniformly random spawn.
        """
        index = parse_spawn_index(requested_index, len(self.spawn_points))
        if index is None:
            return rng.choice(self.spawn_points)
        return self.spawn_points[index]

    def to_payload(self) -> dict[str, Any]:
        """The `map:data` payload."""
        return {
            "spawnPoints": [p.to_dict() for p in self.spawn_points],
            "objectives": [o.to_dict() for o in self.objectives],
            "respawnCooldownMs": self.respawn_cooldown_ms,
        }

    def with_cooldown(self, respawn_cooldown_ms: int) -> 'WorldMap':
        return WorldMap(
            spawn_points=self.spawn_points,
            objectives=self.objectives,
            respawn_cooldown_ms=respawn_cooldown_ms,
            default_position=self.default_position,
        )

    @classmethod
    def default(cls) -> 'WorldMap':
        """The built-in arena: four corner spawns around a central plaza."""
        return cls(
            spawn_points=(
                Vector3(-20.0, 0.5, -20.0),
                Vector3(20.0, 0.5, -20.0),
                Vector3(-20.0, 0.5, 20.0),
                Vector3(20.0, 0.5, 20.0),
            ),
            objectives=(
                Objective(Vector3(0.0, 0.5, 0.0), "Plaza"),
                Objective(Vector3(0.0, 0.5, -40.0), "North Gate"),
                Objective(Vector3(40.0, 0.5, 0.0), "East Tower"),
                Objective(Vector3(-40.0, 0.5, 0.0), "West Ruins"),
            ),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'WorldMap':
        """
        Build a map from its JSON form (the same shape as `map:data`, plus an
        optional `defaultPosition`).
        """
        if not isinstance(data, dict):
            raise WorldMapError("world map must be a JSON object")

        spawn_points = []
        for i, raw in enumerate(data.get("spawnPoints") or []):
            point = coerce_position(raw)
            if point is None:
                raise WorldMapError(f"spawn point {i} is not a valid {{x, y, z}} position")
            spawn_points.append(point)

        objectives = []
        for i, raw in enumerate(data.get("objectives") or []):
            position = coerce_position(raw)
            name = raw.get("name") if isinstance(raw, dict) else None
            if position is None or not isinstance(name, str) or not name.strip():
                raise WorldMapError(f"objective {i} needs x, y, z and a name")
            objectives.append(Objective(position, name.strip()))

        cooldown = data.get("respawnCooldownMs", DEFAULT_RESPAWN_COOLDOWN_MS)
        if isinstance(cooldown, bool) or not isinstance(cooldown, int):
            raise WorldMapError("respawnCooldownMs must be an integer")

        kwargs: dict[str, Any] = {}
        if "defaultPosition" in data:
            default_position = coerce_position(data["defaultPosition"])
            if default_position is None:
                raise WorldMapError("defaultPosition is not a valid {x, y, z} position")
            kwargs["default_position"] = default_position

        return cls(
            spawn_points=tuple(spawn_points),
            objectives=tuple(objectives),
            respawn_cooldown_ms=cooldown,
            **kwargs,
        )


def load_world_map(path: Optional[Union[str, Path]] = None) -> WorldMap:
    """Load a map from a JSON file, or return the built-in map when no path is given."""
    if not path:
        return WorldMap.default()

    map_path = Path(path)
    try:
        with open(map_path, 'r') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise WorldMapError(f"world map file not found: {map_path}") from e
    except json.JSONDecodeError as e:
        raise WorldMapError(f"world map file is not valid JSON: {map_path}: {e}") from e

    return WorldMap.from_dict(data)
