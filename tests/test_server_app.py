"""
Tests for relay configuration, REST routes and app assembly.
"""

import asyncio
import json
import random

import pytest

from src.relay import SessionRegistry, WorldMap, WorldMapError
from src.server.config import RelayConfig
from src.server.main import build_world, create_app
from src.server.models import JoinRequest, RespawnRequest, UpdateRequest, WorldResponse
from src.server.relay import RelayNamespace
from src.server.routes.players import list_players
from src.server.routes.world import get_world_map

ENV_VARS = [
    "RELAY_HOST", "RELAY_PORT", "PORT", "RELAY_CORS_ORIGINS", "RELAY_MAP_FILE",
    "RELAY_RESPAWN_COOLDOWN_MS", "RELAY_AUTO_JOIN", "RELAY_MAX_NAME_LENGTH",
    "RELAY_LOG_LEVEL", "RELAY_SOCKETIO_LOGGER",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# =============================================================================
# Configuration
# =============================================================================

def test_config_defaults(clean_env):
    config = RelayConfig.from_env()
    assert config.port == 3000
    assert config.host == "0.0.0.0"
    assert config.respawn_cooldown_ms is None
    assert config.auto_join is False
    assert config.cors_allowed_origins == "*"


def test_config_from_env(clean_env):
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("RELAY_RESPAWN_COOLDOWN_MS", "2500")
    clean_env.setenv("RELAY_AUTO_JOIN", "yes")
    clean_env.setenv("RELAY_CORS_ORIGINS", "http://localhost:5173, https://cubes.example")
    clean_env.setenv("RELAY_LOG_LEVEL", "debug")

    config = RelayConfig.from_env()
    assert config.port == 8080
    assert config.respawn_cooldown_ms == 2500
    assert config.auto_join is True
    assert config.cors_allowed_origins == ["http://localhost:5173", "https://cubes.example"]
    assert config.log_level == "DEBUG"


def test_config_ignores_malformed_numbers(clean_env):
    clean_env.setenv("RELAY_PORT", "eighty")
    clean_env.setenv("RELAY_RESPAWN_COOLDOWN_MS", "soon")
    config = RelayConfig.from_env()
    assert config.port == 3000
    assert config.respawn_cooldown_ms is None


def test_build_world_applies_cooldown_override(tmp_path):
    path = tmp_path / "map.json"
    path.write_text(json.dumps({
        "spawnPoints": [{"x": 0, "y": 0.5, "z": 0}],
        "respawnCooldownMs": 9000,
    }))

    assert build_world(RelayConfig(map_file=str(path))).respawn_cooldown_ms == 9000
    assert build_world(RelayConfig(map_file=str(path), respawn_cooldown_ms=100)).respawn_cooldown_ms == 100


def test_build_world_rejects_empty_map(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps({"spawnPoints": []}))
    with pytest.raises(WorldMapError):
        build_world(RelayConfig(map_file=str(path)))


# =============================================================================
# Inbound Models
# =============================================================================

def test_inbound_models_never_reject():
    join = JoinRequest.parse({"name": 5, "spawnIndex": "x", "color": "zzzzzz", "extra": True})
    assert (join.name, join.spawn_index, join.color) == (None, None, None)

    join = JoinRequest.parse({"name": "Bob", "spawnIndex": "3", "color": "a1b2c3"})
    assert (join.name, join.spawn_index, join.color) == ("Bob", 3, "#a1b2c3")

    for odd in ("\u00b2", "\u0661", "1" * 5000, "+1", "1e2"):
        assert JoinRequest.parse({"spawnIndex": odd}).spawn_index is None
        assert RespawnRequest.parse({"spawnIndex": odd}).spawn_index is None

    respawn = RespawnRequest.parse(["not", "a", "dict"])
    assert respawn.spawn_index is None and respawn.color is None

    assert UpdateRequest.parse({"position": {"x": 1, "y": 2}}).position is None
    assert UpdateRequest.parse({"position": {"x": 1, "y": 2, "z": 3}}).position.z == 3.0


# =============================================================================
# Routes
# =============================================================================

def test_world_route_matches_map_data():
    async def _run():
        world = WorldMap.default()
        payload = await get_world_map(world=world)
        assert payload == world.to_payload()
        response = WorldResponse.model_validate(payload)
        assert response.respawn_cooldown_ms == world.respawn_cooldown_ms
        assert len(response.spawn_points) == len(world.spawn_points)

    asyncio.run(_run())


def test_players_route_lists_joined_players_only():
    async def _run():
        registry = SessionRegistry(WorldMap.default(), rng=random.Random(5))
        await registry.connect("a")
        await registry.connect("b")
        await registry.join("a", "Alice")

        response = await list_players(registry=registry)
        assert response.total == 1
        assert response.connections == 2
        assert response.players["a"].name == "Alice"

    asyncio.run(_run())


# =============================================================================
# App Assembly
# =============================================================================

def test_create_app_shares_one_registry(clean_env):
    asgi_app = create_app(RelayConfig(auto_join=True, respawn_cooldown_ms=1234))
    app = asgi_app.other_asgi_app

    registry = app.state.registry
    assert registry.auto_join is True
    assert app.state.world.respawn_cooldown_ms == 1234
    assert registry.world is app.state.world

    namespace = app.state.sio.namespace_handlers["/"]
    assert isinstance(namespace, RelayNamespace)
    assert namespace.registry is registry

    assert app.url_path_for("health_check") == "/health"
    assert app.url_path_for("root") == "/"
    assert app.url_path_for("get_world_map") == "/api/world"
    assert app.url_path_for("list_players") == "/api/players"
