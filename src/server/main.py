"""
Cubefield Relay Server

FastAPI application with Socket.IO for real-time player synchronization.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import socketio

from src.relay import SessionRegistry, WorldMap, load_world_map

from .config import RelayConfig, configure_logging
from .models import HealthResponse
from .relay import RelayNamespace
from .routes import world_router, players_router

logger = logging.getLogger(__name__)

SERVICE_NAME = "cubefield-relay"
VERSION = "1.0.0"


# =============================================================================
# Assembly
# =============================================================================

def build_world(config: RelayConfig) -> WorldMap:
    """Load the configured map and apply any cooldown override."""
    world = load_world_map(config.map_file)
    if config.respawn_cooldown_ms is not None:
        world = world.with_cooldown(config.respawn_cooldown_ms)
    return world


def create_sio(config: RelayConfig, namespace: RelayNamespace) -> socketio.AsyncServer:
    """Create the Socket.IO server with the relay handlers registered."""
    sio = socketio.AsyncServer(
        async_mode='asgi',
        cors_allowed_origins=config.cors_allowed_origins,
        # Inline handling keeps each connection's events in arrival order.
        async_handlers=False,
        always_connect=True,
        logger=config.socketio_logger,
        engineio_logger=False,
    )
    sio.register_namespace(namespace)
    return sio


def create_fastapi_app(config: RelayConfig, world: WorldMap, registry: SessionRegistry) -> FastAPI:
    """Create the HTTP side of the relay."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Registry lifetime follows the server process."""
        logger.info(
            "Relay starting: %d spawn points, %d objectives, %d ms respawn cooldown, %s",
            len(world.spawn_points), len(world.objectives), world.respawn_cooldown_ms,
            "auto-join" if registry.auto_join else "join-gated",
        )
        yield
        logger.info("Relay shutting down, dropping %d connections", len(registry))
        await registry.clear()

    app = FastAPI(
        title="Cubefield Relay",
        description="Player-state synchronization for the cubefield movement demo",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.world = world
    app.state.registry = registry

    app.include_router(world_router, prefix="/api")
    app.include_router(players_router, prefix="/api")

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(service=SERVICE_NAME)

    @app.get("/")
    async def root():
        """Root endpoint with service info."""
        return {
            "name": SERVICE_NAME,
            "version": VERSION,
            "docs": "/docs",
            "health": "/health",
            "world": "/api/world",
            "players": "/api/players",
        }

    return app


def create_app(config: Optional[RelayConfig] = None) -> socketio.ASGIApp:
    """
    Create the ASGI application.

    One registry per app; the Socket.IO namespace and the REST routes share it.
    """
    config = config or RelayConfig.from_env()
    world = build_world(config)
    registry = SessionRegistry(
        world,
        auto_join=config.auto_join,
        max_name_length=config.max_name_length,
    )
    namespace = RelayNamespace(registry)
    sio = create_sio(config, namespace)
    app = create_fastapi_app(config, world, registry)
    app.state.sio = sio
    return socketio.ASGIApp(sio, app)


# =============================================================================
# Entry Point
# =============================================================================

def run() -> None:
    """Run the relay with uvicorn."""
    import uvicorn

    config = RelayConfig.from_env()
    configure_logging(config.log_level)
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    run()
