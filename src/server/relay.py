"""
Socket.IO Relay Namespace

Maps Socket.IO events onto the session registry and delivers the
notifications it produces.
"""

import logging
from typing import Any, Iterable, Optional

import socketio

from src.relay import Emission, SessionRegistry

from .models import JoinRequest, RespawnRequest, UpdateRequest

logger = logging.getLogger(__name__)


class RelayNamespace(socketio.AsyncNamespace):
    """
    Handlers for the relay's event contract.

    Event names contain colons (`player:join`), so they are dispatched to
    `on_player_join`-style methods.
    """

    def __init__(self, registry: SessionRegistry, namespace: Optional[str] = None):
        super().__init__(namespace or "/")
        self.registry = registry

    async def trigger_event(self, event: str, *args):
        return await super().trigger_event(event.replace(":", "_"), *args)

    # -------------------------------------------------------------------------
    # Fan-out
    # -------------------------------------------------------------------------

    async def dispatch(self, emissions: Iterable[Emission]) -> None:
        """
        Send every emission. A failed send is logged and dropped; the
        recipient's own disconnect will clean up after it.
        """
        for emission in emissions:
            event = emission.event.value
            try:
                if emission.is_broadcast:
                    await self.broadcast_except(emission.skip, event, emission.payload)
                else:
                    await self.emit(event, emission.payload, to=emission.to)
            except Exception as e:
                logger.warning("Dropped %s to %s: %s", event, emission.to or "peers", e)

    async def broadcast_except(self, sid: Optional[str], event: str, payload: dict) -> None:
        """Send to every connection except `sid`."""
        await self.emit(event, payload, skip_sid=sid)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def on_connect(self, sid: str, environ: dict, auth: Any = None):
        """Register the connection and send it the map and current players."""
        logger.info("Client connected: %s", sid)
        try:
            await self.dispatch(await self.registry.connect(sid))
        except Exception:
            logger.exception("Error handling connect for %s", sid)

    async def on_disconnect(self, sid: str, reason: Any = None):
        """Remove the connection and tell everyone else."""
        logger.info("Client disconnected: %s (%s)", sid, reason or "no reason given")
        try:
            await self.dispatch(await self.registry.disconnect(sid))
        except Exception:
            logger.exception("Error handling disconnect for %s", sid)

    # -------------------------------------------------------------------------
    # Player Events
    # -------------------------------------------------------------------------

    async def on_player_join(self, sid: str, data: Any = None):
        """
        Join as a visible player.

        Expected data: { name?: string, spawnIndex?: number, color?: string }
        """
        try:
            request = JoinRequest.parse(data)
            _, emissions = await self.registry.join(
                sid, request.name, request.spawn_index, request.color
            )
            await self.dispatch(emissions)
        except Exception:
            logger.exception("Error in player:join from %s", sid)

    async def on_player_update(self, sid: str, data: Any = None):
        """
        Relay a position update.

        Expected data: { position: {x, y, z} }
        """
        try:
            request = UpdateRequest.parse(data)
            if request.position is None:
                logger.debug("player:update from %s without a usable position", sid)
                return
            await self.dispatch(await self.registry.update(sid, request.position.model_dump()))
        except Exception:
            logger.exception("Error in player:update from %s", sid)

    async def on_player_respawn(self, sid: str, data: Any = None):
        """
        Respawn, subject to the cooldown.

        Expected data: { spawnIndex?: number, color?: string }
        """
        try:
            request = RespawnRequest.parse(data)
            _, emissions = await self.registry.respawn(sid, request.spawn_index, request.color)
            await self.dispatch(emissions)
        except Exception:
            logger.exception("Error in player:respawn from %s", sid)
