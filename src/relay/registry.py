"""
Session Registry

Authoritative state of every live connection, and the rules deciding what is
broadcast, to whom, and when.

Each operation takes the registry lock for its read-modify-write and returns
the notifications to send. Callers deliver them after the lock is released,
so a slow peer never holds up mutations for everyone else.
"""

import asyncio
import logging
import math
import random
import time
from typing import Any, Callable, Optional

from .types import (
    Connection, Emission, PlayerState, RelayEvent,
    RespawnAccepted, RespawnDenied, RespawnResult,
    broadcast_except, unicast,
)
from .validation import coerce_position, normalize_color, resolve_color, resolve_name
from .world import WorldMap

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SessionRegistry:
    """
    Maps connection ids to their public state.

    Visibility policy:
    - join-gated (default): a connection is invisible to peers until it sends
      `player:join`.
    - auto_join: a connection is joined at the map's default position the
      moment it connects, the way the earliest relay behaved.
    """

    def __init__(
        self,
        world: WorldMap,
        clock: Optional[Callable[[], float]] = None,
        rng: Optional[random.Random] = None,
        auto_join: bool = False,
        max_name_length: int = 32,
    ):
        self.world = world
        self.clock = clock or monotonic_ms
        self.rng = rng or random.Random()
        self.auto_join = auto_join
        self.max_name_length = max_name_length
        self._connections: dict[str, Connection] = {}
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    @property
    def player_count(self) -> int:
        return sum(1 for c in self._connections.values() if c.is_joined)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Public state of every joined connection, keyed by id."""
        return {
            cid: conn.state.to_dict()
            for cid, conn in self._connections.items()
            if conn.state is not None
        }

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self, connection_id: str) -> list[Emission]:
        """
        Accept a new connection.

        The newcomer gets the static map and a snapshot of everyone already
        visible. With auto_join it is also announced to its peers right away.
        """
        async with self._lock:
            if connection_id in self._connections:
                logger.warning("Connection %s connected twice; keeping existing state", connection_id)
                conn = self._connections[connection_id]
            else:
                conn = Connection(id=connection_id)
                self._connections[connection_id] = conn

            emissions = [
                unicast(RelayEvent.MAP_DATA, self.world.to_payload(), to=connection_id),
                unicast(RelayEvent.PLAYERS_INIT, self.snapshot(), to=connection_id),
            ]

            if self.auto_join and conn.state is None:
                conn.state = PlayerState(
                    position=self.world.default_position,
                    name=resolve_name(None, connection_id, self.max_name_length),
                    color=resolve_color(None, self.rng),
                )
                payload = {"id": connection_id, "state": conn.state.to_dict()}
                emissions.append(broadcast_except(RelayEvent.JOINED, payload, skip=connection_id))
                emissions.append(unicast(RelayEvent.JOINED_YOU, payload, to=connection_id))

        logger.info("Connection %s registered (%d live)", connection_id, len(self._connections))
        return emissions

    async def disconnect(self, connection_id: str) -> list[Emission]:
        """
        Forget a connection. Unknown ids are a no-op, so calling this twice
        sends `player:remove` at most once.
        """
        async with self._lock:
            conn = self._connections.pop(connection_id, None)

        if conn is None:
            logger.debug("Disconnect for unknown connection %s ignored", connection_id)
            return []

        logger.info("Connection %s removed (%d live)", connection_id, len(self._connections))
        if not conn.is_joined:
            # Peers never saw it.
            return []
        return [broadcast_except(RelayEvent.REMOVE, {"id": connection_id}, skip=connection_id)]

    async def clear(self) -> None:
        async with self._lock:
            self._connections.clear()

    # -------------------------------------------------------------------------
    # Join
    # -------------------------------------------------------------------------

    async def join(
        self,
        connection_id: str,
        name: Any = None,
        spawn_index: Any = None,
        color: Any = None,
    ) -> tuple[Optional[PlayerState], list[Emission]]:
        """
        Make a connection a visible participant.

        Returns the authoritative state. The requester must use it instead of
        its own request; spawn, name and color may all have been overridden.
        Joining again re-assigns state and announces it again.
        """
        async with self._lock:
            conn = self._connections.get(connection_id)
            if conn is None:
                logger.debug("Join from unknown connection %s ignored", connection_id)
                return None, []

            state = PlayerState(
                position=self.world.pick_spawn(spawn_index, self.rng),
                name=resolve_name(name, connection_id, self.max_name_length),
                color=resolve_color(color, self.rng),
            )
            conn.state = state
            payload = {"id": connection_id, "state": state.to_dict()}

        logger.info("Connection %s joined as %r", connection_id, state.name)
        return state, [
            broadcast_except(RelayEvent.JOINED, payload, skip=connection_id),
            unicast(RelayEvent.JOINED_YOU, payload, to=connection_id),
        ]

    # -------------------------------------------------------------------------
    # Position Updates
    # -------------------------------------------------------------------------

    async def update(self, connection_id: str, position: Any) -> list[Emission]:
        """
        Overwrite a joined connection's position and relay it to everyone else.

        Last write wins. Updates from connections that have not joined, or
        with an unusable position, are dropped.
        """
        new_position = coerce_position(position)
        if new_position is None:
            logger.debug("Malformed position from %s dropped", connection_id)
            return []

        async with self._lock:
            conn = self._connections.get(connection_id)
            if conn is None or conn.state is None:
                logger.debug("Update from unjoined connection %s dropped", connection_id)
                return []
            conn.state.position = new_position

        return [broadcast_except(
            RelayEvent.UPDATE,
            {"id": connection_id, "position": new_position.to_dict()},
            skip=connection_id,
        )]

    # -------------------------------------------------------------------------
    # Respawn
    # -------------------------------------------------------------------------

    def _cooldown_remaining_ms(self, conn: Connection, now: float) -> float:
        if conn.last_respawn_at is None:
            return 0.0
        elapsed = now - conn.last_respawn_at
        return self.world.respawn_cooldown_ms - elapsed

    async def respawn(
        self,
        connection_id: str,
        spawn_index: Any = None,
        color: Any = None,
    ) -> tuple[Optional[RespawnResult], list[Emission]]:
        """
        Move a joined connection to a spawn point, at most once per cooldown
        window measured from the previous granted respawn.

        A valid color recolors the player; an invalid one keeps the current
        color. Denials leave state untouched.
        """
        async with self._lock:
            conn = self._connections.get(connection_id)
            if conn is None or conn.state is None:
                logger.debug("Respawn from unjoined connection %s ignored", connection_id)
                return None, []

            now = self.clock()
            remaining_ms = self._cooldown_remaining_ms(conn, now)
            if remaining_ms > 0:
                remaining = math.ceil(remaining_ms / 1000.0)
                denied = RespawnDenied(remaining=remaining)
            else:
                denied = None
                new_color = normalize_color(color)
                color_changed = new_color is not None and new_color != conn.state.color
                conn.state.position = self.world.pick_spawn(spawn_index, self.rng)
                if color_changed:
                    conn.state.color = new_color
                conn.last_respawn_at = now
                accepted = RespawnAccepted(
                    state=PlayerState(conn.state.position, conn.state.name, conn.state.color),
                    color_changed=color_changed,
                )
                state_payload = conn.state.to_dict()
                position_payload = conn.state.position.to_dict()

        if denied is not None:
            logger.debug("Respawn for %s denied, %ds remaining", connection_id, denied.remaining)
            return denied, [unicast(
                RelayEvent.RESPAWN_DENIED, {"remaining": denied.remaining}, to=connection_id,
            )]

        logger.info("Connection %s respawned", connection_id)
        emissions = [
            unicast(RelayEvent.JOINED_YOU, {"id": connection_id, "state": state_payload}, to=connection_id),
            broadcast_except(RelayEvent.UPDATE, {"id": connection_id, "position": position_payload}, skip=connection_id),
        ]
        if color_changed:
            emissions.append(broadcast_except(
                RelayEvent.META,
                {"id": connection_id, "meta": {"color": state_payload["color"]}},
                skip=connection_id,
            ))
        return accepted, emissions
