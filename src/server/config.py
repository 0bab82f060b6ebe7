"""
Relay Server Configuration

Settings read from the environment at startup.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging
import os

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not an integer), using %d", name, raw, default)
        return default


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not an integer)", name, raw)
        return None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class RelayConfig:
    """Configuration for the relay server."""

    # Network
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # World
    map_file: Optional[str] = None
    respawn_cooldown_ms: Optional[int] = None  # overrides the map's value when set

    # Player rules
    auto_join: bool = False
    max_name_length: int = 32

    # Logging
    log_level: str = "INFO"
    socketio_logger: bool = False

    @classmethod
    def from_env(cls) -> 'RelayConfig':
        """Create config from environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            host=os.environ.get("RELAY_HOST", defaults.host),
            port=_env_int("RELAY_PORT", _env_int("PORT", defaults.port)),
            cors_origins=_env_list("RELAY_CORS_ORIGINS", defaults.cors_origins),
            map_file=os.environ.get("RELAY_MAP_FILE") or None,
            respawn_cooldown_ms=_env_optional_int("RELAY_RESPAWN_COOLDOWN_MS"),
            auto_join=_env_bool("RELAY_AUTO_JOIN", defaults.auto_join),
            max_name_length=max(1, _env_int("RELAY_MAX_NAME_LENGTH", defaults.max_name_length)),
            log_level=os.environ.get("RELAY_LOG_LEVEL", defaults.log_level).upper(),
            socketio_logger=_env_bool("RELAY_SOCKETIO_LOGGER", defaults.socketio_logger),
        )

    @property
    def cors_allowed_origins(self):
        """Value for socketio.AsyncServer(cors_allowed_origins=...)."""
        if self.cors_origins == ["*"]:
            return "*"
        return self.cors_origins


def configure_logging(level: str = "INFO") -> None:
    """Install a basic log format for the relay process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
