"""
Input Coercion

Client payloads are never rejected. Every field is either accepted as-is,
normalized, or replaced by a safe default.
"""

import math
import random
import re
from typing import Any, Mapping, Optional

from .types import Vector3


_COLOR_RE = re.compile(r'^#?([0-9a-fA-F]{6})$')

DEFAULT_NAME_PREFIX = "Player"


def normalize_color(value: Any) -> Optional[str]:
    """Return `#rrggbb` for a 6-hex-digit color (with or without `#`), else None."""
    if not isinstance(value, str):
        return None
    match = _COLOR_RE.match(value.strip())
    if not match:
        return None
    return "#" + match.group(1).lower()


def random_color(rng: random.Random) -> str:
    return "#{:06x}".format(rng.randrange(0x1000000))


def resolve_color(value: Any, rng: random.Random) -> str:
    """Normalized requested color, or a random one if it is missing or malformed."""
    return normalize_color(value) or random_color(rng)


_MAX_INDEX_DIGITS = 9


def coerce_index(value: Any) -> Optional[int]:
    """
    Read an integer index from an int or a short ASCII digit string.

    Bools, floats, signs, non-ASCII digits and overlong strings yield None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        if value.isascii() and value.isdigit() and len(value) <= _MAX_INDEX_DIGITS:
            return int(value)
    return None


def parse_spawn_index(value: Any, count: int) -> Optional[int]:
    """
    Validate a requested spawn index against a list of `count` spawn points.

    Negative and out-of-range values yield None as well.
    """
    value = coerce_index(value)
    if value is None:
        return None
    if 0 <= value < count:
        return value
    return None


def default_name(connection_id: str) -> str:
    return f"{DEFAULT_NAME_PREFIX} {connection_id[:4]}"


def resolve_name(value: Any, connection_id: str, max_length: int = 32) -> str:
    """Requested display name if it is a non-empty string, else one derived from the id."""
    if isinstance(value, str):
        name = value.strip()[:max_length].strip()
        if name:
            return name
    return default_name(connection_id)


def _coerce_component(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


def coerce_position(value: Any) -> Optional[Vector3]:
    """
    Build a Vector3 from an `{x, y, z}` mapping.

    Returns None unless all three components are finite numbers, so a
    position is never applied partially.
    """
    if isinstance(value, Vector3):
        return value
    if not isinstance(value, Mapping):
        return None
    components = [_coerce_component(value.get(axis)) for axis in ("x", "y", "z")]
    if any(c is None for c in components):
        return None
    x, y, z = components
    return Vector3(x=x, y=y, z=z)
