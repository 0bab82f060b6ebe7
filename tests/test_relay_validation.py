"""
Tests for client input coercion.
"""

import random
import re

import pytest

from src.relay import (
    Vector3,
    normalize_color, random_color, resolve_color,
    parse_spawn_index, resolve_name, default_name,
    coerce_position,
)

HEX_COLOR = re.compile(r'^#[0-9a-fA-F]{6}$')


@pytest.mark.parametrize("raw, expected", [
    ("#ff8800", "#ff8800"),
    ("FF8800", "#ff8800"),
    ("  #AbCdEf ", "#abcdef"),
])
def test_normalize_color_accepts_six_hex_digits(raw, expected):
    assert normalize_color(raw) == expected


@pytest.mark.parametrize("raw", ["zzzzzz", "#fff", "#ff88001", "##ff8800", "", None, 0xff8800, ["#ff8800"]])
def test_normalize_color_rejects_everything_else(raw):
    assert normalize_color(raw) is None


def test_random_color_is_well_formed():
    rng = random.Random(7)
    for _ in range(200):
        assert HEX_COLOR.match(random_color(rng))


def test_resolve_color_falls_back_to_random():
    rng = random.Random(1)
    assert resolve_color("#123456", rng) == "#123456"
    fallback = resolve_color("zzzzzz", rng)
    assert HEX_COLOR.match(fallback)


def test_parse_spawn_index():
    assert parse_spawn_index(0, 4) == 0
    assert parse_spawn_index(3, 4) == 3
    assert parse_spawn_index("2", 4) == 2
    assert parse_spawn_index(4, 4) is None
    assert parse_spawn_index(-1, 4) is None
    assert parse_spawn_index("-1", 4) is None
    assert parse_spawn_index(1.0, 4) is None
    assert parse_spawn_index(True, 4) is None
    assert parse_spawn_index("north", 4) is None
    assert parse_spawn_index("\u00b2", 4) is None
    assert parse_spawn_index("\u0661", 4) is None
    assert parse_spawn_index("1" * 5000, 4) is None
    assert parse_spawn_index(None, 4) is None


def test_resolve_name():
    assert resolve_name("  Alice ", "abcdef123") == "Alice"
    assert resolve_name("", "abcdef123") == default_name("abcdef123")
    assert resolve_name("   ", "abcdef123") == "Player abcd"
    assert resolve_name(42, "abcdef123") == "Player abcd"
    assert resolve_name("x" * 100, "abcdef123", max_length=10) == "x" * 10


def test_coerce_position():
    assert coerce_position({"x": 1, "y": 2.5, "z": -3}) == Vector3(1.0, 2.5, -3.0)
    assert coerce_position({"x": 1, "y": 2}) is None
    assert coerce_position({"x": 1, "y": "2", "z": 3}) is None
    assert coerce_position({"x": True, "y": 0, "z": 0}) is None
    assert coerce_position({"x": float("nan"), "y": 0, "z": 0}) is None
    assert coerce_position([1, 2, 3]) is None
    assert coerce_position(None) is None
