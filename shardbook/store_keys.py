"""Persistent store keys shared by every Shardbook component.

This module defines a single source of truth for the key names under which
reader state is persisted. The version suffix lets a later shape change live
beside older data without misreading it.
"""

from __future__ import annotations

from typing_extensions import Final


PREFIX: Final[str] = "shardbook"

VISITED_KEY: Final[str] = f"{PREFIX}_visited_keys_v1"
FRAGMENTS_KEY: Final[str] = f"{PREFIX}_fragments_v1"
ATTEMPTS_KEY: Final[str] = f"{PREFIX}_puzzle_attempts_v1"

ALL_KEYS: Final[tuple[str, ...]] = (VISITED_KEY, FRAGMENTS_KEY, ATTEMPTS_KEY)


__all__ = [
    "ALL_KEYS",
    "ATTEMPTS_KEY",
    "FRAGMENTS_KEY",
    "PREFIX",
    "VISITED_KEY",
]
