"""Narrative state tracking for a Shardbook reader."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .codes import is_code
from .store import OK, PersistentStore, StoreResult
from .store_keys import ALL_KEYS, ATTEMPTS_KEY, FRAGMENTS_KEY, VISITED_KEY


LOGGER = logging.getLogger(__name__)


@dataclass
class NarrativeStateRepository:
    """Track visited choices, captured fragments and failed puzzle attempts."""

    store: PersistentStore

    def get_visited(self) -> dict[str, bool]:
        """Return the visited set as a code-to-True mapping."""
        payload = self.store.load(VISITED_KEY, {"keys": {}})
        keys = payload.get("keys") if isinstance(payload, dict) else None
        if not isinstance(keys, dict):
            return {}
        return {str(code): True for code, seen in keys.items() if seen}

    def set_visited(self, visited: dict[str, bool]) -> StoreResult:
        return self.store.save(
            VISITED_KEY, {"keys": {code: True for code, seen in visited.items() if seen}}
        )

    def mark_visited(self, code: str) -> StoreResult:
        """Record that the reader followed the choice bearing ``code``."""
        visited = self.get_visited()
        visited[code] = True
        LOGGER.info("Choice %s marked visited.", code)
        return self.set_visited(visited)

    def get_fragments(self) -> dict[str, str]:
        """Return captured fragment text keyed by code."""
        payload = self.store.load(FRAGMENTS_KEY, {})
        if not isinstance(payload, dict):
            return {}
        return {
            str(code): text
            for code, text in payload.items()
            if isinstance(text, str) and text
        }

    def set_fragments(self, fragments: dict[str, str]) -> StoreResult:
        return self.store.save(FRAGMENTS_KEY, dict(fragments))

    def capture_fragment(self, code: str, text: str) -> StoreResult:
        """Store ``text`` for ``code``, replacing any earlier capture."""
        fragments = self.get_fragments()
        if fragments.get(code) == text:
            return OK
        fragments[code] = text
        LOGGER.info("Fragment %s captured (%d characters).", code, len(text))
        return self.set_fragments(fragments)

    def get_attempts(self) -> int:
        """Return the number of failed puzzle submissions since the last reset."""
        payload = self.store.load(ATTEMPTS_KEY, {"n": 0})
        count = payload.get("n") if isinstance(payload, dict) else None
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            return 0
        return count

    def set_attempts(self, count: int) -> StoreResult:
        return self.store.save(ATTEMPTS_KEY, {"n": max(0, int(count))})

    def increment_attempts(self) -> int:
        """Add one failed attempt and return the new count."""
        count = self.get_attempts() + 1
        self.set_attempts(count)
        return count

    def reset(self) -> StoreResult:
        """Clear every piece of reader state together."""
        result = self.store.remove_all(ALL_KEYS)
        if result.ok:
            LOGGER.info("Reader state reset.")
        return result

    def snapshot(self) -> dict[str, Any]:
        """Return a serialisable view of the current narrative state."""
        return {
            "visited": self.visited_list(),
            "fragments": sorted(self.get_fragments()),
            "attempts": self.get_attempts(),
        }

    def visited_list(self) -> list[str]:
        """Expose the visited codes sorted for readability."""
        return sorted(code for code in self.get_visited() if is_code(code))


__all__ = ["NarrativeStateRepository"]
