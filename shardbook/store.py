"""Best-effort persistence of reader state as JSON values."""

from __future__ import annotations

import copy
import json
import logging
import os
import re
import tempfile
from collections.abc import Iterable, Iterator, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import]


LOGGER = logging.getLogger(__name__)

_READER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


@dataclass(frozen=True)
class StoreError:
    """Describe why a write was dropped."""

    kind: str  # serialization | quota | unavailable
    message: str


@dataclass(frozen=True)
class StoreResult:
    """Outcome of a save or remove; callers are free to ignore it."""

    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


OK = StoreResult()


class ReaderFileMedium(MutableMapping[str, str]):
    """Hold one reader's raw key/value pairs in a YAML document on disk."""

    def __init__(self, root: Path, reader_id: str) -> None:
        if not _READER_ID_PATTERN.match(reader_id):
            raise ValueError(f"Invalid reader id '{reader_id}'.")
        self.path = Path(root) / f"{reader_id}.yaml"
        self._cache: Optional[dict[str, str]] = None

    def _read(self) -> dict[str, str]:
        if self._cache is not None:
            return self._cache
        data: Any = {}
        if self.path.exists():
            try:
                with self.path.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle) or {}
            except (OSError, yaml.YAMLError) as exc:
                LOGGER.warning("Reader state %s unreadable; starting empty: %s", self.path, exc)
                data = {}
        if not isinstance(data, dict):
            LOGGER.warning("Reader state %s is not a mapping; starting empty.", self.path)
            data = {}
        self._cache = {str(key): value for key, value in data.items() if isinstance(value, str)}
        return self._cache

    def _write(self, data: dict[str, str]) -> None:
        """Replace the reader document in one step; on failure the old one stays."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{self.path.stem}_", suffix=".tmp", dir=str(self.path.parent)
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                yaml.safe_dump(data, handle, sort_keys=True, allow_unicode=True)
            os.replace(temp_path, self.path)
        except (OSError, yaml.YAMLError) as exc:
            temp_path.unlink(missing_ok=True)
            if isinstance(exc, OSError):
                raise
            raise OSError(str(exc)) from exc
        self._cache = data

    def delete_many(self, keys: Iterable[str]) -> None:
        """Drop every key in ``keys`` with a single write."""
        dropped = set(keys)
        data = {key: value for key, value in self._read().items() if key not in dropped}
        self._write(data)

    def __getitem__(self, key: str) -> str:
        return self._read()[key]

    def __setitem__(self, key: str, value: str) -> None:
        data = dict(self._read())
        data[key] = value
        self._write(data)

    def __delitem__(self, key: str) -> None:
        data = dict(self._read())
        del data[key]
        self._write(data)

    def __iter__(self) -> Iterator[str]:
        return iter(dict(self._read()))

    def __len__(self) -> int:
        return len(self._read())


class PersistentStore:
    """Load, save and remove JSON values in an origin-scoped medium.

    ``load`` never raises and falls back to the caller's default when the
    stored value is absent or malformed. ``save`` and ``remove`` never raise
    either; a failed write is logged and reported through ``StoreResult``.
    """

    def __init__(
        self,
        medium: MutableMapping[str, str],
        quota_bytes: Optional[int] = None,
    ) -> None:
        self._medium = medium
        self._quota_bytes = quota_bytes

    def load(self, key: str, default: Any) -> Any:
        """Return the stored value for ``key`` or a copy of ``default``."""
        try:
            raw = self._medium.get(key)
        except OSError as exc:
            LOGGER.warning("Store read for %s failed: %s", key, exc)
            return copy.deepcopy(default)
        if not raw:
            return copy.deepcopy(default)
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            LOGGER.warning("Discarding malformed value stored under %s.", key)
            return copy.deepcopy(default)

    def save(self, key: str, value: Any) -> StoreResult:
        """Persist ``value`` under ``key`` if the medium accepts it."""
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            return self._dropped(key, StoreError("serialization", str(exc)))
        if self._quota_bytes is not None:
            used = self._usage(excluding=key) + len(key) + len(raw)
            if used > self._quota_bytes:
                return self._dropped(
                    key,
                    StoreError("quota", f"{used} bytes exceeds quota of {self._quota_bytes}"),
                )
        try:
            self._medium[key] = raw
        except OSError as exc:
            return self._dropped(key, StoreError("unavailable", str(exc)))
        return OK

    def remove(self, key: str) -> StoreResult:
        """Delete ``key``; removing an absent key succeeds."""
        try:
            self._medium.pop(key, None)
        except OSError as exc:
            return self._dropped(key, StoreError("unavailable", str(exc)))
        return OK

    def remove_all(self, keys: Iterable[str]) -> StoreResult:
        """Delete every key in ``keys`` together, or none of them."""
        names = list(keys)
        bulk = getattr(self._medium, "delete_many", None)
        try:
            if bulk is not None:
                bulk(names)
            else:
                for key in names:
                    self._medium.pop(key, None)
        except OSError as exc:
            return self._dropped(", ".join(names), StoreError("unavailable", str(exc)))
        return OK

    def _usage(self, excluding: str) -> int:
        try:
            return sum(
                len(key) + len(value)
                for key, value in self._medium.items()
                if key != excluding
            )
        except OSError:
            return 0

    @staticmethod
    def _dropped(key: str, error: StoreError) -> StoreResult:
        LOGGER.warning("Write to %s dropped (%s): %s", key, error.kind, error.message)
        return StoreResult(error)


__all__ = ["OK", "PersistentStore", "ReaderFileMedium", "StoreError", "StoreResult"]
