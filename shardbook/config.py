"""Runtime configuration for the reader application."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from typing_extensions import Final


ENV_PREFIX: Final[str] = "SHARDBOOK_"

# Roughly the per-origin allowance browsers give localStorage.
DEFAULT_QUOTA_BYTES: Final[int] = 5 * 1024 * 1024


@dataclass(frozen=True)
class ReaderConfig:
    """Settings resolved from ``SHARDBOOK_*`` variables and explicit overrides."""

    secret_key: str | None = None
    state_dir: Path = Path("reader_state")
    story_pack_path: Path | None = None
    quota_bytes: int | None = DEFAULT_QUOTA_BYTES
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 5000

    @classmethod
    def load(
        cls,
        overrides: Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "ReaderConfig":
        """Merge environment values with ``overrides``; overrides win."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in ("secret_key", "state_dir", "story_pack", "quota_bytes", "log_level", "host", "port"):
            raw = env.get(ENV_PREFIX + name.upper())
            if raw not in (None, ""):
                values[name] = raw
        values.update(overrides or {})

        quota = values.get("quota_bytes", DEFAULT_QUOTA_BYTES)
        story_pack = values.get("story_pack")
        return cls(
            secret_key=values.get("secret_key"),
            state_dir=Path(values.get("state_dir", "reader_state")),
            story_pack_path=Path(story_pack) if story_pack else None,
            quota_bytes=_optional_int(quota, "quota_bytes"),
            log_level=str(values.get("log_level", "INFO")).upper(),
            host=str(values.get("host", "127.0.0.1")),
            port=_optional_int(values.get("port", 5000), "port") or 5000,
        )


def _optional_int(value: Any, name: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{ENV_PREFIX}{name.upper()} must be an integer, got {value!r}.") from exc
    return number if number > 0 else None


__all__ = ["DEFAULT_QUOTA_BYTES", "ENV_PREFIX", "ReaderConfig"]
