"""Fragment codes and the canonical story order."""

from __future__ import annotations

from typing import Optional

from typing_extensions import Final


CODES: Final[tuple[str, ...]] = tuple(f"{index:02d}" for index in range(1, 13))

# True chronological order of the story, step 1 through 12.
CANONICAL_ORDER: Final[tuple[str, ...]] = (
    "05",
    "10",
    "02",
    "07",
    "11",
    "04",
    "12",
    "08",
    "06",
    "01",
    "09",
    "03",
)


def normalize_code(value: Optional[str]) -> str:
    """Return the two-character form of a typed code, or an empty string."""
    text = (value or "").strip()
    if not text:
        return ""
    if len(text) == 1:
        text = "0" + text
    return text


def is_code(value: Optional[str]) -> bool:
    """Return True when the value is one of the twelve known codes."""
    return value in CODES


__all__ = ["CANONICAL_ORDER", "CODES", "is_code", "normalize_code"]
