"""Page identity and mode dispatch."""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Optional, TypeVar


T = TypeVar("T")


class PageMode(str, enum.Enum):
    """The three page kinds that activate reader behaviour."""

    START = "start"
    FRAGMENT = "fragment"
    PUZZLE = "puzzle"


@dataclass(frozen=True)
class PageContext:
    """Identify the page being served; built once per request."""

    mode: PageMode
    code: Optional[str] = None

    @classmethod
    def start(cls) -> "PageContext":
        return cls(PageMode.START)

    @classmethod
    def fragment(cls, code: Optional[str]) -> "PageContext":
        return cls(PageMode.FRAGMENT, code or None)

    @classmethod
    def puzzle(cls) -> "PageContext":
        return cls(PageMode.PUZZLE)


def dispatch(
    context: PageContext,
    handlers: Mapping[PageMode, Callable[[PageContext], T]],
) -> Optional[T]:
    """Run the single handler registered for the page's mode."""
    handler = handlers.get(context.mode)
    if handler is None:
        return None
    return handler(context)


__all__ = ["PageContext", "PageMode", "dispatch"]
