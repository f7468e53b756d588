"""Capture of narrative text shown on fragment-reveal pages."""

from __future__ import annotations

import logging
import re
from typing import Optional

from markupsafe import Markup
from typing_extensions import Final

from .narrative_state import NarrativeStateRepository
from .pages import PageContext, PageMode


LOGGER = logging.getLogger(__name__)

# Text still carrying one of these markers has not been supplied by the author yet.
PLACEHOLDER_MARKERS: Final[tuple[str, ...]] = ("PASTE HERE", "【PASTE")


_LINE_BREAK = re.compile(r"<br\s*/?>|</(?:p|div|li|h[1-6])\s*>", re.IGNORECASE)


def rendered_text(container_html: str) -> str:
    """Return the visible text of a markup fragment, trimmed.

    Source newlines count as spaces; ``<br>`` and the end of a block element
    become line breaks.
    """
    source = container_html.replace("\r", " ").replace("\n", " ")
    lines = [Markup(part).striptags() for part in _LINE_BREAK.split(source)]
    return "\n".join(lines).strip()


def is_placeholder(text: str) -> bool:
    return any(marker in text for marker in PLACEHOLDER_MARKERS)


def capture_fragment(
    context: PageContext,
    container_html: Optional[str],
    state: NarrativeStateRepository,
) -> bool:
    """Store the page's narrative text under its code; return True on a write."""
    if context.mode is not PageMode.FRAGMENT or not context.code:
        return False
    if container_html is None:
        LOGGER.debug("Fragment page %s has no narrative container.", context.code)
        return False
    text = rendered_text(container_html)
    if not text:
        return False
    if is_placeholder(text):
        LOGGER.debug("Fragment %s still shows placeholder text; not captured.", context.code)
        return False
    state.capture_fragment(context.code, text)
    return True


__all__ = ["PLACEHOLDER_MARKERS", "capture_fragment", "is_placeholder", "rendered_text"]
