"""Reassembly of captured fragments into the full narrative."""

from __future__ import annotations

from collections.abc import Mapping

from markupsafe import Markup, escape

from .codes import CANONICAL_ORDER
from .narrative_state import NarrativeStateRepository


SEPARATOR = "\n\n"


def missing_placeholder(code: str) -> str:
    return f"[MISSING {code} — open that fragment page first]"


def reconstruct(fragments: Mapping[str, str]) -> str:
    """Join fragments in canonical order, naming every code not yet captured."""
    parts = [fragments.get(code) or missing_placeholder(code) for code in CANONICAL_ORDER]
    return SEPARATOR.join(parts)


def render_html(text: str) -> Markup:
    """Escape ``text`` for display and turn line breaks into ``<br>`` tags."""
    return Markup("<br>").join(escape(text).split("\n"))


class NarrativeReconstructor:
    """Build the full narrative from a reader's captured fragments."""

    def __init__(self, state: NarrativeStateRepository) -> None:
        self._state = state

    def text(self) -> str:
        return reconstruct(self._state.get_fragments())

    def html(self) -> Markup:
        return render_html(self.text())


__all__ = [
    "NarrativeReconstructor",
    "SEPARATOR",
    "missing_placeholder",
    "reconstruct",
    "render_html",
]
