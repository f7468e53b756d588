"""Randomised placement of the entry page choices."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Optional, Sequence

from typing_extensions import Final


LOGGER = logging.getLogger(__name__)

DEFAULT_WIDTH: Final[int] = 920
DEFAULT_HEIGHT: Final[int] = 520
MAX_FLOAT_DELAY_S: Final[float] = 1.8
MIN_FLOAT_AMP_PX: Final[int] = 10
FLOAT_AMP_RANGE_PX: Final[int] = 12


@dataclass
class ChoiceElement:
    """An interactive choice with its presentation state."""

    label: str
    target: Optional[str]
    code: Optional[str] = None
    classes: set[str] = field(default_factory=set)
    style: dict[str, str] = field(default_factory=dict)
    disabled: bool = False

    def class_attr(self) -> str:
        return " ".join(sorted(self.classes))

    def style_attr(self) -> str:
        return "; ".join(f"{name}: {value}" for name, value in self.style.items())


class LayoutEngine:
    """Shuffle choices and scatter them across the choice cloud."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def shuffle(self, elements: Sequence[ChoiceElement]) -> list[ChoiceElement]:
        """Return a Fisher-Yates shuffled copy of ``elements``."""
        items = list(elements)
        for i in range(len(items) - 1, 0, -1):
            j = math.floor(self._rng.random() * (i + 1))
            items[i], items[j] = items[j], items[i]
        return items

    def arrange(
        self,
        elements: Sequence[ChoiceElement],
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> list[ChoiceElement]:
        """Shuffle the choices, then assign position and float animation to each."""
        items = self.shuffle(elements)
        box_w = width or DEFAULT_WIDTH
        box_h = height or DEFAULT_HEIGHT
        span_x = max(20, box_w - 280)
        span_y = max(40, box_h - 60)
        for element in items:
            x = math.floor(self._rng.random() * span_x)
            y = math.floor(self._rng.random() * span_y)
            delay = self._rng.random() * MAX_FLOAT_DELAY_S
            amp = MIN_FLOAT_AMP_PX + self._rng.random() * FLOAT_AMP_RANGE_PX
            element.style["left"] = f"{x}px"
            element.style["top"] = f"{y}px"
            element.style["--floatDelay"] = f"{delay:.2f}s"
            # Rounded half-up to a whole pixel, so the upper bound may print as 22px.
            element.style["--floatAmp"] = f"{math.floor(amp + 0.5)}px"
        LOGGER.debug("Arranged %d choices in a %dx%d cloud.", len(items), box_w, box_h)
        return items


__all__ = ["ChoiceElement", "DEFAULT_HEIGHT", "DEFAULT_WIDTH", "LayoutEngine"]
