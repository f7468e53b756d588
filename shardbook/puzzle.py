"""Ordering puzzle verification with partial-credit unlock and hints."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional

from markupsafe import Markup
from typing_extensions import Final

from .codes import CANONICAL_ORDER, normalize_code
from .narrative_state import NarrativeStateRepository
from .reconstruct import NarrativeReconstructor


LOGGER = logging.getLogger(__name__)

UNLOCK_THRESHOLD: Final[float] = 0.60
HINT_AFTER_FAILURES: Final[int] = 3

STATUS_UNLOCKED: Final[str] = "unlocked"
STATUS_RETRY: Final[str] = "retry"
STATUS_HINTED: Final[str] = "hinted"


@dataclass(frozen=True)
class Score:
    """Positional comparison of one guess against the canonical order."""

    guess: tuple[str, ...]
    matches: tuple[bool, ...]

    @property
    def correct_count(self) -> int:
        return sum(self.matches)

    @property
    def accuracy(self) -> float:
        return self.correct_count / len(CANONICAL_ORDER)

    @property
    def accuracy_percent(self) -> int:
        return math.floor(self.accuracy * 100 + 0.5)

    @property
    def unlocks(self) -> bool:
        return self.accuracy >= UNLOCK_THRESHOLD


@dataclass(frozen=True)
class Hint:
    position: int
    correct: bool

    @property
    def label(self) -> str:
        return f"{self.position:02d}{'✓' if self.correct else '·'}"


@dataclass
class PuzzleOutcome:
    """Everything the puzzle page needs to render feedback."""

    status: str
    score: Score
    attempts: int
    hints: list[Hint] = field(default_factory=list)
    narrative: Optional[Markup] = None

    @property
    def accuracy_percent(self) -> int:
        return self.score.accuracy_percent

    @property
    def message(self) -> str:
        percent = self.accuracy_percent
        if self.status == STATUS_UNLOCKED:
            return f"Accuracy: {percent}% — unlocked."
        if self.status == STATUS_RETRY:
            return (
                f"Accuracy: {percent}% — try again. "
                f"(Attempt {self.attempts}/{HINT_AFTER_FAILURES})"
            )
        return f"Accuracy: {percent}% — hints enabled."

    @property
    def reminder(self) -> Optional[str]:
        if self.status != STATUS_HINTED:
            return None
        return f"Unlock requires ≥ {math.floor(UNLOCK_THRESHOLD * 100 + 0.5)}%."


def score_guess(values: Sequence[Optional[str]]) -> Score:
    """Normalise up to twelve typed codes and compare them position by position."""
    slots = list(values[: len(CANONICAL_ORDER)])
    slots.extend([""] * (len(CANONICAL_ORDER) - len(slots)))
    guess = tuple(normalize_code(value) for value in slots)
    matches = tuple(
        bool(typed) and typed == expected for typed, expected in zip(guess, CANONICAL_ORDER)
    )
    return Score(guess, matches)


class PuzzleEngine:
    """Score submissions and drive the failed-attempt counter."""

    def __init__(
        self,
        state: NarrativeStateRepository,
        reconstructor: Optional[NarrativeReconstructor] = None,
    ) -> None:
        self._state = state
        self._reconstructor = reconstructor or NarrativeReconstructor(state)

    def submit(self, values: Sequence[Optional[str]]) -> PuzzleOutcome:
        """Evaluate one submission of the twelve ordered inputs."""
        score = score_guess(values)
        if score.unlocks:
            attempts = self._state.get_attempts()
            LOGGER.info(
                "Puzzle unlocked at %d%% (%d/%d correct).",
                score.accuracy_percent,
                score.correct_count,
                len(CANONICAL_ORDER),
            )
            return PuzzleOutcome(
                STATUS_UNLOCKED,
                score,
                attempts,
                narrative=self._reconstructor.html(),
            )

        attempts = self._state.increment_attempts()
        LOGGER.info(
            "Puzzle attempt %d failed at %d%%.", attempts, score.accuracy_percent
        )
        if attempts < HINT_AFTER_FAILURES:
            return PuzzleOutcome(STATUS_RETRY, score, attempts)
        hints = [Hint(index, ok) for index, ok in enumerate(score.matches, start=1)]
        return PuzzleOutcome(STATUS_HINTED, score, attempts, hints=hints)


__all__ = [
    "HINT_AFTER_FAILURES",
    "Hint",
    "PuzzleEngine",
    "PuzzleOutcome",
    "STATUS_HINTED",
    "STATUS_RETRY",
    "STATUS_UNLOCKED",
    "Score",
    "UNLOCK_THRESHOLD",
    "score_guess",
]
