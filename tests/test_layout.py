"""Tests for the randomised choice cloud layout."""

from __future__ import annotations

import random

from shardbook.codes import CODES
from shardbook.layout import ChoiceElement, LayoutEngine


def _choices() -> list[ChoiceElement]:
    return [ChoiceElement(label=f"Shard {code}", target=f"/fragment/{code}", code=code) for code in CODES]


def _px(value: str) -> int:
    assert value.endswith("px")
    return int(value[:-2])


def test_seeded_layout_is_reproducible() -> None:
    """The same seed produces the same order and placement."""
    first = LayoutEngine(random.Random(42)).arrange(_choices(), 920, 520)
    second = LayoutEngine(random.Random(42)).arrange(_choices(), 920, 520)
    assert [c.code for c in first] == [c.code for c in second]
    assert [c.style for c in first] == [c.style for c in second]


def test_shuffle_is_a_permutation() -> None:
    arranged = LayoutEngine(random.Random(3)).arrange(_choices())
    assert sorted(c.code for c in arranged) == list(CODES)


def test_positions_and_animation_within_bounds() -> None:
    """Coordinates and float parameters stay inside their ranges."""
    for seed in range(25):
        for choice in LayoutEngine(random.Random(seed)).arrange(_choices(), 920, 520):
            assert 0 <= _px(choice.style["left"]) < 640
            assert 0 <= _px(choice.style["top"]) < 460
            delay = float(choice.style["--floatDelay"].rstrip("s"))
            assert 0.0 <= delay <= 1.8
            assert 10 <= _px(choice.style["--floatAmp"]) <= 22


def test_unmeasured_container_uses_defaults() -> None:
    """A zero-size container falls back to the default 920x520 box."""
    for choice in LayoutEngine(random.Random(5)).arrange(_choices(), 0, 0):
        assert _px(choice.style["left"]) < 640
        assert _px(choice.style["top"]) < 460


def test_small_container_keeps_minimum_spread() -> None:
    for choice in LayoutEngine(random.Random(9)).arrange(_choices(), 100, 50):
        assert _px(choice.style["left"]) < 20
        assert _px(choice.style["top"]) < 40
