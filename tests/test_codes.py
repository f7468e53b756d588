"""Tests for code normalisation and the canonical order."""

from __future__ import annotations

import pytest

from shardbook.codes import CANONICAL_ORDER, CODES, is_code, normalize_code


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("5", "05"), (" 07 ", "07"), ("", ""), ("   ", ""), (None, ""), ("12", "12"), ("13", "13")],
)
def test_normalize_code(raw: str | None, expected: str) -> None:
    """Single digits are padded, whitespace trimmed, blanks become empty."""
    assert normalize_code(raw) == expected


def test_canonical_order_is_permutation_of_codes() -> None:
    """The canonical order uses every code exactly once."""
    assert len(CANONICAL_ORDER) == 12
    assert sorted(CANONICAL_ORDER) == list(CODES)


def test_is_code_rejects_out_of_range() -> None:
    assert is_code("01")
    assert not is_code("1")
    assert not is_code("13")
    assert not is_code("")
