"""Utilities for loading and validating the story pack served to readers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import]

from .codes import CODES, is_code, normalize_code

STORY_PACK_PATH = Path(__file__).resolve().parent / "story_pack.yaml"


def load_story_pack(path: Path | None = None) -> dict[str, Any]:
    """Load the story pack from disk, filling defaults for absent sections."""
    target = path or STORY_PACK_PATH
    if not target.exists():
        return _with_defaults({})
    with target.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError("Story pack file must contain a mapping.")
    return _with_defaults(data)


def _with_defaults(data: dict[str, Any]) -> dict[str, Any]:
    pack = dict(data)
    pack.setdefault("title", "Shardbook")
    pack["choices"] = _code_mapping(pack.get("choices"), "choices")
    pack["fragments"] = _code_mapping(pack.get("fragments"), "fragments")
    pack["passages"] = _passages(pack.get("passages"))
    layout = _ensure_mapping(pack.get("layout"), "layout")
    pack["layout"] = {
        "width": _positive_int(layout.get("width"), 920),
        "height": _positive_int(layout.get("height"), 520),
    }
    for code in CODES:
        pack["choices"].setdefault(code, f"Shard {code}")
    return pack


def _code_mapping(value: Any, section: str) -> dict[str, str]:
    entries = _ensure_mapping(value, section)
    normalised: dict[str, str] = {}
    unknown: list[str] = []
    for raw_code, text in entries.items():
        code = normalize_code(str(raw_code))
        if not is_code(code):
            unknown.append(str(raw_code))
            continue
        normalised[code] = "" if text is None else str(text)
    if unknown:
        raise ValueError(f"Unknown codes in {section}: " + ", ".join(unknown))
    return normalised


def _passages(value: Any) -> dict[str, dict[str, Any]]:
    entries = _ensure_mapping(value, "passages")
    passages: dict[str, dict[str, Any]] = {}
    for passage_id, body in entries.items():
        entry = _ensure_mapping(body, f"passage '{passage_id}'")
        choices = entry.get("choices") or []
        if not isinstance(choices, Sequence) or isinstance(choices, str):
            raise ValueError(f"Choices of passage '{passage_id}' must be a list.")
        parsed: list[dict[str, str | None]] = []
        for choice in choices:
            choice_map = _ensure_mapping(choice, f"choice in passage '{passage_id}'")
            label = choice_map.get("label")
            if not label:
                raise ValueError(f"Every choice in passage '{passage_id}' needs a label.")
            target = choice_map.get("target")
            parsed.append({"label": str(label), "target": str(target) if target else None})
        passages[str(passage_id)] = {"text": str(entry.get("text") or ""), "choices": parsed}
    return passages


def _ensure_mapping(candidate: Any, section: str) -> dict[str, Any]:
    if candidate is None:
        return {}
    if not isinstance(candidate, Mapping):
        raise ValueError(f"Story pack section '{section}' must be a mapping.")
    return dict(candidate)


def _positive_int(value: Any, fallback: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return fallback
    return number if number > 0 else fallback


__all__ = ["STORY_PACK_PATH", "load_story_pack"]
