"""Integration tests for the reader pages."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from flask import Flask
from flask.testing import FlaskClient

from shardbook.codes import CANONICAL_ORDER
from shardbook.config import ReaderConfig
from shardbook.pages import PageContext
from shardbook.reader_app import SLOT_NAMES, _render_page, create_app


def _form(values: list[str]) -> dict[str, str]:
    return dict(zip(SLOT_NAMES, values))


def test_start_page_lists_every_choice(client: FlaskClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.data.count(b'data-code="') == 12
    assert b"--floatDelay" in response.data
    assert b"reset-marks" in response.data


def test_choose_marks_visited_and_refreshes(client: FlaskClient) -> None:
    """Selecting a choice records the visit and delays navigation by 0.8 s."""
    response = client.post("/choose/5", data={"layout": "7"})
    assert response.status_code == 200
    assert response.headers["Refresh"] == "0.8; url=/fragment/05"
    assert response.data.count(b'class="vanish"') == 11
    assert b'class="chosen"' in response.data

    state = client.get("/api/state").get_json()
    assert state["visited"] == ["05"]

    start = client.get("/")
    assert b'class="visited-choice"' in start.data


def test_choose_unknown_code_is_404(client: FlaskClient) -> None:
    assert client.post("/choose/13").status_code == 404
    assert client.get("/fragment/xx").status_code == 404


def test_fragment_page_captures_text(client: FlaskClient) -> None:
    response = client.get("/fragment/10")
    assert response.status_code == 200
    assert client.get("/api/state").get_json()["fragments"] == ["10"]


def test_placeholder_fragment_not_captured(tmp_path: Path, story_pack: dict[str, Any]) -> None:
    pack = dict(story_pack)
    pack["fragments"] = {"03": "【PASTE HERE】"}
    app = create_app(config={"secret_key": "k", "state_dir": str(tmp_path)}, story_pack=pack)
    with app.test_client() as testing_client:
        assert testing_client.get("/fragment/03").status_code == 200
        assert testing_client.get("/fragment/04").status_code == 200
        assert testing_client.get("/api/state").get_json()["fragments"] == []


def test_puzzle_unlock_reveals_narrative(client: FlaskClient) -> None:
    """A perfect order unlocks and shows the reconstructed story."""
    client.get("/fragment/05")
    response = client.post("/puzzle", data=_form(list(CANONICAL_ORDER)))
    body = response.get_data(as_text=True)
    assert "Accuracy: 100% — unlocked." in body
    assert "Ada Verne arrived at Gull Point" in body
    assert "[MISSING 10 — open that fragment page first]" in body
    assert client.get("/api/state").get_json()["attempts"] == 0


def test_three_failures_show_hints(client: FlaskClient) -> None:
    blank = _form([""] * 12)
    first = client.post("/puzzle", data=blank).get_data(as_text=True)
    assert "(Attempt 1/3)" in first
    assert 'class="bos-hint' not in first
    client.post("/puzzle", data=blank)
    third = client.post("/puzzle", data=blank).get_data(as_text=True)
    assert "hints enabled" in third
    assert len(re.findall(r'class="bos-hint no"', third)) == 12
    assert "Unlock requires ≥ 60%." in third


def test_reset_clears_state_and_reloads(client: FlaskClient) -> None:
    client.post("/choose/01")
    client.get("/fragment/01")
    client.post("/puzzle", data=_form([""] * 12))
    response = client.post("/reset")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/")
    assert client.get("/api/state").get_json() == {"visited": [], "fragments": [], "attempts": 0}


def test_state_is_per_reader(app: Flask) -> None:
    """Two browsers keep separate state."""
    with app.test_client() as first, app.test_client() as second:
        first.post("/choose/02")
        assert first.get("/api/state").get_json()["visited"] == ["02"]
        assert second.get("/api/state").get_json()["visited"] == []


def test_passage_variant_refreshes_after_one_second(client: FlaskClient) -> None:
    page = client.get("/passage/harbour")
    assert page.status_code == 200
    response = client.get("/passage/harbour/go/0")
    assert response.headers["Refresh"] == "1; url=/passage/clerk"
    assert b"scale(1.03)" in response.data
    assert client.get("/api/state").get_json()["visited"] == []


def test_unknown_passage_is_404(client: FlaskClient) -> None:
    assert client.get("/passage/nowhere").status_code == 404
    assert client.get("/passage/harbour/go/9").status_code == 404


def test_config_reads_environment() -> None:
    config = ReaderConfig.load(
        {"port": "8080"},
        environ={"SHARDBOOK_STATE_DIR": "/tmp/x", "SHARDBOOK_QUOTA_BYTES": "1024", "SHARDBOOK_PORT": "1"},
    )
    assert config.state_dir == Path("/tmp/x")
    assert config.quota_bytes == 1024
    assert config.port == 8080


def test_choose_requires_post(client: FlaskClient) -> None:
    """Following a plain link must not record a visit."""
    assert client.get("/choose/05").status_code == 405
    assert client.get("/api/state").get_json()["visited"] == []


def test_seeded_choose_keeps_start_layout(client: FlaskClient) -> None:
    """The vanish page redraws the choices where the start page placed them."""
    start = client.get("/").get_data(as_text=True)
    seed = re.search(r'name="layout" value="(\d+)"', start)
    assert seed is not None
    chosen = client.post("/choose/05", data={"layout": seed.group(1)}).get_data(as_text=True)
    start_style = re.search(r'style="([^"]*)"\s+data-code="05"', start)
    chosen_style = re.search(r'style="([^"]*)" data-code="05"', chosen)
    assert start_style is not None and chosen_style is not None
    assert start_style.group(1) in chosen_style.group(1)


def test_page_kinds_render_through_one_dispatch(app: Flask) -> None:
    with app.test_request_context("/"):
        assert "Shard 10" in _render_page(PageContext.fragment("10"))
        assert 'name="slot12"' in _render_page(PageContext.puzzle())
        assert 'data-code="01"' in _render_page(PageContext.start())
