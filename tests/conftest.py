"""Pytest configuration shared by the Shardbook tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import pytest
from flask import Flask
from flask.testing import FlaskClient

from shardbook.narrative_state import NarrativeStateRepository
from shardbook.reader_app import create_app
from shardbook.store import PersistentStore
from shardbook.story_pack import load_story_pack
from shardbook.transition import ManualScheduler


@pytest.fixture()
def medium() -> dict[str, str]:
    """Raw in-memory medium standing in for the reader's storage."""
    return {}


@pytest.fixture()
def store(medium: dict[str, str]) -> PersistentStore:
    return PersistentStore(medium)


@pytest.fixture()
def state(store: PersistentStore) -> NarrativeStateRepository:
    return NarrativeStateRepository(store)


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def story_pack() -> dict[str, Any]:
    return load_story_pack()


@pytest.fixture()
def app(tmp_path: Path, story_pack: dict[str, Any]) -> Flask:
    application = create_app(
        config={"secret_key": "test-secret", "state_dir": str(tmp_path / "state")},
        story_pack=story_pack,
    )
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> Iterator[FlaskClient]:
    with app.test_client() as testing_client:
        yield testing_client
