"""Flask application serving the Shardbook reader pages."""

from __future__ import annotations

import logging
import random
import secrets
import uuid
from collections.abc import Callable, Mapping
from typing import Any, Optional

from flask import (
    Flask,
    Response,
    abort,
    current_app,
    g,
    jsonify,
    make_response,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from markupsafe import Markup

from .capture import capture_fragment
from .codes import CANONICAL_ORDER, CODES, is_code, normalize_code
from .config import ReaderConfig
from .layout import ChoiceElement, LayoutEngine
from .narrative_state import NarrativeStateRepository
from .pages import PageContext, PageMode, dispatch
from .puzzle import PuzzleEngine, PuzzleOutcome
from .reconstruct import NarrativeReconstructor
from .store import PersistentStore, ReaderFileMedium
from .story_pack import load_story_pack
from .transition import Transition, entry_controller, passage_controller


LOGGER = logging.getLogger(__name__)

VISITED_CLASS = "visited-choice"
SLOT_NAMES = tuple(f"slot{index:02d}" for index in range(1, len(CANONICAL_ORDER) + 1))


def create_app(
    config: Optional[Mapping[str, Any]] = None,
    story_pack: Optional[dict[str, Any]] = None,
) -> Flask:
    """Application factory for the reader."""
    settings = ReaderConfig.load(config)
    app = Flask(__name__)
    secret = settings.secret_key
    if not secret:
        LOGGER.warning("SHARDBOOK_SECRET_KEY not set; reader sessions end on restart.")
        secret = secrets.token_hex(32)
    app.secret_key = secret
    app.config["SHARDBOOK"] = settings
    app.config["STORY_PACK"] = story_pack or load_story_pack(settings.story_pack_path)

    @app.route("/")
    def start() -> str:
        return _render_page(PageContext.start())

    # Recording a visit changes state, so choices submit a form instead of
    # following a link that prefetchers could trigger.
    @app.post("/choose/<code>")
    def choose(code: str) -> Response:
        code = normalize_code(code)
        if not is_code(code):
            abort(404)
        seed = request.form.get("layout", type=int)
        elements = _start_elements(seed)
        chosen = next(element for element in elements if element.code == code)
        transition = entry_controller(_state()).select(elements, chosen)
        body = render_template(
            "start.html",
            pack=_pack(),
            choices=elements,
            seed=seed,
            transition=transition,
        )
        return _with_refresh(body, transition)

    @app.get("/fragment/<code>")
    def fragment(code: str) -> str:
        code = normalize_code(code)
        if not is_code(code):
            abort(404)
        return _render_page(PageContext.fragment(code))

    @app.route("/puzzle", methods=["GET", "POST"])
    def puzzle() -> str:
        return _render_page(PageContext.puzzle())

    @app.post("/reset")
    def reset() -> Response:
        _state().reset()
        return redirect(url_for("start"))

    @app.get("/passage/<pid>")
    def passage(pid: str) -> str:
        passage_entry, elements = _passage_elements(pid)
        return render_template(
            "passage.html", pack=_pack(), pid=pid, passage=passage_entry, choices=elements
        )

    @app.get("/passage/<pid>/go/<int:index>")
    def passage_go(pid: str, index: int) -> Response:
        passage_entry, elements = _passage_elements(pid)
        if not 0 <= index < len(elements):
            abort(404)
        transition = passage_controller().select(elements, elements[index])
        body = render_template(
            "passage.html",
            pack=_pack(),
            pid=pid,
            passage=passage_entry,
            choices=elements,
            transition=transition,
        )
        return _with_refresh(body, transition)

    @app.get("/api/state")
    def api_state() -> Response:
        return jsonify(_state().snapshot())

    return app


def _settings() -> ReaderConfig:
    return current_app.config["SHARDBOOK"]


def _pack() -> dict[str, Any]:
    return current_app.config["STORY_PACK"]


def _state() -> NarrativeStateRepository:
    """Return the narrative state of the reader making this request."""
    if "narrative_state" not in g:
        settings = _settings()
        reader_id = session.get("reader_id")
        medium: Optional[ReaderFileMedium] = None
        if isinstance(reader_id, str):
            try:
                medium = ReaderFileMedium(settings.state_dir, reader_id)
            except ValueError:
                LOGGER.warning("Discarding malformed reader id from session.")
        if medium is None:
            reader_id = uuid.uuid4().hex
            session["reader_id"] = reader_id
            session.permanent = True
            LOGGER.info("New reader %s.", reader_id)
            medium = ReaderFileMedium(settings.state_dir, reader_id)
        g.narrative_state = NarrativeStateRepository(
            PersistentStore(medium, settings.quota_bytes)
        )
    return g.narrative_state


def _start_elements(seed: Optional[int]) -> list[ChoiceElement]:
    """Lay out the choice cloud, then mark choices the reader already followed."""
    pack = _pack()
    elements = [
        ChoiceElement(
            label=pack["choices"][code],
            target=url_for("fragment", code=code),
            code=code,
        )
        for code in CODES
    ]
    rng = random.Random(seed) if seed is not None else random.Random()
    layout = pack["layout"]
    placed = LayoutEngine(rng).arrange(elements, layout["width"], layout["height"])
    visited = _state().get_visited()
    for element in placed:
        if element.code and visited.get(element.code):
            element.classes.add(VISITED_CLASS)
    return placed


def _render_start(context: PageContext) -> str:
    seed = random.getrandbits(32)
    return render_template(
        "start.html",
        pack=_pack(),
        choices=_start_elements(seed),
        seed=seed,
        transition=None,
    )


def _render_fragment(context: PageContext) -> str:
    container_html = _pack()["fragments"].get(context.code or "")
    capture_fragment(context, container_html, _state())
    return render_template(
        "fragment.html",
        pack=_pack(),
        code=context.code,
        text=Markup(container_html) if container_html else None,
    )


def _render_puzzle(context: PageContext) -> str:
    values = [""] * len(SLOT_NAMES)
    outcome: Optional[PuzzleOutcome] = None
    if request.method == "POST":
        values = [request.form.get(name, "") for name in SLOT_NAMES]
        state = _state()
        outcome = PuzzleEngine(state, NarrativeReconstructor(state)).submit(values)
    return render_template(
        "puzzle.html",
        pack=_pack(),
        slots=list(zip(SLOT_NAMES, values)),
        outcome=outcome,
    )


_PAGE_HANDLERS: Mapping[PageMode, Callable[[PageContext], str]] = {
    PageMode.START: _render_start,
    PageMode.FRAGMENT: _render_fragment,
    PageMode.PUZZLE: _render_puzzle,
}


def _render_page(context: PageContext) -> str:
    """Render whichever page kind ``context`` names."""
    return dispatch(context, _PAGE_HANDLERS) or ""


def _passage_elements(pid: str) -> tuple[dict[str, Any], list[ChoiceElement]]:
    passage_entry = _pack()["passages"].get(pid)
    if passage_entry is None:
        abort(404)
    elements = [
        ChoiceElement(label=choice["label"], target=choice["target"])
        for choice in passage_entry["choices"]
    ]
    return passage_entry, elements


def _with_refresh(body: str, transition: Optional[Transition]) -> Response:
    """Attach the delayed navigation of ``transition`` to the response."""
    response = make_response(body)
    if transition is not None:
        seconds = transition.delay_ms / 1000.0
        response.headers["Refresh"] = f"{seconds:g}; url={transition.target}"
    return response


def main() -> None:
    """Run the reader on Flask's development server."""
    settings = ReaderConfig.load()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    app.run(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()


__all__ = ["create_app", "main"]
