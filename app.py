# /// script
# requires-python = ">=3.12"
# dependencies = ["flask>=3.0", "pydantic>=2.0"]
# ///
"""JSON API for live game scoring.

Wraps the scoring engine, play log and document store behind HTTP routes
for the scorer panel, scoreboard overlay and box score.  Live views follow
a game through the server-sent events stream.

Every response uses the same envelope::

    {"status": "ok", "data": {...}}
    {"status": "error", "error_code": "<CODE>", "message": "...", "details": [...]}

Write routes require the ``X-Scorer-Token`` header when
``SCORER_ADMIN_TOKEN`` is set.

Usage:
    uv run app.py --port 5050 --store json
"""

from __future__ import annotations

import functools
import hmac
import json
import logging
import os
import queue
from typing import Any, Iterator

from flask import Flask, Response, jsonify, request
from pydantic import ValidationError

import config
import scoring
from box_score import generate_box_score
from game_state import GameStateDocument
from models import GameState, PlayEvent, RosterSide
from play_log import PlayLog
from roster import RosterBook, find_player
from scorer import PersistenceError, apply_correction, record_play, undo_play
from scoring import InvalidTransitionError
from store import DocumentNotFoundError, DocumentStore, InvalidPathError, StoreError
from validation import (
    CorrectionRequest,
    InitGameRequest,
    PlayRequest,
    RosterRequest,
    error_details,
)

logger = logging.getLogger(__name__)

SCORER_TOKEN_HEADER = "X-Scorer-Token"
STREAM_KEEPALIVE = 30  # seconds

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = Flask(__name__)

_store: DocumentStore | None = None


def get_store() -> DocumentStore:
    """Return (and lazily create) the configured document store."""
    global _store
    if _store is None:
        _store = config.create_document_store()
    return _store


def set_store(store: DocumentStore | None) -> None:
    """Override the document store (useful for testing)."""
    global _store
    _store = store


# ---------------------------------------------------------------------------
# Response envelope
# ---------------------------------------------------------------------------

def success_response(data: Any, status: int = 200) -> tuple[Response, int]:
    return jsonify({"status": "ok", "data": data}), status


def error_response(error_code: str, message: str, status: int,
                   details: list[dict] | None = None) -> tuple[Response, int]:
    body: dict[str, Any] = {
        "status": "error",
        "error_code": error_code,
        "message": message,
    }
    if details:
        body["details"] = details
    return jsonify(body), status


@app.errorhandler(ValidationError)
def handle_validation_error(exc: ValidationError):
    details = error_details(exc)
    logger.warning("Rejected request to %s: %s", request.path, "; ".join(str(d) for d in details))
    return error_response("INVALID_REQUEST", f"{len(details)} invalid parameter(s)", 400,
                          [d.to_dict() for d in details])


@app.errorhandler(InvalidTransitionError)
def handle_invalid_transition(exc: InvalidTransitionError):
    return error_response("INVALID_TRANSITION", str(exc), 400)


@app.errorhandler(InvalidPathError)
def handle_invalid_path(exc: InvalidPathError):
    return error_response("INVALID_PATH", str(exc), 400)


@app.errorhandler(DocumentNotFoundError)
def handle_not_found(exc: DocumentNotFoundError):
    return error_response("NOT_FOUND", str(exc), 404)


@app.errorhandler(PersistenceError)
def handle_persistence_error(exc: PersistenceError):
    return error_response("PERSISTENCE_FAILED", str(exc), 502,
                          [{"write": k, "error": str(v)} for k, v in exc.failures.items()])


@app.errorhandler(StoreError)
def handle_store_error(exc: StoreError):
    logger.error("Store error on %s: %s", request.path, exc)
    return error_response("STORE_ERROR", str(exc), 500)


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------

def require_scorer(view):
    """Reject writes without the scorer token, when one is configured."""
    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        expected = config.get_admin_token()
        if expected:
            supplied = request.headers.get(SCORER_TOKEN_HEADER, "")
            if not hmac.compare_digest(supplied.encode(), expected.encode()):
                logger.warning("Unauthorized scorer request to %s", request.path)
                return error_response("FORBIDDEN", "Scorer token missing or invalid", 403)
        return view(*args, **kwargs)
    return wrapper


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _game(game_id: str) -> tuple[GameStateDocument, PlayLog]:
    store = get_store()
    return GameStateDocument(store, game_id), PlayLog(store, game_id)


def _require_state(game_doc: GameStateDocument) -> GameState:
    state = game_doc.get()
    if state is None:
        raise DocumentNotFoundError(
            f"Game {game_doc.game_id} has no scoring state yet", path=game_doc.path,
        )
    return state


def _event_dict(event: PlayEvent, include_snapshot: bool = False) -> dict[str, Any]:
    exclude = None if include_snapshot else {"prev_game_state"}
    return event.model_dump(by_alias=True, mode="json", exclude=exclude)


def _side(side: str) -> RosterSide:
    try:
        return RosterSide(side)
    except ValueError as exc:
        raise InvalidPathError(f"Unknown roster side: {side!r}", path=side) from exc


# ---------------------------------------------------------------------------
# Scoring routes
# ---------------------------------------------------------------------------

@app.route("/api/games/<game_id>/scoring/init", methods=["POST"])
@require_scorer
def api_init_game(game_id: str):
    req = InitGameRequest.model_validate(_body())
    game_doc, _ = _game(game_id)
    state = game_doc.init(req.home_team, req.away_team)
    return success_response({"state": state.to_document()})


@app.route("/api/games/<game_id>/scoring/state")
def api_game_state(game_id: str):
    game_doc, _ = _game(game_id)
    state = game_doc.get()
    # No state yet is not an error; clients fall back to defaults.
    return success_response({"state": state.to_document() if state else None})


@app.route("/api/games/<game_id>/scoring/plays", methods=["GET"])
def api_list_plays(game_id: str):
    _, play_log = _game(game_id)
    include_snapshot = request.args.get("snapshots") in ("1", "true")
    events = [_event_dict(e, include_snapshot) for e in play_log.events()]
    return success_response({"plays": events})


@app.route("/api/games/<game_id>/scoring/plays", methods=["POST"])
@require_scorer
def api_record_play(game_id: str):
    req = PlayRequest.model_validate(_body())
    game_doc, play_log = _game(game_id)
    state = _require_state(game_doc)

    roster = RosterBook(get_store(), game_id).get()
    batter = find_player(roster.side(state.batting_side), req.batter_id)
    pitcher = find_player(roster.side(state.fielding_side), req.pitcher_id)

    patch = scoring.apply_action(state, req.action, batter_id=req.batter_id, **req.action_options())
    commit = record_play(
        game_doc,
        play_log,
        state,
        patch,
        pitch_type=req.pitch_type,
        batter_name=batter.name if batter else None,
        pitcher_name=pitcher.name if pitcher else None,
    )
    return success_response({
        "play_id": commit.play_id,
        "result": commit.event.result,
        "state": commit.state.to_document(),
    }, 201)


@app.route("/api/games/<game_id>/scoring/undo", methods=["POST"])
@require_scorer
def api_undo(game_id: str):
    game_doc, play_log = _game(game_id)
    restored = undo_play(game_doc, play_log)
    state = game_doc.get()
    return success_response({
        "undone": restored is not None,
        "state": state.to_document() if state else None,
    })


@app.route("/api/games/<game_id>/scoring/adjust", methods=["POST"])
@require_scorer
def api_adjust(game_id: str):
    req = CorrectionRequest.model_validate(_body())
    game_doc, _ = _game(game_id)
    state = _require_state(game_doc)
    new_state = apply_correction(game_doc, state, req.correction, **req.correction_options())
    return success_response({"state": new_state.to_document()})


@app.route("/api/games/<game_id>/scoring/boxscore")
def api_box_score(game_id: str):
    game_doc, play_log = _game(game_id)
    state = _require_state(game_doc)
    roster = RosterBook(get_store(), game_id).get()
    box = generate_box_score(state, play_log.events(), {"home": roster.home, "away": roster.away})
    return success_response(box)


def stream_game(game_doc: GameStateDocument, play_log: PlayLog,
                keepalive: float = STREAM_KEEPALIVE) -> Iterator[str]:
    """Yield server-sent events for every state and play-log change.

    Subscriptions are released when the generator is closed.
    """
    q: queue.Queue = queue.Queue()
    unsubscribes = [
        game_doc.subscribe(lambda s: q.put({
            "event": "state",
            "data": {"state": s.to_document() if s else None},
        })),
        play_log.subscribe(lambda events: q.put({
            "event": "plays",
            "data": {"plays": [_event_dict(e) for e in events]},
        })),
    ]
    try:
        while True:
            try:
                msg = q.get(timeout=keepalive)
            except queue.Empty:
                # Send keepalive
                yield ":\n\n"
                continue
            yield f"event: {msg['event']}\ndata: {json.dumps(msg['data'])}\n\n"
    finally:
        for unsubscribe in unsubscribes:
            unsubscribe()


@app.route("/api/games/<game_id>/scoring/stream")
def api_stream(game_id: str):
    game_doc, play_log = _game(game_id)
    return Response(
        stream_game(game_doc, play_log),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


# ---------------------------------------------------------------------------
# Roster routes
# ---------------------------------------------------------------------------

@app.route("/api/games/<game_id>/roster/<side>", methods=["GET"])
def api_get_roster(game_id: str, side: str):
    roster = RosterBook(get_store(), game_id).get()
    players = roster.side(_side(side))
    return success_response({
        "side": side,
        "players": [p.model_dump(by_alias=True, mode="json", exclude_none=True) for p in players],
    })


@app.route("/api/games/<game_id>/roster/<side>", methods=["PUT"])
@require_scorer
def api_save_roster(game_id: str, side: str):
    req = RosterRequest.model_validate(_body())
    RosterBook(get_store(), game_id).save(_side(side), req.players)
    return success_response({"side": side, "count": len(req.players)})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Live game scoring API.")
    parser.add_argument(
        "--port", type=int, default=int(os.environ.get("PORT", 5050)),
        help="Port to listen on (default 5050)",
    )
    parser.add_argument(
        "--store", choices=config.STORE_BACKENDS, default=None,
        help=f"Document store backend (default from {config.STORE_BACKEND_ENV})",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Run Flask in debug mode",
    )
    args = parser.parse_args()

    if args.store:
        os.environ[config.STORE_BACKEND_ENV] = args.store

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    app.run(debug=args.debug, host="0.0.0.0", port=args.port, threaded=True)
