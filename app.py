from __future__ import annotations

import logging
import os
import threading
import uuid
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request

from game import (
    Animator,
    BoardController,
    GameConfig,
    ImmediateAnimator,
    Layout,
    ScheduledAnimator,
    Scheduler,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)

# In-memory only: games vanish with the process.
_GAMES: Dict[str, BoardController] = {}
_GAMES_LOCK = threading.Lock()
MAX_GAMES = int(os.getenv("ICEWALK_MAX_GAMES", "256"))


def _base_config() -> GameConfig:
    return GameConfig.from_env()


def state_to_json(game: BoardController, game_id: Optional[str] = None) -> Dict[str, Any]:
    out = game.snapshot()
    if game_id is not None:
        out["gameId"] = game_id
    return out


def _new_controller(body: Dict[str, Any]) -> BoardController:
    overrides = dict(body.get("config") or {})
    if "seed" in body:
        overrides["seed"] = body["seed"]
    if "size" in body:
        overrides["board_size"] = body["size"]
    config = GameConfig.from_mapping(overrides, base=_base_config())
    scheduler = Scheduler()
    animator: Animator
    if bool(body.get("animate", False)):
        animator = ScheduledAnimator(scheduler, step_duration=config.step_duration)
    else:
        animator = ImmediateAnimator()
    game = BoardController(config=config, scheduler=scheduler, animator=animator)
    game.start()
    if body.get("layout") is not None:
        game.load_layout(Layout.from_mapping(body["layout"]))
    return game


def _lookup(game_id: str) -> Tuple[Optional[BoardController], Any]:
    game = _GAMES.get(game_id)
    if game is None:
        return None, (jsonify({"ok": False, "error": f"unknown game: {game_id}"}), 404)
    return game, None


def _json_body() -> Dict[str, Any]:
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


def _int_field(body: Dict[str, Any], key: str) -> int:
    if key not in body:
        raise ValueError(f"{key} required")
    return int(body[key])


# ---------- Game API ----------

@app.get("/api/health")
def api_health() -> Any:
    return jsonify({"ok": True, "games": len(_GAMES)})


@app.post("/api/new")
def api_new() -> Any:
    body = _json_body()
    try:
        game = _new_controller(body)
    except (TypeError, ValueError) as e:
        return jsonify({"ok": False, "error": f"bad config: {e}"}), 400
    game_id = uuid.uuid4().hex
    with _GAMES_LOCK:
        if len(_GAMES) >= MAX_GAMES:
            # Drop the oldest game; dicts keep insertion order.
            stale = next(iter(_GAMES))
            del _GAMES[stale]
            logger.info("Dropped game %s to make room", stale)
        _GAMES[game_id] = game
        state = state_to_json(game, game_id)
    logger.info("Game %s created (size=%d seed=%s)", game_id, game.config.board_size, game.config.seed)
    return jsonify({"ok": True, "gameId": game_id, "state": state})


@app.get("/api/games/<game_id>")
def api_state(game_id: str) -> Any:
    game, err = _lookup(game_id)
    if game is None:
        return err
    with _GAMES_LOCK:
        state = state_to_json(game, game_id)
    return jsonify({"ok": True, "state": state})


@app.post("/api/games/<game_id>/creature")
def api_creature(game_id: str) -> Any:
    game, err = _lookup(game_id)
    if game is None:
        return err
    body = _json_body()
    try:
        creature_id = _int_field(body, "id")
    except (TypeError, ValueError) as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    with _GAMES_LOCK:
        accepted = game.creature_activated(creature_id)
        state = state_to_json(game, game_id)
    return jsonify({"ok": True, "accepted": accepted, "state": state})


@app.get("/api/games/<game_id>/creatures/<int:creature_id>/moves")
def api_moves(game_id: str, creature_id: int) -> Any:
    game, err = _lookup(game_id)
    if game is None:
        return err
    with _GAMES_LOCK:
        moves = game.valid_moves(creature_id)
    return jsonify({"ok": True, "id": creature_id, "moves": [[r, c] for r, c in moves]})


@app.post("/api/games/<game_id>/cell")
def api_cell(game_id: str) -> Any:
    game, err = _lookup(game_id)
    if game is None:
        return err
    body = _json_body()
    try:
        row = _int_field(body, "row")
        col = _int_field(body, "col")
    except (TypeError, ValueError) as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    with _GAMES_LOCK:
        accepted = game.cell_activated(row, col)
        state = state_to_json(game, game_id)
    return jsonify({"ok": True, "accepted": accepted, "state": state})


@app.post("/api/games/<game_id>/tick")
def api_tick(game_id: str) -> Any:
    game, err = _lookup(game_id)
    if game is None:
        return err
    body = _json_body()
    try:
        seconds = float(body.get("seconds", 0.0))
        if seconds < 0:
            raise ValueError("seconds must be non-negative")
    except (TypeError, ValueError) as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    with _GAMES_LOCK:
        fired = game.scheduler.advance(seconds)
        state = state_to_json(game, game_id)
    return jsonify({"ok": True, "fired": fired, "state": state})


# Entrypoint for "python app.py"
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    debug = os.getenv("FLASK_DEBUG", os.getenv("DEBUG", "0")).lower() in ("1", "true", "yes", "on")
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=debug)
