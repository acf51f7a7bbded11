from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game.coordinator import GameCoordinator
from ..game.models import GameStatus
from ..game.prompts import normalize_code

bp = Blueprint("games", __name__)


def _coordinator() -> GameCoordinator:
    return current_app.extensions["telestrations"]


@bp.get("/games")
def list_games():
    return jsonify(_coordinator().waiting_games())


@bp.get("/games/<code>")
def get_game(code: str):
    coordinator = _coordinator()
    with coordinator.repository() as repo:
        game = repo.get_game(code=normalize_code(code))
        if not game:
            return jsonify({"error": "not_found"}), 404
        players = repo.get_active_players(game.id)

    return jsonify(
        {
            "gameCode": game.code,
            "gameId": game.id,
            "status": game.status.value,
            "currentRound": game.current_round,
            "currentStepType": game.current_step_type.value if game.current_step_type else None,
            "numRounds": game.num_rounds,
            "promptTime": game.prompt_time_limit_sec,
            "drawTime": game.draw_time_limit_sec,
            "guessTime": game.guess_time_limit_sec,
            "gameMasterPlayerId": game.game_master_player_id,
            "players": [p.to_public() for p in players],
        }
    )


@bp.get("/games/<code>/reveal")
def get_reveal(code: str):
    coordinator = _coordinator()
    with coordinator.repository() as repo:
        game = repo.get_game(code=normalize_code(code))
    if not game:
        return jsonify({"error": "not_found"}), 404
    if game.status not in (GameStatus.REVEALING, GameStatus.FINISHED):
        return jsonify({"error": "conflict"}), 409
    return jsonify(coordinator.reveal_for(game.id))
