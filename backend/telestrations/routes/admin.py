from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from ..game.prompts import normalize_code

logger = logging.getLogger(__name__)

bp = Blueprint("admin", __name__)


def _authorized() -> bool:
    token = current_app.config.get("ADMIN_TOKEN", "")
    if not token:
        return False
    return request.headers.get("X-Admin-Token", "") == token


@bp.get("/__admin__/games")
def admin_games():
    if not _authorized():
        return jsonify({"error": "unauthorized"}), 401

    coordinator = current_app.extensions["telestrations"]
    with coordinator.repository() as repo:
        games = repo.list_games()
        payload = [
            {
                "gameCode": g.code,
                "gameId": g.id,
                "status": g.status.value,
                "currentRound": g.current_round,
                "numRounds": g.num_rounds,
                "playerCount": len(repo.get_active_players(g.id)),
            }
            for g in games
        ]
    return jsonify({"games": payload})


@bp.delete("/__admin__/games/<code>")
def admin_delete_game(code: str):
    if not _authorized():
        return jsonify({"error": "unauthorized"}), 401

    coordinator = current_app.extensions["telestrations"]
    code = normalize_code(code)
    with coordinator.repository() as repo:
        game = repo.get_game(code=code)
        if not game:
            return jsonify({"error": "not_found"}), 404
        repo.delete_game(code)

    coordinator.discard(game.id)
    logger.warning("Game %s deleted through the admin API", code)
    coordinator.broadcast_waiting_games()
    return jsonify({"ok": True, "gameCode": code})
