from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("prompts", __name__)


@bp.get("/prompts/random")
def random_prompt():
    return jsonify({"prompt": current_app.extensions["telestrations"].random_prompt()})
