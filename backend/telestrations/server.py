from __future__ import annotations

import logging
import os
import sys
from typing import Any

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .db.engine import create_engine, create_session_factory, init_db, session_scope
from .db.repository import Repository
from .game.coordinator import GameCoordinator
from .game.prompts import normalize_code
from .game.timers import PhaseTimers
from .realtime.handlers import register_socketio_handlers
from .realtime.notifier import SocketIONotifier
from .routes.admin import bp as admin_bp
from .routes.games import bp as games_bp
from .routes.health import bp as health_bp
from .routes.prompts import bp as prompts_bp

logger = logging.getLogger(__name__)


def _async_mode() -> str:
    env_async_mode = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if env_async_mode:
        return env_async_mode
    # Default choice:
    # - Windows: threading (eventlet has known compatibility issues on newer Python)
    # - Python >= 3.13: threading (safer default)
    # - Otherwise: eventlet
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def create_app(overrides: dict[str, Any] | None = None) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE") or _async_mode(),
    )

    engine = create_engine(app.config["DATABASE_URL"])
    session_factory = create_session_factory(engine)
    init_db(engine, session_factory)

    if app.config.get("DEBUG_MODE"):
        debug_code = normalize_code(app.config.get("DEBUG_GAME_CODE", "DEBUG"))
        with session_scope(session_factory) as session:
            if Repository(session).delete_game(debug_code):
                logger.info("Cleared previous debug game %s", debug_code)

    timers = PhaseTimers(
        socketio.start_background_task,
        socketio.sleep,
        default_duration=app.config.get("DEFAULT_PHASE_SECONDS", 60),
    )
    coordinator = GameCoordinator(session_factory, SocketIONotifier(socketio), timers, app.config)
    app.extensions["telestrations"] = coordinator

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(games_bp, url_prefix="/api")
    app.register_blueprint(prompts_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api")

    register_socketio_handlers(socketio, coordinator)

    logger.info("Telestrations server ready (database %s)", engine.url.render_as_string(hide_password=True))
    return app, socketio
