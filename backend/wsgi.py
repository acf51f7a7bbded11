import logging
import os

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())

try:
    from backend.telestrations.server import create_app
except ImportError:  # pragma: no cover
    from telestrations.server import create_app

app, socketio = create_app()
