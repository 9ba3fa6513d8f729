"""
Local server: the in-process command channel between the host UI and the core.
Each UI intent arrives as a Socket.IO event named after the operation; the
answer goes back as the reply event or as "notify".
"""
import logging
import os

from flask import Flask, jsonify
from flask_socketio import SocketIO

from shared.constants import APP_NAME, APP_VERSION

logger = logging.getLogger(__name__)


def create_local_app():
    """Create the localhost-only Flask app and its Socket.IO server."""
    app = Flask(__name__)
    app.config['SECRET_KEY'] = os.urandom(24)
    socketio = SocketIO(app, async_mode="threading")

    @app.route('/health')
    def health_check():
        return jsonify({"status": "ok", "app": APP_NAME, "version": APP_VERSION})

    return app, socketio


def register_intents(socketio: SocketIO, surface) -> None:
    """Bind one Socket.IO handler per local surface operation."""
    for op in surface.operations():
        socketio.on_event(op, _make_handler(surface, op))
    logger.info("Local surface: %d intents registered", len(surface.operations()))


def _make_handler(surface, op):
    def handler(data=None):
        surface.dispatch(op, data)
    handler.__name__ = f"on_{op}"
    return handler
