# Future annotations for forward reference typing compatibility
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import ActionConnectError
from .extensions import db, socketio
from .realtime import init_realtime

# Configure a standard log format for file and console handlers
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    # Reduce noisy third-party loggers so we only see our explicit INFO logs and exceptions
    for noisy_name in (
        "engineio",
        "engineio.server",
        "socketio",
        "socketio.server",
    ):
        logging.getLogger(noisy_name).setLevel(logging.WARNING)


# SQLite pragmas: WAL and a busy timeout keep concurrent socket writers from
# tripping over "database is locked"; other dialects are left alone.
def configure_sqlite_pragmas() -> None:
    eng = db.engine
    if eng.dialect.name != "sqlite":
        return
    with eng.begin() as conn:
        for pragma in (
            "PRAGMA journal_mode=WAL",
            "PRAGMA synchronous=NORMAL",
            "PRAGMA busy_timeout=15000",
        ):
            try:
                conn.execute(db.text(pragma))
            except Exception:
                logging.warning("sqlite pragma not applied: %s", pragma)


def _ensure_sqlite_dir(uri: str) -> None:
    prefix = "sqlite:///"
    if not uri.startswith(prefix):
        return
    path = uri[len(prefix):]
    if path and path != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)


def _allowed_origins(origins_cfg: str) -> Any:
    # A single '*' means allow all origins
    if origins_cfg.strip() == "*":
        return "*"
    return [o.strip() for o in origins_cfg.split(",") if o.strip()]


# Application factory returning a configured Flask app
def create_app(config: Optional[Any] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if isinstance(config, Mapping):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    _ensure_sqlite_dir(app.config["SQLALCHEMY_DATABASE_URI"])
    db.init_app(app)

    allowed_origins = _allowed_origins(app.config["CORS_ORIGINS"])
    CORS(app, resources={r"/*": {"origins": allowed_origins}})
    # Initialize Socket.IO with the same CORS policy and optional message queue
    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins,
        message_queue=app.config.get("SOCKETIO_MESSAGE_QUEUE") or None,
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE") or "gevent",
        ping_timeout=30,
        ping_interval=10,
    )
    app.logger.info(
        "SocketIO configured: async_mode=%s, message_queue=%s",
        socketio.async_mode,
        app.config.get("SOCKETIO_MESSAGE_QUEUE") or "(none)",
    )

    with app.app_context():
        # Import models to register metadata with SQLAlchemy
        from . import models  # noqa: F401

        db.create_all()
        configure_sqlite_pragmas()

    init_realtime(app, socketio)
    register_routes(app)
    return app


# Helper to bind routes, socket handlers and error handlers
def register_routes(app: Flask) -> None:
    @app.get("/health")
    def health():
        return "Welcome to the server!"

    @app.errorhandler(ActionConnectError)
    def _handle_api_error(e: ActionConnectError):
        if e.status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, e.detail)
        return jsonify({"message": e.message}), e.status

    # Global error handler to ensure stacktraces get logged
    @app.errorhandler(Exception)
    def _log_unhandled_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({"message": e.description}), e.code
        logger.exception("UNHANDLED %s %s", request.method, request.path)
        db.session.rollback()
        return jsonify({"message": "Server Error"}), 500

    from .views.api import register_blueprints
    from .views.ws import register_socket_handlers

    register_blueprints(app)
    register_socket_handlers(socketio)


__all__ = ["create_app", "configure_logging", "db", "socketio"]
