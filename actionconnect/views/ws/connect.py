from __future__ import annotations

import logging

from flask import current_app, request
from flask_socketio import ConnectionRefusedError

from ...errors import AuthFailure
from ...helpers.ws import get_token_from_handshake
from ...realtime import get_realtime


def handle_connect(auth=None):
    token = get_token_from_handshake(auth)
    try:
        connection = get_realtime().registry.handshake(
            request.sid, token, current_app.config["JWT_SECRET"]
        )
    except AuthFailure as exc:
        logging.warning(
            "connect: refused sid=%s (%s: %s)", request.sid, type(exc).__name__, exc.detail
        )
        raise ConnectionRefusedError(exc.message)
    logging.info("connect: user %s connected (sid=%s)", connection.user_id, request.sid)
