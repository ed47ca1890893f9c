from __future__ import annotations

import logging
from typing import Any, Optional

from flask import request

from ..auth.tokens import bearer_token


def room_name(room_id: str) -> str:
    """Socket.IO room backing a channel.

    Prefixed so that a channel id can never collide with the per-sid room
    Socket.IO keeps for every connection.
    """
    return f"channel:{room_id}"


def extract_channel_id(data: Any) -> Optional[str]:
    """Channel id from an event payload: a bare id or ``{"channelId": ...}``."""
    if isinstance(data, dict):
        data = data.get("channelId")
    if data is None or isinstance(data, (dict, list, bool)):
        return None
    value = str(data).strip()
    return value or None


def get_token_from_handshake(auth: Any = None) -> Optional[str]:
    """Bearer token offered in the Socket.IO handshake.

    Looks at the ``auth`` payload first (``{"token": ...}``), then the
    ``token`` query parameter and finally the ``Authorization`` header.
    """
    if isinstance(auth, dict) and auth.get("token"):
        return bearer_token(str(auth["token"]))
    try:
        token = request.args.get("token")
        if token:
            return bearer_token(token)
        return bearer_token(request.headers.get("Authorization"))
    except RuntimeError:
        logging.debug("get_token_from_handshake: no request context")
        return None


class SocketIOTransport:
    """Room membership and event emission over Flask-SocketIO.

    Works outside of a Socket.IO request context (background timers) because
    every call names the target sid or room explicitly.
    """

    def __init__(self, socketio, namespace: str = "/") -> None:
        self.socketio = socketio
        self.namespace = namespace

    def enter_room(self, sid: str, room_id: str) -> None:
        self.socketio.server.enter_room(sid, room_name(room_id), namespace=self.namespace)

    def leave_room(self, sid: str, room_id: str) -> None:
        self.socketio.server.leave_room(sid, room_name(room_id), namespace=self.namespace)

    def emit_to_room(
        self, event: str, data: Any, room_id: str, skip_sid: Optional[str] = None
    ) -> None:
        self.socketio.emit(
            event,
            data,
            to=room_name(room_id),
            skip_sid=skip_sid,
            namespace=self.namespace,
        )

    def emit_to_connection(self, event: str, data: Any, sid: str) -> None:
        self.socketio.emit(event, data, to=sid, namespace=self.namespace)
