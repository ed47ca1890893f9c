from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable

from flask import current_app, g, jsonify, request

from ..auth.tokens import IdentityClaim, authenticate, bearer_token
from ..errors import AuthFailure
from ..realtime import get_realtime


def identity_from_request() -> IdentityClaim:
    """Authenticate the ``Authorization`` header of the current request."""
    token = bearer_token(request.headers.get("Authorization"))
    return authenticate(token, current_app.config["JWT_SECRET"])


def require_auth(handler: Callable) -> Callable:
    """
    Decorator for HTTP views that require a valid bearer token.

    On success the identity is available as ``g.identity`` and the view runs.
    Any auth failure short-circuits with 401 and ``{"message": ...}``.

    Usage:
        @channels_bp.post("/create")
        @require_auth
        def channel_create():
            user_id = g.identity.user_id
            ...
    """

    @wraps(handler)
    def wrapper(*args: Any, **kwargs: Any):
        try:
            g.identity = identity_from_request()
        except AuthFailure as exc:
            logging.warning(
                "require_auth: %s rejected (handler=%s, path=%s, reason=%s)",
                type(exc).__name__,
                handler.__name__,
                request.path,
                exc.detail,
            )
            return jsonify({"message": exc.message}), exc.status
        return handler(*args, **kwargs)

    return wrapper


def require_connection(handler: Callable) -> Callable:
    """
    Decorator for socket handlers that need the caller's registered connection.

    Looks up the connection for ``request.sid`` and passes
    ``(connection, data)`` to the handler. Events from a sid the registry no
    longer knows (already disconnected) are dropped.

    Usage:
        @require_connection
        def handle_typing(connection, data):
            ...
    """

    @wraps(handler)
    def wrapper(data: Any = None) -> None:
        connection = get_realtime().registry.get(request.sid)
        if connection is None:
            event_name = None
            if getattr(request, "event", None):
                event_name = request.event.get("message")
            logging.warning(
                "require_connection: unknown sid=%s (handler=%s, event=%s)",
                request.sid,
                handler.__name__,
                event_name,
            )
            return None
        return handler(connection, data)

    return wrapper


def json_body() -> dict:
    """JSON object body of the current request; anything else reads as empty."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
