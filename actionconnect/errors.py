"""Error types shared by the HTTP routes and the socket layer.

Every error carries a client-facing ``message`` and an HTTP ``status``.
REST views render them as ``{"message": ...}``; socket handlers only log
them and send a plain string on the ``error`` event.
"""

from __future__ import annotations


class ActionConnectError(Exception):
    status = 500
    message = "Server Error"

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        self.message = message or self.message
        # Diagnostic text for logs; never sent to clients
        self.detail = detail or self.message
        super().__init__(self.message)


class AuthFailure(ActionConnectError):
    status = 401
    message = "Unauthorized"


class MissingToken(AuthFailure):
    message = "No token Provided"


class InvalidToken(AuthFailure):
    message = "Invalid Token"


class IncompleteClaim(AuthFailure):
    message = "Unauthorized: Missing user data"


class ValidationError(ActionConnectError):
    status = 400
    message = "Invalid request"


class NotFoundError(ActionConnectError):
    status = 404
    message = "Not found"


class SenderNotFound(NotFoundError):
    message = "User not found"


class AuthorizationError(ActionConnectError):
    status = 403
    message = "Not authorized"


class PersistenceError(ActionConnectError):
    status = 500
    message = "Server Error"


__all__ = [
    "ActionConnectError",
    "AuthFailure",
    "MissingToken",
    "InvalidToken",
    "IncompleteClaim",
    "ValidationError",
    "NotFoundError",
    "SenderNotFound",
    "AuthorizationError",
    "PersistenceError",
]
