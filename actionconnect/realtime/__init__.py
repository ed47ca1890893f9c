from __future__ import annotations

from flask import Flask, current_app

from ..helpers.ws import SocketIOTransport
from ..lib.timers import BackgroundScheduler
from .delivery import DeliveryResult, MessagePipeline
from .registry import Connection, ConnectionRegistry
from .typing_indicator import TypingIndicator

EXTENSION_KEY = "realtime"


class RealtimeServer:
    """Per-app bundle of the registry and the services that act on it."""

    def __init__(self, app: Flask, socketio) -> None:
        self.transport = SocketIOTransport(socketio)
        self.registry = ConnectionRegistry(self.transport)
        self.pipeline = MessagePipeline(self.registry, self.transport)
        self.typing = TypingIndicator(
            self.registry,
            self.transport,
            BackgroundScheduler(socketio, app),
            timeout_ms=int(app.config.get("TYPING_TIMEOUT_MS", 2000)),
            per_room=bool(app.config.get("TYPING_TIMER_PER_ROOM", True)),
        )

    def shutdown(self) -> None:
        self.registry.shutdown()


def init_realtime(app: Flask, socketio) -> RealtimeServer:
    server = RealtimeServer(app, socketio)
    app.extensions[EXTENSION_KEY] = server
    return server


def get_realtime() -> RealtimeServer:
    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    "Connection",
    "ConnectionRegistry",
    "DeliveryResult",
    "MessagePipeline",
    "RealtimeServer",
    "TypingIndicator",
    "get_realtime",
    "init_realtime",
]
