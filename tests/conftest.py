"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import pytest
from sqlalchemy.pool import StaticPool

from actionconnect import create_app
from actionconnect.auth.tokens import issue_token
from actionconnect.extensions import db, socketio
from actionconnect.lib.timers import TimerHandle
from actionconnect.models import Channel, User

TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars

TEST_CONFIG = {
    "TESTING": True,
    "SECRET_KEY": "test-secret-key",
    "JWT_SECRET": TEST_JWT_SECRET,
    "ACCESS_TOKEN_EXPIRES": 3600,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "SQLALCHEMY_ENGINE_OPTIONS": {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    },
    "SOCKETIO_ASYNC_MODE": "threading",
    "SOCKETIO_MESSAGE_QUEUE": "",
    "CORS_ORIGINS": "*",
    "BACKEND_BASE_URL": "http://backend.test",
    "FRONTEND_URL": "http://frontend.test",
    "GOOGLE_CLIENT_ID": "",
    "GOOGLE_CLIENT_SECRET": "",
    "TYPING_TIMEOUT_MS": 2000,
    "TYPING_TIMER_PER_ROOM": True,
    "LOG_LEVEL": "WARNING",
}


# ---------------------------------------------------------------------------
# Fakes for the transport and the timer scheduler
# ---------------------------------------------------------------------------
@dataclass
class Emitted:
    event: str
    data: Any
    recipients: set[str]
    room_id: Optional[str] = None
    skip_sid: Optional[str] = None


@dataclass
class RecordingTransport:
    """In-memory stand-in for SocketIOTransport.

    Recipients are resolved at emit time from the rooms entered so far, the
    same way Socket.IO resolves a room broadcast.
    """

    rooms: dict[str, set[str]] = field(default_factory=dict)
    emitted: list[Emitted] = field(default_factory=list)
    fail_events: set[str] = field(default_factory=set)
    fail_enter: bool = False

    def enter_room(self, sid: str, room_id: str) -> None:
        if self.fail_enter:
            raise RuntimeError("transport unavailable")
        self.rooms.setdefault(room_id, set()).add(sid)

    def leave_room(self, sid: str, room_id: str) -> None:
        members = self.rooms.get(room_id)
        if members is not None:
            members.discard(sid)
            if not members:
                del self.rooms[room_id]

    def emit_to_room(self, event, data, room_id, skip_sid=None) -> None:
        if event in self.fail_events:
            raise RuntimeError(f"broadcast of {event} failed")
        recipients = set(self.rooms.get(room_id, set()))
        recipients.discard(skip_sid)
        self.emitted.append(Emitted(event, data, recipients, room_id, skip_sid))

    def emit_to_connection(self, event, data, sid) -> None:
        if event in self.fail_events:
            raise RuntimeError(f"emit of {event} failed")
        self.emitted.append(Emitted(event, data, {sid}))

    def received(self, sid: str, event: Optional[str] = None) -> list[Any]:
        return [
            e.data
            for e in self.emitted
            if sid in e.recipients and (event is None or e.event == event)
        ]

    def events(self, event: str) -> list[Emitted]:
        return [e for e in self.emitted if e.event == event]


class ManualScheduler:
    """Scheduler whose clock only moves when the test calls ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._pending: list[tuple[float, int, TimerHandle, Any]] = []
        self._seq = 0

    def schedule(self, delay_seconds, callback, handle=None) -> TimerHandle:
        if handle is None:
            handle = TimerHandle(delay_seconds)
        self._seq += 1
        self._pending.append((self.now + delay_seconds, self._seq, handle, callback))
        return handle

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = sorted(p for p in self._pending if p[0] <= self.now + 1e-9)
        self._pending = [p for p in self._pending if p[0] > self.now + 1e-9]
        for _due_at, _seq, handle, callback in due:
            if handle.cancelled:
                continue
            handle.fired = True
            callback()

    @property
    def pending(self) -> list[TimerHandle]:
        return [p[2] for p in self._pending if not p[2].cancelled]


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def app():
    """App bound to a fresh in-memory SQLite database.

    The app context stays pushed for the whole test so socket handlers and
    assertions share one SQLAlchemy session.
    """
    application = create_app(TEST_CONFIG)
    ctx = application.app_context()
    ctx.push()
    yield application
    application.extensions["realtime"].shutdown()
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def realtime(app):
    return app.extensions["realtime"]


@pytest.fixture
def manual_scheduler(realtime):
    scheduler = ManualScheduler()
    realtime.typing.scheduler = scheduler
    return scheduler


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(name: Optional[str] = None, email: Optional[str] = None, password: str = "secret-pw"):
        counter["n"] += 1
        n = counter["n"]
        user = User(name=name or f"User {n}", email=email or f"user{n}@example.com")
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_channel(app):
    def _make(name: str, channel_id: Optional[str] = None, is_private: bool = False, members=()):
        channel = Channel(name=name, is_private=is_private)
        if channel_id is not None:
            channel.id = channel_id
        for user in members:
            channel.add_member(user.id)
        db.session.add(channel)
        db.session.commit()
        return channel

    return _make


@pytest.fixture
def token_for():
    def _token(user_or_id, expires_in: int = 3600, **extra) -> str:
        user_id = getattr(user_or_id, "id", user_or_id)
        return issue_token(user_id, TEST_JWT_SECRET, expires_in, **extra)

    return _token


@pytest.fixture
def auth_headers(token_for):
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {token_for(user)}"}

    return _headers


@pytest.fixture
def socket_client(app):
    """Factory for Flask-SocketIO test clients; all are disconnected at teardown."""
    clients = []

    def _connect(token: Optional[str] = None, query_string: Optional[str] = None):
        auth = {"token": token} if token is not None else None
        c = socketio.test_client(app, auth=auth, query_string=query_string)
        clients.append(c)
        return c

    yield _connect
    for c in clients:
        if c.is_connected():
            c.disconnect()
