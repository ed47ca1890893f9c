"""
Live connections, their identities and their channel rooms.

The registry is the only owner of connection state. Every mutation of the
sid and room maps happens under one re-entrant lock, which is a plain mutex
in the threading async mode and a greenlet-aware one once gevent has
monkey patched ``threading``. Transport calls (entering rooms, emitting)
happen after the lock is released.

Room membership here is transport-level only and independent of the
persisted ``ChannelMember`` rows: joining a room does not require, or
create, a persisted membership.
"""

from __future__ import annotations

import logging
import threading
from typing import Hashable, Optional

from ..auth.tokens import IdentityClaim, authenticate

logger = logging.getLogger(__name__)


class Connection:
    """One authenticated real-time session."""

    def __init__(self, sid: str, identity: IdentityClaim) -> None:
        self._sid = sid
        self._identity = identity
        self.rooms: set[str] = set()
        # typing timer handles keyed by room id (or None in single-timer mode)
        self.typing_timers: dict[Optional[Hashable], object] = {}

    @property
    def sid(self) -> str:
        return self._sid

    @property
    def identity(self) -> IdentityClaim:
        return self._identity

    @property
    def user_id(self) -> str:
        return self._identity.user_id

    def __repr__(self) -> str:
        return f"<Connection sid={self._sid} user_id={self.user_id} rooms={sorted(self.rooms)}>"


class ConnectionRegistry:
    def __init__(self, transport) -> None:
        self.transport = transport
        self._lock = threading.RLock()
        self._connections: dict[str, Connection] = {}
        self._rooms: dict[str, set[str]] = {}

    # -- lifecycle -----------------------------------------------------------

    def handshake(self, sid: str, token: Optional[str], secret: str) -> Connection:
        """Authenticate ``token`` and bind the identity to ``sid``.

        Auth failures propagate and leave the registry untouched.
        """
        identity = authenticate(token, secret)
        return self.register(sid, identity)

    def register(self, sid: str, identity: IdentityClaim) -> Connection:
        with self._lock:
            existing = self._connections.get(sid)
            if existing is not None:
                return existing
            connection = Connection(sid, identity)
            self._connections[sid] = connection
        logger.info("connection registered: sid=%s user_id=%s", sid, identity.user_id)
        return connection

    def disconnect(self, sid: str) -> Optional[Connection]:
        """Release ``sid``: leave every room and cancel every typing timer.

        Returns the released connection, or None if it was already gone.
        """
        with self._lock:
            connection = self._connections.pop(sid, None)
            if connection is None:
                return None
            rooms = list(connection.rooms)
            for room_id in rooms:
                self._discard_member(room_id, sid)
            connection.rooms.clear()
            timers = list(connection.typing_timers.values())
            connection.typing_timers.clear()

        for handle in timers:
            handle.cancel()
        for room_id in rooms:
            try:
                self.transport.leave_room(sid, room_id)
            except Exception:
                logger.exception("disconnect: transport leave failed (sid=%s, room=%s)", sid, room_id)
        logger.info(
            "connection released: sid=%s user_id=%s rooms=%s",
            sid,
            connection.user_id,
            rooms,
        )
        return connection

    def shutdown(self) -> None:
        with self._lock:
            sids = list(self._connections)
        for sid in sids:
            self.disconnect(sid)

    # -- rooms ---------------------------------------------------------------

    def join(self, sid: str, room_id: str) -> bool:
        """Add ``sid`` to ``room_id`` and announce it to the other members.

        Idempotent for membership; every call announces, so observers see one
        ``userJoined`` per join call. Returns False if the connection is gone.
        """
        with self._lock:
            connection = self._connections.get(sid)
            if connection is None:
                return False
            newly_added = room_id not in connection.rooms
            connection.rooms.add(room_id)
            self._rooms.setdefault(room_id, set()).add(sid)

        try:
            self.transport.enter_room(sid, room_id)
        except Exception:
            if newly_added:
                with self._lock:
                    connection.rooms.discard(room_id)
                    self._discard_member(room_id, sid)
            raise
        self.transport.emit_to_room("userJoined", connection.user_id, room_id, skip_sid=sid)
        logger.info("user %s joined channel %s (sid=%s)", connection.user_id, room_id, sid)
        return True

    def leave(self, sid: str, room_id: str) -> bool:
        """Remove ``sid`` from ``room_id``; no presence broadcast."""
        with self._lock:
            connection = self._connections.get(sid)
            if connection is None:
                return False
            was_member = room_id in connection.rooms
            connection.rooms.discard(room_id)
            self._discard_member(room_id, sid)
        if was_member:
            self.transport.leave_room(sid, room_id)
            logger.info("user %s left channel %s (sid=%s)", connection.user_id, room_id, sid)
        return True

    def _discard_member(self, room_id: str, sid: str) -> None:
        members = self._rooms.get(room_id)
        if members is None:
            return
        members.discard(sid)
        if not members:
            # rooms only exist while they have members
            del self._rooms[room_id]

    # -- typing timers -------------------------------------------------------

    def replace_typing_timer(self, sid: str, key: Optional[Hashable], handle) -> bool:
        """Install ``handle`` for ``key``, cancelling the timer it replaces.

        Returns False (and installs nothing) if the connection is gone.
        """
        with self._lock:
            connection = self._connections.get(sid)
            if connection is None:
                return False
            previous = connection.typing_timers.get(key)
            connection.typing_timers[key] = handle
        if previous is not None and previous is not handle:
            previous.cancel()
        return True

    def release_typing_timer(self, sid: str, key: Optional[Hashable], handle) -> bool:
        """Drop ``handle`` if it is still the current timer for ``key``."""
        with self._lock:
            connection = self._connections.get(sid)
            if connection is None:
                return False
            if connection.typing_timers.get(key) is not handle:
                return False
            del connection.typing_timers[key]
            return True

    # -- queries -------------------------------------------------------------

    def get(self, sid: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.get(sid)

    def members(self, room_id: str) -> set[str]:
        with self._lock:
            return set(self._rooms.get(room_id, ()))

    def rooms_of(self, sid: str) -> set[str]:
        with self._lock:
            connection = self._connections.get(sid)
            return set(connection.rooms) if connection else set()

    def room_ids(self) -> set[str]:
        with self._lock:
            return set(self._rooms)

    def __contains__(self, sid: object) -> bool:
        with self._lock:
            return sid in self._connections

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
