"""
Debounced "is typing" signals.

Every ``typing`` event is re-broadcast as ``userTyping`` to the rest of the
room. Only the stop is debounced: each signal replaces the pending timer, so
``userStoppedTyping`` goes out once, ``timeout_ms`` after the last signal.

Timers are keyed per (connection, room) so typing in two channels at once
stops independently. With ``per_room=False`` a connection keeps a single
timer and a signal in one channel cancels the pending stop of another.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..lib.timers import TimerHandle

logger = logging.getLogger(__name__)


class TypingIndicator:
    def __init__(
        self,
        registry,
        transport,
        scheduler,
        timeout_ms: int = 2000,
        per_room: bool = True,
    ) -> None:
        self.registry = registry
        self.transport = transport
        self.scheduler = scheduler
        self.timeout_ms = timeout_ms
        self.per_room = per_room

    def _key(self, room_id: str) -> Optional[str]:
        return room_id if self.per_room else None

    def signal(self, sid: str, room_id: str) -> bool:
        connection = self.registry.get(sid)
        if connection is None:
            return False

        self.transport.emit_to_room("userTyping", connection.user_id, room_id, skip_sid=sid)

        key = self._key(room_id)
        delay = self.timeout_ms / 1000.0
        # installed before scheduling so an immediate expiry finds it current
        handle = TimerHandle(delay)
        if not self.registry.replace_typing_timer(sid, key, handle):
            # disconnected since the lookup above
            return False
        self.scheduler.schedule(
            delay,
            lambda: self._expire(sid, connection.user_id, room_id, key, handle),
            handle=handle,
        )
        return True

    def _expire(self, sid: str, user_id: str, room_id: str, key, handle) -> None:
        if not self.registry.release_typing_timer(sid, key, handle):
            return
        try:
            self.transport.emit_to_room("userStoppedTyping", user_id, room_id, skip_sid=sid)
        except Exception:
            logger.exception("userStoppedTyping emit failed (sid=%s, room=%s)", sid, room_id)
