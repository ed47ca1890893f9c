"""
tests/test_typing_indicator.py — Typing debounce
=================================================
"""

from __future__ import annotations

import pytest

from actionconnect.auth.tokens import IdentityClaim
from actionconnect.realtime.registry import ConnectionRegistry
from actionconnect.realtime.typing_indicator import TypingIndicator


@pytest.fixture
def registry(transport):
    reg = ConnectionRegistry(transport)
    for sid, user_id in (("sid-a", "user-a"), ("sid-b", "user-b")):
        reg.register(sid, IdentityClaim(user_id=user_id))
        reg.join(sid, "R1")
    transport.emitted.clear()
    return reg


def _indicator(registry, transport, scheduler, per_room=True):
    return TypingIndicator(registry, transport, scheduler, timeout_ms=2000, per_room=per_room)


def test_every_signal_is_rebroadcast(registry, transport, scheduler):
    typing = _indicator(registry, transport, scheduler)
    for _ in range(3):
        assert typing.signal("sid-a", "R1")
    assert transport.received("sid-b", "userTyping") == ["user-a"] * 3
    assert transport.received("sid-a", "userTyping") == []


def test_burst_yields_one_stop_after_last_signal(registry, transport, scheduler):
    typing = _indicator(registry, transport, scheduler)
    typing.signal("sid-a", "R1")
    scheduler.advance(0.5)
    typing.signal("sid-a", "R1")
    scheduler.advance(0.5)
    typing.signal("sid-a", "R1")

    scheduler.advance(1.9)
    assert transport.events("userStoppedTyping") == []

    scheduler.advance(0.1)
    assert transport.received("sid-b", "userStoppedTyping") == ["user-a"]
    assert transport.received("sid-a", "userStoppedTyping") == []

    scheduler.advance(10)
    assert len(transport.events("userStoppedTyping")) == 1
    assert registry.get("sid-a").typing_timers == {}


def test_single_signal_stops_after_timeout(registry, transport, scheduler):
    typing = _indicator(registry, transport, scheduler)
    typing.signal("sid-a", "R1")
    scheduler.advance(2.0)
    assert transport.received("sid-b", "userStoppedTyping") == ["user-a"]


def test_rooms_are_debounced_independently(registry, transport, scheduler):
    registry.join("sid-a", "R2")
    registry.join("sid-b", "R2")
    typing = _indicator(registry, transport, scheduler)

    typing.signal("sid-a", "R1")
    scheduler.advance(1.0)
    typing.signal("sid-a", "R2")
    scheduler.advance(1.0)

    stops = transport.events("userStoppedTyping")
    assert [e.room_id for e in stops] == ["R1"]

    scheduler.advance(1.0)
    stops = transport.events("userStoppedTyping")
    assert [e.room_id for e in stops] == ["R1", "R2"]


def test_single_timer_mode_shares_one_timer(registry, transport, scheduler):
    registry.join("sid-a", "R2")
    registry.join("sid-b", "R2")
    typing = _indicator(registry, transport, scheduler, per_room=False)

    typing.signal("sid-a", "R1")
    scheduler.advance(1.0)
    typing.signal("sid-a", "R2")
    scheduler.advance(5.0)

    stops = transport.events("userStoppedTyping")
    assert [e.room_id for e in stops] == ["R2"]


def test_disconnect_cancels_pending_stop(registry, transport, scheduler):
    typing = _indicator(registry, transport, scheduler)
    typing.signal("sid-a", "R1")
    registry.disconnect("sid-a")

    assert scheduler.pending == []
    scheduler.advance(5.0)
    assert transport.events("userStoppedTyping") == []


def test_unknown_connection_is_ignored(registry, transport, scheduler):
    typing = _indicator(registry, transport, scheduler)
    assert typing.signal("ghost", "R1") is False
    assert transport.emitted == []
    assert scheduler.pending == []


def test_stop_emit_failure_is_contained(registry, transport, scheduler):
    typing = _indicator(registry, transport, scheduler)
    typing.signal("sid-a", "R1")
    transport.fail_events.add("userStoppedTyping")
    scheduler.advance(2.0)
    assert registry.get("sid-a").typing_timers == {}


class ImmediateScheduler:
    """Fires the callback before ``schedule`` returns, as a zero delay may."""

    def schedule(self, delay_seconds, callback, handle=None):
        handle.fired = True
        callback()
        return handle


def test_zero_timeout_expires_cleanly(registry, transport):
    typing = TypingIndicator(registry, transport, ImmediateScheduler(), timeout_ms=0)
    assert typing.signal("sid-a", "R1")
    assert transport.received("sid-b", "userTyping") == ["user-a"]
    assert transport.received("sid-b", "userStoppedTyping") == ["user-a"]
    assert registry.get("sid-a").typing_timers == {}
