from __future__ import annotations

import logging

from ...helpers.ws import extract_channel_id
from ...realtime import get_realtime
from ...realtime.registry import Connection
from ..middleware import require_connection


@require_connection
def handle_join_channel(connection: Connection, data) -> None:
    realtime = get_realtime()
    channel_id = extract_channel_id(data)
    if not channel_id:
        realtime.transport.emit_to_connection("error", "Channel id is required", connection.sid)
        return
    try:
        realtime.registry.join(connection.sid, channel_id)
    except Exception:
        logging.exception("joinChannel handler error (sid=%s, channel=%s)", connection.sid, channel_id)
        realtime.transport.emit_to_connection("error", "Failed to join channel", connection.sid)
