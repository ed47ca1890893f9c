from __future__ import annotations

import logging

from ...helpers.ws import extract_channel_id
from ...realtime import get_realtime
from ...realtime.registry import Connection
from ..middleware import require_connection


@require_connection
def handle_leave_channel(connection: Connection, data) -> None:
    channel_id = extract_channel_id(data)
    if not channel_id:
        return
    try:
        get_realtime().registry.leave(connection.sid, channel_id)
    except Exception:
        logging.exception("leaveChannel handler error (sid=%s, channel=%s)", connection.sid, channel_id)
