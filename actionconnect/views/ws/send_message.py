from __future__ import annotations

import logging

from ...errors import ActionConnectError
from ...helpers.ws import extract_channel_id
from ...realtime import get_realtime
from ...realtime.registry import Connection
from ..middleware import require_connection


@require_connection
def handle_send_message(connection: Connection, data) -> None:
    realtime = get_realtime()
    data = data if isinstance(data, dict) else {}
    try:
        realtime.pipeline.send(connection, data.get("content"), extract_channel_id(data))
    except ActionConnectError as exc:
        logging.warning(
            "sendMessage: %s for user %s (%s)", type(exc).__name__, connection.user_id, exc.detail
        )
        realtime.transport.emit_to_connection("error", "Failed to send message", connection.sid)
    except Exception:
        logging.exception(
            "sendMessage handler error (sid=%s, user=%s)", connection.sid, connection.user_id
        )
        realtime.transport.emit_to_connection("error", "Failed to send message", connection.sid)
