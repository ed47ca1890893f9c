from __future__ import annotations

from .connect import handle_connect
from .disconnect import handle_disconnect
from .join import handle_join_channel
from .leave import handle_leave_channel
from .send_message import handle_send_message
from .typing_signal import handle_typing

# Socket.IO event name -> handler
SOCKET_EVENTS = {
    "connect": handle_connect,
    "disconnect": handle_disconnect,
    "joinChannel": handle_join_channel,
    "leaveChannel": handle_leave_channel,
    "sendMessage": handle_send_message,
    "typing": handle_typing,
}

__all__ = ["SOCKET_EVENTS", "register_socket_handlers"]


def register_socket_handlers(socketio) -> None:
    for event, handler in SOCKET_EVENTS.items():
        socketio.on_event(event, handler)
