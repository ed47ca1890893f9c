# Enable postponed annotations to avoid runtime import issues and allow future-style typing
from __future__ import annotations

from .auth.user import User
from .channel.channel import Channel, ChannelMember
from .channel.message import Message

__all__ = [
    "User",
    "Channel",
    "ChannelMember",
    "Message",
]
