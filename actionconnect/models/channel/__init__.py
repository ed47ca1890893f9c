from .channel import Channel, ChannelMember
from .message import Message

__all__ = ['Channel', 'ChannelMember', 'Message']
