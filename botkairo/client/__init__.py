"""Chat client surface."""

from botkairo.client.memory import BotClient, MemoryChannel
from botkairo.client.message import Channel, Message, ReplyCheck

__all__ = ["BotClient", "Channel", "Message", "MemoryChannel", "ReplyCheck"]
