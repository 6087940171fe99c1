"""
Platform-neutral message types.

The framework only needs a small surface from a chat platform:
- a Message with content, author and channel
- a Channel that can send text and wait for the next reply
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable


# Type for reply filters
ReplyCheck = Callable[["Message"], bool]


class Channel(ABC):
    """A place messages are sent to and received from."""
    
    def __init__(self, id: str, dm: bool = False, client_permissions: set[str] | None = None):
        self.id = id
        self.dm = dm
        self.client_permissions: set[str] = set(client_permissions or ())
    
    @property
    def is_guild(self) -> bool:
        return not self.dm
    
    @abstractmethod
    async def send(self, content: str) -> Any:
        """Send text to the channel."""
        pass
    
    @abstractmethod
    async def await_reply(self, check: ReplyCheck) -> "Message":
        """Wait for the next message in this channel that passes `check`."""
        pass


@dataclass
class Message:
    """An incoming chat message."""
    content: str
    author_id: str
    channel: Channel
    guild_id: str | None = None
    id: str = ""
    author_is_bot: bool = False
    edited: bool = False
    permissions: set[str] = field(default_factory=set)  # author's permissions
    created_at: datetime = field(default_factory=datetime.now)
