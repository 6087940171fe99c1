"""In-memory channel and client, used by the shell and the tests."""

import asyncio
import itertools
from dataclasses import replace
from typing import Any

from loguru import logger

from botkairo.client.message import Channel, Message, ReplyCheck
from botkairo.utils.events import EventEmitter


class MemoryChannel(Channel):
    """
    A channel that records what is sent and hands incoming messages to
    whoever awaits a reply.
    """
    
    def __init__(self, id: str = "channel", dm: bool = False, client_permissions: set[str] | None = None):
        super().__init__(id, dm, client_permissions)
        self.sent: list[str] = []
        self._queued: list[Message] = []
        self._waiters: list[tuple[ReplyCheck, asyncio.Future]] = []
    
    async def send(self, content: str) -> str:
        self.sent.append(content)
        logger.debug(f"[{self.id}] -> {content!r}")
        return content
    
    def queue_reply(self, message: Message) -> None:
        """Queue a message to answer a future await_reply()."""
        self._queued.append(message)
    
    async def await_reply(self, check: ReplyCheck) -> Message:
        for i, message in enumerate(self._queued):
            if check(message):
                del self._queued[i]
                return message
        
        future = asyncio.get_running_loop().create_future()
        entry = (check, future)
        self._waiters.append(entry)
        try:
            return await future
        finally:
            if entry in self._waiters:
                self._waiters.remove(entry)
    
    def receive(self, message: Message) -> bool:
        """
        Hand an incoming message to the first matching waiter.
        
        Returns:
            True if a waiter consumed the message.
        """
        for check, future in list(self._waiters):
            if not future.done() and check(message):
                future.set_result(message)
                return True
        return False


class BotClient(EventEmitter):
    """
    A minimal client: receives messages and emits "message" events.
    
    Messages that answer a pending prompt are emitted as well; the
    command handler ignores authors that are in a prompt.
    """
    
    def __init__(self, user_id: str = "bot", owner_ids: list[str] | None = None):
        super().__init__()
        self.user_id = user_id
        self.owner_ids = list(owner_ids or [])
        self._ids = itertools.count(1)
    
    def make_message(self, content: str, author_id: str, channel: Channel, **kwargs: Any) -> Message:
        """Build a message with a fresh id."""
        return Message(content=content, author_id=author_id, channel=channel, id=str(next(self._ids)), **kwargs)
    
    async def receive(self, message: Message) -> None:
        """Deliver an incoming message."""
        if isinstance(message.channel, MemoryChannel):
            message.channel.receive(message)
        await self.emit("message", message)
    
    async def edit(self, message: Message, content: str) -> Message:
        """Edit a delivered message and emit "message_update" (old, new)."""
        edited = replace(message, content=content, edited=True)
        await self.emit("message_update", message, edited)
        return edited
