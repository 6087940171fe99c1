"""
Listener handler.

Binds listener modules to emitters by name, e.g. "commandHandler" for
the command handler's events or "client" for incoming messages.
"""

from pathlib import Path
from typing import Any

from loguru import logger

from botkairo.errors import BotkairoError, ErrorCode
from botkairo.listeners.base import Listener
from botkairo.modules.handler import ModuleHandler
from botkairo.utils.events import EventEmitter


class ListenerHandler(ModuleHandler):
    """Loads listeners and subscribes them to their emitters."""
    
    def __init__(self, client: Any, directory: str | Path | None = None, **kwargs: Any):
        super().__init__(Listener, directory=directory, **kwargs)
        self.client = client
        self.emitters: dict[str, EventEmitter] = {"client": client}
    
    def set_emitters(self, emitters: dict[str, EventEmitter]) -> "ListenerHandler":
        """Register named emitters listeners can attach to."""
        for name, emitter in emitters.items():
            if not isinstance(emitter, EventEmitter):
                raise BotkairoError(ErrorCode.INVALID_EMITTER, name)
            self.emitters[name] = emitter
        return self
    
    def register(self, listener: Listener, filepath: Path | None = None) -> None:
        emitter = self._emitter_for(listener)
        super().register(listener, filepath)
        if listener.type == "once":
            emitter.once(listener.event, listener.exec)
        else:
            emitter.on(listener.event, listener.exec)
        logger.debug(f"Listener {listener.id} bound to {listener.emitter}.{listener.event}")
    
    def deregister(self, listener: Listener) -> None:
        self._emitter_for(listener).off(listener.event, listener.exec)
        super().deregister(listener)
    
    def _emitter_for(self, listener: Listener) -> EventEmitter:
        emitter = listener.emitter
        if isinstance(emitter, EventEmitter):
            return emitter
        if emitter not in self.emitters:
            raise BotkairoError(ErrorCode.INVALID_EMITTER, emitter)
        return self.emitters[emitter]
