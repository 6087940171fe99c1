"""Minimal async event emitter."""

from collections import defaultdict
from typing import Any, Callable

from loguru import logger

from botkairo.utils.helpers import maybe_await


class EventEmitter:
    """
    Registry of event callbacks.
    
    Callbacks may be plain functions or coroutines; emit() awaits them
    in registration order.
    """
    
    def __init__(self):
        self._listeners: dict[str, list[tuple[Callable[..., Any], bool]]] = defaultdict(list)
    
    def on(self, event: str, callback: Callable[..., Any]) -> None:
        """Call `callback` every time `event` is emitted."""
        self._listeners[event].append((callback, False))
    
    def once(self, event: str, callback: Callable[..., Any]) -> None:
        """Call `callback` the next time `event` is emitted."""
        self._listeners[event].append((callback, True))
    
    def off(self, event: str, callback: Callable[..., Any]) -> bool:
        """Remove a callback. Returns True if it was registered."""
        entries = self._listeners.get(event, [])
        for i, (registered, _) in enumerate(entries):
            if registered == callback:
                del entries[i]
                return True
        return False
    
    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))
    
    async def emit(self, event: str, *args: Any) -> bool:
        """
        Emit an event.
        
        Returns:
            True if any callback was registered for the event.
        """
        entries = list(self._listeners.get(event, []))
        if not entries:
            return False
        
        logger.debug(f"Event {event} -> {len(entries)} listener(s)")
        for callback, once in entries:
            if once:
                self.off(event, callback)
            await maybe_await(callback(*args))
        return True
