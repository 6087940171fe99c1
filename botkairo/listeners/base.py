"""Listeners: modules that react to events on a named emitter."""

from typing import Any

from botkairo.errors import BotkairoError, ErrorCode
from botkairo.modules.base import ModuleInfo, ModuleMixin


class Listener(ModuleMixin):
    """
    A listener module.
    
    Args:
        id: Unique listener id.
        emitter: Name of the emitter, as registered with
            ListenerHandler.set_emitters().
        event: Event name to listen to.
        type: "on" to run on every emit, "once" for the next one only.
        category: Category id.
    """
    
    def __init__(self, id: str, emitter: str, event: str, type: str = "on", category: str = "default"):
        if type not in ("on", "once"):
            raise ValueError(f"Invalid listener type: {type}")
        self.module = ModuleInfo(id=id, category_id=category)
        self.emitter = emitter
        self.event = event
        self.type = type
    
    def exec(self, *args: Any) -> Any:
        """Handle the event. Subclasses must implement this."""
        raise BotkairoError(ErrorCode.MISSING_EXEC, type(self).__name__)
