"""Inhibitors: modules that can block messages before commands run."""

from typing import Any

from botkairo.errors import BotkairoError, ErrorCode
from botkairo.modules.base import ModuleInfo, ModuleMixin


class InhibitorType:
    """When an inhibitor runs."""
    ALL = "all"  # every message, before anything else
    PRE = "pre"  # before command lookup
    POST = "post"  # after a command was found


class Inhibitor(ModuleMixin):
    """
    An inhibitor module.
    
    Args:
        id: Unique inhibitor id.
        reason: Reported in blocked events.
        type: "all", "pre" or "post".
        priority: Higher priority wins when several inhibitors block.
        category: Category id.
    """
    
    def __init__(
        self,
        id: str,
        reason: str = "",
        type: str = InhibitorType.POST,
        priority: int = 0,
        category: str = "default",
    ):
        if type not in (InhibitorType.ALL, InhibitorType.PRE, InhibitorType.POST):
            raise ValueError(f"Invalid inhibitor type: {type}")
        self.module = ModuleInfo(id=id, category_id=category)
        self.reason = reason
        self.type = type
        self.priority = priority
    
    def exec(self, message: Any, command: Any = None) -> Any:
        """Return True to block. Subclasses must implement this."""
        raise BotkairoError(ErrorCode.MISSING_EXEC, type(self).__name__)
