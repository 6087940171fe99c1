"""Module identity and lifecycle shared by commands, listeners and inhibitors."""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from botkairo.modules.handler import ModuleHandler


class Category(dict):
    """A named group of modules, keyed by module id."""
    
    def __init__(self, id: str, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.id = id
    
    async def reload_all(self) -> "Category":
        """Reload every module in this category that was loaded from a file."""
        for module in list(self.values()):
            if module.module.filepath:
                await module.reload()
        return self
    
    async def remove_all(self) -> "Category":
        """Remove every module in this category that was loaded from a file."""
        for module in list(self.values()):
            if module.module.filepath:
                await module.remove()
        return self
    
    def __str__(self) -> str:
        return self.id
    
    def __repr__(self) -> str:
        return f"Category({self.id!r}, {sorted(self)})"


@dataclass
class ModuleInfo:
    """Identity of a loaded module and the handler that owns it."""
    id: str
    category_id: str = "default"
    category: Category | None = None
    filepath: Path | None = None
    handler: "ModuleHandler | None" = None


class ModuleMixin:
    """
    Exposes a composed ModuleInfo as `id`, `category`, `handler`,
    `reload()` and `remove()`.
    """
    
    module: ModuleInfo
    
    @property
    def id(self) -> str:
        return self.module.id
    
    @property
    def category(self) -> Category | None:
        return self.module.category
    
    @property
    def handler(self) -> Any:
        return self.module.handler
    
    def reload(self) -> Any:
        """Reload this module from its file through its handler."""
        return self.module.handler.reload(self.id)
    
    def remove(self) -> Any:
        """Remove this module from its handler."""
        return self.module.handler.remove(self.id)
    
    def __str__(self) -> str:
        return self.id
