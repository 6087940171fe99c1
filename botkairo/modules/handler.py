"""
Module handler.

Keeps loaded modules by id and groups them into categories. Modules can
be registered as instances, loaded from classes, or imported from Python
files; file-backed modules can be reloaded.
"""

import importlib.util
import inspect
import sys
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from botkairo.errors import ErrorCode, ModuleError
from botkairo.modules.base import Category
from botkairo.utils.events import EventEmitter


class HandlerEvents:
    """Events emitted by every module handler."""
    LOAD = "load"
    REMOVE = "remove"


# Type for load filters
LoadPredicate = Callable[[Path], bool]


class ModuleHandler(EventEmitter):
    """
    Loads and tracks modules of one kind.
    
    Args:
        class_to_handle: Only instances of this class are handled.
        directory: Default directory for load_all().
        extensions: File extensions to import.
        automate_categories: Use the parent directory name as category.
        load_filter: Predicate deciding which files load_all() imports.
    """
    
    def __init__(
        self,
        class_to_handle: type,
        directory: str | Path | None = None,
        extensions: tuple[str, ...] = (".py",),
        automate_categories: bool = False,
        load_filter: LoadPredicate | None = None,
    ):
        super().__init__()
        self.class_to_handle = class_to_handle
        self.directory = Path(directory) if directory else None
        self.extensions = set(extensions)
        self.automate_categories = automate_categories
        self.load_filter = load_filter or (lambda path: True)
        self.modules: dict[str, Any] = {}
        self.categories: dict[str, Category] = {}
    
    @property
    def kind(self) -> str:
        return self.class_to_handle.__name__
    
    def register(self, module: Any, filepath: Path | None = None) -> None:
        """Attach a module instance to this handler."""
        info = module.module
        info.filepath = filepath
        info.handler = self
        self.modules[info.id] = module
        
        if info.category_id == "default" and self.automate_categories and filepath:
            info.category_id = filepath.parent.name
        
        category = self.categories.setdefault(info.category_id, Category(info.category_id))
        info.category = category
        category[info.id] = module
    
    def deregister(self, module: Any) -> None:
        """Detach a module instance from this handler."""
        info = module.module
        if info.filepath:
            sys.modules.pop(self._module_name(info.filepath), None)
        self.modules.pop(info.id, None)
        if info.category is not None:
            info.category.pop(info.id, None)
    
    async def load(self, thing: Any, is_reload: bool = False) -> Any:
        """
        Load a module from an instance, a class, or a file path.
        
        Returns:
            The loaded module, or None when a file holds no module class.
        """
        filepath = None
        if isinstance(thing, self.class_to_handle):
            module = thing
        elif inspect.isclass(thing) and issubclass(thing, self.class_to_handle):
            module = thing()
        else:
            filepath = Path(thing).resolve()
            if filepath.suffix not in self.extensions:
                return None
            cls = self._import_class(filepath)
            if cls is None:
                return None
            module = cls()
        
        if module.id in self.modules:
            raise ModuleError(ErrorCode.ALREADY_LOADED, self.kind, module.id)
        
        self.register(module, filepath)
        logger.debug(f"{self.kind} loaded: {module.id}")
        await self.emit(HandlerEvents.LOAD, module, is_reload)
        return module
    
    async def load_all(
        self,
        directory: str | Path | None = None,
        load_filter: LoadPredicate | None = None,
    ) -> "ModuleHandler":
        """Import every matching file under a directory, recursively."""
        directory = Path(directory) if directory else self.directory
        if directory is None:
            raise ValueError("No directory to load modules from")
        load_filter = load_filter or self.load_filter
        
        for filepath in sorted(directory.rglob("*")):
            if filepath.is_file() and load_filter(filepath.resolve()):
                await self.load(filepath)
        return self
    
    async def remove(self, id: str) -> Any:
        """Remove a module by id."""
        module = self.modules.get(str(id))
        if module is None:
            raise ModuleError(ErrorCode.MODULE_NOT_FOUND, self.kind, id)
        
        self.deregister(module)
        logger.debug(f"{self.kind} removed: {id}")
        await self.emit(HandlerEvents.REMOVE, module)
        return module
    
    async def remove_all(self) -> "ModuleHandler":
        for module in list(self.modules.values()):
            if module.module.filepath:
                await self.remove(module.id)
        return self
    
    async def reload(self, id: str) -> Any:
        """Re-import a file-backed module."""
        module = self.modules.get(str(id))
        if module is None:
            raise ModuleError(ErrorCode.MODULE_NOT_FOUND, self.kind, id)
        if not module.module.filepath:
            raise ModuleError(ErrorCode.NOT_RELOADABLE, self.kind, id)
        
        filepath = module.module.filepath
        self.deregister(module)
        return await self.load(filepath, is_reload=True)
    
    async def reload_all(self) -> "ModuleHandler":
        for module in list(self.modules.values()):
            if module.module.filepath:
                await self.reload(module.id)
        return self
    
    def find_category(self, name: str) -> Category | None:
        """Find a category by name, case-insensitively."""
        for category in self.categories.values():
            if category.id.lower() == name.lower():
                return category
        return None
    
    @staticmethod
    def _module_name(filepath: Path) -> str:
        return f"botkairo_modules.{filepath.stem}_{abs(hash(str(filepath)))}"
    
    def _import_class(self, filepath: Path) -> type | None:
        """Import a file and return the first class it defines that we handle."""
        name = self._module_name(filepath)
        spec = importlib.util.spec_from_file_location(name, filepath)
        if spec is None or spec.loader is None:
            return None
        imported = importlib.util.module_from_spec(spec)
        sys.modules[name] = imported
        try:
            spec.loader.exec_module(imported)
        except Exception:
            sys.modules.pop(name, None)
            raise
        
        for _, member in inspect.getmembers(imported, inspect.isclass):
            if (
                member.__module__ == name
                and issubclass(member, self.class_to_handle)
                and member is not self.class_to_handle
            ):
                return member
        
        sys.modules.pop(name, None)
        return None
