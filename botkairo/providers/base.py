"""Settings provider interface."""

from abc import ABC, abstractmethod
from typing import Any


class Provider(ABC):
    """
    Key-value settings per id (guild, user, ...).
    
    Implementations keep `items` as an in-memory cache of every id's
    settings; get() reads the cache, writes go through to storage.
    """
    
    def __init__(self):
        self.items: dict[str, dict[str, Any]] = {}
    
    @abstractmethod
    async def init(self) -> None:
        """Load all settings into the cache."""
        pass
    
    def get(self, id: str, key: str, default: Any = None) -> Any:
        """Get a setting from the cache."""
        return self.items.get(str(id), {}).get(key, default)
    
    @abstractmethod
    async def set(self, id: str, key: str, value: Any) -> None:
        pass
    
    @abstractmethod
    async def delete(self, id: str, key: str) -> None:
        pass
    
    @abstractmethod
    async def clear(self, id: str) -> None:
        """Remove every setting for an id."""
        pass
