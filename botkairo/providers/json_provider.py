"""JSON-file backed settings provider."""

import json
from pathlib import Path
from typing import Any

from loguru import logger

from botkairo.providers.base import Provider


class JSONProvider(Provider):
    """
    Stores all settings in one JSON file: {id: {key: value}}.
    
    The file is rewritten on every change.
    """
    
    def __init__(self, path: Path | str):
        super().__init__()
        self.path = Path(path)
    
    async def init(self) -> None:
        if not self.path.exists():
            self.items = {}
            return
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to load settings from {self.path}: {e}")
            data = {}
        self.items = {str(id): dict(settings) for id, settings in data.items()}
        logger.debug(f"Loaded settings for {len(self.items)} id(s) from {self.path}")
    
    async def set(self, id: str, key: str, value: Any) -> None:
        self.items.setdefault(str(id), {})[key] = value
        self._save()
    
    async def delete(self, id: str, key: str) -> None:
        settings = self.items.get(str(id))
        if settings is None or key not in settings:
            return
        del settings[key]
        if not settings:
            del self.items[str(id)]
        self._save()
    
    async def clear(self, id: str) -> None:
        if self.items.pop(str(id), None) is not None:
            self._save()
    
    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.items, indent=2, default=str))
