"""Inhibitor handler."""

import asyncio
from pathlib import Path
from typing import Any

from loguru import logger

from botkairo.inhibitors.base import Inhibitor
from botkairo.modules.handler import ModuleHandler
from botkairo.utils.helpers import maybe_await


class InhibitorHandler(ModuleHandler):
    """Loads inhibitors and runs them against messages."""
    
    def __init__(self, client: Any = None, directory: str | Path | None = None, **kwargs: Any):
        super().__init__(Inhibitor, directory=directory, **kwargs)
        self.client = client
    
    async def test(self, type: str, message: Any, command: Any = None) -> str | None:
        """
        Run every inhibitor of a type.
        
        Args:
            type: "all", "pre" or "post".
            message: The message being handled.
            command: The command, for post inhibitors.
        
        Returns:
            The reason of the highest priority inhibitor that blocked,
            or None if none did.
        """
        inhibitors = [i for i in self.modules.values() if i.type == type]
        if not inhibitors:
            return None
        
        results = await asyncio.gather(
            *(maybe_await(inhibitor.exec(message, command)) for inhibitor in inhibitors)
        )
        blocked = [i for i, result in zip(inhibitors, results) if result]
        if not blocked:
            return None
        
        winner = max(blocked, key=lambda i: i.priority)
        logger.debug(f"Message blocked by inhibitor {winner.id}: {winner.reason}")
        return winner.reason
