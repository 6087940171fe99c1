"""
Pytest configuration and shared fixtures for botkairo tests.
"""

import pytest
import sys
from pathlib import Path

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from botkairo.client.memory import BotClient, MemoryChannel
from botkairo.client.message import Message
from botkairo.commands.handler import CommandHandler
from botkairo.config.schema import HandlerConfig


class FakeClock:
    """Controllable time source, in seconds."""
    
    def __init__(self, now: float = 1000.0):
        self.now = now
    
    def __call__(self) -> float:
        return self.now
    
    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """A fake clock for cooldown tests."""
    return FakeClock()


@pytest.fixture
def channel():
    """An in-memory guild channel."""
    return MemoryChannel("channel-1")


@pytest.fixture
def client():
    """An in-memory client whose own user id is 'bot'."""
    return BotClient(user_id="bot", owner_ids=["owner"])


@pytest.fixture
def make_message(channel):
    """Factory for messages from 'user' in the default channel."""
    def factory(content: str, author_id: str = "user", **kwargs) -> Message:
        kwargs.setdefault("channel", channel)
        kwargs.setdefault("guild_id", "guild-1")
        return Message(content=content, author_id=author_id, **kwargs)
    
    return factory


@pytest.fixture
def config():
    """Handler config with the '!' prefix."""
    return HandlerConfig(prefix="!")


@pytest.fixture
def handler(client, config):
    """A command handler attached to the client."""
    return CommandHandler(client, config=config)


@pytest.fixture
def events(handler):
    """Records handler events as (name, args) tuples."""
    recorded = []
    
    def record(name):
        return lambda *args: recorded.append((name, args))
    
    for name in (
        "message_blocked", "message_invalid", "command_blocked", "command_started",
        "command_finished", "command_cancelled", "command_locked", "command_breakout",
        "cooldown", "missing_permissions", "in_prompt",
    ):
        handler.on(name, record(name))
    return recorded


@pytest.fixture
def workspace(tmp_path):
    """Create a temporary workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace
