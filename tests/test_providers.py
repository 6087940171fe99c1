"""
Tests for settings providers.
"""

import json

import pytest

from botkairo.providers.json_provider import JSONProvider


class TestJSONProvider:
    """Tests for JSONProvider."""
    
    @pytest.mark.asyncio
    async def test_set_and_get(self, tmp_path):
        """Test setting a value and reading it from the cache."""
        provider = JSONProvider(tmp_path / "settings.json")
        await provider.init()
        
        await provider.set("guild-1", "prefix", "?")
        
        assert provider.get("guild-1", "prefix") == "?"
        assert provider.get("guild-2", "prefix", "!") == "!"
    
    @pytest.mark.asyncio
    async def test_persists(self, tmp_path):
        """Test that values survive a new provider instance."""
        path = tmp_path / "settings.json"
        first = JSONProvider(path)
        await first.init()
        await first.set(123, "prefix", "$")
        
        second = JSONProvider(path)
        await second.init()
        
        assert second.get("123", "prefix") == "$"
        assert json.loads(path.read_text()) == {"123": {"prefix": "$"}}
    
    @pytest.mark.asyncio
    async def test_delete_and_clear(self, tmp_path):
        """Test removing one key and then a whole id."""
        provider = JSONProvider(tmp_path / "settings.json")
        await provider.init()
        await provider.set("guild-1", "prefix", "?")
        await provider.set("guild-1", "lang", "en")
        
        await provider.delete("guild-1", "prefix")
        assert provider.get("guild-1", "prefix") is None
        assert provider.get("guild-1", "lang") == "en"
        
        await provider.clear("guild-1")
        assert provider.items == {}
    
    @pytest.mark.asyncio
    async def test_invalid_file(self, tmp_path):
        """Test that a corrupt file starts empty."""
        path = tmp_path / "settings.json"
        path.write_text("{broken")
        provider = JSONProvider(path)
        
        await provider.init()
        
        assert provider.items == {}
    
    @pytest.mark.asyncio
    async def test_computed_prefix(self, make_message, channel, tmp_path):
        """Test a per-guild prefix read from the provider."""
        from botkairo.client.memory import BotClient
        from botkairo.commands.command import Command
        from botkairo.commands.handler import CommandHandler
        
        provider = JSONProvider(tmp_path / "settings.json")
        await provider.init()
        await provider.set("guild-1", "prefix", "$")
        client = BotClient()
        handler = CommandHandler(client, prefix=lambda message: provider.get(message.guild_id, "prefix", "!"))
        
        command = Command("ping", aliases=["ping"])
        command.exec = lambda message, args: message.channel.send("pong")
        await handler.load(command)
        
        await client.receive(make_message("$ping"))
        await client.receive(make_message("!ping"))
        
        assert channel.sent == ["pong"]
