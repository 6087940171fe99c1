"""
Tests for handler configuration.

Tests:
- Defaults and environment overrides
- JSON load/save
"""

import json

import pytest

from botkairo.config.loader import load_config, save_config
from botkairo.config.schema import HandlerConfig


class TestHandlerConfig:
    """Tests for the HandlerConfig schema."""
    
    def test_defaults(self):
        """Test the default configuration."""
        config = HandlerConfig()
        
        assert config.prefixes == ["!"]
        assert config.block_bots is True
        assert config.handle_edits is False
        assert config.prompt.retries == 1
        assert config.prompt.time == 30.0
        assert config.prompt.cancel_word == "cancel"
    
    def test_prefix_list(self):
        """Test multiple prefixes."""
        assert HandlerConfig(prefix=["?", "!"]).prefixes == ["?", "!"]
    
    def test_env_overrides(self, monkeypatch):
        """Test BOTKAIRO_ environment variables, including nested prompt fields."""
        monkeypatch.setenv("BOTKAIRO_BLOCK_BOTS", "false")
        monkeypatch.setenv("BOTKAIRO_PROMPT__RETRIES", "3")
        
        config = HandlerConfig()
        
        assert config.block_bots is False
        assert config.prompt.retries == 3
    
    def test_prompt_defaults_reach_arguments(self, client):
        """Test that prompt config becomes the handler's argument defaults."""
        from botkairo.commands.handler import CommandHandler
        
        config = HandlerConfig(prompt={"retries": 4, "start": "Well?"})
        handler = CommandHandler(client, config=config)
        
        assert handler.argument_defaults.prompt.retries == 4
        assert handler.argument_defaults.prompt.start == "Well?"


class TestConfigFile:
    """Tests for load_config and save_config."""
    
    def test_missing_file(self, tmp_path):
        """Test that a missing file gives the defaults."""
        config = load_config(tmp_path / "missing.json")
        
        assert config.prefixes == ["!"]
    
    def test_save_and_load(self, tmp_path):
        """Test writing a config and reading it back."""
        path = tmp_path / "nested" / "config.json"
        
        written = save_config(HandlerConfig(prefix="?", owner_ids=["42"]), path)
        config = load_config(path)
        
        assert written == path
        assert config.prefixes == ["?"]
        assert config.owner_ids == ["42"]
        assert json.loads(path.read_text())["prompt"]["retries"] == 1
    
    @pytest.mark.parametrize("content", ["{not json", '{"default_cooldown": "soon"}'])
    def test_invalid_file(self, tmp_path, content):
        """Test that an unreadable config falls back to the defaults."""
        path = tmp_path / "config.json"
        path.write_text(content)
        
        config = load_config(path)
        
        assert config.default_cooldown == 0
