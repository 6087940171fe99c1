"""Configuration module for botkairo."""

from botkairo.config.loader import get_config_path, load_config, save_config
from botkairo.config.schema import HandlerConfig, PromptDefaults

__all__ = ["HandlerConfig", "PromptDefaults", "get_config_path", "load_config", "save_config"]
