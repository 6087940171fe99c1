"""Configuration loading utilities."""

import json
from pathlib import Path

from loguru import logger

from botkairo.config.schema import HandlerConfig


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".botkairo" / "config.json"


def load_config(config_path: Path | None = None) -> HandlerConfig:
    """
    Load configuration from file or create default.
    
    Args:
        config_path: Optional path to config file. Uses default if not provided.
    
    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()
    
    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)
            return HandlerConfig(**data)
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Using default configuration.")
    
    return HandlerConfig()


def save_config(config: HandlerConfig, config_path: Path | None = None) -> Path:
    """
    Save configuration to file.
    
    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    
    Returns:
        The path written.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    
    with open(path, "w") as f:
        json.dump(config.model_dump(), f, indent=2)
    return path
