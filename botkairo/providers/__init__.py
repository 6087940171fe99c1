"""Settings providers."""

from botkairo.providers.base import Provider
from botkairo.providers.json_provider import JSONProvider

__all__ = ["JSONProvider", "Provider"]
