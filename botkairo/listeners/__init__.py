"""Listener modules."""

from botkairo.listeners.base import Listener
from botkairo.listeners.handler import ListenerHandler

__all__ = ["Listener", "ListenerHandler"]
