"""Inhibitor modules."""

from botkairo.inhibitors.base import Inhibitor, InhibitorType
from botkairo.inhibitors.handler import InhibitorHandler

__all__ = ["Inhibitor", "InhibitorHandler", "InhibitorType"]
