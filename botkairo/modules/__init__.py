"""Module identity, categories and loading."""

from botkairo.modules.base import Category, ModuleInfo, ModuleMixin
from botkairo.modules.handler import HandlerEvents, ModuleHandler

__all__ = [
    "Category",
    "ModuleInfo",
    "ModuleMixin",
    "HandlerEvents",
    "ModuleHandler",
]
