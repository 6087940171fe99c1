"""Utility helpers."""

from botkairo.utils.events import EventEmitter
from botkairo.utils.helpers import (
    UNSET,
    Supplier,
    alias_compare,
    alias_sort_key,
    into_callable,
    into_list,
    maybe_await,
)

__all__ = [
    "EventEmitter",
    "UNSET",
    "Supplier",
    "alias_compare",
    "alias_sort_key",
    "into_callable",
    "into_list",
    "maybe_await",
]
