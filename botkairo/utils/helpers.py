"""Small helpers shared across the framework."""

import functools
import inspect
from dataclasses import dataclass
from typing import Any, Callable


class _Unset:
    """Sentinel for options that were not provided (distinct from None)."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


async def maybe_await(value: Any) -> Any:
    """Await the value if it is awaitable, otherwise return it as-is."""
    if inspect.isawaitable(value):
        return await value
    return value


def into_list(value: Any) -> list:
    """Wrap a single value in a list; lists and tuples are copied."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def into_callable(value: Any) -> Callable[..., Any]:
    """Return callables unchanged, otherwise a function returning the value."""
    if callable(value):
        return value
    return lambda *args, **kwargs: value


def alias_compare(a: str | Callable | None, b: str | Callable | None) -> int:
    """
    Order two aliases (flag words or prefixes) by matching priority.
    
    Empty aliases sort last, computed (callable) aliases sort before them,
    and literal aliases come first: longer before shorter, equal lengths
    in lexicographic order.
    
    Returns:
        Negative if `a` should be tried first, positive if `b` should, else 0.
    """
    a = a or ""
    b = b or ""
    if a == "" and b == "":
        return 0
    if a == "":
        return 1
    if b == "":
        return -1
    if callable(a) and callable(b):
        return 0
    if callable(a):
        return 1
    if callable(b):
        return -1
    if len(a) != len(b):
        return len(b) - len(a)
    return (a > b) - (a < b)


alias_sort_key = functools.cmp_to_key(alias_compare)


@dataclass(frozen=True)
class Supplier:
    """
    A field that is either a constant or computed from the message.
    
    Examples:
        Supplier.constant("!")
        Supplier.computed(lambda message: settings.get(message.guild_id, "prefix"))
    """
    value: Any = None
    function: Callable[..., Any] | None = None
    
    @classmethod
    def constant(cls, value: Any) -> "Supplier":
        return cls(value=value)
    
    @classmethod
    def computed(cls, function: Callable[..., Any]) -> "Supplier":
        return cls(function=function)
    
    @classmethod
    def of(cls, thing: Any) -> "Supplier":
        """Wrap a raw option: callables become computed, anything else constant."""
        if isinstance(thing, Supplier):
            return thing
        if callable(thing):
            return cls.computed(thing)
        return cls.constant(thing)
    
    @property
    def is_computed(self) -> bool:
        return self.function is not None
    
    async def resolve(self, *args: Any) -> Any:
        """Evaluate the supplier for the given call-site arguments."""
        if self.function is None:
            return self.value
        return await maybe_await(self.function(*args))
