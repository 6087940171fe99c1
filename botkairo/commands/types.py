"""
Type resolution for arguments.

A type resolver turns a raw phrase into a value. Resolvers take
(message, phrase) and return the value, or None when the phrase cannot
be cast. Resolvers may be coroutines.
"""

import re
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable
from urllib.parse import urlparse

from loguru import logger

if TYPE_CHECKING:
    from botkairo.commands.handler import CommandHandler
    from botkairo.inhibitors.handler import InhibitorHandler
    from botkairo.listeners.handler import ListenerHandler


# Type for resolver functions
TypeFunction = Callable[[Any, Any], Any]


class ArgumentTypes:
    """Names of the built-in types."""
    STRING = "string"
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    CHAR_CODES = "charCodes"
    NUMBER = "number"
    INTEGER = "integer"
    BIGINT = "bigint"
    EMOJINT = "emojint"
    URL = "url"
    DATE = "date"
    COLOR = "color"
    COMMAND_ALIAS = "commandAlias"
    COMMAND = "command"
    INHIBITOR = "inhibitor"
    LISTENER = "listener"


KEYCAP_DIGITS = ["0⃣", "1⃣", "2⃣", "3⃣", "4⃣", "5⃣", "6⃣", "7⃣", "8⃣", "9⃣", "🔟"]
_KEYCAP_PATTERN = re.compile("|".join(re.escape(k) for k in sorted(KEYCAP_DIGITS, key=len, reverse=True)))
_INTEGER_PATTERN = re.compile(r"[+-]?\d+")
_COLOR_PATTERN = re.compile(r"#?([0-9a-fA-F]{1,6})")


def _string(message: Any, phrase: str) -> str | None:
    return phrase or None


def _lowercase(message: Any, phrase: str) -> str | None:
    return phrase.lower() if phrase else None


def _uppercase(message: Any, phrase: str) -> str | None:
    return phrase.upper() if phrase else None


def _char_codes(message: Any, phrase: str) -> list[int] | None:
    return [ord(char) for char in phrase] if phrase else None


def _number(message: Any, phrase: str) -> float | None:
    if not phrase:
        return None
    try:
        value = float(phrase)
    except ValueError:
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return value


def _integer(message: Any, phrase: str) -> int | None:
    if not phrase or not _INTEGER_PATTERN.fullmatch(phrase.strip()):
        return None
    return int(phrase)


def _emojint(message: Any, phrase: str) -> int | None:
    """Cast keycap emoji digits (e.g. 2⃣5⃣) to an integer."""
    if not phrase:
        return None
    phrase = phrase.replace("\ufe0f", "")
    digits = _KEYCAP_PATTERN.sub(lambda m: str(KEYCAP_DIGITS.index(m.group(0))), phrase)
    if digits == phrase or not digits.isdigit():
        return None
    return int(digits)


def _url(message: Any, phrase: str) -> str | None:
    if not phrase:
        return None
    if phrase.startswith("<") and phrase.endswith(">"):
        phrase = phrase[1:-1]
    parsed = urlparse(phrase)
    if not parsed.scheme or not parsed.netloc:
        return None
    return phrase


def _date(message: Any, phrase: str) -> datetime | None:
    if not phrase:
        return None
    try:
        return datetime.fromisoformat(phrase)
    except ValueError:
        return None


def _color(message: Any, phrase: str) -> int | None:
    if not phrase:
        return None
    match = _COLOR_PATTERN.fullmatch(phrase)
    if not match:
        return None
    return int(match.group(1), 16)


class TypeResolver:
    """
    Registry of named argument types.

    Built-in types are registered on construction; custom types can be
    added with add_type(). Module lookup types (command, listener, ...)
    resolve against the handlers attached to this resolver.
    """

    def __init__(self, command_handler: "CommandHandler | None" = None):
        self.command_handler = command_handler
        self.inhibitor_handler: "InhibitorHandler | None" = None
        self.listener_handler: "ListenerHandler | None" = None
        self.types: dict[str, TypeFunction] = {}
        self._add_builtin_types()

    def _add_builtin_types(self) -> None:
        self.add_types({
            ArgumentTypes.STRING: _string,
            ArgumentTypes.LOWERCASE: _lowercase,
            ArgumentTypes.UPPERCASE: _uppercase,
            ArgumentTypes.CHAR_CODES: _char_codes,
            ArgumentTypes.NUMBER: _number,
            ArgumentTypes.INTEGER: _integer,
            ArgumentTypes.BIGINT: _integer,
            ArgumentTypes.EMOJINT: _emojint,
            ArgumentTypes.URL: _url,
            ArgumentTypes.DATE: _date,
            ArgumentTypes.COLOR: _color,
            ArgumentTypes.COMMAND_ALIAS: self._command_alias,
            ArgumentTypes.COMMAND: self._command,
            ArgumentTypes.INHIBITOR: self._inhibitor,
            ArgumentTypes.LISTENER: self._listener,
        })

    def _command_alias(self, message: Any, phrase: str) -> Any:
        if not phrase or self.command_handler is None:
            return None
        return self.command_handler.find_command(phrase)

    def _command(self, message: Any, phrase: str) -> Any:
        if not phrase or self.command_handler is None:
            return None
        return self.command_handler.modules.get(phrase)

    def _inhibitor(self, message: Any, phrase: str) -> Any:
        if not phrase or self.inhibitor_handler is None:
            return None
        return self.inhibitor_handler.modules.get(phrase)

    def _listener(self, message: Any, phrase: str) -> Any:
        if not phrase or self.listener_handler is None:
            return None
        return self.listener_handler.modules.get(phrase)

    def type(self, name: str) -> TypeFunction | None:
        """Get a resolver by name."""
        return self.types.get(name)

    def add_type(self, name: str, function: TypeFunction) -> "TypeResolver":
        """Register a resolver, replacing any existing one with that name."""
        if name in self.types:
            logger.debug(f"Replacing argument type: {name}")
        self.types[name] = function
        return self

    def add_types(self, types: dict[str, TypeFunction]) -> "TypeResolver":
        """Register several resolvers."""
        for name, function in types.items():
            self.add_type(name, function)
        return self
