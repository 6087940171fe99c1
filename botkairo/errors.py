"""Framework errors."""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable identifiers for framework errors."""
    ALREADY_LOADED = "already_loaded"
    MODULE_NOT_FOUND = "module_not_found"
    NOT_RELOADABLE = "not_reloadable"
    UNKNOWN_MATCH_TYPE = "unknown_match_type"
    INVALID_YIELD = "invalid_yield"
    ALIAS_CONFLICT = "alias_conflict"
    UNKNOWN_TYPE = "unknown_type"
    MISSING_EXEC = "missing_exec"
    INVALID_EMITTER = "invalid_emitter"


_MESSAGES = {
    ErrorCode.ALREADY_LOADED: "{0} '{1}' already loaded",
    ErrorCode.MODULE_NOT_FOUND: "{0} '{1}' does not exist",
    ErrorCode.NOT_RELOADABLE: "{0} '{1}' is not reloadable",
    ErrorCode.UNKNOWN_MATCH_TYPE: "Unknown match type '{0}'",
    ErrorCode.INVALID_YIELD: "Argument generator yielded {0!r}, expected an argument, a Flag or Done",
    ErrorCode.ALIAS_CONFLICT: "Alias '{0}' of '{1}' already exists on '{2}'",
    ErrorCode.UNKNOWN_TYPE: "Unknown argument type {0!r}",
    ErrorCode.MISSING_EXEC: "{0} does not implement exec()",
    ErrorCode.INVALID_EMITTER: "Unknown emitter '{0}'",
}


class BotkairoError(Exception):
    """Base error carrying a stable code."""
    
    def __init__(self, code: ErrorCode, *args: object):
        self.code = code
        self.args_ = args
        super().__init__(_MESSAGES[code].format(*args))


class ArgumentProtocolError(BotkairoError):
    """An argument generator yielded something outside the protocol."""
    
    def __init__(self, value: object):
        super().__init__(ErrorCode.INVALID_YIELD, value)


class ModuleError(BotkairoError):
    """Module loading or lookup failed."""
