"""
Control-flow signals for argument parsing and command execution.

A Flag is returned instead of a value to tell the runner or the command
handler what to do next:
- cancel: abort the invocation
- retry: re-run the handler with another message
- continue: hand the remaining content to another command
- fail: a type could not cast the phrase
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FlagType(str, Enum):
    """Kinds of control-flow signal."""
    CANCEL = "cancel"
    RETRY = "retry"
    CONTINUE = "continue"
    FAIL = "fail"


@dataclass
class Flag:
    """A tagged control-flow signal."""
    type: FlagType
    value: Any = None  # fail payload
    message: Any = None  # retry payload
    command: str | None = None  # continue target
    ignore: bool = False  # continue without inhibitors/guards
    rest: str | None = None  # continue content
    
    @classmethod
    def cancel(cls) -> "Flag":
        return cls(FlagType.CANCEL)
    
    @classmethod
    def retry(cls, message: Any) -> "Flag":
        return cls(FlagType.RETRY, message=message)
    
    @classmethod
    def fail(cls, value: Any) -> "Flag":
        return cls(FlagType.FAIL, value=value)
    
    @classmethod
    def continue_(cls, command: str, ignore: bool = False, rest: str | None = None) -> "Flag":
        return cls(FlagType.CONTINUE, command=command, ignore=ignore, rest=rest)
    
    @staticmethod
    def is_(value: Any, flag_type: FlagType | str) -> bool:
        """Check whether a value is a Flag of the given type."""
        return isinstance(value, Flag) and value.type == FlagType(flag_type)
    
    @property
    def is_short_circuit(self) -> bool:
        """Cancel, retry and continue stop the argument runner."""
        return self.type in (FlagType.CANCEL, FlagType.RETRY, FlagType.CONTINUE)


def is_failure(value: Any) -> bool:
    """None and fail flags both mean a cast did not succeed."""
    return value is None or Flag.is_(value, FlagType.FAIL)
