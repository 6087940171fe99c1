"""
Invocation guard for commands.

Provides:
- Locking: one running invocation per key (guild, channel, user or custom)
- Cooldowns: at most `ratelimit` uses per key within a fixed window
- Cooldown bypass for configured identities

Admission is decided before argument parsing; release() must be called
when the invocation ends, whatever the outcome.
"""

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Callable

from loguru import logger

from botkairo.utils.helpers import Supplier, into_list, maybe_await


class RejectionReason(str, Enum):
    """Why an invocation was not admitted."""
    LOCKED = "locked"
    COOLDOWN = "cooldown"


@dataclass
class Admission:
    """Result of an admission check."""
    admitted: bool
    reason: RejectionReason | None = None
    lock_key: str | None = None
    rate_key: str | None = None
    remaining_ms: float = 0.0


# Built-in key dimensions
KEY_SUPPLIERS: dict[str, Callable[[Any], Any]] = {
    "guild": lambda message: message.guild_id,
    "channel": lambda message: message.channel.id,
    "user": lambda message: message.author_id,
}


def key_supplier(selector: str | Callable | None) -> Supplier | None:
    """Turn a key selector ("guild", "channel", "user" or a function) into a Supplier."""
    if selector is None:
        return None
    if isinstance(selector, str):
        try:
            return Supplier.computed(KEY_SUPPLIERS[selector])
        except KeyError:
            raise ValueError(f"Unknown key selector: {selector}") from None
    return Supplier.of(selector)


@dataclass
class CooldownEntry:
    """Usage in the current window."""
    end_ms: float
    uses: int = 0


class CooldownManager:
    """Fixed-window usage counters per key."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._entries: dict[str, CooldownEntry] = {}

    def _now_ms(self) -> float:
        return self.clock() * 1000

    def hit(self, key: str, cooldown_ms: float, ratelimit: int) -> float:
        """
        Record a use of `key`.

        Returns:
            0 when the use is allowed, otherwise the milliseconds left
            until the window resets.
        """
        now = self._now_ms()
        entry = self._entries.get(key)
        if entry is None or now >= entry.end_ms:
            entry = CooldownEntry(end_ms=now + cooldown_ms)
            self._entries[key] = entry

        if entry.uses >= ratelimit:
            return entry.end_ms - now

        entry.uses += 1
        return 0

    def reset(self, key: str) -> None:
        self._entries.pop(key, None)

    def prune(self) -> int:
        """Drop expired windows. Returns how many were removed."""
        now = self._now_ms()
        expired = [key for key, entry in self._entries.items() if now >= entry.end_ms]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class LockManager:
    """Set of keys currently executing."""

    def __init__(self):
        self._held: set[str] = set()

    def acquire(self, key: str) -> bool:
        if key in self._held:
            return False
        self._held.add(key)
        return True

    def release(self, key: str) -> None:
        self._held.discard(key)

    def is_locked(self, key: str) -> bool:
        return key in self._held


@dataclass
class InvocationGuard:
    """
    Lock and cooldown gate for one command.

    Attributes:
        cooldown: Window length in milliseconds (None or 0 disables it).
        ratelimit: Uses allowed per window.
        lock: Lock key selector; None means the command is never locked.
        cooldown_key: Rate key selector, per user by default.
        ignore_cooldown: Ids (or a predicate) that bypass the cooldown.
    """
    cooldown: float | None = None
    ratelimit: int = 1
    lock: str | Callable | None = None
    cooldown_key: str | Callable = "user"
    ignore_cooldown: Any = None
    clock: Callable[[], float] = time.time
    cooldowns: CooldownManager = field(init=False)
    locks: LockManager = field(init=False)

    def __post_init__(self):
        self.cooldowns = CooldownManager(self.clock)
        self.locks = LockManager()
        self._lock_key = key_supplier(self.lock)
        self._rate_key = key_supplier(self.cooldown_key)

    async def is_ignored(self, message: Any, ignore: Any) -> bool:
        """Check the bypass list (ids) or predicate for a message."""
        if ignore is None:
            return False
        if callable(ignore):
            return bool(await maybe_await(ignore(message)))
        return str(message.author_id) in {str(i) for i in into_list(ignore)}

    async def admit(
        self,
        message: Any,
        default_cooldown: float | None = None,
        ignore_cooldown: Any = None,
    ) -> Admission:
        """
        Decide whether an invocation may start.

        Args:
            message: The triggering message.
            default_cooldown: Used when this guard has no cooldown of its own.
            ignore_cooldown: Used when this guard has no bypass list of its own.
        """
        lock_key = await self._lock_key.resolve(message) if self._lock_key else None
        lock_key = None if lock_key is None else str(lock_key)
        rate_key = str(await self._rate_key.resolve(message))

        cooldown = self.cooldown if self.cooldown is not None else default_cooldown
        ignore = self.ignore_cooldown if self.ignore_cooldown is not None else ignore_cooldown
        check_cooldown = bool(cooldown) and not await self.is_ignored(message, ignore)

        # No awaits below: check and acquire happen atomically on the loop.
        if lock_key is not None and self.locks.is_locked(lock_key):
            logger.debug(f"Invocation rejected, lock held: {lock_key}")
            return Admission(False, RejectionReason.LOCKED, lock_key=lock_key, rate_key=rate_key)

        if check_cooldown:
            self.cooldowns.prune()
            remaining = self.cooldowns.hit(rate_key, cooldown, self.ratelimit)
            if remaining > 0:
                logger.debug(f"Invocation rejected, cooldown for {rate_key}: {remaining:.0f}ms")
                return Admission(
                    False,
                    RejectionReason.COOLDOWN,
                    rate_key=rate_key,
                    remaining_ms=remaining,
                )

        if lock_key is not None:
            self.locks.acquire(lock_key)
        return Admission(True, lock_key=lock_key, rate_key=rate_key)

    def release(self, admission: Admission) -> None:
        """Release the lock taken by an admission, if any."""
        if admission.admitted and admission.lock_key is not None:
            self.locks.release(admission.lock_key)

    @asynccontextmanager
    async def guarded(self, message: Any, **kwargs: Any) -> AsyncIterator[Admission]:
        """Admit for the duration of the block; always releases."""
        admission = await self.admit(message, **kwargs)
        try:
            yield admission
        finally:
            self.release(admission)
