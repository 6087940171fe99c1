"""
Commands.

A Command declares how it is triggered (aliases, prefixes, a regex or a
condition), how its arguments are read, and which guards apply. User
code subclasses it and implements exec().
"""

import inspect
import re
import time
from typing import Any, Callable

from botkairo.commands.argument import Argument, ArgumentDefaults, ArgumentOptions
from botkairo.commands.content_parser import ContentParser
from botkairo.commands.guard import InvocationGuard
from botkairo.commands.runner import ArgumentRunner
from botkairo.errors import BotkairoError, ErrorCode
from botkairo.modules.base import ModuleInfo, ModuleMixin
from botkairo.utils.helpers import Supplier, into_list


class Command(ModuleMixin):
    """
    A command module.

    Args:
        id: Unique command id.
        aliases: Names the command is invoked by.
        args: A list of arguments (Argument, ArgumentOptions or dicts), or
            an argument generator function (message, parsed, state).
        quoted: Treat quoted text as one phrase.
        separator: Split phrases on this string instead of whitespace.
        flags: Extra presence-flag words for the content parser.
        option_flags: Extra option-flag words for the content parser.
        channel: Restrict to "guild" or "dm" channels.
        owner_only: Only owners may run the command.
        editable: Re-run when a triggering message is edited.
        cooldown: Cooldown window in milliseconds.
        ratelimit: Uses allowed per cooldown window.
        lock: Lock key selector ("guild", "channel", "user" or a function).
        cooldown_key: Rate key selector, per user by default.
        ignore_cooldown: Ids or predicate that bypass the cooldown.
        ignore_permissions: Ids or predicate that bypass permission checks.
        argument_defaults: Prompt and otherwise defaults for the arguments.
        prefix: Prefix(es) overriding the handler's, or a function.
        user_permissions: Required author permissions, or a function
            returning the missing ones (None when satisfied).
        client_permissions: Same, for the bot in the channel.
        regex: Trigger on a regex (or a function returning one).
        condition: Trigger when this predicate is true.
        before: Called right before exec().
        category: Category id.
        clock: Time source for the cooldown, in seconds.
    """

    def __init__(
        self,
        id: str,
        aliases: list[str] | tuple[str, ...] = (),
        args: list[Any] | Callable[..., Any] | None = None,
        quoted: bool = True,
        separator: str | None = None,
        flags: list[str] | tuple[str, ...] = (),
        option_flags: list[str] | tuple[str, ...] = (),
        channel: str | None = None,
        owner_only: bool = False,
        editable: bool = True,
        cooldown: float | None = None,
        ratelimit: int = 1,
        lock: str | Callable | None = None,
        cooldown_key: str | Callable = "user",
        ignore_cooldown: Any = None,
        ignore_permissions: Any = None,
        argument_defaults: ArgumentDefaults | None = None,
        description: str = "",
        prefix: Any = None,
        user_permissions: Any = None,
        client_permissions: Any = None,
        regex: Any = None,
        condition: Callable[[Any], Any] | None = None,
        before: Callable[[Any], Any] | None = None,
        category: str = "default",
        clock: Callable[[], float] = time.time,
    ):
        if channel not in (None, "guild", "dm"):
            raise ValueError(f"Invalid channel restriction: {channel}")

        self.module = ModuleInfo(id=id, category_id=category)
        self.aliases = list(aliases)
        self.quoted = quoted
        self.separator = separator
        self.channel = channel
        self.owner_only = owner_only
        self.editable = editable
        self.description = description
        self.argument_defaults = argument_defaults or ArgumentDefaults()
        self.ignore_permissions = ignore_permissions
        self.user_permissions = user_permissions
        self.client_permissions = client_permissions

        self.prefix = Supplier.of(prefix) if prefix is not None else None
        self.regex = Supplier.of(regex) if regex is not None else None
        if condition is not None:
            self.condition = condition
        if before is not None:
            self.before = before

        self.guard = InvocationGuard(
            cooldown=cooldown,
            ratelimit=ratelimit,
            lock=lock,
            cooldown_key=cooldown_key,
            ignore_cooldown=ignore_cooldown,
            clock=clock,
        )

        self.argument_runner = ArgumentRunner(self)
        self.arguments: list[Argument] = []
        generator = self._generator_from(args)
        if generator is None:
            self.arguments = [self._to_argument(arg) for arg in into_list(args)]
            self.argument_generator = ArgumentRunner.from_arguments(self.arguments)
            flag_words, option_flag_words = ContentParser.get_flags(self.arguments)
        else:
            self.argument_generator = generator
            flag_words, option_flag_words = [], []

        self.content_parser = ContentParser(
            flag_words=[*flag_words, *flags],
            option_flag_words=[*option_flag_words, *option_flags],
            quoted=quoted,
            separator=separator,
        )

    def _generator_from(self, args: Any) -> Callable[..., Any] | None:
        """Pick the argument generator: the `args` option or an `args` method."""
        if callable(args):
            return args
        method = getattr(type(self), "args", None)
        if args is None and (inspect.isgeneratorfunction(method) or inspect.isasyncgenfunction(method)):
            return getattr(self, "args")
        return None

    def _to_argument(self, arg: Any) -> Argument:
        if isinstance(arg, Argument):
            arg.command = self
            return arg
        if isinstance(arg, (ArgumentOptions, dict)):
            return Argument(self, arg)
        raise TypeError(f"Invalid argument for command {self.id}: {arg!r}")

    @property
    def has_regex(self) -> bool:
        return self.regex is not None

    @property
    def has_condition(self) -> bool:
        return type(self).condition is not Command.condition or "condition" in vars(self)

    async def regex_for(self, message: Any) -> re.Pattern | None:
        """The regex trigger for a message, compiled case-insensitively when given as text."""
        if self.regex is None:
            return None
        pattern = await self.regex.resolve(message)
        if isinstance(pattern, str):
            pattern = re.compile(pattern, re.IGNORECASE)
        return pattern

    async def parse(self, message: Any, content: str) -> Any:
        """
        Parse content into this command's arguments.

        Returns:
            The resolved args, or a Flag (cancel, retry or continue).
        """
        parsed = self.content_parser.parse(content)
        return await self.argument_runner.run(message, parsed, self.argument_generator)

    def condition(self, message: Any) -> Any:
        """Trigger predicate for conditional commands; never true by default."""
        return False

    def before(self, message: Any) -> Any:
        """Runs before exec()."""
        return None

    def exec(self, message: Any, args: Any) -> Any:
        """Run the command. Subclasses must implement this."""
        raise BotkairoError(ErrorCode.MISSING_EXEC, type(self).__name__)

    def __repr__(self) -> str:
        return f"Command({self.id!r}, aliases={self.aliases!r})"
