"""
Command handler.

Turns incoming messages into command invocations:
- prefix and alias matching (handler-wide and per-command prefixes)
- inhibitors, channel, owner and permission checks
- regex and conditional triggers
- the invocation guard (locks and cooldowns)
- argument parsing and exec, including cancel, retry and continue flags

Outcomes are reported as events on the handler.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from botkairo.commands.argument import ArgumentDefaults, PromptOptions
from botkairo.commands.command import Command
from botkairo.commands.flag import Flag, FlagType
from botkairo.commands.guard import RejectionReason
from botkairo.commands.types import TypeResolver
from botkairo.config.schema import HandlerConfig
from botkairo.errors import BotkairoError, ErrorCode
from botkairo.inhibitors.base import InhibitorType
from botkairo.modules.handler import ModuleHandler
from botkairo.utils.helpers import Supplier, alias_sort_key, into_list, maybe_await


class CommandEvents:
    """Events emitted by the command handler."""
    MESSAGE_BLOCKED = "message_blocked"
    MESSAGE_INVALID = "message_invalid"
    COMMAND_BLOCKED = "command_blocked"
    COMMAND_STARTED = "command_started"
    COMMAND_FINISHED = "command_finished"
    COMMAND_CANCELLED = "command_cancelled"
    COMMAND_LOCKED = "command_locked"
    COMMAND_BREAKOUT = "command_breakout"
    COOLDOWN = "cooldown"
    MISSING_PERMISSIONS = "missing_permissions"
    IN_PROMPT = "in_prompt"
    ERROR = "error"


class BlockedReasons:
    """Built-in block reasons."""
    CLIENT = "client"
    BOT = "bot"
    OWNER = "owner"
    GUILD = "guild"
    DM = "dm"


@dataclass
class ParsedComponentData:
    """What prefix matching found in a message."""
    command: Command | None = None
    prefix: str | None = None
    alias: str | None = None
    content: str | None = None
    after_prefix: str | None = None


_ALIAS_SPLIT = re.compile(r"\s+")


class CommandHandler(ModuleHandler):
    """
    Loads commands and dispatches messages to them.

    Args:
        client: The client whose "message" events are handled.
        directory: Default directory for load_all().
        config: Handler configuration.
        prefix: Overrides config.prefix; may be a function of the message.
    """

    def __init__(
        self,
        client: Any,
        directory: str | Path | None = None,
        config: HandlerConfig | None = None,
        prefix: Any = None,
        **kwargs: Any,
    ):
        super().__init__(Command, directory=directory, **kwargs)
        self.client = client
        self.config = config or HandlerConfig()
        self.prefix = Supplier.of(prefix if prefix is not None else self.config.prefixes)
        self.alias_replacement = re.compile(self.config.alias_replacement) if self.config.alias_replacement else None

        self.aliases: dict[str, str] = {}
        self.prefixes: dict[str, set[str]] = {}
        self.prompts: set[tuple[str, str]] = set()

        self.resolver = TypeResolver(self)
        self.inhibitor_handler: Any = None
        self.listener_handler: Any = None
        self.argument_defaults = ArgumentDefaults(
            prompt=PromptOptions(**self.config.prompt.model_dump()),
        )

        client.on("message", self.handle)
        if self.config.handle_edits:
            client.on("message_update", self._handle_edit)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, command: Command, filepath: Path | None = None) -> None:
        for alias in self._alias_variants(command):
            conflict = self.aliases.get(alias)
            if conflict is not None and conflict != command.id:
                raise BotkairoError(ErrorCode.ALIAS_CONFLICT, alias, command.id, conflict)

        super().register(command, filepath)

        for alias in self._alias_variants(command):
            self.aliases[alias] = command.id

        if command.prefix is not None and not command.prefix.is_computed:
            for prefix in into_list(command.prefix.value):
                self.prefixes.setdefault(prefix, set()).add(command.id)

    def deregister(self, command: Command) -> None:
        for alias in self._alias_variants(command):
            if self.aliases.get(alias) == command.id:
                del self.aliases[alias]

        for prefix, ids in list(self.prefixes.items()):
            ids.discard(command.id)
            if not ids:
                del self.prefixes[prefix]

        super().deregister(command)

    def _alias_variants(self, command: Command) -> list[str]:
        variants: list[str] = []
        for alias in command.aliases:
            alias = alias.lower()
            variants.append(alias)
            if self.alias_replacement is not None:
                replaced = self.alias_replacement.sub("", alias)
                if replaced and replaced != alias:
                    variants.append(replaced)
        return list(dict.fromkeys(variants))

    def find_command(self, name: str) -> Command | None:
        """Find a command by alias, case-insensitively."""
        return self.modules.get(self.aliases.get(name.lower(), ""))

    def use_inhibitor_handler(self, inhibitor_handler: Any) -> "CommandHandler":
        self.inhibitor_handler = inhibitor_handler
        self.resolver.inhibitor_handler = inhibitor_handler
        return self

    def use_listener_handler(self, listener_handler: Any) -> "CommandHandler":
        self.listener_handler = listener_handler
        self.resolver.listener_handler = listener_handler
        return self

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    @staticmethod
    def _prompt_key(message: Any) -> tuple[str, str]:
        return (str(message.channel.id), str(message.author_id))

    def add_prompt(self, message: Any) -> None:
        self.prompts.add(self._prompt_key(message))

    def remove_prompt(self, message: Any) -> None:
        self.prompts.discard(self._prompt_key(message))

    def has_prompt(self, message: Any) -> bool:
        """Whether the author is answering a prompt in this channel."""
        return self._prompt_key(message) in self.prompts

    def is_owner(self, user_id: Any) -> bool:
        owners = {str(i) for i in (*self.config.owner_ids, *getattr(self.client, "owner_ids", []))}
        return str(user_id) in owners

    # ------------------------------------------------------------------
    # Prefix parsing
    # ------------------------------------------------------------------

    async def parse_command(self, message: Any) -> ParsedComponentData:
        """
        Find the command a message invokes.

        Per-command prefixes are tried first, then the handler prefixes.
        """
        parsed = await self.parse_command_overwritten_prefixes(message)
        if parsed.command is not None:
            return parsed

        prefixes = into_list(await self.prefix.resolve(message))
        if self.config.allow_mention:
            user_id = getattr(self.client, "user_id", None)
            if user_id is not None:
                prefixes += [f"<@{user_id}>", f"<@!{user_id}>"]

        fallback = await self.parse_multiple_prefixes(message, [(prefix, None) for prefix in prefixes])
        return fallback if fallback.command is not None or parsed.prefix is None else parsed

    async def parse_command_overwritten_prefixes(self, message: Any) -> ParsedComponentData:
        pairs: list[tuple[str, set[str] | None]] = list(self.prefixes.items())
        for command in self.modules.values():
            if command.prefix is not None and command.prefix.is_computed:
                for prefix in into_list(await command.prefix.resolve(message)):
                    pairs.append((prefix, {command.id}))
        return await self.parse_multiple_prefixes(message, pairs)

    async def parse_multiple_prefixes(
        self,
        message: Any,
        pairs: list[tuple[str, set[str] | None]],
    ) -> ParsedComponentData:
        """Try prefixes in alias priority order; the first one naming a command wins."""
        results = [
            self.parse_with_prefix(message, prefix, associated)
            for prefix, associated in sorted(pairs, key=lambda pair: alias_sort_key(pair[0]))
        ]
        for parsed in results:
            if parsed.command is not None:
                return parsed
        for parsed in results:
            if parsed.prefix is not None:
                return parsed
        return ParsedComponentData()

    def parse_with_prefix(
        self,
        message: Any,
        prefix: str,
        associated_commands: set[str] | None = None,
    ) -> ParsedComponentData:
        """
        Match one prefix against a message.

        With associated_commands set, only those commands may match;
        without, commands that have their own prefix may not.
        """
        content = message.content
        if not prefix or not content.lower().startswith(prefix.lower()):
            return ParsedComponentData()

        after_prefix = content[len(prefix):].lstrip()
        alias = _ALIAS_SPLIT.split(after_prefix, maxsplit=1)[0] if after_prefix else ""
        rest = after_prefix[len(alias):].strip()
        parsed = ParsedComponentData(prefix=prefix, alias=alias, content=rest, after_prefix=after_prefix.strip())

        command = self.find_command(alias) if alias else None
        if command is None:
            return parsed
        if associated_commands is None:
            if command.prefix is not None:
                return parsed
        elif command.id not in associated_commands:
            return parsed

        parsed.command = command
        return parsed

    # ------------------------------------------------------------------
    # Handling
    # ------------------------------------------------------------------

    async def handle(self, message: Any) -> bool | None:
        """
        Handle an incoming message.

        Returns:
            True if a command ran (or was cancelled while running), False
            if the message was blocked or matched nothing, None on error.
        """
        try:
            if await self.run_all_type_inhibitors(message):
                return False

            if self.has_prompt(message):
                await self.emit(CommandEvents.IN_PROMPT, message)
                return False

            if await self.run_pre_type_inhibitors(message):
                return False

            parsed = await self.parse_command(message)
            if parsed.command is None:
                ran = await self.handle_regex_and_conditional_commands(message)
                if not ran:
                    await self.emit(CommandEvents.MESSAGE_INVALID, message)
                return ran

            return await self.handle_direct_command(message, parsed.content or "", parsed.command)
        except Exception as err:
            await self.emit_error(err, message)
            return None

    async def _handle_edit(self, old_message: Any, new_message: Any) -> bool | None:
        if old_message.content == new_message.content:
            return False
        return await self.handle(new_message)

    async def handle_direct_command(
        self,
        message: Any,
        content: str,
        command: Command,
        ignore: bool = False,
    ) -> bool:
        """
        Run a known command on some content.

        With `ignore`, inhibitors and permission checks are skipped; the
        invocation guard always applies.
        """
        if not ignore:
            if message.edited and not command.editable:
                return False
            if await self.run_post_type_inhibitors(message, command):
                return False

        admission = await command.guard.admit(
            message,
            default_cooldown=self.config.default_cooldown,
            ignore_cooldown=self.config.ignore_cooldown or None,
        )
        if not admission.admitted:
            await self._emit_rejection(message, command, admission)
            return False

        try:
            args = await command.parse(message, content)
            if Flag.is_(args, FlagType.CANCEL):
                await self.emit(CommandEvents.COMMAND_CANCELLED, message, command)
                return True
            if not isinstance(args, Flag):
                await self.run_command(message, command, args)
                return True
        finally:
            command.guard.release(admission)

        # Retry and continue run after this invocation's lock is released.
        if Flag.is_(args, FlagType.RETRY):
            await self.emit(CommandEvents.COMMAND_BREAKOUT, message, command, args.message)
            return bool(await self.handle(args.message))

        target = self.modules.get(args.command)
        if target is None:
            raise BotkairoError(ErrorCode.MODULE_NOT_FOUND, "Command", args.command)
        logger.debug(f"Continuing {command.id} -> {target.id} with {args.rest!r}")
        return await self.handle_direct_command(message, args.rest or "", target, args.ignore)

    async def handle_regex_and_conditional_commands(self, message: Any) -> bool:
        ran_regex = await self.handle_regex_commands(message)
        ran_conditional = await self.handle_conditional_commands(message)
        return ran_regex or ran_conditional

    async def handle_regex_commands(self, message: Any) -> bool:
        """Run every regex command whose pattern matches the content."""
        matched = []
        for command in self.modules.values():
            if message.edited and not command.editable:
                continue
            pattern = await command.regex_for(message)
            if pattern is None:
                continue
            match = pattern.search(message.content)
            if match is not None:
                matched.append((command, {"match": match, "matches": list(pattern.finditer(message.content))}))

        for command, args in matched:
            await self._run_triggered(message, command, args)
        return bool(matched)

    async def handle_conditional_commands(self, message: Any) -> bool:
        """Run every conditional command whose condition holds."""
        matched = []
        for command in self.modules.values():
            if message.edited and not command.editable:
                continue
            if command.has_condition and await maybe_await(command.condition(message)):
                matched.append(command)

        for command in matched:
            await self._run_triggered(message, command, {})
        return bool(matched)

    async def _run_triggered(self, message: Any, command: Command, args: Any) -> None:
        if await self.run_post_type_inhibitors(message, command):
            return
        async with command.guard.guarded(
            message,
            default_cooldown=self.config.default_cooldown,
            ignore_cooldown=self.config.ignore_cooldown or None,
        ) as admission:
            if not admission.admitted:
                await self._emit_rejection(message, command, admission)
                return
            await self.run_command(message, command, args)

    async def _emit_rejection(self, message: Any, command: Command, admission: Any) -> None:
        if admission.reason is RejectionReason.LOCKED:
            await self.emit(CommandEvents.COMMAND_LOCKED, message, command)
        else:
            await self.emit(CommandEvents.COOLDOWN, message, command, admission.remaining_ms)

    async def run_command(self, message: Any, command: Command, args: Any) -> Any:
        """Call before() and exec(), emitting started and finished events."""
        logger.debug(f"Running command {command.id}")
        await self.emit(CommandEvents.COMMAND_STARTED, message, command, args)
        await maybe_await(command.before(message))
        result = await maybe_await(command.exec(message, args))
        await self.emit(CommandEvents.COMMAND_FINISHED, message, command, args, result)
        return result

    async def emit_error(self, err: Exception, message: Any, command: Command | None = None) -> None:
        """Report an error as an event; re-raise it when nothing listens."""
        logger.error(f"Error handling message {getattr(message, 'id', '')}: {err}")
        if self.listener_count(CommandEvents.ERROR):
            await self.emit(CommandEvents.ERROR, err, message, command)
            return
        raise err

    # ------------------------------------------------------------------
    # Inhibitors
    # ------------------------------------------------------------------

    async def run_all_type_inhibitors(self, message: Any) -> bool:
        reason = None
        if self.config.block_client and str(message.author_id) == str(getattr(self.client, "user_id", None)):
            reason = BlockedReasons.CLIENT
        elif self.config.block_bots and message.author_is_bot:
            reason = BlockedReasons.BOT
        elif self.inhibitor_handler is not None:
            reason = await self.inhibitor_handler.test(InhibitorType.ALL, message)

        if reason is None:
            return False
        await self.emit(CommandEvents.MESSAGE_BLOCKED, message, reason)
        return True

    async def run_pre_type_inhibitors(self, message: Any) -> bool:
        if self.inhibitor_handler is None:
            return False
        reason = await self.inhibitor_handler.test(InhibitorType.PRE, message)
        if reason is None:
            return False
        await self.emit(CommandEvents.MESSAGE_BLOCKED, message, reason)
        return True

    async def run_post_type_inhibitors(self, message: Any, command: Command) -> bool:
        """Owner, channel, permission and post inhibitor checks for a command."""
        reason = None
        if command.owner_only and not self.is_owner(message.author_id):
            reason = BlockedReasons.OWNER
        elif command.channel == "guild" and message.channel.dm:
            reason = BlockedReasons.GUILD
        elif command.channel == "dm" and not message.channel.dm:
            reason = BlockedReasons.DM

        if reason is not None:
            await self.emit(CommandEvents.COMMAND_BLOCKED, message, command, reason)
            return True

        if await self.run_permission_checks(message, command):
            return True

        if self.inhibitor_handler is not None:
            reason = await self.inhibitor_handler.test(InhibitorType.POST, message, command)
            if reason is not None:
                await self.emit(CommandEvents.COMMAND_BLOCKED, message, command, reason)
                return True
        return False

    async def run_permission_checks(self, message: Any, command: Command) -> bool:
        if command.client_permissions:
            missing = await self._missing(command.client_permissions, message.channel.client_permissions, message)
            if missing:
                await self.emit(CommandEvents.MISSING_PERMISSIONS, message, command, "client", missing)
                return True

        if command.user_permissions:
            ignore = command.ignore_permissions
            if ignore is None:
                ignore = self.config.ignore_permissions or None
            if not await command.guard.is_ignored(message, ignore):
                missing = await self._missing(command.user_permissions, message.permissions, message)
                if missing:
                    await self.emit(CommandEvents.MISSING_PERMISSIONS, message, command, "user", missing)
                    return True
        return False

    @staticmethod
    async def _missing(required: Any, granted: set[str], message: Any) -> Any:
        if callable(required):
            return await maybe_await(required(message))
        return sorted(set(into_list(required)) - set(granted))
