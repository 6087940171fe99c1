"""
Arguments for commands.

An Argument describes one parameter of a command:
- how it picks tokens from the parsed content (its match policy)
- how those tokens are cast (its type)
- what happens when casting fails (default, prompt, otherwise, cancel)

The static methods on Argument build composite types (union, compose,
range, ...) out of named types, functions, choice lists and regexes.
"""

import asyncio
import re
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Sequence

from loguru import logger

from botkairo.commands.flag import Flag, is_failure
from botkairo.commands.types import TypeResolver
from botkairo.errors import BotkairoError, ErrorCode
from botkairo.utils.helpers import UNSET, into_callable, into_list, maybe_await

if TYPE_CHECKING:
    from botkairo.commands.command import Command


class ArgumentMatch(str, Enum):
    """How an argument picks its input from the parsed content."""
    PHRASE = "phrase"
    FLAG = "flag"
    OPTION = "option"
    REST = "rest"
    SEPARATE = "separate"
    TEXT = "text"
    CONTENT = "content"
    REST_CONTENT = "restContent"
    NONE = "none"


@dataclass
class FailureData:
    """Passed to default and otherwise suppliers."""
    phrase: str
    failure: Any = None


@dataclass
class PromptData:
    """Passed to prompt text suppliers."""
    retries: int
    infinite: bool
    message: Any
    phrase: str
    failure: Any = None


@dataclass
class PromptOptions:
    """
    Prompt configuration. Unset fields fall back to the command defaults,
    then to the handler defaults.

    Text fields (start, retry, timeout, ended, cancel) are strings, lists
    of lines, or functions (message, PromptData) returning either.
    """
    start: Any = UNSET
    retry: Any = UNSET
    timeout: Any = UNSET
    ended: Any = UNSET
    cancel: Any = UNSET
    retries: Any = UNSET
    time: Any = UNSET  # seconds
    cancel_word: Any = UNSET
    stop_word: Any = UNSET
    optional: Any = UNSET
    infinite: Any = UNSET
    limit: Any = UNSET  # None for unbounded
    breakout: Any = UNSET

    def merge(self, *fallbacks: "PromptOptions | None") -> "PromptOptions":
        """Fill unset fields from the fallbacks, first match wins."""
        merged = replace(self)
        for fallback in fallbacks:
            if fallback is None:
                continue
            for f in fields(self):
                if getattr(merged, f.name) is UNSET:
                    setattr(merged, f.name, getattr(fallback, f.name))
        return merged


@dataclass
class ArgumentDefaults:
    """Argument defaults shared by a command or a handler."""
    prompt: PromptOptions = field(default_factory=PromptOptions)
    otherwise: Any = None
    modify_otherwise: Callable | None = None


@dataclass
class ArgumentOptions:
    """Declarative description of an argument."""
    id: str | None = None
    match: ArgumentMatch | str = ArgumentMatch.PHRASE
    type: Any = "string"
    flag: str | list[str] | None = None
    multiple_flags: bool = False
    index: int | None = None
    unordered: bool | int | Sequence[int] = False
    limit: int | None = None
    default: Any = UNSET
    otherwise: Any = None
    modify_otherwise: Callable | None = None
    prompt: PromptOptions | dict | bool | None = None
    description: str = ""


@dataclass(frozen=True)
class TypeCombinator:
    """A composite type; resolved with access to the type registry."""
    name: str
    function: Callable[[TypeResolver, Any, Any], Any]

    async def resolve(self, resolver: TypeResolver, message: Any, phrase: Any) -> Any:
        return await self.function(resolver, message, phrase)


class Argument:
    """
    A command argument.

    Created from ArgumentOptions (or keyword arguments with the same
    names). The owning command supplies argument defaults and, through
    its handler, the type resolver.
    """

    def __init__(
        self,
        command: "Command | None" = None,
        options: ArgumentOptions | dict | None = None,
        **kwargs: Any,
    ):
        if options is None:
            options = ArgumentOptions(**kwargs)
        elif isinstance(options, dict):
            options = ArgumentOptions(**options)

        self.command = command
        self.id = options.id
        try:
            self.match = ArgumentMatch(options.match)
        except ValueError:
            raise BotkairoError(ErrorCode.UNKNOWN_MATCH_TYPE, options.match) from None
        self.type = options.type
        self.flag = options.flag
        self.multiple_flags = options.multiple_flags
        self.index = options.index
        self.unordered = options.unordered
        self.limit = options.limit
        self.default = options.default
        self.otherwise = options.otherwise
        self.modify_otherwise = options.modify_otherwise
        self.description = options.description

        prompt = options.prompt
        if prompt is True:
            prompt = PromptOptions()
        elif isinstance(prompt, dict):
            prompt = PromptOptions(**prompt)
        self.prompt: PromptOptions | None = prompt or None

        self._resolver: TypeResolver | None = None

    def __repr__(self) -> str:
        return f"Argument(id={self.id!r}, match={self.match.value!r}, type={self.type!r})"

    @property
    def handler(self) -> Any:
        return getattr(self.command, "handler", None) if self.command else None

    @property
    def resolver(self) -> TypeResolver:
        handler = self.handler
        if handler is not None and getattr(handler, "resolver", None) is not None:
            return handler.resolver
        if self._resolver is None:
            self._resolver = TypeResolver()
        return self._resolver

    @property
    def names(self) -> list[str]:
        """Flag aliases for flag/option arguments."""
        return into_list(self.flag)

    @property
    def is_unordered(self) -> bool:
        return self.unordered is not False and self.unordered is not None

    def unordered_indices(self, phrase_count: int) -> list[int]:
        """Phrase indices this unordered argument may bind to."""
        if self.unordered is True:
            return list(range(phrase_count))
        if isinstance(self.unordered, int):
            return list(range(self.unordered, phrase_count))
        return [i for i in self.unordered if 0 <= i < phrase_count]

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    def _command_defaults(self) -> ArgumentDefaults | None:
        return getattr(self.command, "argument_defaults", None)

    def _handler_defaults(self) -> ArgumentDefaults | None:
        return getattr(self.handler, "argument_defaults", None)

    def prompt_options(self) -> PromptOptions | None:
        """The effective prompt options, or None when prompting is off."""
        if self.prompt is None:
            return None
        layers = [d.prompt for d in (self._command_defaults(), self._handler_defaults()) if d]
        merged = self.prompt.merge(*layers, DEFAULT_PROMPT)
        return merged

    def _otherwise(self) -> tuple[Any, Callable | None]:
        otherwise, modify = self.otherwise, self.modify_otherwise
        for defaults in (self._command_defaults(), self._handler_defaults()):
            if defaults is None:
                continue
            if otherwise is None:
                otherwise = defaults.otherwise
            if modify is None:
                modify = defaults.modify_otherwise
        return otherwise, modify

    async def _default(self, message: Any, phrase: str, failure: Any) -> Any:
        if self.default is UNSET:
            return None
        return await maybe_await(into_callable(self.default)(message, FailureData(phrase, failure)))

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    async def process(self, message: Any, phrase: str) -> Any:
        """
        Cast a phrase and apply the failure policy.

        Order on failure: default, prompt, otherwise, cancel. Later
        steps only run when earlier ones are not configured or gave up.

        Returns:
            The value, or a Flag (cancel/retry) that stops the runner.
        """
        prompt = self.prompt_options()

        if not phrase and prompt is not None and prompt.optional:
            return await self._default(message, phrase, None)

        result = await self.cast(message, phrase)
        if not is_failure(result):
            return result

        if self.default is not UNSET:
            return await self._default(message, phrase, result)

        if prompt is not None:
            collected = await self.collect(message, phrase, result)
            if not is_failure(collected):
                return collected
            result = collected

        otherwise, modify = self._otherwise()
        if otherwise is not None:
            return await self._send_otherwise(message, phrase, result, otherwise, modify)

        logger.debug(f"Argument {self.id!r} failed to cast {phrase!r}, cancelling")
        return Flag.cancel()

    async def _send_otherwise(
        self,
        message: Any,
        phrase: str,
        failure: Any,
        otherwise: Any,
        modify: Callable | None,
    ) -> Flag:
        data = FailureData(phrase, failure)
        text = await maybe_await(into_callable(otherwise)(message, data))
        if isinstance(text, (list, tuple)):
            text = "\n".join(text)
        if modify is not None:
            text = await maybe_await(modify(message, text, data))
            if isinstance(text, (list, tuple)):
                text = "\n".join(text)
        if text:
            await message.channel.send(text)
        return Flag.cancel()

    async def cast(self, message: Any, phrase: Any) -> Any:
        """Cast a phrase with this argument's type, without prompting."""
        return await Argument.cast_type(self.type, self.resolver, message, phrase)

    async def collect(self, message: Any, command_input: str = "", parsed_input: Any = None) -> Any:
        """
        Prompt the author for input until it casts.

        Returns:
            The cast value (a list in infinite mode), Flag.cancel() when
            the author cancels, Flag.retry(reply) on breakout, or a fail
            flag when retries run out or the prompt times out.
        """
        options = self.prompt_options() or DEFAULT_PROMPT.merge()
        infinite = bool(options.infinite) or (self.match is ArgumentMatch.SEPARATE and not command_input)
        values: list[Any] = []
        channel = message.channel
        handler = self.handler

        async def text_for(prompter: Any, retries: int, input_message: Any, phrase: str, failure: Any) -> str:
            data = PromptData(retries, infinite, input_message, phrase, failure)
            text = await maybe_await(into_callable(prompter)(message, data))
            if isinstance(text, (list, tuple)):
                text = "\n".join(text)
            return text or ""

        retry_count = 1 + int(bool(command_input))
        prev_message, prev_input, prev_failure = message, command_input, parsed_input

        if handler is not None:
            handler.add_prompt(message)
        waiter: asyncio.Future | None = None
        try:
            while True:
                # The waiter is registered before the prompt text goes out,
                # so an immediate reply cannot be missed.
                waiter = asyncio.ensure_future(channel.await_reply(lambda m: m.author_id == message.author_id))
                await asyncio.sleep(0)

                if retry_count != 1 or not infinite or not values:
                    prompter = options.start if retry_count == 1 else options.retry
                    text = await text_for(prompter, retry_count, prev_message, prev_input, prev_failure)
                    if text:
                        await channel.send(text)

                try:
                    reply = await asyncio.wait_for(waiter, timeout=options.time)
                except asyncio.TimeoutError:
                    logger.debug(f"Prompt for {self.id!r} timed out")
                    text = await text_for(options.timeout, retry_count, prev_message, prev_input, None)
                    if text:
                        await channel.send(text)
                    return Flag.fail(prev_input)

                if options.breakout and handler is not None:
                    parsed = await handler.parse_command(reply)
                    if parsed.command is not None:
                        return Flag.retry(reply)

                content = reply.content
                if content.lower() == str(options.cancel_word).lower():
                    text = await text_for(options.cancel, retry_count, reply, content, None)
                    if text:
                        await channel.send(text)
                    return Flag.cancel()

                if infinite and content.lower() == str(options.stop_word).lower():
                    if values:
                        return values
                    prev_message, prev_input, prev_failure = reply, content, None
                    retry_count += 1
                    continue

                value = await self.cast(reply, content)
                if is_failure(value):
                    if retry_count <= options.retries:
                        prev_message, prev_input, prev_failure = reply, content, value
                        retry_count += 1
                        continue
                    text = await text_for(options.ended, retry_count, reply, content, value)
                    if text:
                        await channel.send(text)
                    return Flag.fail(content)

                if not infinite:
                    return value

                values.append(value)
                if options.limit is not None and len(values) >= options.limit:
                    return values
                prev_message, prev_input, prev_failure = message, content, value
                retry_count = 1
        finally:
            if waiter is not None and not waiter.done():
                waiter.cancel()
            if handler is not None:
                handler.remove_prompt(message)

    # ------------------------------------------------------------------
    # Casting and type combinators
    # ------------------------------------------------------------------

    @staticmethod
    async def cast_type(type_: Any, resolver: TypeResolver, message: Any, phrase: Any) -> Any:
        """
        Cast a phrase with any supported type.

        Failures are normalised to Flag.fail(phrase).
        """
        result = await Argument._cast(type_, resolver, message, phrase)
        if result is None:
            return Flag.fail(phrase)
        return result

    @staticmethod
    async def _cast(type_: Any, resolver: TypeResolver, message: Any, phrase: Any) -> Any:
        if type_ is None:
            return phrase or None

        if isinstance(type_, TypeCombinator):
            return await type_.resolve(resolver, message, phrase)

        if isinstance(type_, (list, tuple)):
            text = str(phrase).lower()
            for entry in type_:
                if isinstance(entry, (list, tuple)):
                    if any(str(alias).lower() == text for alias in entry):
                        return entry[0]
                elif str(entry).lower() == text:
                    return entry
            return None

        if isinstance(type_, re.Pattern):
            match = type_.search(str(phrase))
            if match is None:
                return None
            return {"match": match, "matches": list(type_.finditer(str(phrase)))}

        if isinstance(type_, str):
            function = resolver.type(type_)
            if function is None:
                raise BotkairoError(ErrorCode.UNKNOWN_TYPE, type_)
            return await maybe_await(function(message, phrase))

        if callable(type_):
            return await maybe_await(type_(message, phrase))

        raise BotkairoError(ErrorCode.UNKNOWN_TYPE, type_)

    @staticmethod
    def union(*types: Any) -> TypeCombinator:
        """First type that casts successfully wins."""
        async def resolve(resolver: TypeResolver, message: Any, phrase: Any) -> Any:
            result: Any = None
            for entry in types:
                result = await Argument.cast_type(entry, resolver, message, phrase)
                if not is_failure(result):
                    return result
            return result

        return TypeCombinator("union", resolve)

    @staticmethod
    def product(*types: Any) -> TypeCombinator:
        """Every type must cast; the result is a tuple of all values."""
        async def resolve(resolver: TypeResolver, message: Any, phrase: Any) -> Any:
            results = []
            for entry in types:
                result = await Argument.cast_type(entry, resolver, message, phrase)
                if is_failure(result):
                    return result
                results.append(result)
            return tuple(results)

        return TypeCombinator("product", resolve)

    @staticmethod
    def validate(type_: Any, predicate: Callable[[Any, Any, Any], Any]) -> TypeCombinator:
        """Cast, then fail unless predicate(message, phrase, value) is truthy."""
        async def resolve(resolver: TypeResolver, message: Any, phrase: Any) -> Any:
            result = await Argument.cast_type(type_, resolver, message, phrase)
            if is_failure(result):
                return result
            if not await maybe_await(predicate(message, phrase, result)):
                return Flag.fail(phrase)
            return result

        return TypeCombinator("validate", resolve)

    @staticmethod
    def range(type_: Any, minimum: float, maximum: float, inclusive: bool = False) -> TypeCombinator:
        """
        Bound a numeric result (or a sized result's length).

        The lower bound is always inclusive; the upper bound only when
        `inclusive` is set. Values that are neither numbers nor sized
        pass through unchanged.
        """
        def in_range(message: Any, phrase: Any, value: Any) -> bool:
            if isinstance(value, bool):
                return True
            if isinstance(value, (int, float)):
                measure = value
            elif hasattr(value, "__len__"):
                measure = len(value)
            else:
                return True
            return minimum <= measure and (measure <= maximum if inclusive else measure < maximum)

        return Argument.validate(type_, in_range)

    @staticmethod
    def compose(*types: Any) -> TypeCombinator:
        """Feed each type's output into the next; stop at the first failure."""
        async def resolve(resolver: TypeResolver, message: Any, phrase: Any) -> Any:
            value = phrase
            for entry in types:
                value = await Argument.cast_type(entry, resolver, message, value)
                if is_failure(value):
                    return value
            return value

        return TypeCombinator("compose", resolve)

    @staticmethod
    def compose_with_failure(*types: Any) -> TypeCombinator:
        """Like compose, but failures are passed on to the next type."""
        async def resolve(resolver: TypeResolver, message: Any, phrase: Any) -> Any:
            value = phrase
            for entry in types:
                value = await Argument.cast_type(entry, resolver, message, value)
            return value

        return TypeCombinator("compose_with_failure", resolve)

    @staticmethod
    def with_input(type_: Any) -> TypeCombinator:
        """Wrap the result as {"input": phrase, "value": value}."""
        async def resolve(resolver: TypeResolver, message: Any, phrase: Any) -> Any:
            result = await Argument.cast_type(type_, resolver, message, phrase)
            if is_failure(result):
                return Flag.fail({"input": phrase, "value": result})
            return {"input": phrase, "value": result}

        return TypeCombinator("with_input", resolve)

    @staticmethod
    def tagged(type_: Any, tag: Any = UNSET) -> TypeCombinator:
        """Wrap the result as {"tag": tag, "value": value}; tag defaults to the type."""
        tag = type_ if tag is UNSET else tag

        async def resolve(resolver: TypeResolver, message: Any, phrase: Any) -> Any:
            result = await Argument.cast_type(type_, resolver, message, phrase)
            if is_failure(result):
                return Flag.fail({"tag": tag, "value": result})
            return {"tag": tag, "value": result}

        return TypeCombinator("tagged", resolve)

    @staticmethod
    def tagged_with_input(type_: Any, tag: Any = UNSET) -> TypeCombinator:
        """Wrap the result as {"tag", "input", "value"}."""
        tag = type_ if tag is UNSET else tag

        async def resolve(resolver: TypeResolver, message: Any, phrase: Any) -> Any:
            result = await Argument.cast_type(type_, resolver, message, phrase)
            data = {"tag": tag, "input": phrase, "value": result}
            if is_failure(result):
                return Flag.fail(data)
            return data

        return TypeCombinator("tagged_with_input", resolve)

    @staticmethod
    def tagged_union(*types: Any) -> TypeCombinator:
        """Union of tagged types, so the caller can tell which one matched."""
        return Argument.union(*(Argument.tagged(entry) for entry in types))

    @staticmethod
    def is_failure(value: Any) -> bool:
        return is_failure(value)


DEFAULT_PROMPT = PromptOptions(
    start="",
    retry="",
    timeout="",
    ended="",
    cancel="",
    retries=1,
    time=30.0,
    cancel_word="cancel",
    stop_word="stop",
    optional=False,
    infinite=False,
    limit=None,
    breakout=True,
)
