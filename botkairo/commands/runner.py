"""
Argument runner.

Drives an argument generator against one parsed content:
- the generator yields arguments (Argument, ArgumentOptions or dicts)
- each argument is resolved and its value is sent back in
- the generator finishes by returning (or yielding Done) the final args

Declared argument lists are turned into such a generator by
from_arguments(); commands may also supply their own generator,
async generator, or a step function wrapped with steps().
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable

from loguru import logger

from botkairo.commands.argument import Argument, ArgumentMatch, ArgumentOptions
from botkairo.commands.content_parser import ContentParserResult, ParsedToken
from botkairo.commands.flag import Flag, is_failure
from botkairo.errors import ArgumentProtocolError, BotkairoError, ErrorCode
from botkairo.utils.helpers import maybe_await


@dataclass
class Done:
    """Ends an argument generator with a final value."""
    value: Any = None


@dataclass
class RunnerState:
    """
    Mutable state for one run.

    phrase_index is the ordered cursor; used_* hold the indices of
    phrases, flags and option flags already consumed.
    """
    phrase_index: int = 0
    used_indices: set[int] = field(default_factory=set)
    used_flags: set[int] = field(default_factory=set)
    used_options: set[int] = field(default_factory=set)
    results: dict[str, Any] = field(default_factory=dict)

    def unused(self, parsed: ContentParserResult, start: int = 0, limit: int | None = None) -> list[int]:
        """Indices of unconsumed phrases from `start`, at most `limit` of them."""
        indices = [i for i in range(start, len(parsed.phrases)) if i not in self.used_indices]
        return indices if limit is None else indices[:limit]

    def consume(self, indices: list[int], advance: bool = True) -> None:
        self.used_indices.update(indices)
        if advance and indices:
            self.phrase_index = max(self.phrase_index, indices[-1] + 1)


def steps(step: Callable[[Any], Any]) -> Callable[..., Any]:
    """
    Build an argument generator from a step function.

    step(prior) is called with None first, then with each resolved value,
    and returns the next argument or Done(final).
    """
    async def generate(message: Any, parsed: ContentParserResult, state: RunnerState):
        prior = None
        while True:
            item = await maybe_await(step(prior))
            if isinstance(item, Done):
                yield item
                return
            prior = yield item

    return generate


class _Stepper:
    """Uniform send() over sync and async generators."""

    def __init__(self, generator: Any):
        if inspect.isasyncgen(generator):
            self._async = True
        elif inspect.isgenerator(generator):
            self._async = False
        else:
            raise ArgumentProtocolError(generator)
        self.generator = generator

    async def send(self, value: Any) -> Any:
        """Send a value in; returns the next yield, or Done when finished."""
        if self._async:
            try:
                return await self.generator.asend(value)
            except StopAsyncIteration:
                return Done()
        try:
            return self.generator.send(value)
        except StopIteration as stop:
            return Done(stop.value)

    async def close(self) -> None:
        if self._async:
            await self.generator.aclose()
        else:
            self.generator.close()


class ArgumentRunner:
    """Resolves a command's arguments against parsed content."""

    def __init__(self, command: Any = None):
        self.command = command

    async def run(self, message: Any, parsed: ContentParserResult, generator: Callable[..., Any]) -> Any:
        """
        Run an argument generator to completion.

        Returns:
            The final args (the generator's return value, or the results
            collected by argument id when it returns nothing), or a Flag
            when an argument or the generator short-circuits.
        """
        state = RunnerState()
        stepper = _Stepper(generator(message, parsed, state))
        try:
            item = await stepper.send(None)
            while not isinstance(item, Done):
                if isinstance(item, Flag):
                    if not item.is_short_circuit:
                        raise ArgumentProtocolError(item)
                    return self._augment_rest(item, parsed, state)

                arg = self._to_argument(item)
                value = await self.run_one(message, parsed, state, arg)
                if isinstance(value, Flag) and value.is_short_circuit:
                    return self._augment_rest(value, parsed, state)
                if arg.id is not None:
                    state.results[arg.id] = value
                item = await stepper.send(value)
        finally:
            await stepper.close()

        result = state.results if item.value is None else item.value
        return self._augment_rest(result, parsed, state)

    def _to_argument(self, item: Any) -> Argument:
        if isinstance(item, Argument):
            return item
        if isinstance(item, (ArgumentOptions, dict)):
            return Argument(self.command, item)
        raise ArgumentProtocolError(item)

    @staticmethod
    def _augment_rest(value: Any, parsed: ContentParserResult, state: RunnerState) -> Any:
        """Give continue flags the raw content that was not consumed."""
        if not Flag.is_(value, "continue") or value.rest is not None:
            return value
        consumed = {id(parsed.phrases[i]) for i in state.used_indices}
        consumed.update(id(parsed.flags[i]) for i in state.used_flags)
        consumed.update(id(parsed.option_flags[i]) for i in state.used_options)
        value.rest = "".join(token.raw for token in parsed.all if id(token) not in consumed).strip()
        return value

    async def run_one(self, message: Any, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        """Resolve a single argument by its match policy."""
        runners = {
            ArgumentMatch.PHRASE: self.run_phrase,
            ArgumentMatch.FLAG: self.run_flag,
            ArgumentMatch.OPTION: self.run_option,
            ArgumentMatch.REST: self.run_rest,
            ArgumentMatch.SEPARATE: self.run_separate,
            ArgumentMatch.TEXT: self.run_text,
            ArgumentMatch.CONTENT: self.run_content,
            ArgumentMatch.REST_CONTENT: self.run_rest_content,
            ArgumentMatch.NONE: self.run_none,
        }
        run = runners.get(arg.match)
        if run is None:
            raise BotkairoError(ErrorCode.UNKNOWN_MATCH_TYPE, arg.match)
        logger.debug(f"Resolving argument {arg.id!r} ({arg.match.value})")
        return await run(message, parsed, state, arg)

    async def run_phrase(self, message: Any, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        if arg.is_unordered:
            for i in arg.unordered_indices(len(parsed.phrases)):
                if i in state.used_indices:
                    continue
                # cast rather than process: no prompts per candidate
                value = await arg.cast(message, parsed.phrases[i].value)
                if not is_failure(value):
                    state.consume([i], advance=False)
                    return value
            # No candidate fits: the failure chain sees empty input, as for a missing phrase.
            return await arg.process(message, "")

        if arg.index is not None:
            if arg.index < len(parsed.phrases) and arg.index not in state.used_indices:
                state.consume([arg.index], advance=False)
                return await arg.process(message, parsed.phrases[arg.index].value)
            return await arg.process(message, "")

        indices = state.unused(parsed, state.phrase_index, 1)
        state.consume(indices)
        phrase = parsed.phrases[indices[0]].value if indices else ""
        return await arg.process(message, phrase)

    async def run_rest(self, message: Any, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        start = state.phrase_index if arg.index is None else arg.index
        indices = state.unused(parsed, start, arg.limit)
        state.consume(indices, advance=arg.index is None)
        return await arg.process(message, " ".join(parsed.phrases[i].value for i in indices))

    async def run_rest_content(self, message: Any, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        start = state.phrase_index if arg.index is None else arg.index
        indices = state.unused(parsed, start, arg.limit)
        state.consume(indices, advance=arg.index is None)
        return await arg.process(message, self._raw(parsed.phrases, indices))

    async def run_separate(self, message: Any, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        start = state.phrase_index if arg.index is None else arg.index
        indices = state.unused(parsed, start, arg.limit)
        if not indices:
            return await arg.process(message, "")

        state.consume(indices, advance=arg.index is None)
        values = []
        for i in indices:
            value = await arg.process(message, parsed.phrases[i].value)
            if isinstance(value, Flag) and value.is_short_circuit:
                return value
            values.append(value)
        return values

    async def run_text(self, message: Any, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        indices = state.unused(parsed, arg.index or 0, arg.limit)
        state.consume(indices, advance=False)
        return await arg.process(message, " ".join(parsed.phrases[i].value for i in indices))

    async def run_content(self, message: Any, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        indices = state.unused(parsed, arg.index or 0, arg.limit)
        return await arg.process(message, self._raw(parsed.phrases, indices))

    async def run_flag(self, message: Any, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        names = {name.lower() for name in arg.names}
        found = [
            i for i, flag in enumerate(parsed.flags)
            if i not in state.used_flags and flag.key.lower() in names
        ]
        if arg.multiple_flags:
            state.used_flags.update(found)
            return len(found)
        state.used_flags.update(found[:1])
        return bool(found)

    async def run_option(self, message: Any, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        names = {name.lower() for name in arg.names}
        found = [
            i for i, option in enumerate(parsed.option_flags)
            if i not in state.used_options and option.key.lower() in names
        ]
        if arg.multiple_flags:
            found = found if arg.limit is None else found[:arg.limit]
            state.used_options.update(found)
            values = []
            for i in found:
                value = await arg.process(message, parsed.option_flags[i].value)
                if isinstance(value, Flag) and value.is_short_circuit:
                    return value
                values.append(value)
            return values

        state.used_options.update(found[:1])
        phrase = parsed.option_flags[found[0]].value if found else ""
        return await arg.process(message, phrase)

    async def run_none(self, message: Any, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        return await arg.process(message, "")

    @staticmethod
    def _raw(phrases: list[ParsedToken], indices: list[int]) -> str:
        return "".join(phrases[i].raw for i in indices).strip()

    @staticmethod
    def from_arguments(args: list[Argument]) -> Callable[..., Any]:
        """
        Build the generator for a declared argument list.

        Ordered arguments run first in declared order, then the unordered
        ones as a pool, also in declared order. The final args keep the
        declared order.
        """
        ordered = [arg for arg in args if not arg.is_unordered]
        unordered = [arg for arg in args if arg.is_unordered]

        def generate(message: Any, parsed: ContentParserResult, state: RunnerState):
            values: dict[str, Any] = {}
            for arg in ordered + unordered:
                values[arg.id] = yield arg
            return {arg.id: values[arg.id] for arg in args if arg.id is not None}

        return generate
