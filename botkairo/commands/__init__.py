"""Commands, argument parsing and dispatch."""

from botkairo.commands.argument import (
    Argument,
    ArgumentDefaults,
    ArgumentMatch,
    ArgumentOptions,
    FailureData,
    PromptData,
    PromptOptions,
)
from botkairo.commands.command import Command
from botkairo.commands.content_parser import ContentParser, ContentParserResult
from botkairo.commands.flag import Flag, FlagType
from botkairo.commands.guard import Admission, InvocationGuard, RejectionReason
from botkairo.commands.handler import CommandEvents, CommandHandler, ParsedComponentData
from botkairo.commands.runner import ArgumentRunner, Done, RunnerState, steps
from botkairo.commands.types import ArgumentTypes, TypeResolver

__all__ = [
    "Admission",
    "Argument",
    "ArgumentDefaults",
    "ArgumentMatch",
    "ArgumentOptions",
    "ArgumentRunner",
    "ArgumentTypes",
    "Command",
    "CommandEvents",
    "CommandHandler",
    "ContentParser",
    "ContentParserResult",
    "Done",
    "FailureData",
    "Flag",
    "FlagType",
    "InvocationGuard",
    "ParsedComponentData",
    "PromptData",
    "PromptOptions",
    "RejectionReason",
    "RunnerState",
    "TypeResolver",
    "steps",
]
