"""
Content parsing for command arguments.

Splits message content into:
- phrases (whitespace or separator delimited, quote aware)
- presence flags (e.g. -f, --force)
- option flags with a value (e.g. --limit 5)

Parsing happens in two passes: a Tokenizer that produces low-level tokens
(words, whitespace, quotes, flag words, separators) and a Parser that
groups them into phrases and flags while keeping the raw text of each.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from botkairo.utils.helpers import alias_sort_key, into_list


class TokenType(str, Enum):
    """Low-level token kinds."""
    WORD = "word"
    WS = "ws"
    FLAG_WORD = "flag_word"
    OPTION_FLAG_WORD = "option_flag_word"
    QUOTE = "quote"
    OPEN_QUOTE = "open_quote"
    END_QUOTE = "end_quote"
    SEPARATOR = "separator"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    """A low-level token."""
    type: TokenType
    value: str
    key: str | None = None  # canonical alias for flag words


class _State(Enum):
    DEFAULT = 0
    QUOTES = 1
    SPECIAL_QUOTES = 2


_WORD_PATTERNS = {
    _State.DEFAULT: re.compile(r"\S+"),
    _State.QUOTES: re.compile(r'[^\s"]+'),
    _State.SPECIAL_QUOTES: re.compile(r"[^\s”]+"),
}
_WHITESPACE = re.compile(r"\s+")


class Tokenizer:
    """Single-use scanner over one piece of content."""

    def __init__(
        self,
        content: str,
        flag_words: list[str],
        option_flag_words: list[str],
        quoted: bool = True,
        separator: str | None = None,
    ):
        self.content = content
        self.flag_words = flag_words
        self.option_flag_words = option_flag_words
        self.quoted = quoted
        self.separator = separator
        self.position = 0
        self.state = _State.DEFAULT
        self.tokens: list[Token] = []

    def starts_with(self, text: str) -> bool:
        end = self.position + len(text)
        return self.content[self.position:end].lower() == text.lower()

    def add(self, token_type: TokenType, value: str, key: str | None = None) -> None:
        self.tokens.append(Token(token_type, value, key))
        self.position += len(value)

    def tokenize(self) -> list[Token]:
        steps = (
            self._whitespace,
            self._flags,
            self._option_flags,
            self._quote,
            self._open_quote,
            self._end_quote,
            self._separator,
            self._word,
        )
        while self.position < len(self.content):
            if not any(step() for step in steps):
                # Unreachable for str input; guards against an infinite loop.
                self.add(TokenType.WORD, self.content[self.position])
        self.tokens.append(Token(TokenType.EOF, ""))
        return self.tokens

    def _flag_words(self, words: list[str], token_type: TokenType) -> bool:
        if self.state is not _State.DEFAULT:
            return False
        for word in words:
            if word and self.starts_with(word):
                self.add(token_type, self.content[self.position:self.position + len(word)], key=word)
                return True
        return False

    def _flags(self) -> bool:
        return self._flag_words(self.flag_words, TokenType.FLAG_WORD)

    def _option_flags(self) -> bool:
        return self._flag_words(self.option_flag_words, TokenType.OPTION_FLAG_WORD)

    def _quotes_enabled(self) -> bool:
        return self.separator is None and self.quoted

    def _quote(self) -> bool:
        if not (self._quotes_enabled() and self.starts_with('"')):
            return False
        if self.state is _State.QUOTES:
            self.state = _State.DEFAULT
        elif self.state is _State.DEFAULT:
            self.state = _State.QUOTES
        self.add(TokenType.QUOTE, '"')
        return True

    def _open_quote(self) -> bool:
        if not (self._quotes_enabled() and self.starts_with("“")):
            return False
        if self.state is _State.DEFAULT:
            self.state = _State.SPECIAL_QUOTES
        self.add(TokenType.OPEN_QUOTE, "“")
        return True

    def _end_quote(self) -> bool:
        if not (self._quotes_enabled() and self.starts_with("”")):
            return False
        if self.state is _State.SPECIAL_QUOTES:
            self.state = _State.DEFAULT
        self.add(TokenType.END_QUOTE, "”")
        return True

    def _separator(self) -> bool:
        if self.separator and self.starts_with(self.separator):
            self.add(TokenType.SEPARATOR, self.content[self.position:self.position + len(self.separator)])
            return True
        return False

    def _word(self) -> bool:
        match = _WORD_PATTERNS[self.state].match(self.content, self.position)
        if not match:
            return False
        word = match.group(0)
        if self.separator:
            cut = word.lower().find(self.separator.lower())
            if cut > 0:
                word = word[:cut]
        self.add(TokenType.WORD, word)
        return True

    def _whitespace(self) -> bool:
        match = _WHITESPACE.match(self.content, self.position)
        if not match:
            return False
        self.add(TokenType.WS, match.group(0))
        return True


class ParsedKind(str, Enum):
    """Kinds of parsed entries."""
    PHRASE = "phrase"
    FLAG = "flag"
    OPTION_FLAG = "option_flag"


@dataclass
class ParsedToken:
    """A phrase, presence flag or option flag with its raw source text."""
    kind: ParsedKind
    value: str = ""
    raw: str = ""
    key: str | None = None


@dataclass
class ContentParserResult:
    """The token stream produced for one piece of content."""
    all: list[ParsedToken] = field(default_factory=list)
    phrases: list[ParsedToken] = field(default_factory=list)
    flags: list[ParsedToken] = field(default_factory=list)
    option_flags: list[ParsedToken] = field(default_factory=list)

    @property
    def phrase_values(self) -> list[str]:
        return [phrase.value for phrase in self.phrases]

    @property
    def flag_keys(self) -> set[str]:
        return {flag.key for flag in self.flags}

    @property
    def option_values(self) -> dict[str, str]:
        """First value per option key."""
        values: dict[str, str] = {}
        for option in self.option_flags:
            values.setdefault(option.key, option.value)
        return values


class Parser:
    """Groups tokens into phrases and flags."""

    def __init__(self, tokens: list[Token], separated: bool = False):
        self.tokens = tokens
        self.separated = separated
        self.position = 0
        self.results = ContentParserResult()

    def lookahead(self, *types: TokenType, offset: int = 0) -> bool:
        index = self.position + offset
        return index < len(self.tokens) and self.tokens[index].type in types

    def take(self) -> Token:
        token = self.tokens[self.position]
        self.position += 1
        return token

    def take_if(self, *types: TokenType) -> str:
        """Consume the next token if it matches, returning its value or ''."""
        return self.take().value if self.lookahead(*types) else ""

    def parse(self) -> ContentParserResult:
        # The last token is always EOF.
        while self.position < len(self.tokens) - 1:
            self._argument()
        return self.results

    def _argument(self) -> None:
        leading = self.take_if(TokenType.WS)
        if self.lookahead(TokenType.FLAG_WORD, TokenType.OPTION_FLAG_WORD):
            parsed = self._flag()
        elif self.lookahead(TokenType.EOF):
            if leading and self.results.all:
                self.results.all[-1].raw += leading
            return
        else:
            parsed = self._phrase(record=True)
        trailing = self.take_if(TokenType.WS)
        separator = self.take_if(TokenType.SEPARATOR)
        if parsed is None:
            return
        parsed.raw = f"{leading}{parsed.raw}{trailing}{separator}"
        self.results.all.append(parsed)

    def _flag(self) -> ParsedToken:
        token = self.take()
        if token.type is TokenType.FLAG_WORD:
            parsed = ParsedToken(ParsedKind.FLAG, key=token.key, raw=token.value)
            self.results.flags.append(parsed)
            return parsed

        parsed = ParsedToken(ParsedKind.OPTION_FLAG, key=token.key, raw=token.value)
        parsed.raw += self.take_if(TokenType.WS)
        if self.lookahead(TokenType.QUOTE, TokenType.OPEN_QUOTE, TokenType.END_QUOTE, TokenType.WORD):
            value = self._phrase(record=False)
            if value is not None:
                parsed.value = value.value
                parsed.raw += value.raw
        self.results.option_flags.append(parsed)
        return parsed

    def _quoted(self, closing: TokenType) -> ParsedToken:
        opening = self.take()
        parsed = ParsedToken(ParsedKind.PHRASE, raw=opening.value)
        while self.lookahead(TokenType.WORD, TokenType.WS):
            token = self.take()
            parsed.value += token.value
            parsed.raw += token.value
        parsed.raw += self.take_if(closing)
        return parsed

    def _phrase(self, record: bool) -> ParsedToken | None:
        if self.separated:
            if not self.lookahead(TokenType.WORD):
                # Stray separator (leading or doubled): nothing to keep.
                self.take()
                return None
            parsed = ParsedToken(ParsedKind.PHRASE, value=self.take().value)
            while self.lookahead(TokenType.WS) and self.lookahead(TokenType.WORD, offset=1):
                parsed.value += self.take().value + self.take().value
            parsed.raw = parsed.value
        elif self.lookahead(TokenType.QUOTE):
            parsed = self._quoted(TokenType.QUOTE)
        elif self.lookahead(TokenType.OPEN_QUOTE):
            parsed = self._quoted(TokenType.END_QUOTE)
        else:
            token = self.take()
            parsed = ParsedToken(ParsedKind.PHRASE, value=token.value, raw=token.value)

        if not parsed.value:
            return None
        if record:
            self.results.phrases.append(parsed)
        return parsed


class ContentParser:
    """
    Parses content into phrases and flags for one command.

    Configuration is fixed at construction. Flag words are tried in
    alias priority order (longest first) so `--force` wins over `-f`
    when both are configured.
    """

    def __init__(
        self,
        flag_words: Iterable[str] = (),
        option_flag_words: Iterable[str] = (),
        quoted: bool = True,
        separator: str | None = None,
    ):
        self.flag_words = tuple(sorted(flag_words, key=alias_sort_key))
        self.option_flag_words = tuple(sorted(option_flag_words, key=alias_sort_key))
        self.quoted = bool(quoted)
        self.separator = separator or None

    def parse(self, content: str) -> ContentParserResult:
        """Tokenize and parse content. Never raises for string input."""
        tokens = Tokenizer(
            content,
            list(self.flag_words),
            list(self.option_flag_words),
            quoted=self.quoted,
            separator=self.separator,
        ).tokenize()
        return Parser(tokens, separated=self.separator is not None).parse()

    @staticmethod
    def get_flags(args: Iterable[Any]) -> tuple[list[str], list[str]]:
        """
        Collect flag aliases from argument descriptors.

        Returns:
            (flag_words, option_flag_words)
        """
        flag_words: list[str] = []
        option_flag_words: list[str] = []
        for arg in args:
            match = arg.get("match") if isinstance(arg, dict) else getattr(arg, "match", None)
            names = arg.get("flag") if isinstance(arg, dict) else getattr(arg, "flag", None)
            match = getattr(match, "value", match)
            if match == "flag":
                flag_words.extend(into_list(names))
            elif match == "option":
                option_flag_words.extend(into_list(names))
        return flag_words, option_flag_words
