"""
Tests for argument types and type combinators.

Tests:
- Built-in named types
- Choice lists, regexes and custom functions
- union, compose, range, validate, product and tagged combinators
"""

import re
from datetime import datetime

import pytest

from botkairo.commands.argument import Argument
from botkairo.commands.flag import Flag
from botkairo.commands.types import TypeResolver
from botkairo.errors import BotkairoError, ErrorCode


@pytest.fixture
def resolver():
    return TypeResolver()


async def cast(type_, phrase, resolver=None):
    return await Argument.cast_type(type_, resolver or TypeResolver(), None, phrase)


class TestBuiltinTypes:
    """Tests for the built-in named types."""
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize("type_,phrase,expected", [
        ("string", "Hello", "Hello"),
        ("lowercase", "Hello", "hello"),
        ("uppercase", "Hello", "HELLO"),
        ("charCodes", "ab", [97, 98]),
        ("number", "2.5", 2.5),
        ("integer", "-42", -42),
        ("bigint", "123456789012345678901234567890", 123456789012345678901234567890),
        ("emojint", "2⃣5⃣", 25),
        ("url", "<https://example.com/a>", "https://example.com/a"),
        ("color", "#ff0000", 0xFF0000),
        ("date", "2024-01-02", datetime(2024, 1, 2)),
    ])
    async def test_casts(self, type_, phrase, expected):
        """Test that valid input casts to the expected value."""
        assert await cast(type_, phrase) == expected
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize("type_,phrase", [
        ("string", ""),
        ("number", "abc"),
        ("number", "nan"),
        ("integer", "4.5"),
        ("emojint", "999"),
        ("url", "not a url"),
        ("color", "#zzzzzz"),
        ("date", "yesterday"),
    ])
    async def test_failures(self, type_, phrase):
        """Test that invalid input is a fail flag carrying the phrase."""
        result = await cast(type_, phrase)
        
        assert Flag.is_(result, "fail")
        assert result.value == phrase
    
    @pytest.mark.asyncio
    async def test_unknown_type_raises(self):
        """Test that an unregistered type name is an error."""
        with pytest.raises(BotkairoError) as exc_info:
            await cast("nope", "x")
        
        assert exc_info.value.code == ErrorCode.UNKNOWN_TYPE
    
    @pytest.mark.asyncio
    async def test_custom_type(self, resolver):
        """Test registering a custom async type."""
        async def even(message, phrase):
            return int(phrase) if phrase.isdigit() and int(phrase) % 2 == 0 else None
        
        resolver.add_type("even", even)
        
        assert await cast("even", "4", resolver) == 4
        assert Flag.is_(await cast("even", "3", resolver), "fail")


class TestTypeForms:
    """Tests for non-named type forms."""
    
    @pytest.mark.asyncio
    async def test_choices(self):
        """Test choice lists match case-insensitively."""
        assert await cast(["red", "green"], "RED") == "red"
        assert Flag.is_(await cast(["red", "green"], "blue"), "fail")
    
    @pytest.mark.asyncio
    async def test_choice_synonyms(self):
        """Test that nested lists map synonyms to the first entry."""
        assert await cast([["yes", "y", "yeah"], ["no", "n"]], "Y") == "yes"
    
    @pytest.mark.asyncio
    async def test_regex(self):
        """Test that regex types return the match and all matches."""
        result = await cast(re.compile(r"\d+"), "a1b22")
        
        assert result["match"].group(0) == "1"
        assert [m.group(0) for m in result["matches"]] == ["1", "22"]
    
    @pytest.mark.asyncio
    async def test_function(self):
        """Test a plain function type."""
        assert await cast(lambda message, phrase: phrase[::-1] or None, "abc") == "cba"


class TestCombinators:
    """Tests for composite types."""
    
    @pytest.mark.asyncio
    async def test_union_of_range_and_emojint(self):
        """Test union(range(integer, 0, 50), emojint)."""
        type_ = Argument.union(Argument.range("integer", 0, 50), "emojint")
        
        assert await cast(type_, "25") == 25
        assert await cast(type_, "4⃣") == 4
        assert Flag.is_(await cast(type_, "999"), "fail")
        assert Flag.is_(await cast(type_, "hello"), "fail")
    
    @pytest.mark.asyncio
    async def test_failed_union_triggers_default(self, make_message):
        """Test that a failed cast falls back to the argument default."""
        arg = Argument(type=Argument.union(Argument.range("integer", 0, 50), "emojint"), default=10)
        
        assert await arg.process(make_message("x"), "hello") == 10
        assert await arg.process(make_message("x"), "25") == 25
    
    @pytest.mark.asyncio
    async def test_range_bounds(self):
        """Test that the upper bound is exclusive unless inclusive is set."""
        assert Flag.is_(await cast(Argument.range("integer", 0, 50), "50"), "fail")
        assert await cast(Argument.range("integer", 0, 50, inclusive=True), "50") == 50
        assert await cast(Argument.range("integer", 0, 50), "0") == 0
    
    @pytest.mark.asyncio
    async def test_range_on_length(self):
        """Test that range bounds the length of strings."""
        type_ = Argument.range("string", 1, 4)
        
        assert await cast(type_, "abc") == "abc"
        assert Flag.is_(await cast(type_, "abcd"), "fail")
    
    @pytest.mark.asyncio
    async def test_compose(self):
        """Test that compose pipes values and stops at a failure."""
        type_ = Argument.compose("lowercase", ["red", "green"])
        
        assert await cast(type_, "RED") == "red"
        assert Flag.is_(await cast(type_, "BLUE"), "fail")
    
    @pytest.mark.asyncio
    async def test_compose_with_failure(self):
        """Test that compose_with_failure hands failures to the next type."""
        seen = []
        
        def recover(message, value):
            seen.append(value)
            return "recovered"
        
        result = await cast(Argument.compose_with_failure("integer", recover), "x")
        
        assert result == "recovered"
        assert Flag.is_(seen[0], "fail")
    
    @pytest.mark.asyncio
    async def test_validate(self):
        """Test a custom validation predicate."""
        type_ = Argument.validate("integer", lambda message, phrase, value: value % 2 == 0)
        
        assert await cast(type_, "4") == 4
        assert Flag.is_(await cast(type_, "3"), "fail")
    
    @pytest.mark.asyncio
    async def test_product(self):
        """Test that product requires every type to cast."""
        assert await cast(Argument.product("integer", "number"), "3") == (3, 3.0)
        assert Flag.is_(await cast(Argument.product("integer", "number"), "3.5"), "fail")
    
    @pytest.mark.asyncio
    async def test_tagged_union(self):
        """Test that tagged_union reports which type matched."""
        result = await cast(Argument.tagged_union("integer", "string"), "word")
        
        assert result == {"tag": "string", "value": "word"}
    
    @pytest.mark.asyncio
    async def test_with_input(self):
        """Test that with_input keeps the original phrase."""
        assert await cast(Argument.with_input("integer"), "7") == {"input": "7", "value": 7}
        
        failed = await cast(Argument.with_input("integer"), "x")
        assert Flag.is_(failed, "fail")
        assert failed.value["input"] == "x"
    
    @pytest.mark.asyncio
    async def test_tagged_with_input(self):
        """Test tagged_with_input with an explicit tag."""
        result = await cast(Argument.tagged_with_input("integer", "n"), "7")
        
        assert result == {"tag": "n", "input": "7", "value": 7}
