"""
Tests for content parsing.

Tests:
- Phrases, presence flags and option flags
- Quotes and separators
- Flag alias priority
- Raw text attribution and determinism
"""

import pytest

from botkairo.commands.content_parser import ContentParser, ParsedKind, Tokenizer, TokenType
from botkairo.utils.helpers import alias_compare, alias_sort_key


class TestContentParser:
    """Tests for ContentParser.parse."""
    
    def test_phrases_flags_and_options(self):
        """Test the mixed phrase, quote, flag and option example."""
        parser = ContentParser(flag_words=["-f"], option_flag_words=["--opt"])
        result = parser.parse('a "b c" -f --opt 1')
        
        assert result.phrase_values == ["a", "b c"]
        assert result.flag_keys == {"-f"}
        assert result.option_values == {"--opt": "1"}
    
    def test_option_value_is_not_a_phrase(self):
        """Test that an option's value is not also listed as a phrase."""
        parser = ContentParser(option_flag_words=["--limit"])
        result = parser.parse("--limit 5 rest")
        
        assert result.phrase_values == ["rest"]
        assert result.option_values == {"--limit": "5"}
    
    def test_quoted_option_value(self):
        """Test that option values can be quoted."""
        parser = ContentParser(option_flag_words=["--name"])
        result = parser.parse('--name "John Smith" x')
        
        assert result.option_values == {"--name": "John Smith"}
        assert result.phrase_values == ["x"]
    
    def test_option_without_value(self):
        """Test an option flag at the end of the content."""
        parser = ContentParser(option_flag_words=["--name"])
        result = parser.parse("x --name")
        
        assert result.option_values == {"--name": ""}
    
    def test_flags_are_case_insensitive(self):
        """Test that flags match regardless of case and keep the configured key."""
        parser = ContentParser(flag_words=["--force"])
        result = parser.parse("--FORCE")
        
        assert result.flag_keys == {"--force"}
    
    def test_flags_inside_quotes_are_phrases(self):
        """Test that flag words inside quotes are plain text."""
        parser = ContentParser(flag_words=["-f"])
        result = parser.parse('"a -f b"')
        
        assert result.phrase_values == ["a -f b"]
        assert result.flags == []
    
    def test_curly_quotes(self):
        """Test that curly quotes group a phrase."""
        result = ContentParser().parse("x “hello world” y")
        
        assert result.phrase_values == ["x", "hello world", "y"]
    
    def test_unclosed_quote_runs_to_end(self):
        """Test that an unclosed quote takes the rest of the content."""
        result = ContentParser().parse('a "b c')
        
        assert result.phrase_values == ["a", "b c"]
    
    def test_quotes_disabled(self):
        """Test that quotes are plain characters when quoting is off."""
        result = ContentParser(quoted=False).parse('"a b"')
        
        assert result.phrase_values == ['"a', 'b"']
    
    def test_separator(self):
        """Test splitting phrases on a separator."""
        result = ContentParser(separator=",").parse("a, b c,d")
        
        assert result.phrase_values == ["a", "b c", "d"]
    
    def test_separator_ignores_quotes(self):
        """Test that quotes are not special when a separator is set."""
        result = ContentParser(separator="|").parse('"a|b"')
        
        assert result.phrase_values == ['"a', 'b"']
    
    def test_stray_separators_are_dropped(self):
        """Test that empty segments between separators produce no phrase."""
        result = ContentParser(separator=",").parse(",a,,b,")
        
        assert result.phrase_values == ["a", "b"]
    
    def test_empty_quotes_are_dropped(self):
        """Test that an empty quoted phrase is not kept."""
        result = ContentParser().parse('a "" b')
        
        assert result.phrase_values == ["a", "b"]
    
    def test_empty_content(self):
        """Test parsing empty and whitespace-only content."""
        parser = ContentParser(flag_words=["-f"])
        
        assert parser.parse("").all == []
        assert parser.parse("   ").all == []
    
    def test_longest_flag_wins(self):
        """Test that a longer alias is tried before its prefix."""
        parser = ContentParser(flag_words=["-f", "-force"])
        result = parser.parse("-force")
        
        assert result.flag_keys == {"-force"}
        assert result.phrases == []
    
    @pytest.mark.parametrize("content", [
        'a "b c" -f --opt 1',
        "  leading and trailing  ",
        "x “curly quoted” --opt   spaced   -F",
        'unclosed "quote here',
    ])
    def test_raw_text_reassembles_input(self, content):
        """Test that every character is attributed to exactly one entry."""
        parser = ContentParser(flag_words=["-f"], option_flag_words=["--opt"])
        result = parser.parse(content)
        
        assert "".join(token.raw for token in result.all) == content
    
    def test_separator_raw_text_reassembles_input(self):
        """Test raw attribution with a separator."""
        result = ContentParser(separator=",").parse("a , b c,d ")
        
        assert "".join(token.raw for token in result.all) == "a , b c,d "
    
    def test_entries_in_input_order(self):
        """Test that `all` keeps input order across kinds."""
        parser = ContentParser(flag_words=["-f"], option_flag_words=["--opt"])
        result = parser.parse("-f a --opt 1 b")
        
        assert [token.kind for token in result.all] == [
            ParsedKind.FLAG, ParsedKind.PHRASE, ParsedKind.OPTION_FLAG, ParsedKind.PHRASE,
        ]
    
    def test_parse_is_idempotent(self):
        """Test that parsing the same content twice gives identical results."""
        parser = ContentParser(flag_words=["-f"], option_flag_words=["--opt"])
        content = 'a "b c" -f --opt 1'
        
        assert parser.parse(content) == parser.parse(content)
    
    def test_get_flags(self):
        """Test collecting flag words from argument descriptors."""
        flags, options = ContentParser.get_flags([
            {"match": "flag", "flag": ["-f", "--force"]},
            {"match": "option", "flag": "--limit"},
            {"match": "phrase"},
        ])
        
        assert flags == ["-f", "--force"]
        assert options == ["--limit"]


class TestTokenizer:
    """Tests for the low-level tokenizer."""
    
    def test_token_stream(self):
        """Test the token types for a simple input."""
        tokens = Tokenizer('a "b" -f', ["-f"], []).tokenize()
        
        assert [t.type for t in tokens] == [
            TokenType.WORD, TokenType.WS, TokenType.QUOTE, TokenType.WORD,
            TokenType.QUOTE, TokenType.WS, TokenType.FLAG_WORD, TokenType.EOF,
        ]


class TestAliasCompare:
    """Tests for alias priority ordering."""
    
    def test_longer_first(self):
        """Test that longer literals sort first."""
        assert alias_compare("--force", "-f") < 0
        assert alias_compare("-f", "--force") > 0
    
    def test_ties_are_lexicographic(self):
        """Test equal-length literals sort lexicographically."""
        assert alias_compare("-a", "-b") < 0
        assert alias_compare("-a", "-a") == 0
    
    def test_empty_sorts_last(self):
        """Test that the empty alias sorts after everything."""
        dynamic = lambda message: "?"
        
        assert sorted(["", "!", dynamic, "!!"], key=alias_sort_key) == ["!!", "!", dynamic, ""]
