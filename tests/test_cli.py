"""
Tests for the botkairo CLI.
"""

from typer.testing import CliRunner

from botkairo import __version__
from botkairo.cli.commands import app

runner = CliRunner()


class TestCli:
    """Tests for the CLI commands."""
    
    def test_version(self):
        """Test --version."""
        result = runner.invoke(app, ["--version"])
        
        assert result.exit_code == 0
        assert __version__ in result.output
    
    def test_tokenize(self):
        """Test that tokenize lists phrases and flags."""
        result = runner.invoke(app, ["tokenize", 'hello "big world" --loud', "--flag=--loud"])
        
        assert result.exit_code == 0
        assert "phrase" in result.output
        assert "big world" in result.output
        assert "flag" in result.output
    
    def test_tokenize_separator(self):
        """Test tokenize with a separator."""
        result = runner.invoke(app, ["tokenize", "a, b", "--separator", ","])
        
        assert result.exit_code == 0
        assert "Parsed content" in result.output
