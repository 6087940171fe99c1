"""
Tests for module loading.

Tests:
- Loading from classes, instances and files
- Categories
- Reload and remove
"""

import pytest

from botkairo.commands.command import Command
from botkairo.errors import ErrorCode, ModuleError

HELLO_COMMAND = '''
from botkairo.commands import Command


class HelloCommand(Command):
    def __init__(self):
        super().__init__("hello", aliases=["hello"], category="{category}")

    async def exec(self, message, args):
        await message.channel.send("{reply}")
'''


def write_command(path, reply="hi", category="default"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(HELLO_COMMAND.format(reply=reply, category=category))
    return path


class TestLoading:
    """Tests for ModuleHandler.load and load_all."""
    
    @pytest.mark.asyncio
    async def test_load_file(self, client, handler, make_message, channel, workspace):
        """Test loading a command from a Python file."""
        path = write_command(workspace / "hello.py")
        
        command = await handler.load(path)
        await client.receive(make_message("!hello"))
        
        assert command.id == "hello"
        assert command.module.filepath == path.resolve()
        assert channel.sent == ["hi"]
    
    @pytest.mark.asyncio
    async def test_load_emits_event(self, handler):
        """Test that loading emits a load event."""
        loaded = []
        handler.on("load", lambda module, is_reload: loaded.append((module.id, is_reload)))
        
        await handler.load(Command("one"))
        
        assert loaded == [("one", False)]
    
    @pytest.mark.asyncio
    async def test_already_loaded(self, handler):
        """Test that ids must be unique."""
        await handler.load(Command("one"))
        
        with pytest.raises(ModuleError) as exc_info:
            await handler.load(Command("one"))
        
        assert exc_info.value.code == ErrorCode.ALREADY_LOADED
    
    @pytest.mark.asyncio
    async def test_load_all(self, handler, workspace):
        """Test loading a directory, skipping files without commands."""
        write_command(workspace / "fun" / "hello.py")
        (workspace / "notes.txt").write_text("not python")
        (workspace / "helpers.py").write_text("VALUE = 1\n")
        
        await handler.load_all(workspace)
        
        assert list(handler.modules) == ["hello"]
    
    @pytest.mark.asyncio
    async def test_load_filter(self, handler, workspace):
        """Test that load_all honours a filter."""
        write_command(workspace / "hello.py")
        
        await handler.load_all(workspace, load_filter=lambda path: "skip" in path.name)
        
        assert handler.modules == {}


class TestCategories:
    """Tests for module categories."""
    
    @pytest.mark.asyncio
    async def test_explicit_category(self, handler):
        """Test grouping modules by their category option."""
        await handler.load(Command("a", category="Fun"))
        await handler.load(Command("b", category="Fun"))
        
        category = handler.find_category("fun")
        
        assert sorted(category) == ["a", "b"]
        assert handler.modules["a"].category is category
    
    @pytest.mark.asyncio
    async def test_automatic_category(self, client, workspace):
        """Test using the parent directory name as category."""
        from botkairo.commands.handler import CommandHandler
        
        handler = CommandHandler(client, automate_categories=True)
        write_command(workspace / "games" / "hello.py")
        
        await handler.load_all(workspace)
        
        assert handler.modules["hello"].category.id == "games"


class TestReloadRemove:
    """Tests for reload and remove."""
    
    @pytest.mark.asyncio
    async def test_reload_picks_up_changes(self, client, handler, make_message, channel, workspace):
        """Test that reloading re-imports the file."""
        path = write_command(workspace / "hello.py", reply="hi")
        await handler.load(path)
        write_command(path, reply="hello again")
        
        reloaded = await handler.reload("hello")
        await client.receive(make_message("!hello"))
        
        assert channel.sent == ["hello again"]
        assert handler.modules["hello"] is reloaded
    
    @pytest.mark.asyncio
    async def test_reload_through_module(self, handler, workspace):
        """Test reloading via the module and its category."""
        path = write_command(workspace / "hello.py")
        command = await handler.load(path)
        
        await command.reload()
        
        assert handler.modules["hello"] is not command
    
    @pytest.mark.asyncio
    async def test_not_reloadable(self, handler):
        """Test that modules without a file cannot be reloaded."""
        await handler.load(Command("one"))
        
        with pytest.raises(ModuleError) as exc_info:
            await handler.reload("one")
        
        assert exc_info.value.code == ErrorCode.NOT_RELOADABLE
    
    @pytest.mark.asyncio
    async def test_remove(self, handler):
        """Test removing a module and emitting remove."""
        removed = []
        handler.on("remove", lambda module: removed.append(module.id))
        await handler.load(Command("one", aliases=["one"]))
        
        await handler.remove("one")
        
        assert "one" not in handler.modules
        assert "one" not in handler.categories["default"]
        assert removed == ["one"]
    
    @pytest.mark.asyncio
    async def test_remove_missing(self, handler):
        """Test removing an unknown id."""
        with pytest.raises(ModuleError) as exc_info:
            await handler.remove("ghost")
        
        assert exc_info.value.code == ErrorCode.MODULE_NOT_FOUND
    
    @pytest.mark.asyncio
    async def test_remove_all_keeps_instances(self, handler, workspace):
        """Test that remove_all only removes file-backed modules."""
        await handler.load(write_command(workspace / "hello.py"))
        await handler.load(Command("memory"))
        
        await handler.remove_all()
        
        assert list(handler.modules) == ["memory"]
