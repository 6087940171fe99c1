"""CLI commands for botkairo."""

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from botkairo import __logo__, __version__
from botkairo.client.memory import MemoryChannel

app = typer.Typer(
    name="botkairo",
    help=f"{__logo__} botkairo - command framework for chat bots",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} botkairo v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """botkairo - command framework for chat bots."""
    pass


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


# ============================================================================
# Tokenize
# ============================================================================


@app.command()
def tokenize(
    content: str = typer.Argument(..., help="Content to parse"),
    flag: list[str] = typer.Option([], "--flag", "-f", help="Presence flag word (repeatable)"),
    option: list[str] = typer.Option([], "--option", "-o", help="Option flag word (repeatable)"),
    separator: str = typer.Option(None, "--separator", "-s", help="Phrase separator"),
    no_quotes: bool = typer.Option(False, "--no-quotes", help="Do not group quoted text"),
):
    """Show how content is split into phrases and flags."""
    from botkairo.commands.content_parser import ContentParser
    
    parser = ContentParser(flag, option, quoted=not no_quotes, separator=separator)
    result = parser.parse(content)
    
    table = Table(title="Parsed content")
    table.add_column("#", style="dim")
    table.add_column("Kind", style="cyan")
    table.add_column("Key")
    table.add_column("Value", style="green")
    table.add_column("Raw", style="dim")
    
    for i, token in enumerate(result.all):
        table.add_row(str(i), token.kind.value, token.key or "", token.value, repr(token.raw))
    
    console.print(table)


# ============================================================================
# Shell
# ============================================================================


@app.command()
def shell(
    commands: Path = typer.Argument(None, help="Command file or directory to load"),
    prefix: str = typer.Option(None, "--prefix", "-p", help="Command prefix"),
    user: str = typer.Option("user", "--user", "-u", help="Author id for your messages"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs"),
):
    """Chat with your commands in the terminal."""
    from botkairo.client.memory import BotClient
    from botkairo.commands.handler import CommandEvents, CommandHandler
    from botkairo.config.loader import load_config
    
    _configure_logging(verbose)
    config = load_config(config_path)
    if prefix:
        config.prefix = prefix
    
    client = BotClient(owner_ids=[user])
    handler = CommandHandler(client, config=config)
    channel = ConsoleChannel("console")
    
    handler.on(CommandEvents.MESSAGE_INVALID, lambda m: console.print("[dim]No command matched[/dim]"))
    handler.on(CommandEvents.COMMAND_BLOCKED, lambda m, c, reason: console.print(f"[yellow]Blocked: {reason}[/yellow]"))
    handler.on(
        CommandEvents.COOLDOWN,
        lambda m, c, remaining: console.print(f"[yellow]{c.id} is on cooldown ({remaining / 1000:.1f}s)[/yellow]"),
    )
    handler.on(CommandEvents.COMMAND_LOCKED, lambda m, c: console.print(f"[yellow]{c.id} is already running[/yellow]"))
    handler.on(CommandEvents.ERROR, lambda err, m, c: console.print(f"[red]Error: {err}[/red]"))
    
    async def run():
        source = commands or (Path(config.commands_dir) if config.commands_dir else None)
        if source is not None:
            if source.is_dir():
                await handler.load_all(source)
            else:
                await handler.load(source)
        
        names = ", ".join(sorted(handler.modules)) or "none"
        console.print(f"{__logo__} botkairo shell - commands: {names} (Ctrl+C to exit)\n")
        
        pending: set[asyncio.Task] = set()
        while True:
            try:
                content = await asyncio.to_thread(console.input, "[bold blue]You:[/bold blue] ")
            except (KeyboardInterrupt, EOFError):
                console.print("\nGoodbye!")
                break
            if not content.strip():
                continue
            
            message = client.make_message(content, user, channel)
            # Run as a task so prompts can read the next line.
            task = asyncio.create_task(client.receive(message))
            pending.add(task)
            task.add_done_callback(pending.discard)
            await asyncio.sleep(0)
        
        for task in pending:
            task.cancel()
    
    asyncio.run(run())


class ConsoleChannel(MemoryChannel):
    """A channel that prints what the bot sends."""
    
    async def send(self, content: str) -> str:
        await super().send(content)
        console.print(f"\n{__logo__} {content}\n")
        return content


if __name__ == "__main__":
    app()
