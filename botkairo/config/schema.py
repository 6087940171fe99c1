"""Configuration schema using Pydantic."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class PromptDefaults(BaseModel):
    """Handler-wide prompt defaults; arguments and commands may override them."""
    start: str = ""  # Sent when a prompt starts
    retry: str = ""  # Sent when a reply fails to cast
    timeout: str = ""  # Sent when no reply arrives in time
    ended: str = ""  # Sent when retries run out
    cancel: str = ""  # Sent when the author cancels
    retries: int = 1
    time: float = 30.0  # Seconds to wait for each reply
    cancel_word: str = "cancel"
    stop_word: str = "stop"  # Ends an infinite prompt
    optional: bool = False
    infinite: bool = False
    limit: int | None = None  # Max values in an infinite prompt
    breakout: bool = True  # A reply that is a command restarts handling


class HandlerConfig(BaseSettings):
    """
    Command handler configuration.
    
    Can be loaded from:
    - Environment variables (BOTKAIRO_ prefix, __ for nesting)
    - JSON config file (~/.botkairo/config.json)
    """
    prefix: str | list[str] = "!"
    allow_mention: bool = True  # Accept "<@bot> command" as well
    alias_replacement: str | None = None  # Regex removed from aliases to register variants
    block_client: bool = True  # Ignore the bot's own messages
    block_bots: bool = True  # Ignore other bots
    handle_edits: bool = False  # Re-handle edited messages
    default_cooldown: float = 0  # Milliseconds; 0 disables
    ignore_cooldown: list[str] = Field(default_factory=list)  # User IDs
    ignore_permissions: list[str] = Field(default_factory=list)  # User IDs
    owner_ids: list[str] = Field(default_factory=list)
    commands_dir: str = ""  # Loaded by the shell when set
    prompt: PromptDefaults = Field(default_factory=PromptDefaults)
    
    @property
    def prefixes(self) -> list[str]:
        """Configured prefixes as a list."""
        return [self.prefix] if isinstance(self.prefix, str) else list(self.prefix)
    
    class Config:
        env_prefix = "BOTKAIRO_"
        env_nested_delimiter = "__"
