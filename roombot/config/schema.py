"""Configuration schema using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings


class Base(BaseModel):
    """Base model that accepts both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BotConfig(Base):
    """Room bot behaviour."""
    username: str = ""  # The bot's own user id on the platform
    state_key: str = "roombot/state"  # Brain key holding all room state
    refresh_interval_s: int = Field(default=60, ge=1)  # Seconds between room syncs
    max_title_length: int = Field(default=64, ge=1)
    suggestion_cutoff: float = Field(default=0.6, ge=0.0, le=1.0)  # Fuzzy match threshold for /join
    command_prefix: str = "/"


class WickrIOConfig(Base):
    """WickrIO web interface connection."""
    base_url: str = "http://localhost:4001"
    api_key: str = ""
    auth_token: str = ""  # Basic auth token configured in the web interface
    poll_interval_s: float = 2.0
    timeout_s: float = 10.0
    batch_size: int = 20  # Messages fetched per poll


class StorageConfig(Base):
    """Where bot state lives on disk."""
    data_dir: str = "~/.roombot"


class LoggingConfig(Base):
    """Logging sinks."""
    level: str = "INFO"
    file: str | None = None  # Defaults to <data_dir>/roombot.log


class Config(BaseSettings):
    """Root configuration for roombot."""
    bot: BotConfig = Field(default_factory=BotConfig)
    wickrio: WickrIOConfig = Field(default_factory=WickrIOConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def data_path(self) -> Path:
        """Get expanded data directory path."""
        return Path(self.storage.data_dir).expanduser()

    @property
    def log_path(self) -> Path:
        """Get the log file path."""
        if self.logging.file:
            return Path(self.logging.file).expanduser()
        return self.data_path / "roombot.log"

    model_config = ConfigDict(
        env_prefix="ROOMBOT_",
        env_nested_delimiter="__"
    )
