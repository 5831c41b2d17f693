"""Configuration loading utilities."""

import json
import os
import stat
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from roombot.config.schema import Config


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".roombot" / "config.json"


def get_data_dir(config: Config) -> Path:
    """Get the data directory, creating it if needed."""
    path = config.data_path
    path.mkdir(parents=True, exist_ok=True)
    return path


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or create default.

    Environment variables (``ROOMBOT_BOT__USERNAME`` etc.) override values
    that are not set in the file.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()

    if path.exists():
        # Check and fix permissions if needed, the file holds API credentials
        try:
            current_mode = stat.S_IMODE(os.stat(path).st_mode)
            if current_mode != 0o600:
                logger.warning(
                    f"Config file has insecure permissions: {oct(current_mode)}. "
                    f"Fixing to 0o600 (owner read/write only)..."
                )
                os.chmod(path, 0o600)
        except OSError as e:
            logger.warning(f"Could not verify config permissions: {e}")

        try:
            with open(path) as f:
                data = json.load(f)
            return Config(**data)
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Using default configuration.")

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file with secure permissions.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    # Ensure parent directory has secure permissions (0700 = owner only)
    os.chmod(path.parent, 0o700)

    data = config.model_dump(by_alias=True)

    with open(path, "w") as f:
        json.dump(data, f, indent=2)

    # Enforce secure file permissions (0600 = owner read/write only)
    os.chmod(path, 0o600)
    logger.debug(f"Config saved with secure permissions: {path}")
