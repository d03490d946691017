"""TOML loader for db-backup configuration."""

import os
import tomllib
from pathlib import Path

from pydantic import ValidationError

from db_backup.config.models import AppConfig
from db_backup.errors import ConfigError

DEFAULT_CONFIG_FILE = "db-backup.toml"
CONFIG_ENV_VAR = "DB_BACKUP_CONFIG"


def default_config_path() -> Path:
    """Config path from ``DB_BACKUP_CONFIG`` or ``./db-backup.toml``."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_CONFIG_FILE


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load backup configuration from a TOML file.

    Args:
        config_path: Path to the config file (default: ``default_config_path()``)

    Returns:
        AppConfig with connections, jobs and upload settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If the file is not valid TOML or fails validation
    """
    if config_path is None:
        config_path = default_config_path()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Backup config not found: {config_path}\n"
            f"Create {DEFAULT_CONFIG_FILE} or set {CONFIG_ENV_VAR}."
        )

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    try:
        config = AppConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}:\n{e}") from e

    # Relative backup dirs are anchored at the config file's directory
    if not config.local_backup_dir.is_absolute():
        config.local_backup_dir = config_path.parent / config.local_backup_dir

    names = [c.name for c in config.connections]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate connection names: {', '.join(duplicates)}")

    return config
