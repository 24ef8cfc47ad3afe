"""runlog configuration — reads from runlog.toml, env vars, and CLI args."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Dict, Any
from pydantic_settings import BaseSettings
from pydantic import Field

from runlog.core.pagination import DEFAULT_LIMIT, MAX_LIMIT

logger = logging.getLogger("runlog.config")


class RunlogSettings(BaseSettings):
    """Daemon settings."""

    # Server
    host: str = "0.0.0.0"
    port: int = 8410
    log_level: str = "info"

    # Database (SQLite by default for zero-setup)
    database_url: str = Field(
        default="sqlite+aiosqlite:///runlog.db",
        alias="RUNLOG_DATABASE_URL",
    )

    # Auth
    api_key: str = Field(default="runlog_dev_key", alias="RUNLOG_API_KEY")

    # Queries
    default_limit: int = Field(default=DEFAULT_LIMIT, gt=0, le=MAX_LIMIT)
    detail_unit_limit: int = Field(default=DEFAULT_LIMIT, gt=0, le=MAX_LIMIT)
    recent_days: int = 7

    model_config = {"env_prefix": "RUNLOG_", "env_file": ".env", "populate_by_name": True}


class ClientSettings(BaseSettings):
    """CLI client settings."""

    host: str = Field(default="http://localhost:8410", alias="RUNLOG_HOST")
    api_key: str = Field(default="runlog_dev_key", alias="RUNLOG_API_KEY")

    model_config = {"env_prefix": "RUNLOG_"}


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Skipping unreadable config file {path}: {e}")
        return {}


def _load_toml_config() -> Dict[str, Any]:
    """Load the [runlog] table from runlog.toml files.

    Searches for runlog.toml in:
    1. RUNLOG_HOME (~/.runlog/runlog.toml by default)
    2. Current directory (./runlog.toml)

    Local values take precedence over global ones.
    """
    config: Dict[str, Any] = {}

    runlog_home = Path(os.environ.get("RUNLOG_HOME", "~/.runlog")).expanduser()
    for path in (runlog_home / "runlog.toml", Path("runlog.toml")):
        if path.exists():
            config.update(_read_toml(path).get("runlog", {}))

    return config


def get_settings() -> RunlogSettings:
    settings = RunlogSettings()

    toml_config = _load_toml_config()
    if toml_config:
        known = {k: v for k, v in toml_config.items() if k in RunlogSettings.model_fields}
        settings = settings.model_copy(update=known)

    return settings


def get_client_settings() -> ClientSettings:
    return ClientSettings()
