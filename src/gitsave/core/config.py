"""Configuration loading for gitsave."""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gitsave.core.errors import ConfigError
from gitsave.models.state import DEFAULT_LIMIT

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "gitsave" / "config.json"


class Settings(BaseModel):
    """Tunable timings and defaults."""

    default_limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    settle_interval: float = Field(default=0.8, gt=0)  # seconds
    poll_interval: float = Field(default=0.8, gt=0)  # seconds
    backend_timeout: Optional[float] = Field(default=None, gt=0)
    log_level: str = "WARNING"

    model_config = ConfigDict(extra="ignore")


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from a JSON file.

    Args:
        path: Config file to read. Defaults to ``DEFAULT_CONFIG_PATH``.

    Returns:
        Parsed settings, or defaults when the default file does not exist.

    Raises:
        ConfigError: If an explicitly given file is missing, or any file is
            not valid JSON or fails validation.
    """
    explicit = path is not None
    config_file = Path(path) if explicit else DEFAULT_CONFIG_PATH

    if not config_file.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {config_file}")
        return Settings()

    try:
        data = json.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_file} must contain a JSON object")

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {config_file}: {e}") from e
