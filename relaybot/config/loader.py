"""Loading and saving the JSON config file."""

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from relaybot.config.schema import Config


def get_data_dir() -> Path:
    """Directory holding relaybot's config and data."""
    return Path.home() / ".relaybot"


def get_config_path() -> Path:
    return get_data_dir() / "config.json"


def load_config(path: Path | None = None) -> Config:
    """
    Load configuration from a JSON file.

    Environment variables (RELAYBOT_*) override file values. A missing or
    invalid file falls back to defaults.
    """
    path = path or get_config_path()

    if not path.exists():
        return Config()

    try:
        data = json.loads(path.read_text())
        file_config = Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return Config()

    # Values set through the environment win over the file
    env_config = Config()
    merged = file_config.model_dump()
    for section, values in env_config.model_dump(exclude_defaults=True).items():
        merged.setdefault(section, {}).update(values)
    return Config.model_validate(merged)


def save_config(config: Config, path: Path | None = None) -> None:
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.model_dump(), indent=2))
