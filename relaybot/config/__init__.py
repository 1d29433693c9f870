"""Configuration for relaybot."""

from relaybot.config.schema import Config
from relaybot.config.loader import load_config, save_config, get_config_path

__all__ = ["Config", "load_config", "save_config", "get_config_path"]
