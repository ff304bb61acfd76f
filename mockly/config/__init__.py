"""Configuration module."""

from mockly.config.loader import load_config, get_config, reset_config, get_api_key

__all__ = ["load_config", "get_config", "reset_config", "get_api_key"]
