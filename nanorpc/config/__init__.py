"""Configuration module for nanorpc."""

from nanorpc.config.loader import load_config, get_config_path, save_config
from nanorpc.config.schema import ServerConfig
from nanorpc.config.access import get_config, get_server_config, clear_config_cache

__all__ = ["ServerConfig", "load_config", "save_config", "get_config_path", "get_config", "get_server_config", "clear_config_cache"]
