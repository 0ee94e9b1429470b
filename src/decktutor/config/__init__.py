"""Configuration management for decktutor.

This module provides configuration loading and validation for the
webservice client.
"""

from .config import (
    ClientConfig,
    Config,
    ConfigError,
    LoggingConfig,
    MetricsConfig,
    load_config,
    load_config_from_env,
    load_config_from_file,
    validate_config,
)
from .environment import (
    Environment,
    config_search_paths,
    get_config_file_path,
    get_environment,
    user_config_dir,
)

__all__ = [
    "ClientConfig",
    "Config",
    "ConfigError",
    "Environment",
    "LoggingConfig",
    "MetricsConfig",
    "config_search_paths",
    "get_config_file_path",
    "get_environment",
    "load_config",
    "load_config_from_env",
    "load_config_from_file",
    "user_config_dir",
    "validate_config",
]
