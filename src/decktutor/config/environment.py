"""Deployment environment and configuration file discovery.

A client is configured per user rather than per server, so besides the
working directory the lookup also covers the user's configuration
directory (``$XDG_CONFIG_HOME/decktutor``, ``~/.config/decktutor`` when
unset). ``DECKTUTOR_CONFIG`` names a file explicitly and wins over every
other location.
"""

import os
from enum import Enum
from pathlib import Path

from decktutor.config.config import ConfigError


class Environment(Enum):
    """Deployment environments, matching ``Config.environment``."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


def get_environment() -> Environment:
    """Detect the environment the client runs in.

    ``DECKTUTOR_ENVIRONMENT`` is used when set, then a ``.env.<name>``
    marker file in the working directory, else development.

    Raises:
        ConfigError: If ``DECKTUTOR_ENVIRONMENT`` names no known environment
    """
    if env_str := os.getenv("DECKTUTOR_ENVIRONMENT", "").strip().lower():
        try:
            return Environment(env_str)
        except ValueError as e:
            choices = ", ".join(env.value for env in Environment)
            raise ConfigError(
                f"Invalid DECKTUTOR_ENVIRONMENT: {env_str} (expected one of {choices})"
            ) from e

    cwd = Path.cwd()
    for environment in (
        Environment.PRODUCTION,
        Environment.STAGING,
        Environment.TESTING,
    ):
        if (cwd / f".env.{environment.value}").exists():
            return environment

    return Environment.DEVELOPMENT


def user_config_dir() -> Path:
    """Directory holding per-user decktutor configuration."""
    base = os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "decktutor"


def config_search_paths(environment: Environment) -> list[Path]:
    """Candidate configuration files, most specific first."""
    user_dir = user_config_dir()
    return [
        Path(f"decktutor.{environment.value}.yaml"),
        Path("decktutor.yaml"),
        user_dir / f"{environment.value}.yaml",
        user_dir / "config.yaml",
    ]


def get_config_file_path(environment: Environment | None = None) -> Path | None:
    """Locate the configuration file to load.

    Args:
        environment: Environment to look up (defaults to the detected one)

    Returns:
        Path of the first existing candidate, or None

    Raises:
        ConfigError: If ``DECKTUTOR_CONFIG`` points to a missing file
    """
    if explicit := os.getenv("DECKTUTOR_CONFIG"):
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")
        return path

    if environment is None:
        environment = get_environment()

    for path in config_search_paths(environment):
        if path.is_file():
            return path

    return None
