"""Core configuration management for decktutor.

This module provides the configuration classes and loading functionality
with YAML file and environment variable support.
"""

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

DEFAULT_ENDPOINT = "http://dev.decktutor.com/ws-1.2/app/v1"
DEFAULT_GAME = "mtg"


class ConfigError(Exception):
    """Configuration-related errors."""

    pass


class ClientConfig(BaseModel):
    """Webservice client configuration."""

    endpoint: str = DEFAULT_ENDPOINT
    game: Literal["mtg", "wow", "ygo"] = DEFAULT_GAME
    timeout_seconds: float = 10.0
    user_agent: str | None = None


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "json"
    enable_redaction: bool = True


class MetricsConfig(BaseModel):
    """Metrics configuration."""

    enabled: bool = False
    port: int = 8000


class Config(BaseModel):
    """Main configuration class for decktutor.

    This class combines all configuration sections and provides
    validation and environment variable loading.
    """

    client: ClientConfig = Field(default_factory=ClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    environment: Literal["development", "staging", "production", "testing"] = (
        "development"
    )
    debug: bool = False


def load_config_from_file(config_path: Path) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Loaded configuration

    Raises:
        ConfigError: If configuration is invalid or file cannot be read
    """
    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return Config(**config_data)

    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Environment variables are mapped as follows:
    - DECKTUTOR_ENVIRONMENT: Environment name (development/staging/production/testing)
    - DECKTUTOR_DEBUG: Enable debug mode (true/false)
    - DECKTUTOR_ENDPOINT: Webservice base URL
    - DECKTUTOR_GAME: Active game code (mtg/wow/ygo)
    - DECKTUTOR_TIMEOUT: Request timeout in seconds
    - DECKTUTOR_LOG_LEVEL: Logging level
    - DECKTUTOR_LOG_FORMAT: Logging format (json/text)
    - DECKTUTOR_METRICS_PORT: Metrics server port (enables metrics)

    Returns:
        Configuration loaded from environment variables
    """
    config_data: dict = {}

    if env_val := os.getenv("DECKTUTOR_ENVIRONMENT"):
        config_data["environment"] = env_val.strip().lower()
    if env_val := os.getenv("DECKTUTOR_DEBUG"):
        config_data["debug"] = env_val.lower() in ("true", "1", "yes", "on")

    client_config: dict = {}
    if env_val := os.getenv("DECKTUTOR_ENDPOINT"):
        client_config["endpoint"] = env_val
    if env_val := os.getenv("DECKTUTOR_GAME"):
        client_config["game"] = env_val.lower()
    if env_val := os.getenv("DECKTUTOR_TIMEOUT"):
        try:
            client_config["timeout_seconds"] = float(env_val)
        except ValueError as e:
            raise ConfigError(f"Invalid DECKTUTOR_TIMEOUT: {env_val}") from e
    if client_config:
        config_data["client"] = client_config

    logging_config: dict = {}
    if env_val := os.getenv("DECKTUTOR_LOG_LEVEL"):
        logging_config["level"] = env_val.upper()
    if env_val := os.getenv("DECKTUTOR_LOG_FORMAT"):
        logging_config["format"] = env_val.lower()
    if logging_config:
        config_data["logging"] = logging_config

    if env_val := os.getenv("DECKTUTOR_METRICS_PORT"):
        try:
            config_data["metrics"] = {"enabled": True, "port": int(env_val)}
        except ValueError as e:
            raise ConfigError(f"Invalid DECKTUTOR_METRICS_PORT: {env_val}") from e

    try:
        return Config(**config_data)
    except ValidationError as e:
        raise ConfigError(f"Environment configuration validation failed: {e}") from e


def _merge(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded in the following order (later sources override earlier):
    1. Default values
    2. Configuration file (if provided; a missing file is an error)
    3. Environment variables

    Args:
        config_path: Optional path to configuration file

    Returns:
        Merged configuration

    Raises:
        ConfigError: If the file is missing or any source is invalid
    """
    config = Config()

    if config_path:
        file_config = load_config_from_file(config_path)
        config = Config(
            **_merge(config.model_dump(), file_config.model_dump(exclude_unset=True))
        )

    env_config = load_config_from_env()
    config = Config(
        **_merge(config.model_dump(), env_config.model_dump(exclude_unset=True))
    )

    return config


def validate_config(config: Config) -> None:
    """Validate configuration for consistency and correctness.

    Args:
        config: Configuration to validate

    Raises:
        ConfigError: If configuration is invalid
    """
    endpoint = config.client.endpoint
    if not endpoint.startswith(("http://", "https://")):
        raise ConfigError(f"client.endpoint must be an http(s) URL: {endpoint}")

    if config.client.timeout_seconds <= 0:
        raise ConfigError("client.timeout_seconds must be positive")

    if config.metrics.port <= 0 or config.metrics.port > 65535:
        raise ConfigError("metrics.port must be between 1 and 65535")

    if config.environment == "production":
        if config.debug:
            raise ConfigError("Debug mode should not be enabled in production")

        if config.logging.level == "DEBUG":
            raise ConfigError("DEBUG logging should not be used in production")

        if not config.logging.enable_redaction:
            raise ConfigError("Log redaction should be enabled in production")

        if not endpoint.startswith("https://"):
            raise ConfigError("Production endpoint must use https")
