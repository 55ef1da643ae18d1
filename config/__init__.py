"""Configuration management for the relay session client.

This module handles all configuration loading and validation using Pydantic BaseSettings.
Configuration is loaded from environment variables and .env files.
"""

from .config import (
    ApplicationConfig,
    AuthConfig,
    BenchmarkConfig,
    HandshakeConfig,
    HealthConfig,
    MonitoringConfig,
    RegionsConfig,
    RelayConfig,
    ServerConfig,
    default_regions,
    str_to_bool,
)


def load_config(**overrides) -> ApplicationConfig:
    """Load and validate application configuration."""
    return ApplicationConfig(**overrides)


__all__ = [
    "ApplicationConfig",
    "ServerConfig",
    "RegionsConfig",
    "AuthConfig",
    "HealthConfig",
    "HandshakeConfig",
    "BenchmarkConfig",
    "RelayConfig",
    "MonitoringConfig",
    "default_regions",
    "load_config",
    "str_to_bool",
]
