"""Configuration classes for the relay session client.

This module contains all configuration classes organized by domain.
Configuration is loaded from environment variables and .env files.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from models import Region, RegionEntry
from utils.exceptions import InvalidScheduleWindow


def str_to_bool(value: Any) -> bool:
    """Convert various string representations to boolean values.

    Examples:
        >>> str_to_bool("true")
        True
        >>> str_to_bool("0")
        False
        >>> str_to_bool("yes")
        True
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes", "on", "enabled")
    return bool(value)


def default_regions() -> Dict[str, RegionEntry]:
    return {
        "US": RegionEntry(
            name="United States",
            workers=[
                "https://pseudovpn-us-east.hakzeemirror.workers.dev",
                "https://pseudovpn-us-backup.deno.dev",
            ],
        ),
        "EU": RegionEntry(
            name="Europe",
            workers=[
                "https://pseudovpn-eu-west.hakzeemirror.workers.dev",
                "https://pseudovpn-eu-backup.deno.dev",
            ],
        ),
        "AP": RegionEntry(
            name="Asia Pacific",
            workers=[
                "https://pseudovpn-ap-southeast.hakzeemirror.workers.dev",
                "https://pseudovpn-ap-backup.deno.dev",
            ],
        ),
    }


class ServerConfig(BaseSettings):
    """Application metadata and relay listener settings."""

    app_name: str = "Relay Session Client"
    app_version: str = "1.0.0"
    debug: bool = False

    relay_host: str = "0.0.0.0"
    relay_port: int = 8081


class RegionsConfig(BaseSettings):
    """Region code to endpoint list mapping."""

    regions: Dict[str, RegionEntry] = Field(default_factory=default_regions)

    def get_region(self, code: str) -> Optional[Region]:
        """Return the loaded Region for a code, or None when it is not configured."""
        entry = self.regions.get(code)
        if entry is None:
            code = code.upper()
            entry = self.regions.get(code)
        if entry is None:
            return None
        return Region(code=code, name=entry.name, endpoints=tuple(entry.workers))

    def list_regions(self) -> List[Region]:
        return [
            Region(code=code, name=entry.name, endpoints=tuple(entry.workers))
            for code, entry in self.regions.items()
        ]


class AuthConfig(BaseSettings):
    """Session token lifetime settings, in seconds."""

    token_duration: int = Field(default=300, gt=0)
    refresh_buffer: int = Field(default=60, ge=0)


class HealthConfig(BaseSettings):
    """Endpoint health probe settings, in milliseconds."""

    probe_timeout_ms: int = Field(default=5000, gt=0)


class HandshakeConfig(BaseSettings):
    """Relay handshake and proxy client settings."""

    handshake_timeout: float = Field(default=10.0, gt=0)
    user_agent: str = "PseudoVPN-Client/1.0"


class BenchmarkConfig(BaseSettings):
    """Benchmark and region smoke test settings."""

    benchmark_iterations: int = Field(default=5, ge=1)
    benchmark_pause: float = Field(default=1.0, ge=0)
    region_test_pause: float = Field(default=2.0, ge=0)
    benchmark_target_url: Optional[str] = None


class RelayConfig(BaseSettings):
    """Settings for the reference relay service."""

    worker_version: str = "1.0.0"
    relay_platform: str = "FastAPI"
    relay_region: str = "local"
    relay_datacenter: str = "local"
    session_sweep_interval: float = Field(default=60.0, gt=0)
    proxy_timeout: float = Field(default=30.0, gt=0)
    proxy_user_agent: str = "PseudoVPN-Relay/1.0"
    geoip_enabled: bool = False
    geoip_url: str = "http://ip-api.com/json/{ip}?fields=status,country,countryCode,region,city,timezone,as"

    @field_validator("geoip_enabled", mode="before")
    @classmethod
    def validate_geoip_enabled(cls, v) -> bool:
        """Convert string boolean values to actual boolean."""
        return str_to_bool(v)


class MonitoringConfig(BaseSettings):
    """Logging configuration settings."""

    log_level: str = "INFO"
    json_logs: bool = False

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("json_logs", mode="before")
    @classmethod
    def validate_json_logs(cls, v) -> bool:
        return str_to_bool(v)


class ApplicationConfig(
    ServerConfig,
    RegionsConfig,
    AuthConfig,
    HealthConfig,
    HandshakeConfig,
    BenchmarkConfig,
    RelayConfig,
    MonitoringConfig,
    BaseSettings
):
    """Main application configuration that combines all configuration domains."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_schedule_window(self) -> "ApplicationConfig":
        """Reject a refresh buffer that leaves no time before expiry."""
        if self.refresh_buffer >= self.token_duration:
            raise InvalidScheduleWindow(self.token_duration, self.refresh_buffer)
        return self

    @property
    def probe_timeout(self) -> float:
        """Probe timeout in seconds."""
        return self.probe_timeout_ms / 1000.0
