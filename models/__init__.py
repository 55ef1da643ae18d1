"""Data models for the relay session client.

This module contains all Pydantic models used throughout the application,
ensuring strict type safety and runtime validation."""

# Import all enums
from .enums import ConnectionState, ProbeStatus

# Import region models
from .region import Region, RegionEntry

# Import probe models
from .probe import EndpointProbeResult

# Import session models
from .session import IssuedToken, Session, SessionToken, TokenPayload

# Import handshake models
from .handshake import ClientInfo, ConnectRequest, HandshakeAck

# Import benchmark models
from .benchmark import BenchmarkIteration, BenchmarkReport, RegionTestResult

# Import relay models
from .relay import RelayHealth, RelaySession

__all__ = [
    # Enums
    "ConnectionState",
    "ProbeStatus",
    # Region models
    "Region",
    "RegionEntry",
    # Probe models
    "EndpointProbeResult",
    # Session models
    "TokenPayload",
    "SessionToken",
    "IssuedToken",
    "Session",
    # Handshake models
    "ConnectRequest",
    "ClientInfo",
    "HandshakeAck",
    # Benchmark models
    "BenchmarkIteration",
    "BenchmarkReport",
    "RegionTestResult",
    # Relay models
    "RelaySession",
    "RelayHealth",
]
