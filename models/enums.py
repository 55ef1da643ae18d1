"""Enumeration types for relay session client models."""

from enum import Enum


class ProbeStatus(str, Enum):
    """Outcome of a single endpoint health probe."""

    HEALTHY = "healthy"
    ERROR = "error"
    TIMEOUT = "timeout"
    INVALID = "invalid"


class ConnectionState(str, Enum):
    """States of the connection manager's session lifecycle."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    REFRESHING = "refreshing"
    SWITCHING = "switching"
