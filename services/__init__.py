"""Service layer for the relay session client and the reference relay."""

from .benchmark_runner import BenchmarkRunner
from .client_info import ClientInfoResolver
from .connection_manager import ConnectionManager
from .endpoint_selector import EndpointSelector, rank_healthy
from .health_probe import HealthProbe
from .relay_client import RelayClient
from .session_credential import SessionCredential
from .session_store import RelaySessionStore, SessionSweeper

__all__ = [
    "BenchmarkRunner",
    "ClientInfoResolver",
    "ConnectionManager",
    "EndpointSelector",
    "HealthProbe",
    "RelayClient",
    "RelaySessionStore",
    "SessionCredential",
    "SessionSweeper",
    "rank_healthy",
]
