"""Utility modules for the relay session client."""

from .exceptions import (
    ConnectFailed,
    Expired,
    HandshakeFailed,
    InvalidScheduleWindow,
    MalformedToken,
    NoHealthyEndpoint,
    NotConnected,
    ProxyRequestFailed,
    RelayClientError,
    SessionLost,
    SessionMismatch,
    TokenError,
)
from .logging import (
    configure_logging,
    create_contextual_logger,
    get_logger,
    log_exception,
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
)

__all__ = [
    "configure_logging",
    "create_contextual_logger",
    "get_logger",
    "log_exception",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "RelayClientError",
    "NoHealthyEndpoint",
    "ConnectFailed",
    "HandshakeFailed",
    "TokenError",
    "MalformedToken",
    "Expired",
    "SessionMismatch",
    "InvalidScheduleWindow",
    "SessionLost",
    "NotConnected",
    "ProxyRequestFailed",
]
