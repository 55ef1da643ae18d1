"""Prometheus metrics shared by the client services and the relay."""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

probe_results = Counter(
    "relay_probe_results_total",
    "Endpoint health probe outcomes",
    ["status"],
)

probe_latency = Histogram(
    "relay_probe_latency_seconds",
    "Latency of endpoint health probes that produced a response",
    buckets=(0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

connect_attempts = Counter(
    "relay_connect_attempts_total",
    "Client connect attempts by outcome",
    ["region", "outcome"],
)

token_refreshes = Counter(
    "relay_token_refreshes_total",
    "Client token refreshes by outcome",
    ["outcome"],
)

relay_connects = Counter(
    "relay_server_connects_total",
    "Handshakes answered by the relay",
    ["status"],
)

relay_proxy_requests = Counter(
    "relay_server_proxy_requests_total",
    "Requests forwarded (or refused) by the relay proxy",
    ["status"],
)

relay_active_sessions = Gauge(
    "relay_server_active_sessions",
    "Sessions currently held by the relay",
)


def render_latest() -> bytes:
    """Render every registered metric in the Prometheus text format."""
    return generate_latest()


__all__ = [
    "CONTENT_TYPE_LATEST",
    "probe_results",
    "probe_latency",
    "connect_attempts",
    "token_refreshes",
    "relay_connects",
    "relay_proxy_requests",
    "relay_active_sessions",
    "render_latest",
]
