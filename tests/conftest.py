"""Test utilities and fixtures for relay session client tests."""

import asyncio
import os
import sys
from typing import Any, Callable, Dict, List, Optional

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import httpx
import pytest

from config import ApplicationConfig
from models import EndpointProbeResult, ProbeStatus, Region

TEST_REGIONS: Dict[str, Any] = {
    "US": {
        "name": "United States",
        "workers": ["https://w1.test", "https://w2.test", "https://w3.test"],
    },
    "EU": {
        "name": "Europe",
        "workers": ["https://eu1.test", "https://eu2.test"],
    },
}


class FakeClock:
    """Manually advanced wall clock, in seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays and blocks until released."""

    def __init__(self) -> None:
        self.delays: List[float] = []
        self._gates: List[asyncio.Event] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        gate = asyncio.Event()
        self._gates.append(gate)
        await gate.wait()

    def release_all(self) -> None:
        for gate in self._gates:
            gate.set()


@pytest.fixture
def mock_config() -> ApplicationConfig:
    """Configuration with test regions and short timeouts."""
    return ApplicationConfig(
        regions=TEST_REGIONS,
        token_duration=300,
        refresh_buffer=60,
        probe_timeout_ms=200,
        benchmark_pause=0,
        region_test_pause=0,
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


def probe_result(
    url: str,
    status: ProbeStatus = ProbeStatus.HEALTHY,
    latency_ms: float = 50.0,
    data: Optional[Dict[str, Any]] = None,
) -> EndpointProbeResult:
    return EndpointProbeResult(url=url, status=status, latency_ms=latency_ms, data=data)


def make_region(code: str = "US", endpoints: Optional[List[str]] = None) -> Region:
    if endpoints is None:
        endpoints = TEST_REGIONS[code]["workers"]
    return Region(code=code, name=code, endpoints=tuple(endpoints))


def mock_transport(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
    """An AsyncClient whose requests are answered by `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def ack_body(session_id: str, **extra: Any) -> Dict[str, Any]:
    body = {
        "success": True,
        "sessionId": session_id,
        "ip": "203.0.113.7",
        "country": "United States",
        "countryCode": "US",
        "city": "Ashburn",
    }
    body.update(extra)
    return body
