"""Health probe service.

Issues a single timed `GET /health` against one relay endpoint and folds every
outcome, including network failures and timeouts, into an EndpointProbeResult.
"""

import asyncio
import time
from typing import Optional

import httpx

from config import ApplicationConfig
from models import EndpointProbeResult, ProbeStatus
from utils import create_contextual_logger
from .metrics import probe_latency, probe_results


class HealthProbe:
    """Timed reachability and latency check for relay endpoints."""

    def __init__(self, config: ApplicationConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config
        self.logger = create_contextual_logger(__name__, service="health_probe")
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self.config.user_agent, "Cache-Control": "no-cache"},
                follow_redirects=True,
                timeout=None,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client if this probe created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def probe(self, url: str, timeout_ms: Optional[float] = None) -> EndpointProbeResult:
        """Probe one endpoint. Always resolves to a result; never raises.

        Args:
            url: Endpoint base URL.
            timeout_ms: Upper bound for the whole exchange. Defaults to the
                configured probe timeout.
        """
        if timeout_ms is None:
            timeout_ms = self.config.probe_timeout_ms
        timeout = timeout_ms / 1000.0
        started = time.perf_counter()

        try:
            result = await asyncio.wait_for(self._fetch(url, started), timeout=timeout)
        except asyncio.TimeoutError:
            result = EndpointProbeResult(url=url, status=ProbeStatus.TIMEOUT, latency_ms=float(timeout_ms))
        except httpx.TimeoutException:
            result = EndpointProbeResult(url=url, status=ProbeStatus.TIMEOUT, latency_ms=float(timeout_ms))
        except (httpx.HTTPError, OSError) as e:
            self.logger.debug("Health probe transport error", endpoint=url, error=str(e))
            result = EndpointProbeResult(
                url=url,
                status=ProbeStatus.ERROR,
                latency_ms=_elapsed_ms(started),
            )

        probe_results.labels(status=result.status.value).inc()
        self.logger.debug(
            "Health probe completed",
            endpoint=url,
            status=result.status.value,
            latency_ms=round(result.latency_ms, 1),
        )
        return result

    async def _fetch(self, url: str, started: float) -> EndpointProbeResult:
        # The only bound is the wait_for in probe(); latency is taken at response headers.
        async with self._get_client().stream("GET", f"{url}/health", timeout=None) as response:
            latency_ms = _elapsed_ms(started)
            probe_latency.observe(latency_ms / 1000.0)
            await response.aread()

        try:
            data = response.json()
        except ValueError:
            return EndpointProbeResult(url=url, status=ProbeStatus.INVALID, latency_ms=latency_ms)
        if not isinstance(data, dict):
            data = {"body": data}

        status = ProbeStatus.HEALTHY if response.status_code == 200 else ProbeStatus.ERROR
        return EndpointProbeResult(url=url, status=status, latency_ms=latency_ms, data=data)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0
