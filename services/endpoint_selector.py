"""Endpoint selection service.

Fans a HealthProbe out over every candidate endpoint of a region, waits for all
of them, and picks the healthy endpoint with the lowest latency.
"""

import asyncio
from typing import List, Optional

from config import ApplicationConfig
from models import EndpointProbeResult, Region
from utils import NoHealthyEndpoint, create_contextual_logger
from .health_probe import HealthProbe


class EndpointSelector:
    """Latency-ranked selection of a region's healthiest endpoint."""

    def __init__(self, config: ApplicationConfig, probe: HealthProbe) -> None:
        self.config = config
        self.probe = probe
        self.logger = create_contextual_logger(__name__, service="endpoint_selector")

    async def probe_region(self, region: Region, timeout_ms: Optional[float] = None) -> List[EndpointProbeResult]:
        """Probe every endpoint of a region concurrently.

        Results come back in configured endpoint order. The call returns once the
        slowest probe has resolved, which is bounded by the probe timeout.
        """
        if not region.endpoints:
            return []
        results = await asyncio.gather(
            *(self.probe.probe(endpoint, timeout_ms) for endpoint in region.endpoints)
        )
        return list(results)

    async def select(self, region: Region, timeout_ms: Optional[float] = None) -> EndpointProbeResult:
        """Return the lowest-latency healthy endpoint of a region.

        Ties keep configured order. Raises NoHealthyEndpoint when no probe came
        back healthy.
        """
        results = await self.probe_region(region, timeout_ms)
        ranked = rank_healthy(results)

        self.logger.info(
            "Region probed",
            region=region.code,
            probed=len(results),
            healthy=len(ranked),
            statuses={r.url: r.status.value for r in results},
        )

        if not ranked:
            raise NoHealthyEndpoint(region.code, probed=len(results))

        best = ranked[0]
        self.logger.info(
            "Endpoint selected",
            region=region.code,
            endpoint=best.url,
            latency_ms=round(best.latency_ms, 1),
        )
        return best


def rank_healthy(results: List[EndpointProbeResult]) -> List[EndpointProbeResult]:
    """Healthy results ordered by latency; sorted() is stable so ties keep input order."""
    return sorted((r for r in results if r.healthy), key=lambda r: r.latency_ms)
