"""Benchmark runner service.

Drives the connection manager through repeated connect/request/disconnect
cycles and smoke-tests every configured region.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, List, Optional

from config import ApplicationConfig
from models import BenchmarkIteration, BenchmarkReport, RegionTestResult
from utils import ConnectFailed, HandshakeFailed, ProxyRequestFailed, RelayClientError, create_contextual_logger
from .connection_manager import ConnectionManager

ITERATION_FAILURES = (ConnectFailed, HandshakeFailed, ProxyRequestFailed)


class BenchmarkRunner:
    """Connect latency benchmarks on top of a ConnectionManager."""

    def __init__(
        self,
        config: ApplicationConfig,
        manager: ConnectionManager,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.manager = manager
        self._sleep = sleep
        self.logger = create_contextual_logger(__name__, service="benchmark_runner")

    async def run(self, region_code: str, iterations: Optional[int] = None) -> BenchmarkReport:
        """Run `iterations` sequential cycles against one region.

        Failed iterations count towards the success rate but not towards the
        latency averages.
        """
        if iterations is None:
            iterations = self.config.benchmark_iterations
        report = BenchmarkReport(region=region_code, iterations=iterations)
        self.logger.info("Benchmark started", region=region_code, iterations=iterations)

        for i in range(1, iterations + 1):
            report.results.append(await self._run_iteration(region_code, i))
            if i < iterations:
                await self._sleep(self.config.benchmark_pause)

        self.logger.info(
            "Benchmark finished",
            region=region_code,
            successful=report.success_count,
            iterations=iterations,
            success_rate=round(report.success_rate * 100, 1),
            avg_connection_ms=report.avg_connection_time_ms,
            avg_request_ms=report.avg_request_time_ms,
        )
        return report

    async def _run_iteration(self, region_code: str, iteration: int) -> BenchmarkIteration:
        started = time.perf_counter()
        try:
            await self.manager.connect(region_code)
            connection_time = (time.perf_counter() - started) * 1000.0

            request_started = time.perf_counter()
            await self._timed_request()
            request_time = (time.perf_counter() - request_started) * 1000.0
        except ITERATION_FAILURES as e:
            self.logger.warning("Benchmark iteration failed", iteration=iteration, error=str(e))
            await self.manager.disconnect()
            return BenchmarkIteration(iteration=iteration, success=False, error=str(e))

        await self.manager.disconnect()
        self.logger.info(
            "Benchmark iteration completed",
            iteration=iteration,
            connection_ms=round(connection_time, 1),
            request_ms=round(request_time, 1),
        )
        return BenchmarkIteration(
            iteration=iteration,
            success=True,
            connection_time_ms=connection_time,
            request_time_ms=request_time,
        )

    async def _timed_request(self) -> None:
        """The request step of an iteration.

        Without a configured target this is an empty placeholder step.
        """
        target = self.config.benchmark_target_url
        if not target:
            return
        response = await self.manager.fetch(target)
        if response.status_code >= 500:
            raise ProxyRequestFailed(target, f"HTTP {response.status_code}", status_code=response.status_code)

    async def test_all_regions(self) -> List[RegionTestResult]:
        """Connect to and disconnect from every configured region once."""
        results: List[RegionTestResult] = []
        for region in self.config.list_regions():
            try:
                ack = await self.manager.connect(region.code)
            except RelayClientError as e:
                self.logger.warning("Region test failed", region=region.code, error=str(e))
                results.append(RegionTestResult(region=region.code, name=region.name, success=False, error=str(e)))
                continue

            results.append(
                RegionTestResult(
                    region=region.code,
                    name=region.name,
                    success=True,
                    ip=ack.ip,
                    city=ack.city,
                    country=ack.country,
                )
            )
            await self._sleep(self.config.region_test_pause)
            await self.manager.disconnect()
        return results
