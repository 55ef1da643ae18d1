"""Unit tests for the benchmark runner."""

from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from conftest import ack_body
from models import HandshakeAck
from services.benchmark_runner import BenchmarkRunner
from utils import ConnectFailed, HandshakeFailed


def fake_manager() -> Mock:
    manager = Mock()
    manager.connect = AsyncMock(return_value=HandshakeAck.model_validate(ack_body("s-1")))
    manager.disconnect = AsyncMock()
    manager.fetch = AsyncMock(return_value=httpx.Response(200))
    return manager


class TestBenchmarkRunner:
    """Test cases for BenchmarkRunner.run."""

    @pytest.mark.asyncio
    async def test_one_failed_iteration(self, mock_config) -> None:
        """Five iterations with the third handshake refused: 4/5 succeed."""
        manager = fake_manager()
        ack = manager.connect.return_value
        manager.connect.side_effect = [
            ack,
            ack,
            HandshakeFailed("https://w2.test", "Invalid or expired token", status_code=401),
            ack,
            ack,
        ]
        sleep = AsyncMock()
        runner = BenchmarkRunner(mock_config, manager, sleep=sleep)

        report = await runner.run("US", iterations=5)

        assert report.iterations == 5
        assert report.success_count == 4
        assert report.success_rate == 0.8
        failed = report.results[2]
        assert failed.iteration == 3
        assert not failed.success
        assert failed.connection_time_ms is None
        assert "401" in failed.error
        assert report.avg_connection_time_ms is not None
        assert manager.disconnect.await_count == 5
        assert sleep.await_count == 4

    @pytest.mark.asyncio
    async def test_averages_exclude_failures(self, mock_config) -> None:
        manager = fake_manager()
        manager.connect.side_effect = [ConnectFailed("US", "no healthy endpoints")] * 2
        runner = BenchmarkRunner(mock_config, manager, sleep=AsyncMock())

        report = await runner.run("US", iterations=2)

        assert report.success_count == 0
        assert report.avg_connection_time_ms is None
        assert report.avg_request_time_ms is None

    @pytest.mark.asyncio
    async def test_default_iterations_and_pause(self, mock_config) -> None:
        config = mock_config.model_copy(update={"benchmark_iterations": 3, "benchmark_pause": 0.5})
        sleep = AsyncMock()
        runner = BenchmarkRunner(config, fake_manager(), sleep=sleep)

        report = await runner.run("US")

        assert len(report.results) == 3
        assert [call.args[0] for call in sleep.await_args_list] == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_request_step_is_placeholder_without_target(self, mock_config) -> None:
        manager = fake_manager()
        runner = BenchmarkRunner(mock_config, manager, sleep=AsyncMock())

        report = await runner.run("US", iterations=1)

        manager.fetch.assert_not_awaited()
        assert report.results[0].request_time_ms >= 0

    @pytest.mark.asyncio
    async def test_request_step_fetches_target(self, mock_config) -> None:
        config = mock_config.model_copy(update={"benchmark_target_url": "https://example.com/"})
        manager = fake_manager()
        runner = BenchmarkRunner(config, manager, sleep=AsyncMock())

        report = await runner.run("US", iterations=1)

        manager.fetch.assert_awaited_once_with("https://example.com/")
        assert report.success_count == 1

    @pytest.mark.asyncio
    async def test_upstream_server_error_fails_iteration(self, mock_config) -> None:
        config = mock_config.model_copy(update={"benchmark_target_url": "https://example.com/"})
        manager = fake_manager()
        manager.fetch.return_value = httpx.Response(502)
        runner = BenchmarkRunner(config, manager, sleep=AsyncMock())

        report = await runner.run("US", iterations=1)

        assert report.success_count == 0
        assert "HTTP 502" in report.results[0].error
        manager.disconnect.assert_awaited_once()


class TestAllRegions:
    """Test cases for BenchmarkRunner.test_all_regions."""

    @pytest.mark.asyncio
    async def test_every_region_is_visited(self, mock_config) -> None:
        manager = fake_manager()
        ack = manager.connect.return_value
        manager.connect.side_effect = [ack, ConnectFailed("EU", "no healthy endpoints")]
        sleep = AsyncMock()
        runner = BenchmarkRunner(mock_config, manager, sleep=sleep)

        results = await runner.test_all_regions()

        assert [r.region for r in results] == ["US", "EU"]
        assert results[0].success
        assert results[0].ip == "203.0.113.7"
        assert results[0].city == "Ashburn"
        assert not results[1].success
        assert "no healthy endpoints" in results[1].error
        assert manager.disconnect.await_count == 1
        sleep.assert_awaited_once_with(mock_config.region_test_pause)
