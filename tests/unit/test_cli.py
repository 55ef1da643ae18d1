"""Unit tests for the command line front-end."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cli import build_parser, run
from conftest import ack_body
from models import BenchmarkIteration, BenchmarkReport, HandshakeAck
from utils import ConnectFailed


def patched_manager():
    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=manager)
    manager.__aexit__ = AsyncMock(return_value=False)
    manager.connect = AsyncMock(return_value=HandshakeAck.model_validate(ack_body("s-1")))
    manager.switch_region = AsyncMock(return_value=HandshakeAck.model_validate(ack_body("s-2")))
    manager.disconnect = AsyncMock()
    manager.session = None
    return manager


class TestParser:
    """Test cases for argument parsing."""

    def test_benchmark_defaults_to_us(self) -> None:
        args = build_parser().parse_args(["--benchmark"])

        assert args.benchmark == "US"

    def test_modes_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--list", "--country", "US"])


class TestRun:
    """Test cases for cli.run."""

    @pytest.mark.asyncio
    async def test_list_regions(self, mock_config, capsys) -> None:
        code = await run(build_parser().parse_args(["--list"]), mock_config)

        assert code == 0
        out = capsys.readouterr().out
        assert "US: United States (3 endpoints)" in out
        assert "EU: Europe (2 endpoints)" in out

    @pytest.mark.asyncio
    async def test_switch(self, mock_config, capsys) -> None:
        manager = patched_manager()
        with patch("cli.ConnectionManager.from_config", return_value=manager):
            code = await run(build_parser().parse_args(["--switch", "EU"]), mock_config)

        assert code == 0
        manager.switch_region.assert_awaited_once_with("EU")
        assert "Apparent IP: 203.0.113.7" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_connect_failure_exit_code(self, mock_config, capsys) -> None:
        manager = patched_manager()
        manager.switch_region.side_effect = ConnectFailed("EU", "no healthy endpoints")
        with patch("cli.ConnectionManager.from_config", return_value=manager):
            code = await run(build_parser().parse_args(["--switch", "EU"]), mock_config)

        assert code == 1
        assert "Connection failed" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_benchmark(self, mock_config, capsys) -> None:
        report = BenchmarkReport(
            region="US",
            iterations=1,
            results=[BenchmarkIteration(iteration=1, success=True, connection_time_ms=12.5, request_time_ms=0.1)],
        )
        with patch("cli.ConnectionManager.from_config", return_value=patched_manager()), patch(
            "cli.BenchmarkRunner.run", AsyncMock(return_value=report)
        ):
            code = await run(build_parser().parse_args(["--benchmark", "US", "--iterations", "1"]), mock_config)

        assert code == 0
        assert "Success rate: 1/1 (100.0%)" in capsys.readouterr().out
