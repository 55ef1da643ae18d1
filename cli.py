"""Command line front-end for the relay session client."""

import argparse
import asyncio
import signal
import sys
from typing import List, Optional

from config import ApplicationConfig, load_config
from models import BenchmarkReport, HandshakeAck
from services import BenchmarkRunner, ConnectionManager
from utils import RelayClientError, SessionLost, configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relay-client",
        description="Connect to the healthiest relay endpoint of a region.",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--country", metavar="CODE", help="Connect to a region and hold the session until Ctrl+C")
    group.add_argument("--list", action="store_true", help="List configured regions")
    group.add_argument("--test-all", action="store_true", help="Connect to every region once")
    group.add_argument(
        "--benchmark",
        metavar="CODE",
        nargs="?",
        const="US",
        help="Benchmark connect latency for a region (default US)",
    )
    group.add_argument("--switch", metavar="CODE", help="Switch to a different region")
    group.add_argument("--disconnect", action="store_true", help="Disconnect the current session")
    parser.add_argument("--iterations", type=int, default=None, help="Benchmark iterations")
    return parser


def print_regions(config: ApplicationConfig) -> None:
    print("\nAvailable regions:")
    for region in config.list_regions():
        print(f"  {region.code}: {region.name} ({len(region.endpoints)} endpoints)")


def print_connection(manager: ConnectionManager, ack: HandshakeAck) -> None:
    session = manager.session
    print("Connected.")
    if session is not None:
        print(f"  Endpoint: {session.endpoint.url} ({session.endpoint.latency_ms:.0f}ms)")
    print(f"  Apparent IP: {ack.ip}")
    print(f"  Country: {ack.country} ({ack.country_code or '??'})")
    print(f"  City: {ack.city or 'Unknown'}")
    if session is not None:
        print(f"  Session expires: {session.token_expiry.isoformat()}")


def print_benchmark(report: BenchmarkReport) -> None:
    for result in report.results:
        if result.success:
            print(
                f"  Iteration {result.iteration}: connection {result.connection_time_ms:.1f}ms, "
                f"request {result.request_time_ms:.1f}ms"
            )
        else:
            print(f"  Iteration {result.iteration}: failed ({result.error})")

    print("\nBenchmark results:")
    print(f"  Success rate: {report.success_count}/{report.iterations} ({report.success_rate * 100:.1f}%)")
    if report.avg_connection_time_ms is not None:
        print(f"  Avg connection time: {report.avg_connection_time_ms:.1f}ms")
        print(f"  Avg request time: {report.avg_request_time_ms:.1f}ms")


async def hold_session(manager: ConnectionManager) -> None:
    """Keep the session (and its refresh timer) alive until interrupted or lost."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    def on_session_lost(lost: SessionLost) -> None:
        print(f"Session lost: {lost.cause}", file=sys.stderr)
        stop.set()

    manager.add_session_lost_listener(on_session_lost)
    print("\nPress Ctrl+C to disconnect")
    await stop.wait()


async def run(args: argparse.Namespace, config: ApplicationConfig) -> int:
    if args.list:
        print_regions(config)
        return 0

    async with ConnectionManager.from_config(config) as manager:
        try:
            if args.test_all:
                for result in await BenchmarkRunner(config, manager).test_all_regions():
                    if result.success:
                        print(f"  {result.region}: ok - IP {result.ip}, {result.city}, {result.country}")
                    else:
                        print(f"  {result.region}: failed - {result.error}")
                return 0

            if args.benchmark:
                report = await BenchmarkRunner(config, manager).run(args.benchmark, args.iterations)
                print_benchmark(report)
                return 0 if report.success_count else 1

            if args.country:
                ack = await manager.connect(args.country)
                print_connection(manager, ack)
                await hold_session(manager)
                return 0

            if args.switch:
                ack = await manager.switch_region(args.switch)
                print_connection(manager, ack)
                return 0

            if args.disconnect:
                await manager.disconnect()
                print("Disconnected")
                return 0
        except RelayClientError as e:
            print(f"Connection failed: {e}", file=sys.stderr)
            return 1

    print("Use --help for usage information")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()
    configure_logging(config.log_level, json_output=config.json_logs)
    return asyncio.run(run(args, config))


if __name__ == "__main__":
    sys.exit(main())
