"""Test runner script for the relay session client.

Usage: python run_tests.py [unit|integration|tests|type]
"""

import subprocess
import sys
from pathlib import Path
from typing import Callable, Dict, List

ROOT = Path(__file__).parent
COVERAGE_TARGETS = ["config", "models", "services", "utils", "routers", "middleware"]


def _pytest(paths: List[str], coverage: bool) -> bool:
    command = [sys.executable, "-m", "pytest", *paths, "-v", "--tb=short"]
    if coverage:
        command += [f"--cov={target}" for target in COVERAGE_TARGETS]
        command.append("--cov-report=term-missing")
    return subprocess.run(command, cwd=ROOT).returncode == 0


def run_unit_tests() -> bool:
    print("Running unit tests...")
    return _pytest(["tests/unit/"], coverage=True)


def run_integration_tests() -> bool:
    print("Running integration tests...")
    return _pytest(["tests/integration/"], coverage=False)


def run_all_tests() -> bool:
    print("Running all tests...")
    return _pytest(["tests/"], coverage=True)


def run_type_check() -> bool:
    print("Running type checking...")
    result = subprocess.run([sys.executable, "-m", "mypy", *COVERAGE_TARGETS, "main.py", "cli.py"], cwd=ROOT)
    return result.returncode == 0


COMMANDS: Dict[str, Callable[[], bool]] = {
    "unit": run_unit_tests,
    "integration": run_integration_tests,
    "tests": run_all_tests,
    "type": run_type_check,
}


if __name__ == "__main__":
    command = sys.argv[1] if len(sys.argv) > 1 else "tests"
    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        sys.exit(1)
    sys.exit(0 if COMMANDS[command]() else 1)
