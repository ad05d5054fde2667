"""Quality gates for dependabot-bundler: lint, type check, tests with coverage."""

from __future__ import annotations

import argparse
import subprocess  # nosec B404
import sys
from collections.abc import Sequence
from dataclasses import dataclass

PACKAGE = "dependabot_bundler"
COVERAGE_FLOOR = 80


@dataclass(frozen=True)
class Gate:
    """One named CI step."""

    name: str
    args: tuple[str, ...]


GATES: tuple[Gate, ...] = (
    Gate("lint", (sys.executable, "-m", "ruff", "check", ".")),
    Gate("types", (sys.executable, "-m", "mypy", PACKAGE)),
    Gate(
        "tests",
        (
            sys.executable,
            "-m",
            "pytest",
            f"--cov={PACKAGE}",
            "--cov-report=term-missing",
            f"--cov-fail-under={COVERAGE_FLOOR}",
        ),
    ),
)


def _run_gate(gate: Gate) -> int:
    print(f"[{gate.name}] $ {' '.join(gate.args)}")
    result = subprocess.run(gate.args, check=False)  # nosec B603
    if result.returncode != 0:
        print(f"[{gate.name}] failed with exit code {result.returncode}")
    return int(result.returncode)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the selected gates in order, stopping at the first failure."""
    parser = argparse.ArgumentParser(description=__doc__)
    known = [gate.name for gate in GATES]
    parser.add_argument(
        "gates",
        nargs="*",
        help=f"Gates to run ({', '.join(known)}); all of them when omitted.",
    )
    selected = set(parser.parse_args(argv).gates)
    unknown = selected.difference(known)
    if unknown:
        parser.error(f"unknown gates: {', '.join(sorted(unknown))}")
    for gate in GATES:
        if selected and gate.name not in selected:
            continue
        exit_code = _run_gate(gate)
        if exit_code != 0:
            return exit_code
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
