"""Command execution for resolvers that shell out to dependency managers."""

from __future__ import annotations

import shutil
import subprocess  # nosec B404
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from dependabot_bundler.engine.security import ensure_safe_directory
from dependabot_bundler.logging_utils import get_logger

LOGGER = get_logger()
COMMAND_NOT_FOUND_EXIT_CODE = 127
COMMAND_START_FAILED_EXIT_CODE = 126


@dataclass(frozen=True)
class CommandResult:
    """Combined output and exit status of one external command."""

    command: str
    exit_code: int
    output: str
    duration_seconds: float

    @property
    def passed(self) -> bool:
        """Return True when command exited successfully."""
        return self.exit_code == 0


class CommandRunner(Protocol):
    """Runs an external command inside a repository subdirectory."""

    def run(self, args: Sequence[str], *, workdir: str = ".") -> CommandResult:
        """Run args with workdir relative to the repository root."""
        ...


class SubprocessRunner:
    """Runs commands with subprocess, merging stderr into stdout."""

    def __init__(self, base_dir: Path, timeout_seconds: int = 600) -> None:
        """Initialize runner rooted at base_dir with per-command timeout."""
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than zero.")
        self.base_dir = base_dir
        self.timeout_seconds = timeout_seconds

    def run(self, args: Sequence[str], *, workdir: str = ".") -> CommandResult:
        """Execute a single command and capture its combined output."""
        if not args:
            raise ValueError("args must contain at least the executable.")
        command = " ".join(args)
        cwd = ensure_safe_directory(self.base_dir, workdir)
        executable = shutil.which(args[0])
        if executable is None:
            return CommandResult(
                command=command,
                exit_code=COMMAND_NOT_FOUND_EXIT_CODE,
                output=f"{args[0]}: executable not found on PATH",
                duration_seconds=0.0,
            )

        LOGGER.debug("running '%s' in %s", command, cwd)
        start = time.perf_counter()
        try:
            completed = subprocess.run(  # noqa: S603  # nosec B603
                [executable, *args[1:]],
                cwd=str(cwd),
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            output = exc.output if isinstance(exc.output, str) else ""
            return CommandResult(
                command=command,
                exit_code=-1,
                output=f"{output}\ntimed out after {self.timeout_seconds}s".strip(),
                duration_seconds=time.perf_counter() - start,
            )
        except OSError as exc:
            return CommandResult(
                command=command,
                exit_code=COMMAND_START_FAILED_EXIT_CODE,
                output=f"failed to start in {workdir}: {exc}",
                duration_seconds=time.perf_counter() - start,
            )
        return CommandResult(
            command=command,
            exit_code=completed.returncode,
            output=completed.stdout or "",
            duration_seconds=time.perf_counter() - start,
        )
