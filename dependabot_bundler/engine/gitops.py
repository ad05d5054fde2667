"""Local git helpers used to reset the working copy after a run."""

from __future__ import annotations

import shutil
import subprocess  # nosec B404
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from dependabot_bundler.logging_utils import get_logger

LOGGER = get_logger()


@dataclass(frozen=True)
class RestoreReport:
    """Which working-copy paths were reverted and which could not be."""

    restored: tuple[str, ...]
    failed: tuple[str, ...]


class GitWorkingCopy:
    """Runs non-interactive git commands against the checked-out repository."""

    def __init__(self, repo_dir: Path) -> None:
        """Initialize with the repository root."""
        self.repo_dir = repo_dir

    def restore_paths(self, paths: Iterable[str]) -> RestoreReport:
        """Revert each path to its committed state; failures are logged, not raised."""
        restored: list[str] = []
        failed: list[str] = []
        for path in sorted(set(paths)):
            try:
                self._run_git(["checkout", "--", path])
            except RuntimeError as exc:
                LOGGER.warning("failed to restore %s: %s", path, exc)
                failed.append(path)
                continue
            restored.append(path)
        return RestoreReport(restored=tuple(restored), failed=tuple(failed))

    def _run_git(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        """Run a git command in the repository directory."""
        git_path = shutil.which("git")
        if git_path is None:
            raise RuntimeError("git executable not found on PATH.")
        completed = subprocess.run(  # nosec B603
            [git_path, *args],
            cwd=str(self.repo_dir),
            check=False,
            text=True,
            capture_output=True,
        )
        if completed.returncode != 0:
            command_text = "git " + " ".join(args)
            raise RuntimeError(
                f"Git command failed ({command_text}):\n"
                f"stdout: {completed.stdout.strip()}\n"
                f"stderr: {completed.stderr.strip()}"
            )
        return completed
