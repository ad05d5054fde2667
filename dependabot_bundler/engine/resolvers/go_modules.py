"""Go module updates applied with `go get -u`."""

from __future__ import annotations

import re

from dependabot_bundler.engine.executor import CommandRunner
from dependabot_bundler.engine.models import UpdateOutcome, UpdateRequest
from dependabot_bundler.engine.resolvers.base import (
    CommandFailedError,
    UnparsableDescriptionError,
    UnsafePathError,
    UpdateResolver,
)
from dependabot_bundler.engine.security import SecurityError, ensure_safe_directory
from dependabot_bundler.engine.workspace import RepositoryWorkspace
from dependabot_bundler.logging_utils import get_logger

MODULE_NAME_PATTERN = re.compile(r"Bumps \[([^\]]+)\]")
SUBDIRECTORY_PATTERN = re.compile(r"Bump .* in (\S+)\s*$", re.IGNORECASE)
MANIFEST_FILES = ("go.mod", "go.sum")
LOGGER = get_logger()


def extract_module_name(description: str) -> str | None:
    """Return the bumped module from a `Bumps [<module>]` declaration."""
    match = MODULE_NAME_PATTERN.search(description)
    if match is None:
        return None
    return match.group(1).strip() or None


def extract_subdirectory(title: str) -> str:
    """Return the module directory named by a `Bump ... in <path>` title, or `.`."""
    match = SUBDIRECTORY_PATTERN.search(title)
    if match is None:
        return "."
    return match.group(1).strip("/") or "."


class GoModulesResolver(UpdateResolver):
    """Upgrades one Go module and reports its go.mod and go.sum."""

    ecosystem = "go_modules"
    branch_marker = "go_modules"

    def __init__(self, runner: CommandRunner, workspace: RepositoryWorkspace) -> None:
        self.runner = runner
        self.workspace = workspace

    def resolve(self, request: UpdateRequest) -> UpdateOutcome:
        module = extract_module_name(request.description)
        if module is None:
            raise UnparsableDescriptionError("module name", request.description)
        subdirectory = extract_subdirectory(request.title)
        try:
            ensure_safe_directory(self.workspace.base_dir, subdirectory)
        except SecurityError as exc:
            raise UnsafePathError(str(exc)) from exc

        manifests = [
            name if subdirectory == "." else f"{subdirectory}/{name}" for name in MANIFEST_FILES
        ]
        snapshot = self.workspace.snapshot(manifests)
        LOGGER.info("updating dependency %s in %s", module, subdirectory)
        result = self.runner.run(["go", "get", "-u", module], workdir=subdirectory)
        if not result.passed:
            LOGGER.debug("update failed, output from command: %s", result.output)
            self.workspace.restore(snapshot)
            raise CommandFailedError(result.command, result.exit_code, result.output)
        return UpdateOutcome.of(*manifests)
