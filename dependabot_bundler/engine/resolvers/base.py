"""Resolver abstraction and the ordered chain that routes updates by ecosystem."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from dependabot_bundler.engine.models import UpdateOutcome, UpdateRequest
from dependabot_bundler.logging_utils import get_logger

LOGGER = get_logger()


class ResolutionError(RuntimeError):
    """Raised when one update cannot be applied; the issue is skipped."""


class UnrecognizedEcosystemError(ResolutionError):
    """Raised when no resolver recognizes the source branch."""

    def __init__(self, branch: str) -> None:
        super().__init__(f"no resolver recognized the ecosystem of branch: {branch}")
        self.branch = branch


class UnparsableDescriptionError(ResolutionError):
    """Raised when a recognized update lacks the expected bump declaration."""

    def __init__(self, expected: str, description: str) -> None:
        super().__init__(f"failed to extract {expected} from description: {description}")
        self.description = description


class CommandFailedError(ResolutionError):
    """Raised when the dependency manager exits non-zero."""

    def __init__(self, command: str, exit_code: int, output: str) -> None:
        super().__init__(f"'{command}' failed with exit code {exit_code}: {output.strip()}")
        self.command = command
        self.exit_code = exit_code
        self.output = output


class TagResolutionError(ResolutionError):
    """Raised when a pinned action tag cannot be resolved to a commit."""


class NothingToUpdateError(ResolutionError):
    """Raised when an update applies to no file in the working copy."""


class UnsafePathError(ResolutionError):
    """Raised when an update targets a path outside the repository."""


class UpdateResolver(ABC):
    """Applies updates for one dependency ecosystem."""

    ecosystem: str
    branch_marker: str

    def handles(self, branch: str) -> bool:
        """Return True when the branch name carries this resolver's marker."""
        return self.branch_marker in branch

    @abstractmethod
    def resolve(self, request: UpdateRequest) -> UpdateOutcome:
        """Apply the update to the working copy and report modified paths."""


class ResolverChain:
    """Ordered resolvers; the first one that handles a branch resolves it."""

    def __init__(self, resolvers: Sequence[UpdateResolver]) -> None:
        self.resolvers = tuple(resolvers)

    def resolve(self, request: UpdateRequest) -> UpdateOutcome:
        """Route the request to the first matching resolver."""
        for resolver in self.resolvers:
            if not resolver.handles(request.branch):
                continue
            LOGGER.debug("branch %s routed to %s resolver", request.branch, resolver.ecosystem)
            return resolver.resolve(request)
        raise UnrecognizedEcosystemError(request.branch)

    @property
    def ecosystems(self) -> tuple[str, ...]:
        """Return the ecosystems in routing order."""
        return tuple(resolver.ecosystem for resolver in self.resolvers)
