"""Ecosystem resolvers and the default routing chain."""

from __future__ import annotations

from dependabot_bundler.engine.executor import CommandRunner
from dependabot_bundler.engine.github import HostingClient
from dependabot_bundler.engine.resolvers.base import (
    CommandFailedError,
    NothingToUpdateError,
    ResolutionError,
    ResolverChain,
    TagResolutionError,
    UnparsableDescriptionError,
    UnrecognizedEcosystemError,
    UnsafePathError,
    UpdateResolver,
)
from dependabot_bundler.engine.resolvers.github_actions import GitHubActionsResolver
from dependabot_bundler.engine.resolvers.go_modules import GoModulesResolver
from dependabot_bundler.engine.workspace import RepositoryWorkspace


def default_resolver_chain(
    *,
    runner: CommandRunner,
    hosting: HostingClient,
    workspace: RepositoryWorkspace,
) -> ResolverChain:
    """Return the Go modules resolver followed by the GitHub Actions resolver."""
    return ResolverChain(
        [
            GoModulesResolver(runner, workspace),
            GitHubActionsResolver(hosting, workspace),
        ]
    )


__all__ = [
    "CommandFailedError",
    "GitHubActionsResolver",
    "GoModulesResolver",
    "NothingToUpdateError",
    "ResolutionError",
    "ResolverChain",
    "TagResolutionError",
    "UnparsableDescriptionError",
    "UnrecognizedEcosystemError",
    "UnsafePathError",
    "UpdateResolver",
    "default_resolver_chain",
]
