"""Bundling engine exports."""

from __future__ import annotations

from dependabot_bundler.engine.config import BundlerConfig
from dependabot_bundler.engine.github import GitHubAPIError, GitHubClient, HostingClient
from dependabot_bundler.engine.gitops import GitWorkingCopy
from dependabot_bundler.engine.models import BundleResult, UpdateOutcome, UpdateRequest
from dependabot_bundler.engine.orchestrator import Bundler
from dependabot_bundler.engine.resolvers import ResolverChain, default_resolver_chain
from dependabot_bundler.engine.signing import (
    CommitSigner,
    SigningError,
    SigningKeyBundle,
    build_commit_signer,
)
from dependabot_bundler.engine.workspace import RepositoryWorkspace

__all__ = [
    "BundleResult",
    "Bundler",
    "BundlerConfig",
    "CommitSigner",
    "GitHubAPIError",
    "GitHubClient",
    "GitWorkingCopy",
    "HostingClient",
    "RepositoryWorkspace",
    "ResolverChain",
    "SigningError",
    "SigningKeyBundle",
    "UpdateOutcome",
    "UpdateRequest",
    "build_commit_signer",
    "default_resolver_chain",
]
