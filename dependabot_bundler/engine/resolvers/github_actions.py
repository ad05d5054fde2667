"""GitHub Actions pin updates rewritten directly in workflow files."""

from __future__ import annotations

import re
from dataclasses import dataclass

import yaml

from dependabot_bundler.engine.github import GitHubAPIError, HostingClient
from dependabot_bundler.engine.models import UpdateOutcome, UpdateRequest
from dependabot_bundler.engine.resolvers.base import (
    NothingToUpdateError,
    ResolutionError,
    TagResolutionError,
    UnparsableDescriptionError,
    UpdateResolver,
)
from dependabot_bundler.engine.security import SecurityError
from dependabot_bundler.engine.workspace import RepositoryWorkspace
from dependabot_bundler.logging_utils import get_logger

ACTION_BUMP_PATTERN = re.compile(r"Bumps \[([^\]]+)\].*?from (\S+) to (\S+)")
WORKFLOWS_DIR = ".github/workflows"
WORKFLOW_SUFFIXES = (".yml", ".yaml")
COMMIT_SHA_LENGTH = 40
LOGGER = get_logger()


@dataclass(frozen=True)
class ActionBump:
    """An action and the versions it moves between."""

    name: str
    from_version: str
    to_version: str


def extract_action_bump(description: str) -> ActionBump | None:
    """Parse `Bumps [<action>] ... from <a> to <b>`, dropping a sentence-ending period."""
    match = ACTION_BUMP_PATTERN.search(description)
    if match is None:
        return None
    name, from_version, to_version = match.groups()
    return ActionBump(
        name=name.strip(),
        from_version=from_version.removesuffix("."),
        to_version=to_version.removesuffix("."),
    )


def find_pinned_value(content: str, action: str) -> str | None:
    """Return what the first `uses: <action>@` reference in content pins to."""
    match = re.search(rf"uses: {re.escape(action)}@(.*)", content)
    if match is None:
        return None
    parts = match.group(1).split()
    return parts[0] if parts else None


def uses_line(action: str, value: str) -> str:
    """Render the `uses:` reference for an action pinned at value."""
    return f"uses: {action}@{value}"


class GitHubActionsResolver(UpdateResolver):
    """Rewrites `uses:` pins in every workflow for one bumped action."""

    ecosystem = "github_actions"
    branch_marker = "github_actions"

    def __init__(self, hosting: HostingClient, workspace: RepositoryWorkspace) -> None:
        self.hosting = hosting
        self.workspace = workspace

    def resolve(self, request: UpdateRequest) -> UpdateOutcome:
        bump = extract_action_bump(request.description)
        if bump is None:
            raise UnparsableDescriptionError(
                "action name and from -> to version", request.description
            )

        tag_cache: dict[str, str] = {}
        pending: dict[str, str] = {}
        for path in self.workspace.iter_files(WORKFLOWS_DIR, WORKFLOW_SUFFIXES):
            try:
                content = self.workspace.read_text(path)
            except (OSError, UnicodeDecodeError, SecurityError) as exc:
                raise ResolutionError(f"failed to read workflow {path}: {exc}") from exc
            pinned = find_pinned_value(content, bump.name)
            if pinned is None:
                continue
            old_value, new_value = self._replacement(bump, pinned, tag_cache)
            updated = content.replace(
                uses_line(bump.name, old_value),
                uses_line(bump.name, new_value),
            )
            if updated == content:
                continue
            _ensure_valid_yaml(path, updated)
            pending[path] = updated

        if not pending:
            raise NothingToUpdateError(
                f"no workflow under {WORKFLOWS_DIR} references {bump.name}@"
            )
        snapshot = self.workspace.snapshot(pending)
        for path, updated in pending.items():
            try:
                self.workspace.write_text(path, updated)
            except (OSError, SecurityError) as exc:
                self.workspace.restore(snapshot)
                raise ResolutionError(f"failed to modify workflow {path}: {exc}") from exc
            LOGGER.debug("rewrote %s for %s", path, bump.name)
        return UpdateOutcome(files=frozenset(pending))

    def _replacement(
        self,
        bump: ActionBump,
        pinned: str,
        tag_cache: dict[str, str],
    ) -> tuple[str, str]:
        """Return the (old, new) pin values for a workflow pinning at `pinned`."""
        if len(pinned) != COMMIT_SHA_LENGTH:
            return f"v{bump.from_version}", f"v{bump.to_version}"
        if bump.to_version not in tag_cache:
            tag_cache[bump.to_version] = self._resolve_tag_sha(bump.name, bump.to_version)
        return pinned, tag_cache[bump.to_version]

    def _resolve_tag_sha(self, action: str, version: str) -> str:
        """Look up the commit a release tag points at, retrying once with a `v` prefix."""
        parts = action.split("/")
        if len(parts) < 2:
            raise TagResolutionError(
                f"couldn't determine owner and repo from action name: {action}"
            )
        owner, repo = parts[0], parts[1]
        try:
            try:
                reference = self.hosting.get_ref(owner, repo, f"tags/{version}")
            except GitHubAPIError as exc:
                if not exc.not_found:
                    raise
                reference = self.hosting.get_ref(owner, repo, f"tags/v{version}")
        except (GitHubAPIError, OSError, ValueError) as exc:
            raise TagResolutionError(f"failed to get tag {version} of {action}: {exc}") from exc
        return reference.sha


def _ensure_valid_yaml(path: str, content: str) -> None:
    """Reject a rewrite that would leave the workflow unparsable."""
    try:
        yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ResolutionError(f"rewritten workflow {path} is not valid YAML: {exc}") from exc
