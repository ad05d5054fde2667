"""Bundles open dependency-update pull requests into a single pull request."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Protocol

from dependabot_bundler.engine.config import COMMIT_MESSAGE, ISSUE_PAGE_SIZE, BundlerConfig
from dependabot_bundler.engine.github import GitHubAPIError, HostingClient
from dependabot_bundler.engine.gitops import RestoreReport
from dependabot_bundler.engine.models import (
    BundleResult,
    CandidateIssue,
    CommitAuthor,
    CommitSpec,
    PullRequest,
    Reference,
    SkippedIssue,
    TreeEntry,
    UpdateRequest,
)
from dependabot_bundler.engine.resolvers.base import ResolutionError, ResolverChain
from dependabot_bundler.engine.signing import CommitSigner
from dependabot_bundler.engine.workspace import RepositoryWorkspace
from dependabot_bundler.logging_utils import get_logger

LOGGER = get_logger()
PR_BODY_HEADER = "Bundling together prs: \n"


class WorkingCopy(Protocol):
    """Reverts working-copy files once a run is over."""

    def restore_paths(self, paths: Iterable[str]) -> RestoreReport: ...


@dataclass
class _Aggregate:
    """Files and issue numbers gathered from successful resolutions."""

    files: set[str] = field(default_factory=set)
    issue_numbers: list[int] = field(default_factory=list)
    skipped: list[SkippedIssue] = field(default_factory=list)

    def add(self, number: int, files: Iterable[str]) -> None:
        self.files.update(files)
        self.issue_numbers.append(number)

    def skip(self, issue: CandidateIssue, reason: str) -> None:
        LOGGER.info("skipping issue #%d (%s): %s", issue.number, issue.title, reason)
        self.skipped.append(SkippedIssue(number=issue.number, title=issue.title, reason=reason))


def generate_commit_branch(clock: Callable[[], float] = time.time) -> str:
    """Return a branch name derived from the current epoch second."""
    return f"bundler-{int(clock())}"


def render_pr_body(issue_numbers: Iterable[int]) -> str:
    """List every bundled issue number, one per line."""
    return PR_BODY_HEADER + "".join(f"#{number}\n" for number in issue_numbers)


class Bundler:
    """Resolves bot-authored updates locally and opens one bundled pull request."""

    def __init__(
        self,
        config: BundlerConfig,
        *,
        hosting: HostingClient,
        chain: ResolverChain,
        workspace: RepositoryWorkspace,
        working_copy: WorkingCopy,
        signer: CommitSigner | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the bundler with its collaborators."""
        self.config = config
        self.hosting = hosting
        self.chain = chain
        self.workspace = workspace
        self.working_copy = working_copy
        self.signer = signer
        self.clock = clock

    def bundle(self) -> BundleResult:
        """Run one bundling pass.

        Per-issue resolution failures skip that issue. Hosting API failures and
        signing failures propagate. Working-copy files touched by successful
        resolutions are reverted before returning, whatever the outcome.
        """
        LOGGER.info("attempting to bundle PRs for %s/%s", self.config.owner, self.config.repo)
        try:
            issues = self.hosting.list_open_issues(
                self.config.owner,
                self.config.repo,
                creator=self.config.bot_name,
                page_size=ISSUE_PAGE_SIZE,
            )
        except GitHubAPIError as exc:
            LOGGER.error("got response from github: %s", exc.body)
            raise

        aggregate = _Aggregate()
        try:
            for issue in issues:
                self._resolve_issue(issue, aggregate)

            if not aggregate.issue_numbers:
                LOGGER.info("no pull requests found to bundle, exiting...")
                return BundleResult(skipped=tuple(aggregate.skipped))

            LOGGER.info(
                "gathered %d pull requests touching %d files, opening PR...",
                len(aggregate.issue_numbers),
                len(aggregate.files),
            )
            return self._publish(aggregate)
        except GitHubAPIError as exc:
            LOGGER.error("github %s %s failed: %s", exc.method, exc.path, exc.body)
            raise
        finally:
            self._cleanup(aggregate.files)

    def _resolve_issue(self, issue: CandidateIssue, aggregate: _Aggregate) -> None:
        """Resolve one issue into the aggregate, or record why it was skipped."""
        if not issue.has_pull_request:
            aggregate.skip(issue, "issue has no linked pull request")
            return
        try:
            pull = self.hosting.get_pull_request(self.config.owner, self.config.repo, issue.number)
        except (GitHubAPIError, OSError, ValueError) as exc:
            aggregate.skip(issue, f"failed to fetch pull request: {exc}")
            return

        request = UpdateRequest(description=issue.body, branch=pull.head_ref, title=pull.title)
        try:
            outcome = self.chain.resolve(request)
        except ResolutionError as exc:
            aggregate.skip(issue, str(exc))
            return
        LOGGER.debug("issue #%d modified %s", issue.number, sorted(outcome.files))
        aggregate.add(issue.number, outcome.files)

    def _publish(self, aggregate: _Aggregate) -> BundleResult:
        """Create branch, tree, commit, pull request and labels."""
        branch, reference = self._open_branch()
        tree_sha = self._build_tree(reference, aggregate.files)
        commit_sha = self._commit(branch, reference, tree_sha)
        pull = self._open_pull_request(branch, aggregate.issue_numbers)
        self._label(pull)
        LOGGER.info("PR opened. Thank you for using Bundler, goodbye.")
        return BundleResult(
            bundled_issues=tuple(aggregate.issue_numbers),
            files=frozenset(aggregate.files),
            branch=branch,
            commit_sha=commit_sha,
            pull_request=pull,
            skipped=tuple(aggregate.skipped),
        )

    def _open_branch(self) -> tuple[str, Reference]:
        base = self.hosting.get_ref(
            self.config.owner, self.config.repo, f"heads/{self.config.target_branch}"
        )
        branch = generate_commit_branch(self.clock)
        reference = self.hosting.create_ref(
            self.config.owner, self.config.repo, f"refs/heads/{branch}", base.sha
        )
        LOGGER.debug("created branch %s at %s", branch, reference.sha)
        return branch, reference

    def _build_tree(self, reference: Reference, files: Iterable[str]) -> str:
        """Stage the current on-disk content of every aggregated path."""
        entries = [
            TreeEntry(path=path, content=self.workspace.read_text(path)) for path in sorted(files)
        ]
        tree = self.hosting.create_tree(
            self.config.owner, self.config.repo, reference.sha, entries
        )
        return tree.sha

    def _commit(self, branch: str, reference: Reference, tree_sha: str) -> str:
        parent = self.hosting.get_commit(self.config.owner, self.config.repo, reference.sha)
        author = CommitAuthor(
            name=self.config.author_name,
            email=self.config.author_email,
            date=datetime.fromtimestamp(int(self.clock()), tz=UTC),
        )
        spec = CommitSpec(
            message=COMMIT_MESSAGE,
            tree_sha=tree_sha,
            parent_shas=(parent.sha,),
            author=author,
        )
        if self.signer is not None:
            spec = replace(spec, signature=self.signer.sign_commit(spec))
        commit = self.hosting.create_commit(self.config.owner, self.config.repo, spec)
        self.hosting.update_ref(
            self.config.owner, self.config.repo, f"heads/{branch}", commit.sha, force=False
        )
        return commit.sha

    def _open_pull_request(self, branch: str, issue_numbers: list[int]) -> PullRequest:
        pull = self.hosting.create_pull_request(
            self.config.owner,
            self.config.repo,
            head=branch,
            base=self.config.target_branch,
            title=self.config.pr_title,
            body=render_pr_body(issue_numbers),
        )
        LOGGER.info("PR created: %s", pull.html_url)
        return pull

    def _label(self, pull: PullRequest) -> None:
        if not self.config.labels:
            return
        self.hosting.add_labels(
            self.config.owner, self.config.repo, pull.number, list(self.config.labels)
        )

    def _cleanup(self, files: set[str]) -> None:
        """Revert touched files so the next run starts from a clean working copy."""
        if not files:
            return
        report = self.working_copy.restore_paths(files)
        if report.failed:
            LOGGER.warning("could not restore: %s", ", ".join(report.failed))
