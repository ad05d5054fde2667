"""Shared fakes and fixtures for bundler tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from pathlib import Path

import pytest

from dependabot_bundler.engine.executor import CommandResult
from dependabot_bundler.engine.github import GitHubAPIError
from dependabot_bundler.engine.gitops import RestoreReport
from dependabot_bundler.engine.models import (
    CandidateIssue,
    Commit,
    CommitSpec,
    PullRequest,
    Reference,
    Tree,
    TreeEntry,
)
from dependabot_bundler.engine.workspace import RepositoryWorkspace

BASE_SHA = "aa218f56b14c9653891f9e74264a383fa43fefbd"
NEW_COMMIT_SHA = "bb218f56b14c9653891f9e74264a383fa43fefbd"
TREE_SHA = "cc218f56b14c9653891f9e74264a383fa43fefbd"


class FakeHostingClient:
    """In-memory hosting client that records every call."""

    def __init__(self) -> None:
        self.issues: list[CandidateIssue] = []
        self.pulls: dict[int, PullRequest | Exception] = {}
        self.refs: dict[tuple[str, str, str], Reference | Exception] = {
            ("owner", "repo", "heads/main"): Reference(ref="refs/heads/main", sha=BASE_SHA),
        }
        self.list_error: Exception | None = None
        self.pull_request_error: Exception | None = None
        self.ref_lookups: list[tuple[str, str, str]] = []
        self.created_refs: list[tuple[str, str]] = []
        self.trees: list[tuple[str, list[TreeEntry]]] = []
        self.commit_lookups: list[str] = []
        self.commits: list[CommitSpec] = []
        self.updated_refs: list[tuple[str, str, bool]] = []
        self.created_pulls: list[dict[str, str]] = []
        self.labels: list[tuple[int, list[str]]] = []

    def list_open_issues(
        self,
        owner: str,
        repo: str,
        *,
        creator: str,
        page_size: int = 100,
    ) -> list[CandidateIssue]:
        if self.list_error is not None:
            raise self.list_error
        return [issue for issue in self.issues if issue.author == creator]

    def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequest:
        found = self.pulls.get(number)
        if found is None:
            raise GitHubAPIError(404, "GET", f"/repos/{owner}/{repo}/pulls/{number}", "{}")
        if isinstance(found, Exception):
            raise found
        return found

    def get_ref(self, owner: str, repo: str, ref: str) -> Reference:
        key = (owner, repo, ref)
        self.ref_lookups.append(key)
        found = self.refs.get(key)
        if found is None:
            raise GitHubAPIError(404, "GET", f"/repos/{owner}/{repo}/git/ref/{ref}", "Not Found")
        if isinstance(found, Exception):
            raise found
        return found

    def create_ref(self, owner: str, repo: str, ref: str, sha: str) -> Reference:
        self.created_refs.append((ref, sha))
        return Reference(ref=ref, sha=sha)

    def create_tree(
        self,
        owner: str,
        repo: str,
        base_tree_sha: str,
        entries: Sequence[TreeEntry],
    ) -> Tree:
        self.trees.append((base_tree_sha, list(entries)))
        return Tree(sha=TREE_SHA)

    def get_commit(self, owner: str, repo: str, sha: str) -> Commit:
        self.commit_lookups.append(sha)
        return Commit(sha=sha, tree_sha="parent-tree")

    def create_commit(self, owner: str, repo: str, spec: CommitSpec) -> Commit:
        self.commits.append(spec)
        return Commit(sha=NEW_COMMIT_SHA, tree_sha=spec.tree_sha)

    def update_ref(
        self,
        owner: str,
        repo: str,
        ref: str,
        sha: str,
        *,
        force: bool = False,
    ) -> Reference:
        self.updated_refs.append((ref, sha, force))
        return Reference(ref=f"refs/{ref}", sha=sha)

    def create_pull_request(
        self,
        owner: str,
        repo: str,
        *,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> PullRequest:
        if self.pull_request_error is not None:
            raise self.pull_request_error
        self.created_pulls.append({"head": head, "base": base, "title": title, "body": body})
        return PullRequest(
            number=99,
            title=title,
            head_ref=head,
            html_url=f"https://github.com/{owner}/{repo}/pull/99",
        )

    def add_labels(self, owner: str, repo: str, number: int, labels: Sequence[str]) -> None:
        self.labels.append((number, list(labels)))


class FakeRunner:
    """Command runner returning a canned result and optionally touching files."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], str]] = []
        self.exit_code = 0
        self.output = ""
        self.side_effect: Callable[[list[str], str], None] | None = None

    def run(self, args: Sequence[str], *, workdir: str = ".") -> CommandResult:
        self.calls.append((list(args), workdir))
        if self.side_effect is not None:
            self.side_effect(list(args), workdir)
        return CommandResult(
            command=" ".join(args),
            exit_code=self.exit_code,
            output=self.output,
            duration_seconds=0.0,
        )


class FakeWorkingCopy:
    """Records restore requests instead of invoking git."""

    def __init__(self) -> None:
        self.restored: list[set[str]] = []

    def restore_paths(self, paths: Iterable[str]) -> RestoreReport:
        collected = set(paths)
        self.restored.append(collected)
        return RestoreReport(restored=tuple(sorted(collected)), failed=())


def make_issue(
    number: int,
    body: str,
    *,
    title: str = "Bump dependency",
    author: str = "app/dependabot",
    has_pull_request: bool = True,
) -> CandidateIssue:
    return CandidateIssue(
        issue_id=1000 + number,
        number=number,
        title=title,
        body=body,
        author=author,
        has_pull_request=has_pull_request,
    )


def make_pull(number: int, head_ref: str, title: str = "Bump dependency") -> PullRequest:
    return PullRequest(
        number=number,
        title=title,
        head_ref=head_ref,
        html_url=f"https://github.com/owner/repo/pull/{number}",
    )


@pytest.fixture(autouse=True)
def _reset_bundler_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("dependabot_bundler")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


@pytest.fixture
def hosting() -> FakeHostingClient:
    return FakeHostingClient()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def working_copy() -> FakeWorkingCopy:
    return FakeWorkingCopy()


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    (root / "go.mod").write_text("module example.com/app\n\ngo 1.22\n", encoding="utf-8")
    (root / "go.sum").write_text("", encoding="utf-8")
    return root


@pytest.fixture
def workspace(repo_dir: Path) -> RepositoryWorkspace:
    return RepositoryWorkspace(repo_dir)
