"""Data models shared by the resolvers, the hosting client and the bundler."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

REGULAR_FILE_MODE = "100644"
BLOB_TYPE = "blob"


def _require_int(value: Any, field_name: str) -> int:
    """Validate and return an integer field from an API payload."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected '{field_name}' to be an integer.")
    return value


def _require_string(value: Any, field_name: str) -> str:
    """Validate and return a non-empty string field from an API payload."""
    if not isinstance(value, str) or not value:
        raise ValueError(f"Expected '{field_name}' to be a non-empty string.")
    return value


def _optional_string(value: Any) -> str:
    """Return value when it is a string, otherwise an empty string."""
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class CandidateIssue:
    """An open issue authored by the update bot."""

    issue_id: int
    number: int
    title: str
    body: str
    author: str
    has_pull_request: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CandidateIssue:
        """Create an issue from a GitHub issue payload."""
        user = data.get("user")
        author = _optional_string(user.get("login")) if isinstance(user, dict) else ""
        return cls(
            issue_id=_require_int(data.get("id"), "id"),
            number=_require_int(data.get("number"), "number"),
            title=_optional_string(data.get("title")),
            body=_optional_string(data.get("body")),
            author=author,
            has_pull_request=isinstance(data.get("pull_request"), dict),
        )


@dataclass(frozen=True)
class PullRequest:
    """Subset of pull request fields the bundler relies on."""

    number: int
    title: str
    head_ref: str
    html_url: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PullRequest:
        """Create a pull request from a GitHub pull request payload."""
        head = data.get("head")
        head_ref = _optional_string(head.get("ref")) if isinstance(head, dict) else ""
        return cls(
            number=_require_int(data.get("number"), "number"),
            title=_optional_string(data.get("title")),
            head_ref=head_ref,
            html_url=_optional_string(data.get("html_url")),
        )


@dataclass(frozen=True)
class UpdateRequest:
    """Input handed to the resolver chain for one bot-authored pull request."""

    description: str
    branch: str
    title: str = ""


@dataclass(frozen=True)
class UpdateOutcome:
    """Repository-relative paths a resolver modified."""

    files: frozenset[str] = frozenset()

    @classmethod
    def of(cls, *paths: str) -> UpdateOutcome:
        """Build an outcome from individual paths."""
        return cls(files=frozenset(paths))


@dataclass(frozen=True)
class Reference:
    """A git reference and the object it points at."""

    ref: str
    sha: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Reference:
        """Create a reference from a git-data reference payload."""
        obj = data.get("object")
        if not isinstance(obj, dict):
            raise ValueError("Expected 'object' to be an object.")
        return cls(
            ref=_optional_string(data.get("ref")),
            sha=_require_string(obj.get("sha"), "object.sha"),
        )


@dataclass(frozen=True)
class TreeEntry:
    """One file snapshot staged into a tree."""

    path: str
    content: str
    mode: str = REGULAR_FILE_MODE
    type: str = BLOB_TYPE

    def to_dict(self) -> dict[str, str]:
        """Serialize the entry for the create-tree endpoint."""
        return {
            "path": self.path,
            "mode": self.mode,
            "type": self.type,
            "content": self.content,
        }


@dataclass(frozen=True)
class Tree:
    """A created tree object."""

    sha: str


@dataclass(frozen=True)
class CommitAuthor:
    """Author and committer identity of a commit."""

    name: str
    email: str
    date: datetime

    def to_dict(self) -> dict[str, str]:
        """Serialize the identity for the create-commit endpoint."""
        return {
            "name": self.name,
            "email": self.email,
            "date": self.date.strftime("%Y-%m-%dT%H:%M:%SZ"),
        }


@dataclass(frozen=True)
class CommitSpec:
    """Everything needed to create one commit object."""

    message: str
    tree_sha: str
    parent_shas: tuple[str, ...]
    author: CommitAuthor
    signature: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the commit request body."""
        payload: dict[str, Any] = {
            "message": self.message,
            "tree": self.tree_sha,
            "parents": list(self.parent_shas),
            "author": self.author.to_dict(),
        }
        if self.signature is not None:
            payload["signature"] = self.signature
        return payload


@dataclass(frozen=True)
class Commit:
    """A git commit as returned by the hosting API."""

    sha: str
    tree_sha: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Commit:
        """Create a commit from either a git-data or a repository commit payload."""
        tree = data.get("tree")
        nested = data.get("commit")
        if not isinstance(tree, dict) and isinstance(nested, dict):
            tree = nested.get("tree")
        tree_sha = _optional_string(tree.get("sha")) if isinstance(tree, dict) else ""
        return cls(sha=_require_string(data.get("sha"), "sha"), tree_sha=tree_sha)


@dataclass(frozen=True)
class SkippedIssue:
    """An issue left out of the bundle and why."""

    number: int
    title: str
    reason: str


@dataclass(frozen=True)
class BundleResult:
    """Summary of one bundling run."""

    bundled_issues: tuple[int, ...] = ()
    files: frozenset[str] = frozenset()
    branch: str | None = None
    commit_sha: str | None = None
    pull_request: PullRequest | None = None
    skipped: tuple[SkippedIssue, ...] = field(default_factory=tuple)

    @property
    def opened(self) -> bool:
        """Return True when the run opened a bundle pull request."""
        return self.pull_request is not None
