"""GitHub REST API client covering the operations the bundler consumes."""

from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from dependabot_bundler import __version__
from dependabot_bundler.engine.models import (
    CandidateIssue,
    Commit,
    CommitSpec,
    PullRequest,
    Reference,
    Tree,
    TreeEntry,
)
from dependabot_bundler.logging_utils import get_logger

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
NOT_FOUND = 404
LOGGER = get_logger()


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub API answers with a non-2xx status."""

    def __init__(self, status: int, method: str, path: str, body: str) -> None:
        super().__init__(f"GitHub API {method} {path} => {status}: {body[:800]}")
        self.status = status
        self.method = method
        self.path = path
        self.body = body

    @property
    def not_found(self) -> bool:
        """Return True when the API reported the resource as missing."""
        return self.status == NOT_FOUND


@dataclass(frozen=True)
class HttpResponse:
    """Status and raw body of one HTTP exchange."""

    status: int
    body: str


class HttpTransport(Protocol):
    """Minimal HTTP transport protocol for GitHub API interactions."""

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any] | None,
    ) -> HttpResponse: ...


class UrllibTransport:
    """HTTP transport backed by urllib.request."""

    def __init__(self, timeout_seconds: float = 30.0) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than zero.")
        self.timeout_seconds = timeout_seconds

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any] | None,
    ) -> HttpResponse:
        data = None
        request_headers = dict(headers)
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            request_headers["Content-Type"] = "application/json"
        request = urllib.request.Request(
            url=url,
            method=method,
            data=data,
            headers=request_headers,
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as response:  # noqa: S310  # nosec B310
                return HttpResponse(
                    status=int(response.status),
                    body=response.read().decode("utf-8"),
                )
        except urllib.error.HTTPError as exc:
            body = exc.read().decode("utf-8", errors="replace") if exc.fp is not None else ""
            return HttpResponse(status=int(exc.code), body=body)


class HostingClient(Protocol):
    """Hosting-platform operations the bundler consumes."""

    def list_open_issues(
        self,
        owner: str,
        repo: str,
        *,
        creator: str,
        page_size: int = 100,
    ) -> list[CandidateIssue]: ...

    def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequest: ...

    def get_ref(self, owner: str, repo: str, ref: str) -> Reference: ...

    def create_ref(self, owner: str, repo: str, ref: str, sha: str) -> Reference: ...

    def create_tree(
        self,
        owner: str,
        repo: str,
        base_tree_sha: str,
        entries: Sequence[TreeEntry],
    ) -> Tree: ...

    def get_commit(self, owner: str, repo: str, sha: str) -> Commit: ...

    def create_commit(self, owner: str, repo: str, spec: CommitSpec) -> Commit: ...

    def update_ref(
        self,
        owner: str,
        repo: str,
        ref: str,
        sha: str,
        *,
        force: bool = False,
    ) -> Reference: ...

    def create_pull_request(
        self,
        owner: str,
        repo: str,
        *,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> PullRequest: ...

    def add_labels(self, owner: str, repo: str, number: int, labels: Sequence[str]) -> None: ...


def _short_ref(ref: str) -> str:
    """Strip the leading refs/ component the git-data read endpoints do not take."""
    return ref[len("refs/") :] if ref.startswith("refs/") else ref


def _full_ref(ref: str) -> str:
    """Return ref with the refs/ prefix the create-ref endpoint requires."""
    return ref if ref.startswith("refs/") else f"refs/{ref}"


class GitHubClient:
    """Synchronous GitHub REST client; every non-2xx response raises GitHubAPIError."""

    def __init__(
        self,
        token: str | None,
        *,
        api_url: str = DEFAULT_API_URL,
        transport: HttpTransport | None = None,
    ) -> None:
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.transport = transport or UrllibTransport()

    def list_open_issues(
        self,
        owner: str,
        repo: str,
        *,
        creator: str,
        page_size: int = 100,
    ) -> list[CandidateIssue]:
        """List open issues by creator, following pages until a short page."""
        issues: list[CandidateIssue] = []
        page = 1
        while True:
            query = urllib.parse.urlencode(
                {"state": "open", "creator": creator, "per_page": page_size, "page": page}
            )
            payload = self._request("GET", f"/repos/{owner}/{repo}/issues?{query}")
            if not isinstance(payload, list):
                raise ValueError("Expected issue listing to be a JSON list.")
            issues.extend(CandidateIssue.from_dict(item) for item in payload)
            if len(payload) < page_size:
                return issues
            page += 1

    def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequest:
        return PullRequest.from_dict(
            self._request_object("GET", f"/repos/{owner}/{repo}/pulls/{number}")
        )

    def get_ref(self, owner: str, repo: str, ref: str) -> Reference:
        path = f"/repos/{owner}/{repo}/git/ref/{_short_ref(ref)}"
        return Reference.from_dict(self._request_object("GET", path))

    def create_ref(self, owner: str, repo: str, ref: str, sha: str) -> Reference:
        payload = {"ref": _full_ref(ref), "sha": sha}
        return Reference.from_dict(
            self._request_object("POST", f"/repos/{owner}/{repo}/git/refs", payload)
        )

    def create_tree(
        self,
        owner: str,
        repo: str,
        base_tree_sha: str,
        entries: Sequence[TreeEntry],
    ) -> Tree:
        payload = {"base_tree": base_tree_sha, "tree": [entry.to_dict() for entry in entries]}
        data = self._request_object("POST", f"/repos/{owner}/{repo}/git/trees", payload)
        return Tree(sha=str(data.get("sha", "")))

    def get_commit(self, owner: str, repo: str, sha: str) -> Commit:
        return Commit.from_dict(self._request_object("GET", f"/repos/{owner}/{repo}/commits/{sha}"))

    def create_commit(self, owner: str, repo: str, spec: CommitSpec) -> Commit:
        data = self._request_object("POST", f"/repos/{owner}/{repo}/git/commits", spec.to_dict())
        return Commit.from_dict(data)

    def update_ref(
        self,
        owner: str,
        repo: str,
        ref: str,
        sha: str,
        *,
        force: bool = False,
    ) -> Reference:
        path = f"/repos/{owner}/{repo}/git/refs/{_short_ref(ref)}"
        return Reference.from_dict(
            self._request_object("PATCH", path, {"sha": sha, "force": force})
        )

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
        payload = {
            "title": title,
            "head": head,
            "base": base,
            "body": body,
            "maintainer_can_modify": True,
        }
        return PullRequest.from_dict(
            self._request_object("POST", f"/repos/{owner}/{repo}/pulls", payload)
        )

    def add_labels(self, owner: str, repo: str, number: int, labels: Sequence[str]) -> None:
        self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{number}/labels",
            {"labels": list(labels)},
        )

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": f"dependabot-bundler/{__version__}",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        LOGGER.debug("github %s %s", method, path)
        response = self.transport.request(method, f"{self.api_url}{path}", self._headers(), payload)
        if not 200 <= response.status < 300:
            raise GitHubAPIError(response.status, method, path, response.body)
        if not response.body:
            return {}
        return json.loads(response.body)

    def _request_object(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        data = self._request(method, path, payload)
        if not isinstance(data, dict):
            raise ValueError(f"Expected JSON object from {method} {path}.")
        return data
