"""Runtime configuration for a bundling run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from dependabot_bundler.engine.config_validation import (
    require_non_empty,
    require_repository_name,
)

DEFAULT_BOT_NAME = "app/dependabot"
DEFAULT_TARGET_BRANCH = "main"
DEFAULT_AUTHOR_NAME = "Github Action"
DEFAULT_AUTHOR_EMAIL = "41898282+github-actions[bot]@users.noreply.github.com"
DEFAULT_PR_TITLE = "Dependabot Bundler PR"
COMMIT_MESSAGE = "Bundling updated dependencies."
ISSUE_PAGE_SIZE = 100


@dataclass(frozen=True)
class BundlerConfig:
    """Repository coordinates and identities used by the bundler."""

    owner: str
    repo: str
    bot_name: str = DEFAULT_BOT_NAME
    labels: tuple[str, ...] = ()
    target_branch: str = DEFAULT_TARGET_BRANCH
    author_name: str = DEFAULT_AUTHOR_NAME
    author_email: str = DEFAULT_AUTHOR_EMAIL
    pr_title: str = DEFAULT_PR_TITLE
    workdir: Path = Path(".")

    def __post_init__(self) -> None:
        require_repository_name(self.owner, "owner")
        require_repository_name(self.repo, "repo")
        require_non_empty(self.bot_name, "bot_name")
        require_non_empty(self.target_branch, "target_branch")
        require_non_empty(self.author_name, "author_name")
        require_non_empty(self.author_email, "author_email")
        require_non_empty(self.pr_title, "pr_title")
        if not self.workdir.is_dir():
            raise ValueError(f"workdir must be an existing directory: {self.workdir}")
        if any(not label.strip() for label in self.labels):
            raise ValueError("labels must not contain blank entries.")
