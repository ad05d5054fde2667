"""Tests for the Go modules resolver."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import FakeRunner

from dependabot_bundler.engine.executor import SubprocessRunner
from dependabot_bundler.engine.models import UpdateRequest
from dependabot_bundler.engine.resolvers.base import (
    CommandFailedError,
    UnparsableDescriptionError,
    UnsafePathError,
)
from dependabot_bundler.engine.resolvers.go_modules import (
    GoModulesResolver,
    extract_module_name,
    extract_subdirectory,
)
from dependabot_bundler.engine.workspace import RepositoryWorkspace

BRANCH = "dependabot/go_modules/github.com/x/y-1.1.0"
DESCRIPTION = "Bumps [github.com/x/y](https://github.com/x/y) from 1.0.0 to 1.1.0.\n- [Commits]"


def test_resolves_in_subdirectory_named_by_title(
    runner: FakeRunner, workspace: RepositoryWorkspace
) -> None:
    resolver = GoModulesResolver(runner, workspace)

    outcome = resolver.resolve(
        UpdateRequest(
            description=DESCRIPTION,
            branch=BRANCH,
            title="Bump github.com/x/y from 1.0.0 to 1.1.0 in /hack/tools",
        )
    )

    assert runner.calls == [(["go", "get", "-u", "github.com/x/y"], "hack/tools")]
    assert outcome.files == frozenset({"hack/tools/go.mod", "hack/tools/go.sum"})


def test_resolves_at_repository_root_without_hint(
    runner: FakeRunner, workspace: RepositoryWorkspace
) -> None:
    resolver = GoModulesResolver(runner, workspace)

    outcome = resolver.resolve(
        UpdateRequest(
            description=DESCRIPTION,
            branch=BRANCH,
            title="Bump github.com/x/y from 1.0.0 to 1.1.0",
        )
    )

    assert runner.calls == [(["go", "get", "-u", "github.com/x/y"], ".")]
    assert outcome.files == frozenset({"go.mod", "go.sum"})


def test_failed_command_carries_output_and_restores_manifests(
    runner: FakeRunner, workspace: RepositoryWorkspace, repo_dir: Path
) -> None:
    original = (repo_dir / "go.mod").read_text(encoding="utf-8")

    def _corrupt(args: list[str], workdir: str) -> None:
        (repo_dir / "go.mod").write_text("half written\n", encoding="utf-8")

    runner.side_effect = _corrupt
    runner.exit_code = 1
    runner.output = "go: module github.com/x/y: not found"
    resolver = GoModulesResolver(runner, workspace)

    with pytest.raises(CommandFailedError) as excinfo:
        resolver.resolve(UpdateRequest(description=DESCRIPTION, branch=BRANCH))

    assert "not found" in excinfo.value.output
    assert excinfo.value.exit_code == 1
    assert (repo_dir / "go.mod").read_text(encoding="utf-8") == original
    assert len(runner.calls) == 1


def test_missing_module_name_is_unparsable(
    runner: FakeRunner, workspace: RepositoryWorkspace
) -> None:
    resolver = GoModulesResolver(runner, workspace)

    with pytest.raises(UnparsableDescriptionError):
        resolver.resolve(UpdateRequest(description="Updates the requirements", branch=BRANCH))
    assert runner.calls == []


def test_subdirectory_outside_repository_is_rejected(
    runner: FakeRunner, workspace: RepositoryWorkspace
) -> None:
    resolver = GoModulesResolver(runner, workspace)

    with pytest.raises(UnsafePathError):
        resolver.resolve(
            UpdateRequest(
                description=DESCRIPTION,
                branch=BRANCH,
                title="Bump github.com/x/y from 1.0.0 to 1.1.0 in /../../etc",
            )
        )
    assert runner.calls == []


def test_handles_only_go_module_branches(
    runner: FakeRunner, workspace: RepositoryWorkspace
) -> None:
    resolver = GoModulesResolver(runner, workspace)

    assert resolver.handles(BRANCH)
    assert not resolver.handles("dependabot/github_actions/actions/checkout-3")


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Bump github.com/x/y from 1.0.0 to 1.1.0 in /hack/tools", "hack/tools"),
        ("Bump github.com/x/y from 1.0.0 to 1.1.0 in /", "."),
        ("build(deps): bump github.com/x/y from 1 to 2 in /tools/", "tools"),
        ("Bump github.com/x/y from 1.0.0 to 1.1.0", "."),
        ("", "."),
    ],
)
def test_extract_subdirectory(title: str, expected: str) -> None:
    assert extract_subdirectory(title) == expected


def test_extract_module_name_takes_first_declaration() -> None:
    description = "Bumps [golang.org/x/net](https://x) and [golang.org/x/sys](https://y)."
    assert extract_module_name(description) == "golang.org/x/net"
    assert extract_module_name("no declaration") is None


def test_missing_module_directory_fails_the_update(
    workspace: RepositoryWorkspace, repo_dir: Path
) -> None:
    original = (repo_dir / "go.mod").read_bytes()
    resolver = GoModulesResolver(SubprocessRunner(repo_dir), workspace)

    with pytest.raises(CommandFailedError):
        resolver.resolve(
            UpdateRequest(
                description=DESCRIPTION,
                branch=BRANCH,
                title="Bump github.com/x/y from 1 to 2 in /tools",
            )
        )

    assert (repo_dir / "go.mod").read_bytes() == original
