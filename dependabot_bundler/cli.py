"""Command-line interface for bundling dependency-update pull requests."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from dependabot_bundler import __version__
from dependabot_bundler.engine.config import (
    DEFAULT_AUTHOR_EMAIL,
    DEFAULT_AUTHOR_NAME,
    DEFAULT_BOT_NAME,
    DEFAULT_PR_TITLE,
    DEFAULT_TARGET_BRANCH,
    BundlerConfig,
)
from dependabot_bundler.engine.config_validation import parse_labels
from dependabot_bundler.engine.executor import SubprocessRunner
from dependabot_bundler.engine.github import DEFAULT_API_URL, GitHubAPIError, GitHubClient
from dependabot_bundler.engine.gitops import GitWorkingCopy
from dependabot_bundler.engine.models import BundleResult
from dependabot_bundler.engine.orchestrator import Bundler
from dependabot_bundler.engine.resolvers import default_resolver_chain
from dependabot_bundler.engine.signing import (
    DEFAULT_BIT_SIZE,
    CommitSigner,
    SigningError,
    SigningKeyBundle,
    build_commit_signer,
)
from dependabot_bundler.engine.workspace import RepositoryWorkspace
from dependabot_bundler.logging_utils import configure_logging, get_logger

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()
LOGGER = get_logger()


def _version_callback(value: bool) -> None:
    """Print version and exit when requested."""
    if value:
        console.print(__version__)
        raise typer.Exit()


def _read_key_option(value: str | None, option_name: str) -> str | None:
    """Return inline key material, or the contents of the file named after `@`."""
    if not value:
        return None
    if not value.startswith("@"):
        return value
    path = Path(value[1:]).expanduser()
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise typer.BadParameter(f"cannot read {option_name} file {path}: {exc}") from exc


def _create_signer(
    *,
    name: str | None,
    email: str | None,
    bit_size: int,
    public_key: str | None,
    private_key: str | None,
    passphrase: str | None,
) -> CommitSigner | None:
    """Build the optional commit signer from CLI options."""
    public_material = _read_key_option(public_key, "--signing-public-key")
    private_material = _read_key_option(private_key, "--signing-private-key")
    if public_material is None:
        if private_material is not None:
            raise typer.BadParameter("--signing-private-key requires --signing-public-key.")
        return None
    try:
        bundle = SigningKeyBundle(
            name=name or "",
            email=email or "",
            public_key=public_material,
            private_key=private_material,
            passphrase=passphrase or None,
            bit_size=bit_size,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return build_commit_signer(bundle)


def _render_result(result: BundleResult) -> None:
    """Print a summary of the bundling run."""
    if result.skipped:
        table = Table(title="Skipped updates")
        table.add_column("Issue")
        table.add_column("Title")
        table.add_column("Reason")
        for skipped in result.skipped:
            table.add_row(f"#{skipped.number}", skipped.title, skipped.reason)
        console.print(table)
    if result.pull_request is None:
        console.print("No pull requests to bundle.")
        return
    bundled = ", ".join(f"#{number}" for number in result.bundled_issues)
    console.print(f"Bundled {bundled} into {result.pull_request.html_url}")


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show the bundler version and exit.",
            is_eager=True,
            callback=_version_callback,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug logging."),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write logs to this file."),
    ] = None,
    json_logs: Annotated[
        bool,
        typer.Option("--json-logs", help="Emit log records as JSON lines."),
    ] = False,
) -> None:
    """Bundle open dependency-update pull requests into a single pull request."""
    configure_logging(log_file=log_file, verbose=verbose, json_format=json_logs)


@app.command()
def bundle(
    owner: Annotated[str, typer.Option(help="GitHub organization or owner.")],
    repo: Annotated[str, typer.Option(help="GitHub repository name.")],
    token: Annotated[
        str | None,
        typer.Option(envvar="GITHUB_TOKEN", help="GitHub token used for API calls."),
    ] = None,
    labels: Annotated[
        list[str] | None,
        typer.Option(help="Comma separated labels to apply to the bundle PR."),
    ] = None,
    bot_name: Annotated[
        str,
        typer.Option(help="Account whose open update PRs are bundled."),
    ] = DEFAULT_BOT_NAME,
    author_name: Annotated[
        str,
        typer.Option(help="Name of the committer."),
    ] = DEFAULT_AUTHOR_NAME,
    author_email: Annotated[
        str,
        typer.Option(help="Email address of the committer."),
    ] = DEFAULT_AUTHOR_EMAIL,
    target_branch: Annotated[
        str,
        typer.Option(help="Branch to open the bundle PR against."),
    ] = DEFAULT_TARGET_BRANCH,
    pr_title: Annotated[
        str,
        typer.Option(help="Title of the bundle PR."),
    ] = DEFAULT_PR_TITLE,
    workdir: Annotated[
        Path,
        typer.Option(help="Root of the checked-out repository."),
    ] = Path("."),
    api_url: Annotated[
        str,
        typer.Option(help="GitHub API base URL."),
    ] = DEFAULT_API_URL,
    signing_name: Annotated[
        str | None,
        typer.Option(envvar="BUNDLER_SIGNING_NAME", help="Name on the signing key."),
    ] = None,
    signing_email: Annotated[
        str | None,
        typer.Option(envvar="BUNDLER_SIGNING_EMAIL", help="Email on the signing key."),
    ] = None,
    signing_bit_size: Annotated[
        int,
        typer.Option(envvar="BUNDLER_SIGNING_BIT_SIZE", help="Bit size of the signing key."),
    ] = DEFAULT_BIT_SIZE,
    signing_public_key: Annotated[
        str | None,
        typer.Option(
            envvar="BUNDLER_SIGNING_PUBLIC_KEY",
            help="Armored public key, or @path to read it from a file.",
        ),
    ] = None,
    signing_private_key: Annotated[
        str | None,
        typer.Option(
            envvar="BUNDLER_SIGNING_PRIVATE_KEY",
            help="Armored private key, or @path to read it from a file.",
        ),
    ] = None,
    signing_passphrase: Annotated[
        str | None,
        typer.Option(
            envvar="BUNDLER_SIGNING_PASSPHRASE",
            help="Passphrase of an encrypted private key.",
        ),
    ] = None,
) -> None:
    """Resolve every open bot update locally and open one bundle PR."""
    try:
        config = BundlerConfig(
            owner=owner,
            repo=repo,
            bot_name=bot_name,
            labels=parse_labels(labels),
            target_branch=target_branch,
            author_name=author_name,
            author_email=author_email,
            pr_title=pr_title,
            workdir=workdir,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        signer = _create_signer(
            name=signing_name,
            email=signing_email,
            bit_size=signing_bit_size,
            public_key=signing_public_key,
            private_key=signing_private_key,
            passphrase=signing_passphrase,
        )
    except SigningError as exc:
        console.print(f"failed to load signing key: {exc}")
        raise typer.Exit(code=1) from exc

    hosting = GitHubClient(token, api_url=api_url)
    workspace = RepositoryWorkspace(config.workdir)
    bundler = Bundler(
        config,
        hosting=hosting,
        chain=default_resolver_chain(
            runner=SubprocessRunner(config.workdir),
            hosting=hosting,
            workspace=workspace,
        ),
        workspace=workspace,
        working_copy=GitWorkingCopy(config.workdir),
        signer=signer,
    )
    try:
        result = bundler.bundle()
    except (GitHubAPIError, SigningError, OSError, ValueError) as exc:
        LOGGER.error("failed to bundle PRs: %s", exc)
        console.print(f"failed to bundle PRs: {exc}")
        raise typer.Exit(code=1) from exc
    _render_result(result)


if __name__ == "__main__":
    app()
