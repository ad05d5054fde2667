"""Module entrypoint for python -m dependabot_bundler."""

from __future__ import annotations

from dependabot_bundler.cli import app

if __name__ == "__main__":
    app(prog_name="dependabot-bundler")
