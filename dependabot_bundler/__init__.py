"""Bundle dependency-update pull requests into a single pull request."""

from __future__ import annotations

__version__ = "0.3.0"
