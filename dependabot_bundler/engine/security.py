"""Path safety helpers for working-copy mutations."""

from __future__ import annotations

from pathlib import Path


class SecurityError(RuntimeError):
    """Raised when an operation would escape the repository root."""


def ensure_safe_relative_path(base_dir: Path, relative_path: str) -> Path:
    """Resolve and validate that relative_path stays within base_dir."""
    target = (base_dir / relative_path).resolve()
    root = base_dir.resolve()
    if target == root:
        raise SecurityError("Target path must reference a file, not the repository root.")
    if root not in target.parents:
        raise SecurityError(f"Unsafe path traversal attempt: {relative_path}")
    return target


def ensure_safe_directory(base_dir: Path, relative_dir: str) -> Path:
    """Resolve a working subdirectory, allowing the repository root itself."""
    target = (base_dir / relative_dir).resolve()
    root = base_dir.resolve()
    if target != root and root not in target.parents:
        raise SecurityError(f"Unsafe path traversal attempt: {relative_dir}")
    return target
