"""Repository working copy access with path safety guarantees."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

from dependabot_bundler.engine.security import ensure_safe_relative_path

Snapshot = dict[str, bytes | None]


class RepositoryWorkspace:
    """Reads and writes files of the checked-out repository under its root."""

    def __init__(self, base_dir: Path) -> None:
        """Initialize workspace rooted at base_dir."""
        self.base_dir = base_dir

    @property
    def root(self) -> Path:
        """Return the resolved repository root."""
        return self.base_dir.resolve()

    def read_text(self, relative_path: str) -> str:
        """Read a UTF-8 text file under the repository root, line endings untouched."""
        target = ensure_safe_relative_path(self.base_dir, relative_path)
        return target.read_bytes().decode("utf-8")

    def write_text(self, relative_path: str, content: str) -> None:
        """Write UTF-8 content as is, keeping the permission bits of an existing file."""
        target = ensure_safe_relative_path(self.base_dir, relative_path)
        mode = target.stat().st_mode if target.exists() else None
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8", newline="")
        if mode is not None:
            target.chmod(mode & 0o7777)

    def relative(self, path: Path) -> str:
        """Return the POSIX repository-relative form of an absolute path."""
        return path.resolve().relative_to(self.root).as_posix()

    def iter_files(self, relative_dir: str, suffixes: tuple[str, ...]) -> Iterator[str]:
        """Yield repository-relative files below relative_dir with matching suffixes."""
        directory = self.root / relative_dir
        if not directory.is_dir():
            return
        for path in sorted(directory.rglob("*")):
            if path.is_file() and path.suffix in suffixes:
                yield self.relative(path)

    def snapshot(self, relative_paths: Iterable[str]) -> Snapshot:
        """Capture current bytes of each path; missing files are recorded as None."""
        captured: Snapshot = {}
        for relative_path in relative_paths:
            target = ensure_safe_relative_path(self.base_dir, relative_path)
            captured[relative_path] = target.read_bytes() if target.is_file() else None
        return captured

    def restore(self, snapshot: Snapshot) -> None:
        """Put every path of a snapshot back to its captured state."""
        for relative_path, content in snapshot.items():
            target = ensure_safe_relative_path(self.base_dir, relative_path)
            if content is None:
                target.unlink(missing_ok=True)
                continue
            target.write_bytes(content)
