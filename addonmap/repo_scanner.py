"""Bounded file-tree walking, capped reads and module-root discovery."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Collection, Iterator, List, Optional

from .config import DEFAULT_EXCLUDE_DIRS
from .logging import get_logger
from .models import ScanDiagnostics

logger = get_logger("scanner")

IncludePredicate = Callable[[Path], bool]
SkipPredicate = Callable[[str], bool]


# Skipped on every walk, whatever the configured exclude list says.
ALWAYS_EXCLUDE_DIRS = frozenset({".git", ".hg", ".svn", "node_modules"})


class FatalInputError(FileNotFoundError):
    """Raised when the workspace or repository to scan cannot be resolved."""


def make_skip_dir(names: Collection[str] = DEFAULT_EXCLUDE_DIRS) -> SkipPredicate:
    """Return a predicate skipping directories named in ``names`` or ALWAYS_EXCLUDE_DIRS."""
    excluded = ALWAYS_EXCLUDE_DIRS.union(names)
    return lambda name: name in excluded


def _include_all(_: Path) -> bool:
    return True


def _iter_files(root: Path, skip_dir: SkipPredicate) -> Iterator[Path]:
    # os.walk ignores unreadable directories unless onerror is given.
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if not skip_dir(name))
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            yield current_dir / filename


def list_files(
    root: Path,
    *,
    include: IncludePredicate = _include_all,
    skip_dir: Optional[SkipPredicate] = None,
    max_files: int = 10000,
) -> List[Path]:
    """Return up to ``max_files`` files under ``root`` accepted by ``include``.

    Directories are visited in sorted order so that the capped sample is the
    same on every run. A missing or unreadable root yields an empty list.
    """
    skip = skip_dir or make_skip_dir()
    files: List[Path] = []
    if max_files <= 0:
        return files
    for path in _iter_files(root, skip):
        if not include(path):
            continue
        files.append(path)
        if len(files) >= max_files:
            logger.debug("File cap of %d reached under %s", max_files, root)
            break
    return files


def read_text_safe(
    path: Path, max_chars: int, diagnostics: ScanDiagnostics | None = None
) -> str:
    """Return at most ``max_chars`` characters of ``path`` or "" if unreadable."""
    try:
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            return handle.read(max_chars)
    except OSError as exc:
        logger.debug("Unable to read %s: %s", path, exc)
        if diagnostics is not None:
            diagnostics.record_unreadable()
        return ""


def relative_posix(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def resolve_repository(
    workspace: Path, repo_name: str = "odoo", repo_path: str | None = None
) -> Path:
    """Resolve the repository to scan.

    An explicit ``repo_path`` (absolute or workspace-relative) wins. Otherwise the
    repository is looked up under ``<workspace>/repositories``, preferring
    ``repo_name`` and falling back to the first directory in name order.
    """
    if not workspace.exists():
        raise FatalInputError(f"Workspace path not found: {workspace}")

    if repo_path:
        candidate = Path(repo_path).expanduser()
        explicit = candidate if candidate.is_absolute() else workspace / candidate
        if not explicit.exists():
            raise FatalInputError(f"Repository path not found: {explicit}")
        if not explicit.is_dir():
            raise FatalInputError(f"Repository path is not a directory: {explicit}")
        return explicit.resolve()

    repositories_dir = workspace / "repositories"
    if not repositories_dir.is_dir():
        raise FatalInputError(f"repositories directory not found: {repositories_dir}")

    preferred = repositories_dir / repo_name
    if preferred.is_dir():
        return preferred.resolve()

    try:
        candidates = sorted(entry for entry in repositories_dir.iterdir() if entry.is_dir())
    except OSError:
        candidates = []
    if not candidates:
        raise FatalInputError(f"No repositories found under {repositories_dir}")
    logger.info("Repository %s not found; using %s", repo_name, candidates[0].name)
    return candidates[0].resolve()


class RepoScanner:
    """Locates module roots by their manifest file."""

    def __init__(
        self,
        manifest_filename: str = "__manifest__.py",
        exclude_dirs: Collection[str] = DEFAULT_EXCLUDE_DIRS,
        max_files: int = 20000,
        walk_max_files: int = 10000,
    ) -> None:
        self.manifest_filename = manifest_filename
        self.skip_dir = make_skip_dir(exclude_dirs)
        self.max_files = max_files
        self.walk_max_files = walk_max_files

    def locate_manifests(self, root: Path) -> List[Path]:
        """Return every manifest path found under ``root``."""
        if not root.exists():
            raise FatalInputError(f"Repository path not found: {root}")
        if not root.is_dir():
            raise FatalInputError(f"Repository path is not a directory: {root}")
        manifests = list_files(
            root,
            include=lambda path: path.name == self.manifest_filename,
            skip_dir=self.skip_dir,
            max_files=self.max_files,
        )
        logger.debug("Found %d manifests under %s", len(manifests), root)
        return manifests

    def list_module_files(
        self,
        module_dir: Path,
        *,
        include: IncludePredicate = _include_all,
        max_files: Optional[int] = None,
    ) -> List[Path]:
        """Walk a module subtree with this scanner's skip-list."""
        cap = self.walk_max_files if max_files is None else min(max_files, self.walk_max_files)
        return list_files(module_dir, include=include, skip_dir=self.skip_dir, max_files=cap)


__all__ = [
    "ALWAYS_EXCLUDE_DIRS",
    "FatalInputError",
    "RepoScanner",
    "list_files",
    "make_skip_dir",
    "read_text_safe",
    "relative_posix",
    "resolve_repository",
]
