"""
Baseline Watch - Source tree scanner.

Relevance filter (extension based) and recursive traversal that skips
dependency, build output, VCS and hidden directories.
"""

import logging
import os
from pathlib import Path
from typing import Iterator, Optional, Union

logger = logging.getLogger(__name__)

RELEVANT_EXTENSIONS = frozenset(
    {".js", ".jsx", ".ts", ".tsx", ".css", ".scss", ".html", ".vue"}
)
IGNORED_DIRECTORIES = frozenset(
    {"node_modules", ".git", "dist", "build", ".next", "coverage"}
)

PathLike = Union[str, Path]


def is_relevant_file(file_path: PathLike) -> bool:
    """True when the suffix belongs to a script, markup or stylesheet family."""
    return Path(file_path).suffix.lower() in RELEVANT_EXTENSIONS


def should_ignore_directory(name: str) -> bool:
    return name in IGNORED_DIRECTORIES or name.startswith(".")


def _parent_parts(file_path: PathLike, root: Optional[PathLike]) -> tuple[str, ...]:
    parent = Path(file_path).parent
    if root is not None:
        try:
            return parent.relative_to(Path(root)).parts
        except ValueError:
            pass
    return tuple(p for p in parent.parts if p not in ("", os.sep, "."))


def is_ignored_path(file_path: PathLike, root: Optional[PathLike] = None) -> bool:
    """
    True if any directory between root and file_path is ignored.
    Without root, every parent component of file_path is checked.
    """
    return any(should_ignore_directory(p) for p in _parent_parts(file_path, root))


class SourceScanner:
    """
    Walks watch roots and yields relevant files. Ignored directories are
    pruned during the walk rather than filtered afterwards.
    """

    def __init__(self, extra_ignored: Optional[list[str]] = None) -> None:
        self.extra_ignored = frozenset(extra_ignored or ())

    def _ignore_dir(self, name: str) -> bool:
        return should_ignore_directory(name) or name in self.extra_ignored

    def is_watched_file(self, file_path: PathLike, root: Optional[PathLike] = None) -> bool:
        """Relevant extension and not under an ignored directory."""
        if not is_relevant_file(file_path):
            return False
        return not any(self._ignore_dir(p) for p in _parent_parts(file_path, root))

    def iter_relevant_files(self, root: PathLike) -> Iterator[Path]:
        root_path = Path(root).resolve()
        if root_path.is_file():
            if is_relevant_file(root_path):
                yield root_path
            return
        if not root_path.is_dir():
            logger.warning("Not a directory: %s", root_path)
            return
        for dirpath, dirnames, filenames in os.walk(root_path):
            dirnames[:] = sorted(d for d in dirnames if not self._ignore_dir(d))
            for name in sorted(filenames):
                if is_relevant_file(name):
                    yield Path(dirpath) / name

    def scan_mtimes(self, root: PathLike) -> dict[str, float]:
        """
        Map each relevant file under root to its modification time.
        Files that disappear mid-walk are skipped.
        """
        mtimes: dict[str, float] = {}
        for path in self.iter_relevant_files(root):
            try:
                mtimes[str(path)] = path.stat().st_mtime
            except OSError as e:
                logger.debug("Skipping %s: %s", path, e)
                continue
        return mtimes
