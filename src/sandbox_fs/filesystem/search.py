"""
Recursive, case-insensitive name search inside the sandbox.
"""

import logging
import os
from pathlib import Path

from sandbox_fs.filesystem.exceptions import ReadError
from sandbox_fs.filesystem.listing import check_directory
from sandbox_fs.filesystem.resolver import PathResolver, ResolvedPath

logger = logging.getLogger(__name__)


class SearchEngine:
    """
    Finds entries whose name contains a pattern, ignoring case.

    Directories match too, not just files. Results are absolute paths in
    depth-first pre-order. Unlike tree building, search degrades
    gracefully: a descendant directory that cannot be read is skipped
    and the walk continues.

    Usage:
        search = SearchEngine(resolver)
        matches = search.search(resolver.resolve("."), "report")
    """

    def __init__(self, resolver: PathResolver):
        """
        Initialize the search engine.

        Args:
            resolver: Resolver whose roots bound the walk
        """
        self.resolver = resolver

    @property
    def max_depth(self):
        return self.resolver.config.max_depth

    def search(self, root: ResolvedPath, pattern: str) -> list[str]:
        """
        Search every descendant of a directory by name.

        Args:
            root: Directory to search below
            pattern: Substring to look for in entry names (case-insensitive)

        Returns:
            Absolute paths of matching entries

        Raises:
            PathNotFoundError: If the root does not exist
            NotADirectoryPathError: If the root is not a directory
            ReadError: If the root itself cannot be enumerated
        """
        check_directory(root)

        try:
            with os.scandir(root.path) as it:
                entries = list(it)
        except OSError as e:
            raise ReadError(root.display, f"Failed to search files: {e.strerror}")

        matches: list[str] = []
        needle = pattern.lower()

        try:
            self._walk(entries, needle, matches, frozenset({root.path}), 1)
        except RecursionError:
            logger.warning(f"Search below {root.path} stopped: tree is too deep")

        logger.info(f"Search for {pattern!r} found {len(matches)} matches")
        return matches

    def _walk(
        self,
        entries: list[os.DirEntry],
        needle: str,
        matches: list[str],
        ancestors: frozenset,
        depth: int,
    ) -> None:
        for entry in entries:
            if needle in entry.name.lower():
                matches.append(entry.path)

            try:
                if not entry.is_dir():
                    continue
                canonical = Path(entry.path).resolve()
            except (OSError, RuntimeError) as e:
                logger.debug(f"Skipping unreadable entry {entry.path}: {e}")
                continue

            if not self._should_descend(entry.path, canonical, ancestors, depth):
                continue

            try:
                with os.scandir(entry.path) as it:
                    children = list(it)
            except OSError as e:
                logger.debug(f"Skipping unreadable directory {entry.path}: {e}")
                continue

            self._walk(children, needle, matches, ancestors | {canonical}, depth + 1)

    def _should_descend(
        self, path: str, canonical: Path, ancestors: frozenset, depth: int
    ) -> bool:
        if canonical in ancestors:
            logger.debug(f"Not descending into symbolic link cycle at {path}")
            return False
        if not self.resolver.contains(canonical):
            logger.debug(f"Not descending into link leaving the sandbox: {path}")
            return False
        if self.max_depth is not None and depth > self.max_depth:
            return False
        return True
