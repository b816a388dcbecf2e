"""
Directory listings: flat (immediate children) and recursive trees.

Children appear in the order the operating system enumerates them.
That order is not sorted and may differ between calls and platforms.
"""

import logging
import os
from pathlib import Path
from typing import Union

from sandbox_fs.filesystem.exceptions import (
    NotADirectoryPathError,
    PathNotFoundError,
    ReadError,
    TraversalError,
)
from sandbox_fs.filesystem.models import DirectoryEntry, DirectoryNode, EntryKind, FileNode
from sandbox_fs.filesystem.resolver import PathResolver, ResolvedPath

logger = logging.getLogger(__name__)


def entry_kind(entry: os.DirEntry) -> EntryKind:
    """Kind of a directory entry, following symbolic links."""
    return EntryKind.DIRECTORY if entry.is_dir() else EntryKind.FILE


class ListingEngine:
    """
    Lists directories inside the sandbox.

    Usage:
        resolver = PathResolver(config)
        listing = ListingEngine(resolver)

        for entry in listing.list_flat(resolver.resolve("reports")):
            print(entry)  # "[FILE] 2024.csv"

        tree = listing.build_tree(resolver.resolve("reports"))
    """

    def __init__(self, resolver: PathResolver):
        """
        Initialize the listing engine.

        Args:
            resolver: Resolver whose roots bound tree expansion
        """
        self.resolver = resolver

    @property
    def max_depth(self):
        return self.resolver.config.max_depth

    def list_flat(self, resolved: ResolvedPath) -> list[DirectoryEntry]:
        """
        List the immediate children of a directory.

        Raises:
            PathNotFoundError: If the path does not exist
            NotADirectoryPathError: If the path is not a directory
            ReadError: If the directory cannot be enumerated
        """
        check_directory(resolved)

        try:
            with os.scandir(resolved.path) as it:
                entries = [DirectoryEntry(name=e.name, kind=entry_kind(e)) for e in it]
        except OSError as e:
            raise ReadError(resolved.display, f"Failed to list directory: {e.strerror}")

        logger.debug(f"Listed {len(entries)} entries in {resolved.path}")
        return entries

    def build_tree(self, resolved: ResolvedPath) -> Union[FileNode, DirectoryNode]:
        """
        Build the full tree below a path, depth-first.

        The operation is all-or-nothing: the first descendant that cannot
        be read aborts the walk and nothing built so far is returned.
        A file path yields a single FileNode. A directory link whose target
        lies outside every root is listed but not read: it appears as a
        DirectoryNode with no children and ``outside_sandbox`` set.

        Raises:
            PathNotFoundError: If the path does not exist
            TraversalError: If any descendant cannot be read, a symbolic
                link cycle is found, or max_depth is exceeded
        """
        if not resolved.exists():
            raise PathNotFoundError(resolved.display)

        if not resolved.is_dir():
            return FileNode(name=resolved.name)

        try:
            tree = self._expand(resolved.path, resolved.name, frozenset(), 0)
        except RecursionError:
            raise TraversalError(resolved.display, "Directory tree is too deep")

        logger.debug(f"Built directory tree for {resolved.path}")
        return tree

    def _expand(
        self, directory: Path, name: str, ancestors: frozenset, depth: int
    ) -> DirectoryNode:
        try:
            canonical = directory.resolve()
        except (OSError, RuntimeError) as e:
            raise TraversalError(str(directory), f"Cannot resolve directory: {e}")

        if canonical in ancestors:
            raise TraversalError(str(directory), "Symbolic link cycle detected")

        if self.max_depth is not None and depth > self.max_depth:
            raise TraversalError(
                str(directory), f"Maximum depth of {self.max_depth} exceeded"
            )

        ancestors = ancestors | {canonical}
        children: list[Union[FileNode, DirectoryNode]] = []

        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            raise TraversalError(str(directory), f"Failed to build directory tree: {e}")

        for entry in entries:
            child = Path(entry.path)
            try:
                is_dir = entry.is_dir()
                leaves_sandbox = (
                    is_dir
                    and entry.is_symlink()
                    and not self.resolver.contains(child.resolve())
                )
            except (OSError, RuntimeError) as e:
                raise TraversalError(str(child), f"Failed to build directory tree: {e}")

            if not is_dir:
                children.append(FileNode(name=entry.name))
            elif leaves_sandbox:
                logger.warning(f"Not expanding link leaving the sandbox: {child}")
                children.append(DirectoryNode(name=entry.name, outside_sandbox=True))
            else:
                children.append(self._expand(child, entry.name, ancestors, depth + 1))

        return DirectoryNode(name=name, children=children)


def check_directory(resolved: ResolvedPath) -> None:
    """Require an existing directory at a resolved path."""
    if not resolved.exists():
        raise PathNotFoundError(resolved.display)
    if not resolved.is_dir():
        raise NotADirectoryPathError(resolved.display)
