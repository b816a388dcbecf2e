"""
Sandboxed, read-only filesystem access for automated agents.

This module resolves caller-supplied paths against configured root
directories and provides reads, listings, trees, name search and
metadata strictly within those roots.
"""

from sandbox_fs.filesystem.config import SandboxConfig, SandboxEnvSettings
from sandbox_fs.filesystem.exceptions import (
    FileSystemError,
    FileTooLargeError,
    InvalidPathError,
    NotADirectoryPathError,
    OutOfSandboxError,
    PathNotFoundError,
    ReadError,
    TraversalError,
)
from sandbox_fs.filesystem.listing import ListingEngine
from sandbox_fs.filesystem.metadata import MetadataReader
from sandbox_fs.filesystem.models import (
    BatchReadResult,
    DirectoryEntry,
    DirectoryNode,
    EntryKind,
    FileMetadata,
    FileNode,
    ReadFailure,
    ReadSuccess,
    TreeEntry,
    tree_to_dict,
)
from sandbox_fs.filesystem.reader import FileReader
from sandbox_fs.filesystem.resolver import PathResolver, ResolvedPath
from sandbox_fs.filesystem.search import SearchEngine
from sandbox_fs.filesystem.service import SandboxFileSystem
from sandbox_fs.filesystem.tools import FileSystemTools

__all__ = [
    # Configuration
    "SandboxConfig",
    "SandboxEnvSettings",
    # Exceptions
    "FileSystemError",
    "FileTooLargeError",
    "InvalidPathError",
    "NotADirectoryPathError",
    "OutOfSandboxError",
    "PathNotFoundError",
    "ReadError",
    "TraversalError",
    # Models
    "BatchReadResult",
    "DirectoryEntry",
    "DirectoryNode",
    "EntryKind",
    "FileMetadata",
    "FileNode",
    "ReadFailure",
    "ReadSuccess",
    "TreeEntry",
    "tree_to_dict",
    # Components
    "PathResolver",
    "ResolvedPath",
    "MetadataReader",
    "ListingEngine",
    "SearchEngine",
    "FileReader",
    "SandboxFileSystem",
    "FileSystemTools",
]
