"""
Sandbox FS - read-only filesystem access for automated agents.

This package lets an untrusted caller read files, list directories,
walk trees, search by name and fetch metadata, but only inside a set
of configured root directories.
"""

__version__ = "0.1.0"

from sandbox_fs.filesystem import (
    FileSystemError,
    FileSystemTools,
    InvalidPathError,
    NotADirectoryPathError,
    OutOfSandboxError,
    PathNotFoundError,
    PathResolver,
    ReadError,
    ResolvedPath,
    SandboxConfig,
    SandboxFileSystem,
    TraversalError,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "SandboxConfig",
    # Core
    "PathResolver",
    "ResolvedPath",
    "SandboxFileSystem",
    "FileSystemTools",
    # Exceptions
    "FileSystemError",
    "InvalidPathError",
    "OutOfSandboxError",
    "PathNotFoundError",
    "NotADirectoryPathError",
    "TraversalError",
    "ReadError",
]
