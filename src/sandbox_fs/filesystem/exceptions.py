"""
Exceptions for sandboxed filesystem operations.

Every exception carries a ``kind`` naming its place in the error taxonomy
and the offending ``path``.
"""


class FileSystemError(Exception):
    """Base exception for sandboxed filesystem operations."""

    kind = "FileSystemError"

    def __init__(self, path: str, reason: str = "Filesystem error"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class InvalidPathError(FileSystemError):
    """Raised when a path is empty, malformed, or cannot be canonicalized."""

    kind = "InvalidPath"

    def __init__(self, path: str, reason: str = "Invalid path"):
        super().__init__(path, reason)


class OutOfSandboxError(FileSystemError):
    """
    Raised when a path resolves outside every configured root.

    Only the caller's input is kept; the canonical target and the roots
    are never part of the message.
    """

    kind = "OutOfSandbox"

    def __init__(self, path: str):
        super().__init__(path, "Path is outside the allowed directories")


class PathNotFoundError(FileSystemError):
    """Raised when nothing exists at a resolved path."""

    kind = "NotFound"

    def __init__(self, path: str, reason: str = "Path does not exist"):
        super().__init__(path, reason)


class NotADirectoryPathError(FileSystemError):
    """Raised when a directory-only operation targets something else."""

    kind = "NotADirectory"

    def __init__(self, path: str, reason: str = "Path is not a directory"):
        super().__init__(path, reason)


class TraversalError(FileSystemError):
    """Raised when a tree walk cannot read a descendant."""

    kind = "TraversalError"

    def __init__(self, path: str, reason: str = "Failed to build directory tree"):
        super().__init__(path, reason)


class ReadError(FileSystemError):
    """Raised when content cannot be read."""

    kind = "ReadError"

    def __init__(self, path: str, reason: str = "Failed to read file"):
        super().__init__(path, reason)


class FileTooLargeError(ReadError):
    """Raised when a file exceeds the configured size limit."""

    kind = "FileTooLarge"

    def __init__(self, path: str, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(path, f"File too large ({size} bytes > {limit} bytes)")
