"""
File content reads: single strict reads and partial-failure batch reads.
"""

import logging
from typing import Iterable

from sandbox_fs.filesystem.exceptions import (
    FileSystemError,
    FileTooLargeError,
    PathNotFoundError,
    ReadError,
)
from sandbox_fs.filesystem.models import BatchReadResult, ReadFailure, ReadSuccess
from sandbox_fs.filesystem.resolver import PathResolver, ResolvedPath

logger = logging.getLogger(__name__)


class FileReader:
    """
    Reads text files inside the sandbox.

    ``read`` is strict and fails the whole call. ``read_many`` isolates
    failures per path so one bad entry never hides the others.

    Usage:
        reader = FileReader(resolver)

        content = reader.read(resolver.resolve("main.py"))

        results = reader.read_many(["main.py", "missing.py"])
        results["missing.py"].error_type  # "NotFound"
    """

    def __init__(self, resolver: PathResolver):
        """
        Initialize the file reader.

        Args:
            resolver: Resolver used for batch entries
        """
        self.resolver = resolver
        self.config = resolver.config

    def read(self, resolved: ResolvedPath) -> str:
        """
        Read a file's full text content.

        Args:
            resolved: File to read

        Returns:
            File contents as string

        Raises:
            PathNotFoundError: If the file does not exist
            FileTooLargeError: If the file exceeds max_file_size_bytes
            ReadError: If the file cannot be read or decoded
        """
        path = resolved.path

        if not resolved.exists():
            raise PathNotFoundError(resolved.display)

        if resolved.is_dir():
            raise ReadError(resolved.display, "Path is a directory")

        try:
            file_size = path.stat().st_size
            if file_size > self.config.max_file_size_bytes:
                logger.warning(
                    f"File too large: {path} ({file_size} bytes > "
                    f"{self.config.max_file_size_bytes} bytes)"
                )
                raise FileTooLargeError(
                    resolved.display, file_size, self.config.max_file_size_bytes
                )

            content = path.read_text(encoding=self.config.encoding)
        except FileNotFoundError:
            raise PathNotFoundError(resolved.display)
        except OSError as e:
            logger.error(f"Failed to read file {path}: {e}")
            raise ReadError(resolved.display, f"Failed to read file: {e.strerror}")
        except UnicodeDecodeError as e:
            logger.error(f"Failed to decode file {path}: {e}")
            raise ReadError(resolved.display, f"Failed to read file: {e}")

        logger.debug(f"Successfully read file: {path} ({file_size} bytes)")
        return content

    def read_many(self, paths: Iterable[str]) -> BatchReadResult:
        """
        Read several files, recording failures per entry.

        Each path is resolved and read independently. The call itself
        never fails because of an individual entry.

        Args:
            paths: Caller-supplied path strings

        Returns:
            Mapping from each input string, exactly as given, to its
            content or failure marker
        """
        results: BatchReadResult = {}

        for raw_path in paths:
            try:
                content = self.read(self.resolver.resolve(raw_path))
                results[raw_path] = ReadSuccess(content=content)
            except FileSystemError as e:
                logger.warning(f"Skipping file {raw_path}: {e}")
                results[raw_path] = ReadFailure(error_type=e.kind, error=str(e))
            except OSError as e:
                logger.warning(f"Skipping file {raw_path}: {e}")
                error = ReadError(raw_path, f"Failed to read file: {e.strerror}")
                results[raw_path] = ReadFailure(error_type=error.kind, error=str(error))

        failed = sum(1 for r in results.values() if isinstance(r, ReadFailure))
        logger.info(f"Read {len(results) - failed} of {len(results)} files")
        return results
