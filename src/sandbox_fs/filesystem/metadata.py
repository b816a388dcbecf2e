"""
Metadata snapshots for single filesystem entries.
"""

import logging
import os
import stat
from datetime import datetime, timezone

from sandbox_fs.filesystem.exceptions import PathNotFoundError, ReadError
from sandbox_fs.filesystem.models import EntryKind, FileMetadata
from sandbox_fs.filesystem.resolver import ResolvedPath

logger = logging.getLogger(__name__)


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class MetadataReader:
    """
    Reads type, size, timestamps and permission flags of an entry.

    The attributes are gathered in one best-effort pass; they are not
    atomic with each other or with later filesystem state.
    """

    def stat(self, resolved: ResolvedPath) -> FileMetadata:
        """
        Describe the entry at a resolved path.

        Symbolic links report is_symlink=True while kind, size and
        timestamps describe the link target.

        Raises:
            PathNotFoundError: If nothing exists at the path
            ReadError: If the attributes cannot be read
        """
        path = resolved.path

        try:
            st = path.stat()
        except FileNotFoundError:
            raise PathNotFoundError(resolved.display)
        except OSError as e:
            raise ReadError(resolved.display, f"Failed to get file info: {e.strerror}")

        is_dir = stat.S_ISDIR(st.st_mode)
        created = getattr(st, "st_birthtime", None) or st.st_ctime

        metadata = FileMetadata(
            path=str(path),
            name=resolved.name,
            kind=EntryKind.DIRECTORY if is_dir else EntryKind.FILE,
            size_bytes=0 if is_dir else st.st_size,
            created_at=_timestamp(created),
            modified_at=_timestamp(st.st_mtime),
            accessed_at=_timestamp(st.st_atime),
            is_readable=os.access(path, os.R_OK),
            is_writable=os.access(path, os.W_OK),
            is_executable=os.access(path, os.X_OK),
            is_symlink=resolved.is_symlink(),
        )

        logger.debug(f"Read metadata for {path}")
        return metadata
