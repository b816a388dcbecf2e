"""
Path resolution against the configured sandbox roots.

The resolver is the only place where the sandbox boundary is checked.
Every other component trusts the ResolvedPath values it produces.
"""

import errno
import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from sandbox_fs.filesystem.config import SandboxConfig
from sandbox_fs.filesystem.exceptions import InvalidPathError, OutOfSandboxError, ReadError

logger = logging.getLogger(__name__)

# Errors that mean "nothing there", as pathlib's own predicates treat them.
_MISSING_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR, errno.EBADF, errno.ELOOP})


@dataclass(frozen=True)
class ResolvedPath:
    """
    A canonical absolute path proven to lie within a sandbox root.

    Produced by PathResolver.resolve(); callers should not build one
    directly. Equality and hashing use the canonical path only.

    Attributes:
        path: Canonical, symlink-resolved absolute path
        requested: The caller's input string
        lexical: The requested entry before resolving its final component,
            used to report the entry's own name and whether it is a link
    """

    path: Path
    requested: str = field(default="", compare=False)
    lexical: Optional[Path] = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        """Name of the requested entry."""
        source = self.lexical or self.path
        return source.name or str(source)

    @property
    def display(self) -> str:
        """The path to name in error messages (the caller's input when known)."""
        return self.requested or str(self.path)

    def exists(self) -> bool:
        """Whether anything exists at this path right now."""
        return self._probe(self.path.stat) is not None

    def is_dir(self) -> bool:
        st = self._probe(self.path.stat)
        return st is not None and stat.S_ISDIR(st.st_mode)

    def is_symlink(self) -> bool:
        """Whether the requested entry itself is a symbolic link."""
        if self.lexical is None:
            return False
        st = self._probe(self.lexical.lstat)
        return st is not None and stat.S_ISLNK(st.st_mode)

    def _probe(
        self, stat_call: Callable[[], os.stat_result]
    ) -> Optional[os.stat_result]:
        """
        Stat the entry, treating a missing entry as None.

        Other OS errors become taxonomy errors naming the caller's input,
        never the canonical path.
        """
        try:
            return stat_call()
        except OSError as e:
            if e.errno in _MISSING_ERRNOS:
                return None
            if e.errno == errno.ENAMETOOLONG:
                raise InvalidPathError(self.display, "Path name is too long")
            raise ReadError(self.display, f"Cannot access path: {e.strerror}")
        except ValueError:
            return None

    def __str__(self) -> str:
        return str(self.path)


class PathResolver:
    """
    Resolves caller-supplied path strings inside the sandbox.

    Relative paths are joined against each root in configured order,
    absolute paths are taken as given. The canonical (symlink-resolved)
    result must lie at or below one of the roots, compared by whole path
    components, so a root /data never admits /data-other.

    Resolution does not require the target to exist.

    Usage:
        resolver = PathResolver(SandboxConfig(allowed_directories=["/data"]))

        resolved = resolver.resolve("reports/2024.csv")
        if resolved.exists():
            ...

        resolver.resolve("../etc/passwd")  # raises OutOfSandboxError
    """

    def __init__(self, config: SandboxConfig):
        """
        Initialize the resolver.

        Args:
            config: Sandbox configuration
        """
        self.config = config

    @property
    def roots(self) -> list[Path]:
        return self.config.allowed_directories

    def resolve(self, raw_path: str) -> ResolvedPath:
        """
        Resolve a caller-supplied path.

        Args:
            raw_path: Relative or absolute path string

        Returns:
            ResolvedPath inside one of the roots

        Raises:
            InvalidPathError: If the input is empty, contains a null byte,
                has a name the OS rejects as too long, or cannot be
                canonicalized
            OutOfSandboxError: If the canonical path is outside every root
            ReadError: If the OS refuses to tell whether the path exists
        """
        if not isinstance(raw_path, str) or not raw_path:
            raise InvalidPathError(str(raw_path), "Path is empty")

        if "\x00" in raw_path:
            raise InvalidPathError(
                raw_path.replace("\x00", "\\0"), "Path contains a null byte"
            )

        expanded = self._expand_home(raw_path)
        if expanded.is_absolute():
            candidates = [expanded]
        else:
            candidates = [root / expanded for root in self.roots]

        fallback: Optional[ResolvedPath] = None

        for candidate in candidates:
            try:
                canonical = candidate.resolve()
                lexical = self._lexical_entry(candidate, canonical)
            except (OSError, RuntimeError, ValueError) as e:
                logger.debug(f"Cannot resolve {raw_path!r}: {e}")
                raise InvalidPathError(raw_path, "Cannot resolve path")

            if not self.contains(canonical):
                continue

            resolved = ResolvedPath(canonical, requested=raw_path, lexical=lexical)
            if resolved.exists():
                return resolved
            if fallback is None:
                fallback = resolved

        if fallback is not None:
            return fallback

        logger.warning(f"Rejected path outside sandbox: {raw_path!r}")
        raise OutOfSandboxError(raw_path)

    def contains(self, path: Path) -> bool:
        """Check whether a canonical path lies within any root."""
        return any(self._is_within_directory(path, root) for root in self.roots)

    def _expand_home(self, raw_path: str) -> Path:
        """Expand a leading ~ or ~/ to the home directory."""
        path = Path(raw_path)
        if raw_path == "~" or raw_path.startswith("~/"):
            try:
                return path.expanduser()
            except RuntimeError as e:
                raise InvalidPathError(raw_path, f"Cannot expand home directory: {e}")
        return path

    def _lexical_entry(self, candidate: Path, canonical: Path) -> Path:
        # Parent resolved, final component kept as named, so the result
        # still canonicalizes to the same in-sandbox target.
        if candidate.name in ("", "..") or candidate.parent == candidate:
            return canonical
        return candidate.parent.resolve() / candidate.name

    def _is_within_directory(self, path: Path, directory: Path) -> bool:
        """Check if path is within directory (prevents path traversal)."""
        try:
            path.relative_to(directory)
            return True
        except ValueError:
            return False
