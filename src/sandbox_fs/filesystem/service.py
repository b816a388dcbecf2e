"""
String-path facade over the sandboxed filesystem core.

Every operation resolves the caller's path first; only an in-sandbox
path reaches the metadata, listing, search or read components.
"""

from typing import Iterable, Union

from sandbox_fs.filesystem.config import SandboxConfig
from sandbox_fs.filesystem.listing import ListingEngine
from sandbox_fs.filesystem.metadata import MetadataReader
from sandbox_fs.filesystem.models import (
    BatchReadResult,
    DirectoryEntry,
    DirectoryNode,
    FileMetadata,
    FileNode,
)
from sandbox_fs.filesystem.reader import FileReader
from sandbox_fs.filesystem.resolver import PathResolver, ResolvedPath
from sandbox_fs.filesystem.search import SearchEngine


class SandboxFileSystem:
    """
    Read-only filesystem operations bounded by a sandbox.

    All operations are synchronous and stateless; every call re-reads
    the filesystem. Existence checks and later reads are not atomic,
    so a file changed by another process in between can still fail
    the read.

    Usage:
        fs = SandboxFileSystem(SandboxConfig(allowed_directories=["/data"]))

        fs.read("reports/2024.csv")
        fs.read_many(["a.txt", "b.txt"])
        fs.list_flat("reports")
        fs.build_tree("reports")
        fs.search(".", "csv")
        fs.stat("reports/2024.csv")
    """

    def __init__(self, config: SandboxConfig):
        """
        Initialize the filesystem facade.

        Args:
            config: Sandbox configuration
        """
        self.config = config
        self.resolver = PathResolver(config)
        self.metadata = MetadataReader()
        self.listing = ListingEngine(self.resolver)
        self.searcher = SearchEngine(self.resolver)
        self.reader = FileReader(self.resolver)

    def resolve(self, path: str) -> ResolvedPath:
        return self.resolver.resolve(path)

    def exists(self, path: str) -> bool:
        """Check whether an in-sandbox path currently exists."""
        return self.resolver.resolve(path).exists()

    def read(self, path: str) -> str:
        return self.reader.read(self.resolver.resolve(path))

    def read_many(self, paths: Iterable[str]) -> BatchReadResult:
        return self.reader.read_many(paths)

    def list_flat(self, path: str) -> list[DirectoryEntry]:
        return self.listing.list_flat(self.resolver.resolve(path))

    def build_tree(self, path: str) -> Union[FileNode, DirectoryNode]:
        return self.listing.build_tree(self.resolver.resolve(path))

    def search(self, path: str, pattern: str) -> list[str]:
        return self.searcher.search(self.resolver.resolve(path), pattern)

    def stat(self, path: str) -> FileMetadata:
        return self.metadata.stat(self.resolver.resolve(path))
