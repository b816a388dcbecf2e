"""
Data models for sandboxed filesystem results.

All models are request-scoped snapshots; nothing here is cached or
tied to later filesystem state.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class EntryKind(str, Enum):
    """Type of a filesystem entry, observed at call time."""

    FILE = "file"
    DIRECTORY = "directory"


class DirectoryEntry(BaseModel):
    """An immediate child of a listed directory."""

    name: str = Field(description="Entry name")
    kind: EntryKind = Field(description="Entry type")

    def __str__(self) -> str:
        prefix = "[DIR]  " if self.kind == EntryKind.DIRECTORY else "[FILE] "
        return f"{prefix}{self.name}"


class FileMetadata(BaseModel):
    """Point-in-time description of a single filesystem entry."""

    path: str = Field(description="Canonical absolute path")
    name: str = Field(description="Entry name as requested")
    kind: EntryKind = Field(description="Type of the entry (symlinks report their target)")
    size_bytes: int = Field(description="Size in bytes (0 for directories)")
    created_at: datetime = Field(description="Creation time")
    modified_at: datetime = Field(description="Last modification time")
    accessed_at: datetime = Field(description="Last access time")
    is_readable: bool = Field(description="Whether the entry can be read")
    is_writable: bool = Field(description="Whether the entry can be written")
    is_executable: bool = Field(description="Whether the entry can be executed")
    is_symlink: bool = Field(description="Whether the requested entry is a symbolic link")


class FileNode(BaseModel):
    """A file in a directory tree. Files never carry children."""

    kind: Literal[EntryKind.FILE] = EntryKind.FILE
    name: str


class DirectoryNode(BaseModel):
    """A directory in a directory tree, with its children in enumeration order."""

    kind: Literal[EntryKind.DIRECTORY] = EntryKind.DIRECTORY
    name: str
    children: list["TreeEntry"] = Field(default_factory=list)
    outside_sandbox: bool = Field(
        default=False,
        description="Link to a directory outside every root; children were not read",
    )


TreeEntry = Annotated[Union[FileNode, DirectoryNode], Field(discriminator="kind")]

DirectoryNode.model_rebuild()


def tree_to_dict(node: Union[FileNode, DirectoryNode]) -> dict:
    """
    Convert a tree into plain nested dicts.

    Each node has ``name`` and ``type``; only directories carry ``children``.
    Unexpanded links leaving the sandbox are marked ``outside_sandbox``.
    """
    data = {"name": node.name, "type": node.kind.value}
    if isinstance(node, DirectoryNode):
        data["children"] = [tree_to_dict(child) for child in node.children]
        if node.outside_sandbox:
            data["outside_sandbox"] = True
    return data


class ReadSuccess(BaseModel):
    """Content of a file read as part of a batch."""

    status: Literal["ok"] = "ok"
    content: str


class ReadFailure(BaseModel):
    """Failure marker for a single entry of a batch read."""

    status: Literal["error"] = "error"
    error_type: str = Field(description="Error kind, e.g. NotFound")
    error: str = Field(description="Human-readable error message")


ReadOutcome = Annotated[Union[ReadSuccess, ReadFailure], Field(discriminator="status")]

# Keyed by the caller's path string, exactly as given.
BatchReadResult = dict[str, ReadOutcome]
