"""
Tool-calling interface for the sandboxed filesystem.

Provides a high-level interface for automated agents to inspect the
filesystem through function calling (OpenAI function calling format).
"""

import asyncio
import logging
from typing import Any, Callable

from sandbox_fs.filesystem.config import SandboxConfig
from sandbox_fs.filesystem.exceptions import FileSystemError
from sandbox_fs.filesystem.models import ReadSuccess, tree_to_dict
from sandbox_fs.filesystem.service import SandboxFileSystem

logger = logging.getLogger(__name__)


class FileSystemTools:
    """
    Filesystem tools for agent function calling.

    Every tool is read-only and bounded by the configured sandbox roots.
    Blocking filesystem work runs on a worker thread so one large
    traversal does not stall other calls on the event loop.

    Usage:
        config = SandboxConfig(allowed_directories=[Path("/tmp/repos")])
        tools = FileSystemTools(config)

        # Get tool schemas for the agent
        schemas = tools.get_tool_schemas()

        # Execute tool call
        result = await tools.execute_tool(
            tool_name="read_file",
            arguments={"path": "main.py"}
        )
    """

    def __init__(self, config: SandboxConfig):
        """
        Initialize filesystem tools.

        Args:
            config: Sandbox configuration
        """
        self.config = config
        self.fs = SandboxFileSystem(config)
        self._handlers: dict[str, Callable[..., dict[str, Any]]] = {
            "read_file": self._read_file,
            "read_multiple_files": self._read_multiple_files,
            "list_directory": self._list_directory,
            "directory_tree": self._directory_tree,
            "search_files": self._search_files,
            "get_file_info": self._get_file_info,
            "list_allowed_directories": self._list_allowed_directories,
        }

    def get_tool_schemas(self) -> list[dict[str, Any]]:
        """
        Get OpenAI function calling schemas for all available tools.

        Returns:
            List of tool schemas in OpenAI format
        """
        return [
            _schema(
                "read_file",
                "Read the complete contents of a file from the file system. "
                "Use this tool when you need to examine the contents of a single file.",
                {"path": {"type": "string", "description": "Path to the file to read"}},
                ["path"],
            ),
            _schema(
                "read_multiple_files",
                "Read the contents of multiple files at once. Each file's content is "
                "returned with its path as a reference. Failed reads for individual "
                "files won't stop the entire operation.",
                {
                    "paths": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "List of file paths to read",
                    }
                },
                ["paths"],
            ),
            _schema(
                "list_directory",
                "Get a listing of all files and directories in a path. Entries are "
                "marked with [FILE] and [DIR] prefixes.",
                {"path": {"type": "string", "description": "Path to list contents of"}},
                ["path"],
            ),
            _schema(
                "directory_tree",
                "Get a recursive tree of files and directories. Each entry has 'name' "
                "and 'type' (file/directory); directories also have 'children'.",
                {"path": {"type": "string", "description": "Root path to create tree from"}},
                ["path"],
            ),
            _schema(
                "search_files",
                "Recursively search for files and directories whose name contains a "
                "pattern. The search is case-insensitive and returns full paths.",
                {
                    "path": {"type": "string", "description": "Starting path for search"},
                    "pattern": {"type": "string", "description": "Pattern to search for"},
                },
                ["path", "pattern"],
            ),
            _schema(
                "get_file_info",
                "Retrieve metadata about a file or directory: size, timestamps, "
                "permissions, and type, without reading its content.",
                {"path": {"type": "string", "description": "Path to get info for"}},
                ["path"],
            ),
            _schema(
                "list_allowed_directories",
                "List the directories this tool set is allowed to access.",
                {},
                [],
            ),
        ]

    async def execute_tool(
        self, tool_name: str, arguments: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Execute a tool call from an agent.

        Args:
            tool_name: Name of the tool to execute
            arguments: Tool arguments (from the function call)

        Returns:
            Tool execution result as a dict

        Raises:
            ValueError: If tool name is unknown
        """
        handler = self._handlers.get(tool_name)
        if handler is None:
            raise ValueError(f"Unknown tool: {tool_name}")

        logger.info(f"Tool invoked: {tool_name}({arguments})")
        return await asyncio.to_thread(self._run, tool_name, handler, arguments)

    def _run(
        self, tool_name: str, handler: Callable[..., dict[str, Any]], arguments: dict
    ) -> dict[str, Any]:
        path = arguments.get("path", arguments.get("paths"))
        try:
            return {"success": True, **handler(**arguments)}
        except FileSystemError as e:
            logger.warning(f"{tool_name} failed: {e}")
            return {
                "success": False,
                "path": path,
                "error": str(e),
                "error_type": e.kind,
            }
        except Exception as e:
            logger.error(f"{tool_name} unexpected error: {e}")
            return {
                "success": False,
                "path": path,
                "error": f"Unexpected error: {e}",
                "error_type": "UnexpectedError",
            }

    def _read_file(self, path: str) -> dict[str, Any]:
        content = self.fs.read(path)
        return {"path": path, "content": content, "size": len(content)}

    def _read_multiple_files(self, paths: list[str]) -> dict[str, Any]:
        results = self.fs.read_many(paths)
        return {
            "files": {key: result.model_dump() for key, result in results.items()},
            "count": len(results),
            "failed": sum(
                1 for result in results.values() if not isinstance(result, ReadSuccess)
            ),
        }

    def _list_directory(self, path: str) -> dict[str, Any]:
        entries = self.fs.list_flat(path)
        return {
            "path": path,
            "entries": [entry.model_dump(mode="json") for entry in entries],
            "listing": "".join(f"{entry}\n" for entry in entries),
            "count": len(entries),
        }

    def _directory_tree(self, path: str) -> dict[str, Any]:
        return {"path": path, "tree": tree_to_dict(self.fs.build_tree(path))}

    def _search_files(self, path: str, pattern: str) -> dict[str, Any]:
        matches = self.fs.search(path, pattern)
        return {
            "path": path,
            "pattern": pattern,
            "matches": matches,
            "count": len(matches),
        }

    def _get_file_info(self, path: str) -> dict[str, Any]:
        return {"path": path, "info": self.fs.stat(path).model_dump(mode="json")}

    def _list_allowed_directories(self) -> dict[str, Any]:
        return {"directories": [str(d) for d in self.config.allowed_directories]}

    def get_summary(self) -> dict[str, Any]:
        """
        Get a summary of the sandbox configuration.

        Returns:
            Dict with configuration summary
        """
        return {
            "allowed_directories": [str(d) for d in self.config.allowed_directories],
            "max_file_size_mb": self.config.max_file_size_bytes / (1024 * 1024),
            "max_depth": self.config.max_depth,
            "encoding": self.config.encoding,
            "tools": list(self._handlers),
        }


def _schema(
    name: str, description: str, properties: dict[str, Any], required: list[str]
) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        },
    }
