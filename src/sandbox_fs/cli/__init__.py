"""
CLI module for sandbox-fs.

Provides a command-line interface to the sandboxed filesystem
operations and the agent tool dispatcher.
"""

from sandbox_fs.cli.main import cli

__all__ = ["cli"]
