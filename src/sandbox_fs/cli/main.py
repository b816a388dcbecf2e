"""
CLI for sandbox-fs.

Runs the sandboxed filesystem operations from the command line and can
dispatch single agent tool calls for testing.
"""

import asyncio
import json
import logging
import sys
from typing import Optional

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from sandbox_fs import __version__
from sandbox_fs.filesystem.config import SandboxConfig
from sandbox_fs.filesystem.exceptions import FileSystemError
from sandbox_fs.filesystem.models import DirectoryNode, tree_to_dict
from sandbox_fs.filesystem.service import SandboxFileSystem
from sandbox_fs.filesystem.tools import FileSystemTools

# Load environment variables
load_dotenv()

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Setup rich logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )


def load_config(roots: tuple[str, ...], config_file: Optional[str]) -> SandboxConfig:
    """Build the sandbox configuration: --root, then --config, then environment."""
    if roots:
        return SandboxConfig(allowed_directories=list(roots))
    if config_file:
        return SandboxConfig.from_file(config_file)
    return SandboxConfig.from_env()


def _fail(e: Exception) -> None:
    kind = getattr(e, "kind", type(e).__name__)
    err_console.print(f"[bold red]{kind}:[/bold red] {escape(str(e))}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--root",
    "-r",
    "roots",
    multiple=True,
    type=click.Path(exists=True, file_okay=False),
    help="Sandbox root directory (repeatable)",
)
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Configuration file (YAML or JSON)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, roots, config_file, verbose: bool):
    """Sandbox FS - read-only filesystem access bounded by root directories."""
    setup_logging(verbose)

    try:
        config = load_config(roots, config_file)
    except (ValueError, ValidationError, FileNotFoundError) as e:
        err_console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        sys.exit(1)

    ctx.obj = SandboxFileSystem(config)


@cli.command()
@click.argument("path")
@click.pass_obj
def read(fs: SandboxFileSystem, path: str):
    """Print the contents of a file."""
    try:
        click.echo(fs.read(path), nl=False)
    except FileSystemError as e:
        _fail(e)


@cli.command("read-many")
@click.argument("paths", nargs=-1, required=True)
@click.pass_obj
def read_many(fs: SandboxFileSystem, paths: tuple[str, ...]):
    """Read several files; failures are reported per file."""
    results = fs.read_many(paths)
    click.echo(
        json.dumps({key: result.model_dump() for key, result in results.items()}, indent=2)
    )


@cli.command("ls")
@click.argument("path", default=".")
@click.pass_obj
def list_directory(fs: SandboxFileSystem, path: str):
    """List the immediate children of a directory."""
    try:
        entries = fs.list_flat(path)
    except FileSystemError as e:
        _fail(e)
        return

    for entry in entries:
        click.echo(str(entry))


@cli.command()
@click.argument("path", default=".")
@click.option("--json", "as_json", is_flag=True, help="Print the tree as JSON")
@click.pass_obj
def tree(fs: SandboxFileSystem, path: str, as_json: bool):
    """Show the recursive directory tree below a path."""
    try:
        root = fs.build_tree(path)
    except FileSystemError as e:
        _fail(e)
        return

    if as_json:
        click.echo(json.dumps(tree_to_dict(root), indent=2))
        return

    def add(branch: Tree, node) -> None:
        for child in node.children:
            if isinstance(child, DirectoryNode) and child.outside_sandbox:
                branch.add(
                    f"[bold blue]{escape(child.name)}/[/bold blue] [dim](outside sandbox)[/dim]"
                )
            elif isinstance(child, DirectoryNode):
                add(branch.add(f"[bold blue]{escape(child.name)}/[/bold blue]"), child)
            else:
                branch.add(escape(child.name))

    rendered = Tree(f"[bold blue]{escape(root.name)}[/bold blue]")
    if isinstance(root, DirectoryNode):
        add(rendered, root)
    console.print(rendered)


@cli.command()
@click.argument("path")
@click.argument("pattern")
@click.pass_obj
def search(fs: SandboxFileSystem, path: str, pattern: str):
    """Find entries below PATH whose name contains PATTERN (case-insensitive)."""
    try:
        matches = fs.search(path, pattern)
    except FileSystemError as e:
        _fail(e)
        return

    for match in matches:
        click.echo(match)


@cli.command()
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Print metadata as JSON")
@click.pass_obj
def info(fs: SandboxFileSystem, path: str, as_json: bool):
    """Show metadata for a file or directory."""
    try:
        metadata = fs.stat(path)
    except FileSystemError as e:
        _fail(e)
        return

    if as_json:
        click.echo(metadata.model_dump_json(indent=2))
        return

    table = Table(title=escape(metadata.name), show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for field, value in metadata.model_dump(mode="json").items():
        table.add_row(field, escape(str(value)))
    console.print(table)


@cli.command()
@click.pass_obj
def tools(fs: SandboxFileSystem):
    """Print the agent tool schemas as JSON."""
    click.echo(json.dumps(FileSystemTools(fs.config).get_tool_schemas(), indent=2))


@cli.command()
@click.argument("tool_name")
@click.argument("arguments", default="{}")
@click.pass_obj
def call(fs: SandboxFileSystem, tool_name: str, arguments: str):
    """
    Run one agent tool call and print the result envelope.

    Examples:

        sandbox-fs -r /data call read_file '{"path": "notes.txt"}'

        sandbox-fs -r /data call search_files '{"path": ".", "pattern": "csv"}'
    """
    try:
        args = json.loads(arguments)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Invalid JSON: {e}", param_hint="ARGUMENTS")

    if not isinstance(args, dict):
        raise click.BadParameter("Arguments must be a JSON object", param_hint="ARGUMENTS")

    try:
        result = asyncio.run(FileSystemTools(fs.config).execute_tool(tool_name, args))
    except ValueError as e:
        _fail(e)
        return

    click.echo(json.dumps(result, indent=2))


@cli.command()
@click.pass_obj
def summary(fs: SandboxFileSystem):
    """Show the sandbox configuration."""
    table = Table(title="Sandbox", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in FileSystemTools(fs.config).get_summary().items():
        table.add_row(key, escape(str(value)))
    console.print(table)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
