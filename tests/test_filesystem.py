"""
Tests for sandboxed filesystem access.
"""

import json
import os
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from sandbox_fs.filesystem import (
    DirectoryNode,
    EntryKind,
    FileNode,
    FileSystemError,
    FileTooLargeError,
    InvalidPathError,
    NotADirectoryPathError,
    OutOfSandboxError,
    PathNotFoundError,
    PathResolver,
    ReadError,
    ReadFailure,
    ReadSuccess,
    SandboxConfig,
    SandboxFileSystem,
    TraversalError,
    tree_to_dict,
)

running_as_root = hasattr(os, "geteuid") and os.geteuid() == 0


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def sandbox(temp_dir):
    """Sandbox root with a sibling directory and an outside file."""
    root = temp_dir / "data"
    (root / "reports" / "sub").mkdir(parents=True)
    (root / "reports" / "a.txt").write_text("alpha")
    (root / "reports" / "2024.csv").write_text("year,total\n2024,42\n")

    (temp_dir / "data-other").mkdir()
    (temp_dir / "data-other" / "x.txt").write_text("sibling")
    (temp_dir / "outside").mkdir()
    (temp_dir / "outside" / "secret.txt").write_text("top secret")
    return root


@pytest.fixture
def config(sandbox):
    """Create a test sandbox configuration."""
    return SandboxConfig(allowed_directories=[sandbox], max_file_size_bytes=1000)


@pytest.fixture
def resolver(config):
    """Create a PathResolver instance."""
    return PathResolver(config)


@pytest.fixture
def fs(config):
    """Create a SandboxFileSystem instance."""
    return SandboxFileSystem(config)


class TestSandboxConfig:
    """Test SandboxConfig."""

    def test_defaults(self, sandbox):
        """Test default limits."""
        config = SandboxConfig(allowed_directories=[sandbox])
        assert config.max_file_size_bytes == 10_000_000
        assert config.max_depth is None
        assert config.encoding == "utf-8"

    def test_roots_are_canonicalized(self, sandbox):
        """Test that roots are made absolute and free of .. segments."""
        config = SandboxConfig(
            allowed_directories=[str(sandbox / "reports" / ".."), sandbox]
        )
        assert config.allowed_directories == [sandbox]

    def test_requires_a_root(self):
        """Test that an empty root list is rejected."""
        with pytest.raises(ValidationError):
            SandboxConfig(allowed_directories=[])

    def test_missing_root_rejected(self, temp_dir):
        """Test that a root must be an existing directory."""
        with pytest.raises(ValidationError, match="not a directory"):
            SandboxConfig(allowed_directories=[temp_dir / "nope"])

    def test_config_is_immutable(self, config):
        """Test that configuration cannot change after construction."""
        with pytest.raises(ValidationError):
            config.max_depth = 3

    def test_from_file_yaml(self, temp_dir, sandbox):
        """Test loading a YAML configuration file."""
        config_file = temp_dir / "config.yaml"
        config_file.write_text(
            f"allowed_directories:\n  - {sandbox}\nmax_depth: 4\n"
        )

        config = SandboxConfig.from_file(config_file)
        assert config.allowed_directories == [sandbox]
        assert config.max_depth == 4

    def test_from_file_json(self, temp_dir, sandbox):
        """Test loading a JSON configuration file."""
        config_file = temp_dir / "config.json"
        config_file.write_text(
            json.dumps({"allowed_directories": [str(sandbox)], "max_file_size_bytes": 10})
        )

        config = SandboxConfig.from_file(config_file)
        assert config.max_file_size_bytes == 10

    def test_from_file_missing(self, temp_dir):
        """Test that a missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            SandboxConfig.from_file(temp_dir / "missing.yaml")

    def test_from_env(self, monkeypatch, sandbox, temp_dir):
        """Test loading roots and limits from the environment."""
        monkeypatch.setenv(
            "SANDBOX_FS_ROOTS", os.pathsep.join([str(sandbox), str(temp_dir / "outside")])
        )
        monkeypatch.setenv("SANDBOX_FS_MAX_DEPTH", "3")

        config = SandboxConfig.from_env()
        assert config.allowed_directories == [sandbox, temp_dir / "outside"]
        assert config.max_depth == 3

    def test_from_env_missing_roots(self, monkeypatch):
        """Test that missing roots raise ValueError."""
        monkeypatch.delenv("SANDBOX_FS_ROOTS", raising=False)

        with pytest.raises(ValueError, match="SANDBOX_FS_ROOTS"):
            SandboxConfig.from_env()


class TestPathResolver:
    """Test PathResolver."""

    def test_resolve_relative(self, resolver, sandbox):
        """Test resolving a relative path against the root."""
        resolved = resolver.resolve("reports/2024.csv")
        assert resolved.path == sandbox / "reports" / "2024.csv"
        assert resolved.requested == "reports/2024.csv"

    def test_resolve_is_idempotent(self, resolver):
        """Test that resolving a canonical result returns the same value."""
        resolved = resolver.resolve("reports/./sub/../2024.csv")
        assert resolver.resolve(str(resolved)) == resolved

    def test_dot_dot_inside_sandbox(self, resolver, sandbox):
        """Test that .. segments staying inside the root are accepted."""
        assert resolver.resolve("reports/..").path == sandbox

    def test_dot_dot_escape_rejected(self, resolver):
        """Test that escaping with .. is rejected as out of sandbox."""
        with pytest.raises(OutOfSandboxError):
            resolver.resolve("../etc/passwd")

    def test_absolute_outside_rejected(self, resolver, temp_dir):
        """Test that absolute paths outside the roots are rejected."""
        with pytest.raises(OutOfSandboxError):
            resolver.resolve(str(temp_dir / "outside" / "secret.txt"))

    def test_sibling_prefix_rejected(self, resolver, temp_dir):
        """Test that /data does not admit /data-other."""
        with pytest.raises(OutOfSandboxError):
            resolver.resolve(str(temp_dir / "data-other" / "x.txt"))
        with pytest.raises(OutOfSandboxError):
            resolver.resolve("../data-other/x.txt")

    def test_symlink_escape_rejected(self, resolver, sandbox, temp_dir):
        """Test that a link inside the sandbox cannot reach outside it."""
        (sandbox / "escape").symlink_to(temp_dir / "outside")

        with pytest.raises(OutOfSandboxError):
            resolver.resolve("escape/secret.txt")
        with pytest.raises(OutOfSandboxError):
            resolver.resolve("escape")

    def test_out_of_sandbox_message_hides_layout(self, resolver, temp_dir):
        """Test that the rejection names only the caller's input."""
        with pytest.raises(OutOfSandboxError) as exc_info:
            resolver.resolve("../outside/secret.txt")

        assert exc_info.value.path == "../outside/secret.txt"
        assert str(temp_dir) not in str(exc_info.value)
        assert exc_info.value.kind == "OutOfSandbox"

    @pytest.mark.parametrize("raw", ["", "a\x00b"])
    def test_invalid_input(self, resolver, raw):
        """Test that empty input and null bytes are invalid."""
        with pytest.raises(InvalidPathError):
            resolver.resolve(raw)

    def test_whitespace_name_is_valid(self, resolver, sandbox):
        """Test that a whitespace-only name is an ordinary file name."""
        (sandbox / " ").write_text("blank")

        resolved = resolver.resolve(" ")
        assert resolved.path == sandbox / " "
        assert resolved.exists() is True

    def test_overlong_name(self, resolver, temp_dir):
        """Test that a name the OS rejects as too long is an invalid path."""
        with pytest.raises(InvalidPathError) as exc_info:
            resolver.resolve("x" * 300)

        assert exc_info.value.path == "x" * 300
        assert str(temp_dir) not in str(exc_info.value)

    @pytest.mark.skipif(running_as_root, reason="root ignores directory permissions")
    def test_unsearchable_parent(self, resolver, sandbox, temp_dir):
        """Test that a path below an unsearchable directory raises ReadError."""
        locked = sandbox / "reports" / "sub"
        (locked / "inner.txt").write_text("hidden")
        locked.chmod(0)
        try:
            with pytest.raises(ReadError) as exc_info:
                resolver.resolve("reports/sub/inner.txt")
            assert exc_info.value.path == "reports/sub/inner.txt"
            assert str(temp_dir) not in str(exc_info.value)
        finally:
            locked.chmod(0o755)

    def test_missing_target_resolves(self, resolver, sandbox):
        """Test that resolution does not require existence."""
        resolved = resolver.resolve("reports/missing.txt")
        assert resolved.path == sandbox / "reports" / "missing.txt"
        assert resolved.exists() is False

    def test_multiple_roots(self, temp_dir):
        """Test that relative paths prefer a root where the target exists."""
        first = temp_dir / "first"
        second = temp_dir / "second"
        first.mkdir()
        second.mkdir()
        (second / "b.txt").write_text("b")

        resolver = PathResolver(SandboxConfig(allowed_directories=[first, second]))

        assert resolver.resolve("b.txt").path == second / "b.txt"
        assert resolver.resolve("missing.txt").path == first / "missing.txt"
        assert resolver.resolve(str(second / "b.txt")).path == second / "b.txt"

    def test_home_expansion(self, resolver, sandbox, monkeypatch):
        """Test that ~/ expands to the home directory before the check."""
        monkeypatch.setenv("HOME", str(sandbox))
        assert resolver.resolve("~/reports").path == sandbox / "reports"


class TestMetadataReader:
    """Test stat()."""

    def test_stat_file(self, fs, sandbox):
        """Test metadata of a regular file."""
        info = fs.stat("reports/2024.csv")

        assert info.kind == EntryKind.FILE
        assert info.name == "2024.csv"
        assert info.path == str(sandbox / "reports" / "2024.csv")
        assert info.size_bytes == len("year,total\n2024,42\n")
        assert info.is_readable is True
        assert info.is_symlink is False
        assert info.modified_at.tzinfo is not None

    def test_stat_directory(self, fs):
        """Test that directories report size 0."""
        info = fs.stat("reports")
        assert info.kind == EntryKind.DIRECTORY
        assert info.size_bytes == 0

    def test_stat_symlink(self, fs, sandbox):
        """Test that links report is_symlink and their target's kind."""
        (sandbox / "link.txt").symlink_to(sandbox / "reports" / "a.txt")
        (sandbox / "link-dir").symlink_to(sandbox / "reports")

        info = fs.stat("link.txt")
        assert info.is_symlink is True
        assert info.kind == EntryKind.FILE
        assert info.name == "link.txt"
        assert info.size_bytes == 5

        assert fs.stat("link-dir").kind == EntryKind.DIRECTORY

    def test_stat_missing(self, fs):
        """Test that missing paths raise PathNotFoundError."""
        with pytest.raises(PathNotFoundError):
            fs.stat("reports/missing.txt")

    def test_stat_overlong_name(self, fs, temp_dir):
        """Test that OS errors surface as typed errors naming only the input."""
        with pytest.raises(FileSystemError) as exc_info:
            fs.stat("x" * 300)

        assert exc_info.value.kind == "InvalidPath"
        assert str(temp_dir) not in str(exc_info.value)


class TestListingEngine:
    """Test list_flat() and build_tree()."""

    def test_list_flat(self, fs):
        """Test listing immediate children."""
        entries = fs.list_flat("reports")

        kinds = {entry.name: entry.kind for entry in entries}
        assert kinds == {
            "a.txt": EntryKind.FILE,
            "2024.csv": EntryKind.FILE,
            "sub": EntryKind.DIRECTORY,
        }

    def test_list_flat_formatting(self, fs):
        """Test the [DIR]/[FILE] text form of entries."""
        lines = {str(entry) for entry in fs.list_flat("reports")}
        assert "[DIR]  sub" in lines
        assert "[FILE] a.txt" in lines

    def test_list_flat_missing(self, fs):
        """Test that missing directories raise PathNotFoundError."""
        with pytest.raises(PathNotFoundError):
            fs.list_flat("nope")

    def test_list_flat_not_directory(self, fs):
        """Test that files raise NotADirectoryPathError."""
        with pytest.raises(NotADirectoryPathError):
            fs.list_flat("reports/a.txt")

    def test_build_tree(self, fs, sandbox):
        """Test a tree with one file and one empty subdirectory."""
        (sandbox / "reports" / "2024.csv").unlink()

        tree = fs.build_tree("reports")

        assert isinstance(tree, DirectoryNode)
        assert tree.name == "reports"
        assert sorted(tree.children, key=lambda c: c.name) == [
            FileNode(name="a.txt"),
            DirectoryNode(name="sub", children=[]),
        ]

    def test_tree_matches_flat_listing(self, fs):
        """Test that the tree's direct children equal the flat listing."""
        flat = fs.list_flat("reports")
        tree = fs.build_tree("reports")

        assert len(tree.children) == len(flat)
        assert [(c.name, c.kind) for c in tree.children] == [
            (e.name, e.kind) for e in flat
        ]

    def test_files_have_no_children(self, fs):
        """Test that files carry no children field at all."""
        data = tree_to_dict(fs.build_tree("reports"))

        by_name = {child["name"]: child for child in data["children"]}
        assert "children" not in by_name["a.txt"]
        assert by_name["sub"]["children"] == []
        assert by_name["a.txt"]["type"] == "file"

    def test_build_tree_nested(self, fs, sandbox):
        """Test that every directory descendant is expanded."""
        (sandbox / "reports" / "sub" / "deep").mkdir()
        (sandbox / "reports" / "sub" / "deep" / "leaf.txt").write_text("x")

        tree = fs.build_tree("reports")
        sub = next(c for c in tree.children if c.name == "sub")
        deep = sub.children[0]

        assert deep.name == "deep"
        assert deep.children == [FileNode(name="leaf.txt")]

    def test_build_tree_of_file(self, fs):
        """Test that a file yields a single FileNode."""
        assert fs.build_tree("reports/a.txt") == FileNode(name="a.txt")

    def test_build_tree_missing(self, fs):
        """Test that a missing root raises PathNotFoundError."""
        with pytest.raises(PathNotFoundError):
            fs.build_tree("nope")

    def test_build_tree_symlink_cycle(self, fs, sandbox):
        """Test that a link back to an ancestor aborts with TraversalError."""
        (sandbox / "loop").mkdir()
        (sandbox / "loop" / "back").symlink_to(sandbox / "loop")

        with pytest.raises(TraversalError):
            fs.build_tree("loop")

    def test_build_tree_link_leaving_sandbox(self, fs, sandbox, temp_dir):
        """Test that links leaving the sandbox are listed but not expanded."""
        (sandbox / "reports" / "out").symlink_to(temp_dir / "outside")

        tree = fs.build_tree("reports")
        out = next(c for c in tree.children if c.name == "out")

        assert out == DirectoryNode(name="out", children=[], outside_sandbox=True)
        assert {"name": "out", "type": "directory", "children": [], "outside_sandbox": True} in (
            tree_to_dict(tree)["children"]
        )

        (sandbox / "reports" / "empty").mkdir()
        empty = next(c for c in fs.build_tree("reports").children if c.name == "empty")
        assert empty.outside_sandbox is False
        assert "outside_sandbox" not in tree_to_dict(empty)

    def test_build_tree_max_depth(self, sandbox):
        """Test that max_depth aborts deeper trees."""
        (sandbox / "a" / "b" / "c").mkdir(parents=True)
        fs = SandboxFileSystem(SandboxConfig(allowed_directories=[sandbox], max_depth=1))

        with pytest.raises(TraversalError, match="Maximum depth"):
            fs.build_tree("a")

        assert fs.build_tree("a/b").children == [DirectoryNode(name="c")]

    @pytest.mark.skipif(running_as_root, reason="root ignores directory permissions")
    def test_build_tree_unreadable_descendant(self, fs, sandbox):
        """Test that an unreadable descendant aborts the whole tree."""
        locked = sandbox / "reports" / "sub"
        locked.chmod(0)
        try:
            with pytest.raises(TraversalError) as exc_info:
                fs.build_tree("reports")
            assert exc_info.value.path == str(locked)
        finally:
            locked.chmod(0o755)


class TestSearchEngine:
    """Test search()."""

    @pytest.fixture
    def tree(self, sandbox):
        (sandbox / "Report.TXT").write_text("")
        (sandbox / "archive" / "reports_old").mkdir(parents=True)
        (sandbox / "archive" / "reports_old" / "q1.csv").write_text("")
        (sandbox / "archive" / "notes.md").write_text("")
        return sandbox

    def test_case_insensitive(self, fs, tree):
        """Test that matching ignores case and covers directories."""
        matches = fs.search(".", "REPORT")

        assert sorted(matches) == sorted(
            [
                str(tree / "Report.TXT"),
                str(tree / "reports"),
                str(tree / "archive" / "reports_old"),
            ]
        )

    def test_matches_on_name_only(self, fs, tree):
        """Test that the pattern is matched against names, not full paths."""
        matches = fs.search(".", "q1")
        assert matches == [str(tree / "archive" / "reports_old" / "q1.csv")]

        # "archive" is only part of the parent path
        assert fs.search("archive/reports_old", "archive") == []

    def test_every_result_contains_pattern(self, fs, tree):
        """Test that every result name contains the pattern."""
        for match in fs.search(".", "s"):
            assert "s" in Path(match).name.lower()
            assert Path(match).is_absolute()

    def test_directory_before_its_children(self, fs, sandbox):
        """Test depth-first pre-order on a single chain."""
        (sandbox / "match_dir" / "match_sub").mkdir(parents=True)
        (sandbox / "match_dir" / "match_sub" / "match.txt").write_text("")

        assert fs.search("match_dir", "match") == [
            str(sandbox / "match_dir" / "match_sub"),
            str(sandbox / "match_dir" / "match_sub" / "match.txt"),
        ]

    def test_search_missing(self, fs):
        """Test that a missing root raises PathNotFoundError."""
        with pytest.raises(PathNotFoundError):
            fs.search("nope", "x")

    def test_search_not_directory(self, fs):
        """Test that a file root raises NotADirectoryPathError."""
        with pytest.raises(NotADirectoryPathError):
            fs.search("reports/a.txt", "a")

    def test_search_outside(self, fs):
        """Test that searching outside the sandbox is rejected."""
        with pytest.raises(OutOfSandboxError):
            fs.search("..", "secret")

    def test_search_symlink_cycle(self, fs, sandbox):
        """Test that cycles terminate and the link is reported once."""
        (sandbox / "loop").mkdir()
        (sandbox / "loop" / "back").symlink_to(sandbox / "loop")

        assert fs.search("loop", "back") == [str(sandbox / "loop" / "back")]

    def test_search_does_not_leave_sandbox(self, fs, sandbox, temp_dir):
        """Test that links leaving the sandbox are not searched."""
        (sandbox / "out").symlink_to(temp_dir / "outside")

        assert fs.search(".", "secret") == []

    @pytest.mark.skipif(running_as_root, reason="root ignores directory permissions")
    def test_search_skips_unreadable(self, fs, sandbox):
        """Test that unreadable directories are skipped, not fatal."""
        locked = sandbox / "locked"
        locked.mkdir()
        (locked / "hidden.txt").write_text("")
        locked.chmod(0)
        try:
            matches = fs.search(".", "a.txt")
            assert matches == [str(sandbox / "reports" / "a.txt")]
        finally:
            locked.chmod(0o755)


class TestFileReader:
    """Test read() and read_many()."""

    def test_read(self, fs):
        """Test reading a valid file."""
        assert fs.read("reports/a.txt") == "alpha"

    def test_read_missing(self, fs):
        """Test that missing files raise PathNotFoundError."""
        with pytest.raises(PathNotFoundError):
            fs.read("reports/missing.txt")

    def test_read_outside(self, fs):
        """Test that reading outside the sandbox is rejected."""
        with pytest.raises(OutOfSandboxError):
            fs.read("../outside/secret.txt")

    def test_read_directory(self, fs):
        """Test that reading a directory raises ReadError."""
        with pytest.raises(ReadError):
            fs.read("reports")

    def test_read_size_limit(self, fs, sandbox):
        """Test that large files are rejected."""
        (sandbox / "large.txt").write_text("x" * 2000)  # Exceeds 1000 byte limit

        with pytest.raises(FileTooLargeError) as exc_info:
            fs.read("large.txt")
        assert isinstance(exc_info.value, ReadError)
        assert exc_info.value.size == 2000

    def test_read_undecodable(self, fs, sandbox):
        """Test that invalid text raises ReadError."""
        (sandbox / "binary.dat").write_bytes(b"\xff\xfe\xfa")

        with pytest.raises(ReadError):
            fs.read("binary.dat")

    def test_read_many_partial_failure(self, fs):
        """Test that one missing file does not fail the batch."""
        results = fs.read_many(["reports/a.txt", "reports/missing.txt"])

        assert results["reports/a.txt"] == ReadSuccess(content="alpha")
        failure = results["reports/missing.txt"]
        assert isinstance(failure, ReadFailure)
        assert failure.error_type == "NotFound"

    def test_read_many_keys_are_caller_input(self, fs):
        """Test that results are keyed by the input string as given."""
        results = fs.read_many(["./reports/../reports/a.txt", "../outside/secret.txt", ""])

        assert list(results) == ["./reports/../reports/a.txt", "../outside/secret.txt", ""]
        assert results["./reports/../reports/a.txt"].content == "alpha"
        assert results["../outside/secret.txt"].error_type == "OutOfSandbox"
        assert results[""].error_type == "InvalidPath"

    def test_read_many_overlong_name(self, fs):
        """Test that an OS-level rejection fails only its own entry."""
        results = fs.read_many(["reports/a.txt", "x" * 300])

        assert results["reports/a.txt"] == ReadSuccess(content="alpha")
        assert results["x" * 300].error_type == "InvalidPath"

    @pytest.mark.skipif(running_as_root, reason="root ignores directory permissions")
    def test_read_many_unsearchable_parent(self, fs, sandbox):
        """Test that an inaccessible entry is recorded, not raised."""
        locked = sandbox / "reports" / "sub"
        (locked / "inner.txt").write_text("hidden")
        locked.chmod(0)
        try:
            results = fs.read_many(["reports/sub/inner.txt", "reports/a.txt"])
        finally:
            locked.chmod(0o755)

        assert results["reports/sub/inner.txt"].error_type == "ReadError"
        assert results["reports/a.txt"].content == "alpha"

    def test_read_many_empty(self, fs):
        """Test that an empty batch returns an empty mapping."""
        assert fs.read_many([]) == {}


class TestSandboxFileSystem:
    """End-to-end scenario through the string-path facade."""

    def test_scenario(self, fs):
        """Test the resolve, stat and tree flow on a small sandbox."""
        with pytest.raises(OutOfSandboxError):
            fs.resolve("../etc/passwd")

        assert fs.exists("reports/2024.csv") is True
        assert fs.exists("reports/2025.csv") is False
        assert fs.stat("reports/2024.csv").kind == EntryKind.FILE

    def test_independent_sandboxes(self, temp_dir, sandbox):
        """Test that two sandboxes in one process do not interfere."""
        other = SandboxFileSystem(SandboxConfig(allowed_directories=[temp_dir / "outside"]))
        fs = SandboxFileSystem(SandboxConfig(allowed_directories=[sandbox]))

        assert other.read("secret.txt") == "top secret"
        with pytest.raises(PathNotFoundError):
            fs.read("secret.txt")
