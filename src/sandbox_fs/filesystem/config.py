"""
Configuration for sandboxed filesystem access.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SandboxConfig(BaseModel):
    """
    Immutable sandbox configuration.

    Defines the root directories that bound every accessible path,
    together with read and traversal limits. Roots are canonicalized
    once, at construction time.

    Usage:
        config = SandboxConfig(allowed_directories=[Path("/data")])
        resolver = PathResolver(config)

        # Load from file or environment
        config = SandboxConfig.from_file("~/.sandbox-fs/config.yaml")
        config = SandboxConfig.from_env()
    """

    model_config = {"frozen": True, "extra": "forbid"}

    allowed_directories: list[Path] = Field(
        min_length=1,
        description="Sandbox roots (canonicalized to absolute, symlink-free paths)",
    )

    max_file_size_bytes: int = Field(
        default=10_000_000,  # 10 MB
        ge=0,
        description="Maximum file size that can be read (bytes)",
    )

    max_depth: Optional[int] = Field(
        default=None,
        ge=0,
        description="Maximum recursion depth for tree and search (None = unlimited)",
    )

    encoding: str = Field(
        default="utf-8",
        description="Text encoding used when reading files",
    )

    @field_validator("allowed_directories", mode="before")
    @classmethod
    def resolve_directories(cls, v):
        """Canonicalize roots and drop duplicates, keeping order."""
        if not v:
            return []
        roots: list[Path] = []
        for p in v:
            resolved = Path(p).expanduser().resolve()
            if resolved not in roots:
                roots.append(resolved)
        return roots

    @field_validator("allowed_directories")
    @classmethod
    def check_directories_exist(cls, v: list[Path]) -> list[Path]:
        """Every root must be an existing directory."""
        for root in v:
            if not root.is_dir():
                raise ValueError(f"Sandbox root is not a directory: {root}")
        return v

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SandboxConfig":
        """Create configuration from a dictionary."""
        return cls(**data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "SandboxConfig":
        """
        Load configuration from a YAML or JSON file.

        File format (YAML):
            ```yaml
            allowed_directories:
              - /data
              - ~/projects
            max_file_size_bytes: 1000000
            max_depth: 32
            ```

        Args:
            path: Path to configuration file

        Returns:
            Loaded SandboxConfig instance

        Raises:
            FileNotFoundError: If the config file doesn't exist
        """
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text()

        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)

        return cls.from_dict(data or {})

    @classmethod
    def from_env(cls, prefix: str = "SANDBOX_FS_") -> "SandboxConfig":
        """
        Load configuration from environment variables.

        Environment variables:
            SANDBOX_FS_ROOTS - Sandbox roots, separated by os.pathsep
            SANDBOX_FS_MAX_FILE_SIZE_BYTES - Read size limit
            SANDBOX_FS_MAX_DEPTH - Recursion cap for tree and search
            SANDBOX_FS_ENCODING - Text encoding for reads

        Raises:
            ValueError: If no roots are configured
        """
        settings = SandboxEnvSettings(_env_prefix=prefix)
        roots = [r for r in settings.roots.split(os.pathsep) if r.strip()]
        if not roots:
            raise ValueError(f"Missing required environment variable: {prefix}ROOTS")

        return cls(
            allowed_directories=roots,
            max_file_size_bytes=settings.max_file_size_bytes,
            max_depth=settings.max_depth,
            encoding=settings.encoding,
        )

    def __repr__(self) -> str:
        return (
            f"SandboxConfig("
            f"allowed_dirs={len(self.allowed_directories)}, "
            f"max_size={self.max_file_size_bytes}, "
            f"max_depth={self.max_depth})"
        )


class SandboxEnvSettings(BaseSettings):
    """Raw environment values read by ``SandboxConfig.from_env``."""

    model_config = SettingsConfigDict(env_prefix="SANDBOX_FS_", extra="ignore")

    roots: str = ""
    max_file_size_bytes: int = 10_000_000
    max_depth: Optional[int] = None
    encoding: str = "utf-8"
