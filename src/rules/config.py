from __future__ import annotations

from pathlib import Path
from typing import Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = "archmap.toml"

AnalysisDepth = Literal["file", "directory"]

SUPPORTED_VISUALIZATION_FORMATS = ("d3", "mermaid", "dot")


class AnalyzerConfig(BaseModel):
    """Configuration for an architecture analysis run."""

    model_config = ConfigDict(extra="forbid")

    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to include (empty = all supported sources)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to exclude",
    )
    include_hidden: bool = Field(
        default=False,
        description="Analyze files inside hidden (dot-prefixed) paths",
    )
    exclude_tests: bool = Field(
        default=True,
        description="Skip test and spec files and test directories",
    )
    respect_gitignore: bool = Field(
        default=True,
        description="Skip files matched by the repository .gitignore",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )
    max_file_size: int = Field(
        default=1024 * 1024,
        ge=1,
        description="Files larger than this many bytes are skipped",
    )
    analysis_depth: AnalysisDepth = Field(
        default="file",
        description="Granularity of graph nodes (file or directory)",
    )
    include_external: bool = Field(
        default=False,
        description="Keep third-party packages as graph nodes",
    )
    resolve_aliases: bool = Field(
        default=True,
        description="Resolve bare imports that point back into the repository",
    )
    source_roots: list[str] = Field(
        default_factory=lambda: [".", "src"],
        description="Directories that absolute Python imports are resolved against",
    )
    aliases: dict[str, str] = Field(
        default_factory=dict,
        description="Script import prefix -> repository path (e.g. '@/' -> 'src/')",
    )
    generate_visualization: bool = Field(
        default=True,
        description="Render the dependency graph",
    )
    visualization_format: str = Field(
        default="d3",
        description=(
            "Visualization format: "
            f"{', '.join(SUPPORTED_VISUALIZATION_FORMATS)}"
        ),
    )
    instability_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Instability above which nodes are highlighted",
    )
    analyze_api_surface: bool = Field(
        default=False,
        description="Analyze public API exposure and encapsulation issues",
    )
    entry_points: list[str] = Field(
        default_factory=list,
        description="Entry modules for API surface analysis (empty = detect)",
    )
    max_exposed_members: int = Field(
        default=15,
        ge=1,
        description="Public members per directory before exposure is excessive",
    )
    max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Concurrent extraction workers (default: derived from CPUs)",
    )
    progress_interval: int = Field(
        default=5,
        ge=1,
        description="Log extraction progress every N batches",
    )

    @field_validator("source_roots", "entry_points", mode="after")
    @classmethod
    def validate_relative_paths(cls, v: list[str]) -> list[str]:
        """Reject absolute or root-escaping paths."""
        for entry in v:
            path = Path(entry)
            if path.is_absolute() or entry.startswith("~") or ".." in path.parts:
                msg = f"'{entry}' must be a relative path within the repo root"
                raise ValueError(msg)
        return v


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def load_config(root: Path) -> AnalyzerConfig:
    """Load configuration from archmap.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return AnalyzerConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AnalyzerConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
