"""Shared path utilities for archmap."""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

EXTERNAL_PREFIX = "external:"

PYTHON_SUFFIXES = frozenset({".py"})
SCRIPT_SUFFIXES = frozenset({".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx"})
# Languages whose imports are matched textually, see parse.source_imports.
TEXT_IMPORT_SUFFIXES = frozenset(
    {
        ".java",
        ".kt",
        ".scala",
        ".cs",
        ".go",
        ".rs",
        ".c",
        ".h",
        ".cc",
        ".cpp",
        ".hpp",
        ".php",
        ".rb",
        ".swift",
    }
)
SOURCE_SUFFIXES = PYTHON_SUFFIXES | SCRIPT_SUFFIXES | TEXT_IMPORT_SUFFIXES


def to_relative_posix(file_path: Path, root: Path) -> str:
    """Return ``file_path`` relative to ``root`` as a POSIX string.

    Examples:
        >>> to_relative_posix(Path("/repo/pkg/core.py"), Path("/repo"))
        'pkg/core.py'
    """
    return file_path.relative_to(root).as_posix()


def normalize_module_path(path_str: str) -> str:
    """Normalize a repository-relative path into a module identifier.

    Backslashes become forward slashes, ``.`` and ``..`` segments are folded
    and a leading ``./`` is removed.

    Examples:
        >>> normalize_module_path("./pkg//sub/../core.py")
        'pkg/core.py'
        >>> normalize_module_path("pkg\\\\core.py")
        'pkg/core.py'
    """
    normalized = posixpath.normpath(path_str.replace("\\", "/"))
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def module_directory(module_id: str) -> str:
    """Collapse a module identifier to its containing directory.

    External markers are returned unchanged; files at the repository root
    collapse to ``"."``.

    Examples:
        >>> module_directory("pkg/sub/core.py")
        'pkg/sub'
        >>> module_directory("main.py")
        '.'
        >>> module_directory("external:requests")
        'external:requests'
    """
    if is_external(module_id):
        return module_id
    directory = posixpath.dirname(module_id)
    return directory or "."


def top_level_group(module_id: str) -> str:
    """Return the visualization group for a module identifier."""
    if is_external(module_id):
        return "external"
    if module_id == ".":
        return "root"
    parts = module_id.split("/")
    # A bare file name lives at the root, a bare directory name is its own group.
    if len(parts) == 1 and posixpath.splitext(parts[0])[1] in SOURCE_SUFFIXES:
        return "root"
    return parts[0]


def external_marker(package: str) -> str:
    return f"{EXTERNAL_PREFIX}{package}"


def is_external(module_id: str) -> bool:
    return module_id.startswith(EXTERNAL_PREFIX)


__all__ = [
    "EXTERNAL_PREFIX",
    "PYTHON_SUFFIXES",
    "SCRIPT_SUFFIXES",
    "SOURCE_SUFFIXES",
    "TEXT_IMPORT_SUFFIXES",
    "external_marker",
    "is_external",
    "module_directory",
    "normalize_module_path",
    "to_relative_posix",
    "top_level_group",
]
