"""Source file selection for archmap."""

from __future__ import annotations

import logging
from fnmatch import fnmatch
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

from utils import SOURCE_SUFFIXES

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

logger = logging.getLogger(__name__)

# Dependency-management and build-output directories, skipped unconditionally.
ALWAYS_EXCLUDED_DIRS = frozenset(
    {
        "node_modules",
        "bower_components",
        "jspm_packages",
        "vendor",
        "site-packages",
        "venv",
        ".venv",
        "env",
        ".tox",
        ".nox",
        "__pycache__",
        "dist",
        "build",
        "out",
        "target",
        "bin",
        "obj",
        "coverage",
        "htmlcov",
        ".git",
        ".next",
        ".nuxt",
        ".eggs",
    }
)
ALWAYS_EXCLUDED_DIR_PATTERNS = ("*.egg-info",)

TEST_DIRS = frozenset({"test", "tests", "__tests__"})
TEST_FILE_PATTERNS = (
    "*.test.*",
    "*.spec.*",
    "test_*.py",
    "*_test.py",
    "*_test.go",
    "*_spec.rb",
)


class NotFoundError(FileNotFoundError):
    """Raised when the repository root does not exist or is not a directory."""


def _matches_glob(rel_path_str: str, pattern: str) -> bool:
    """Match a relative path against a glob, letting ``**/`` match the root."""
    if fnmatch(rel_path_str, pattern):
        return True
    while pattern.startswith("**/"):
        pattern = pattern[3:]
        if fnmatch(rel_path_str, pattern):
            return True
    return False


def is_excluded_dir(name: str) -> bool:
    return name in ALWAYS_EXCLUDED_DIRS or any(
        fnmatch(name, pattern) for pattern in ALWAYS_EXCLUDED_DIR_PATTERNS
    )


def _is_test_file(parts: tuple[str, ...]) -> bool:
    if any(part in TEST_DIRS for part in parts[:-1]):
        return True
    return any(fnmatch(parts[-1], pattern) for pattern in TEST_FILE_PATTERNS)


def _should_include_file(
    path: Path,
    directory: Path,
    gitignore_matches: Callable[[str], bool] | None,
    include_patterns: list[str] | None,
    exclude_patterns: list[str] | None,
    *,
    include_hidden: bool = False,
    exclude_tests: bool = True,
) -> bool:
    """Check if a file should be included based on all filtering rules."""
    if not path.is_file() or path.is_symlink():
        return False

    if not _is_within_root(path, directory):
        return False

    try:
        rel_path = path.relative_to(directory)
    except ValueError:
        return False

    rel_path_str = rel_path.as_posix()
    parts = rel_path.parts

    if any(is_excluded_dir(part) for part in parts[:-1]):
        return False

    if not include_hidden and any(part.startswith(".") for part in parts):
        return False

    if exclude_tests and _is_test_file(parts):
        return False

    if gitignore_matches is not None and gitignore_matches(str(path)):
        return False

    if include_patterns:
        if not any(_matches_glob(rel_path_str, pat) for pat in include_patterns):
            return False
    elif path.suffix not in SOURCE_SUFFIXES:
        return False

    has_excluded_match = exclude_patterns and any(
        _matches_glob(rel_path_str, pat) for pat in exclude_patterns
    )
    return not has_excluded_match


def _is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        root_resolved = root.resolve()
        path_resolved = path.resolve()
    except OSError:
        return False

    try:
        path_resolved.relative_to(root_resolved)
    except ValueError:
        return False

    return True


def _iter_gitignore_files(root: Path) -> list[Path]:
    """Return sorted list of .gitignore files under root (including root)."""
    gitignore_paths = [root / ".gitignore"]
    gitignore_paths.extend(
        path
        for path in root.rglob(".gitignore")
        if not any(is_excluded_dir(part) for part in path.relative_to(root).parts)
    )
    unique_paths = {
        path
        for path in gitignore_paths
        if path.is_file() and not path.is_symlink()
    }
    return sorted(unique_paths, key=lambda p: p.relative_to(root).as_posix())


def _build_gitignore_matcher(
    root: Path,
    *,
    nested_gitignore: bool,
) -> Callable[[str], bool] | None:
    if not nested_gitignore:
        gitignore_path = root / ".gitignore"
        if gitignore_path.is_file():
            return cast("Callable[[str], bool]", parse_gitignore(gitignore_path))
        return None

    gitignore_paths = _iter_gitignore_files(root)
    if not gitignore_paths:
        return None

    matchers = [parse_gitignore(path) for path in gitignore_paths]

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                continue
        return False

    return matches


def _iter_candidate_files(directory: Path) -> list[Path]:
    """Walk the tree without descending into always-excluded directories."""
    candidates: list[Path] = []
    pending = [directory]
    while pending:
        current = pending.pop()
        try:
            entries = list(current.iterdir())
        except OSError as exc:
            logger.warning("Cannot list directory %s: %s", current, exc)
            continue
        for entry in entries:
            if entry.is_dir():
                if entry.is_symlink() or is_excluded_dir(entry.name):
                    continue
                pending.append(entry)
            else:
                candidates.append(entry)
    return candidates


def _within_size_limit(path: Path, max_file_size: int | None) -> bool:
    if max_file_size is None:
        return True
    try:
        size = path.stat().st_size
    except OSError as exc:
        logger.warning("Error checking file stats for %s, skipping: %s", path, exc)
        return False
    if size > max_file_size:
        logger.warning("Skipping large file (%dKB): %s", round(size / 1024), path)
        return False
    return True


def find_source_files(
    directory: Path,
    *,
    include_patterns: list[str] | None = None,
    exclude_patterns: list[str] | None = None,
    include_hidden: bool = False,
    exclude_tests: bool = True,
    respect_gitignore: bool = True,
    nested_gitignore: bool = False,
    max_file_size: int | None = None,
) -> list[Path]:
    """Find the source files to analyze under a repository root.

    Args:
        directory: Repository root to search
        include_patterns: Optional list of fnmatch patterns; if provided,
            files must match at least one pattern to be included. Otherwise
            every file with a supported source extension is a candidate.
        exclude_patterns: Optional list of fnmatch patterns; files matching
            any pattern are excluded
        include_hidden: Also consider dot-prefixed files and directories
        exclude_tests: Drop test/spec files and files under test directories
        respect_gitignore: Honor .gitignore rules
        nested_gitignore: Compose nested .gitignore files as well as the root one
        max_file_size: Skip files larger than this many bytes

    Returns:
        Absolute paths, sorted lexicographically by relative path for
        deterministic ordering. Empty when nothing matches.

    Raises:
        NotFoundError: If ``directory`` does not exist or is not a directory.
    """
    if not directory.exists():
        msg = f"Repository path does not exist: {directory}"
        raise NotFoundError(msg)
    if not directory.is_dir():
        msg = f"Repository path is not a directory: {directory}"
        raise NotFoundError(msg)

    directory = directory.resolve()

    gitignore_matches = (
        _build_gitignore_matcher(directory, nested_gitignore=nested_gitignore)
        if respect_gitignore
        else None
    )

    matched_files = [
        path
        for path in _iter_candidate_files(directory)
        if _should_include_file(
            path,
            directory,
            gitignore_matches,
            include_patterns,
            exclude_patterns,
            include_hidden=include_hidden,
            exclude_tests=exclude_tests,
        )
        and _within_size_limit(path, max_file_size)
    ]

    matched_files.sort(key=lambda p: p.relative_to(directory).as_posix())

    logger.info("Found %d source files to analyze in %s", len(matched_files), directory)
    return matched_files


__all__ = [
    "ALWAYS_EXCLUDED_DIRS",
    "NotFoundError",
    "is_excluded_dir",
    "_build_gitignore_matcher",
    "_should_include_file",
    "find_source_files",
]
