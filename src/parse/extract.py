"""Per-file dependency extraction."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from parse.ast_imports import extract_imports
from parse.errors import ExtractionError
from parse.js_imports import extract_script_imports
from parse.source_imports import extract_source_imports
from utils import (
    PYTHON_SUFFIXES,
    SCRIPT_SUFFIXES,
    SOURCE_SUFFIXES,
    to_relative_posix,
)

if TYPE_CHECKING:
    from pathlib import Path

    from analysis.models.dependencies import ModuleDependency
    from parse.resolution import DependencyResolver


def _unique(dependencies: list[ModuleDependency]) -> list[ModuleDependency]:
    seen: set[tuple[str, bool]] = set()
    unique: list[ModuleDependency] = []
    for dep in dependencies:
        key = (dep.target, dep.is_external)
        if key not in seen:
            seen.add(key)
            unique.append(dep)
    return unique


def _resolve_all(
    file_path: Path, relative_path: str, resolver: DependencyResolver
) -> list[ModuleDependency]:
    suffix = file_path.suffix.lower()
    dependencies: list[ModuleDependency] = []

    if suffix in PYTHON_SUFFIXES:
        for imp in extract_imports(file_path):
            dependencies.extend(_unique(resolver.resolve_python(relative_path, imp)))
    elif suffix in SCRIPT_SUFFIXES:
        for script_import in extract_script_imports(file_path):
            resolved = resolver.resolve_script(relative_path, script_import.specifier)
            if resolved is not None:
                dependencies.append(resolved)
    else:
        imports = extract_source_imports(file_path)
        for reference in imports.references:
            dependencies.extend(
                _unique(resolver.resolve_reference(relative_path, imports, reference))
            )

    return dependencies


def extract_dependencies(
    file_path: Path,
    root: Path,
    resolver: DependencyResolver,
) -> list[ModuleDependency]:
    """Extract the normalized dependency targets of one source file.

    Args:
        file_path: Absolute path of the file to analyze
        root: Repository root the identifiers are relative to
        resolver: Resolver shared by every file of the run

    Returns:
        One dependency per import statement and target, in source order.
        A module imported by several statements appears once per statement,
        which the graph builder counts as edge weight. Self references are
        kept here and dropped when the graph is built.

    Raises:
        ExtractionError: If the file cannot be read or parsed, or its
            language is not supported.
    """
    relative_path = to_relative_posix(file_path, root)

    if file_path.suffix.lower() not in SOURCE_SUFFIXES:
        msg = f"Unsupported source type for dependency extraction: {relative_path}"
        raise ExtractionError(msg)

    try:
        return _resolve_all(file_path, relative_path, resolver)
    except ValidationError as exc:
        msg = f"Invalid dependency reference in {relative_path}: {exc}"
        raise ExtractionError(msg) from exc
    except (OSError, ValueError, RecursionError) as exc:
        msg = f"Cannot resolve dependencies of {relative_path}: {exc}"
        raise ExtractionError(msg) from exc


__all__ = ["extract_dependencies"]
