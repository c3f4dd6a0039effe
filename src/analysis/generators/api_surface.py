"""API surface generator.

Collects the exported members of every analyzed file, follows re-export
chains from the entry modules to split them into a public and an internal
surface, and flags encapsulation issues on the result.
"""

from __future__ import annotations

import ast
import logging
import posixpath
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import orjson

from analysis.models.api_surface import (
    ApiMember,
    ApiSurfaceResult,
    EncapsulationIssue,
)
from parse.ast_imports import collect_dunder_all, collect_imports, parse_python_source
from parse.errors import ExtractionError, read_source
from parse.js_exports import (
    extract_script_members,
    extract_script_reexports,
    has_barrel_pattern,
)
from parse.resolution import SCRIPT_RESOLUTION_SUFFIXES
from parse.treesitter_symbols import extract_api_members_treesitter
from rules.encapsulation import has_implementation_marker, has_unstable_marker
from utils import (
    PYTHON_SUFFIXES,
    SCRIPT_SUFFIXES,
    module_directory,
    normalize_module_path,
    to_relative_posix,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from parse.ast_imports import PythonImport
    from parse.resolution import DependencyResolver

logger = logging.getLogger(__name__)

PACKAGE_JSON = "package.json"
PACKAGE_ENTRY_FIELDS = ("main", "module", "exports")
INDEX_FILE_NAMES = tuple(f"index{suffix}" for suffix in SCRIPT_RESOLUTION_SUFFIXES)
EXPORT_SUFFIXES = PYTHON_SUFFIXES | SCRIPT_SUFFIXES
INDEX_DIRECTORIES = (".", "src")

# Exposure marker meaning "every exported member of the module".
ALL_MEMBERS = "*"


@dataclass(frozen=True)
class ReExportEdge:
    """Names a module forwards from ``target``.

    ``names`` holds ``(source name, exported name)`` pairs, or None when
    everything the target exports is forwarded.
    """

    target: str
    names: tuple[tuple[str, str], ...] | None = None


@dataclass(frozen=True)
class ModuleExports:
    path: str
    members: tuple[ApiMember, ...]
    reexports: tuple[ReExportEdge, ...] = ()
    is_barrel: bool = False


def _submodule_name(target: str) -> str:
    """``pkg/core.py`` -> ``core``; ``pkg/core/__init__.py`` -> ``core``."""
    base = posixpath.basename(target)
    if base == "__init__.py":
        return posixpath.basename(posixpath.dirname(target))
    return posixpath.splitext(base)[0]


def _is_forwarded(alias: str, dunder_all: list[str] | None) -> bool:
    if dunder_all is not None:
        return alias in dunder_all
    return not alias.startswith("_")


def _python_reexports(
    relative_path: str,
    imports: Iterable[PythonImport],
    dunder_all: list[str] | None,
    resolver: DependencyResolver,
) -> list[ReExportEdge]:
    edges: list[ReExportEdge] = []
    for imp in imports:
        if not imp.top_level or not imp.is_from_import:
            continue
        module_tail = imp.module.rsplit(".", 1)[-1]
        for dep in resolver.resolve_python(relative_path, imp):
            if dep.is_external:
                continue
            if imp.is_star:
                edges.append(ReExportEdge(target=dep.target))
                continue
            pairs = tuple(
                (name, alias)
                for name, alias in imp.names
                if _is_forwarded(alias, dunder_all)
            )
            if not pairs:
                continue
            submodule = _submodule_name(dep.target)
            # ``from . import core`` binds the module object itself.
            if submodule != module_tail and any(name == submodule for name, _ in pairs):
                edges.append(ReExportEdge(target=dep.target))
            else:
                edges.append(ReExportEdge(target=dep.target, names=pairs))
    return edges


def _is_docstring(node: ast.stmt) -> bool:
    return (
        isinstance(node, ast.Expr)
        and isinstance(node.value, ast.Constant)
        and isinstance(node.value.value, str)
    )


def _is_dunder_all_statement(node: ast.stmt) -> bool:
    targets: list[ast.expr] = []
    if isinstance(node, ast.Assign):
        targets = list(node.targets)
    elif isinstance(node, (ast.AnnAssign, ast.AugAssign)):
        targets = [node.target]
    return any(isinstance(t, ast.Name) and t.id == "__all__" for t in targets)


def _is_python_barrel(tree: ast.Module, reexport_count: int) -> bool:
    """A package ``__init__`` that mostly forwards names from its submodules."""
    implementation = [
        node
        for node in tree.body
        if not isinstance(node, (ast.Import, ast.ImportFrom))
        and not _is_docstring(node)
        and not _is_dunder_all_statement(node)
    ]
    return reexport_count > 2 or (reexport_count > 0 and len(implementation) < 5)


def collect_python_exports(
    file_path: Path, relative_path: str, resolver: DependencyResolver
) -> ModuleExports:
    """Collect members and re-export edges of a Python module.

    Raises:
        ExtractionError: If the file cannot be read or parsed.
    """
    source = read_source(file_path)
    tree = parse_python_source(source, relative_path)
    dunder_all = collect_dunder_all(tree)
    members = extract_api_members_treesitter(
        source.encode("utf-8"), relative_path, dunder_all
    )
    edges = _python_reexports(relative_path, collect_imports(tree), dunder_all, resolver)
    is_barrel = posixpath.basename(relative_path) == "__init__.py" and _is_python_barrel(
        tree, len(edges)
    )
    return ModuleExports(
        path=relative_path,
        members=tuple(members),
        reexports=tuple(edges),
        is_barrel=is_barrel,
    )


def collect_script_exports(
    file_path: Path, relative_path: str, resolver: DependencyResolver
) -> ModuleExports:
    """Collect members and re-export edges of a JavaScript/TypeScript module.

    Raises:
        ExtractionError: If the file cannot be read.
    """
    source = read_source(file_path)
    edges: list[ReExportEdge] = []
    for reexport in extract_script_reexports(source):
        dep = resolver.resolve_script(relative_path, reexport.specifier)
        if dep is None or dep.is_external:
            continue
        names = reexport.names
        # ``export * as ns from`` forwards the whole target under one name.
        if names is not None and all(name == "*" for name, _ in names):
            names = None
        edges.append(ReExportEdge(target=dep.target, names=names))

    is_barrel = posixpath.basename(relative_path) in INDEX_FILE_NAMES and (
        has_barrel_pattern(source)
    )
    return ModuleExports(
        path=relative_path,
        members=tuple(extract_script_members(source, relative_path)),
        reexports=tuple(edges),
        is_barrel=is_barrel,
    )


def collect_module_exports(
    file_path: Path, root: Path, resolver: DependencyResolver
) -> ModuleExports:
    relative_path = to_relative_posix(file_path, root)
    suffix = file_path.suffix.lower()
    if suffix in PYTHON_SUFFIXES:
        return collect_python_exports(file_path, relative_path, resolver)
    if suffix in SCRIPT_SUFFIXES:
        return collect_script_exports(file_path, relative_path, resolver)
    msg = f"Unsupported source type for API surface analysis: {relative_path}"
    raise ExtractionError(msg)


def _package_entry_values(value: Any) -> list[str]:
    """Flatten the string targets of a package.json ``main``/``exports`` field."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict):
        return [item for key in sorted(value) for item in _package_entry_values(value[key])]
    if isinstance(value, list):
        return [item for element in value for item in _package_entry_values(element)]
    return []


def _package_json_entries(
    root: Path, directory: str, resolver: DependencyResolver
) -> list[str]:
    manifest = root / directory / PACKAGE_JSON
    if not manifest.is_file():
        return []
    try:
        data = orjson.loads(manifest.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", manifest, exc)
        return []
    if not isinstance(data, dict):
        return []

    entries = [posixpath.join(directory, name) for name in INDEX_FILE_NAMES]
    for field in PACKAGE_ENTRY_FIELDS:
        for value in _package_entry_values(data.get(field)):
            candidate = normalize_module_path(posixpath.join(directory, value))
            if candidate.startswith("../") or candidate == "..":
                continue
            resolved = resolver.find_script_file(
                candidate
            ) or resolver.find_script_file(posixpath.splitext(candidate)[0])
            if resolved is not None:
                entries.append(resolved)
    return entries


def _ancestor_directories(paths: Iterable[str]) -> set[str]:
    directories = {"."}
    for path in paths:
        directory = posixpath.dirname(path)
        while directory:
            directories.add(directory)
            directory = posixpath.dirname(directory)
    return directories


def detect_entry_points(
    root: Path, analyzed: set[str], resolver: DependencyResolver
) -> list[str]:
    """Detect entry modules among the analyzed files.

    Candidates are the root and top-level package ``__init__.py`` of every
    source root, the ``main``/``module``/``exports`` targets and ``index.*``
    files of every ``package.json`` next to analyzed code, and ``index.*``
    at the repository root and in ``src/``.
    """
    candidates: set[str] = set()

    for path in analyzed:
        if posixpath.basename(path) != "__init__.py":
            continue
        package_dir = module_directory(path)
        parent_dir = posixpath.dirname(package_dir) or "."
        if package_dir in resolver.source_roots or parent_dir in resolver.source_roots:
            candidates.add(path)

    for directory in sorted(_ancestor_directories(analyzed)):
        candidates.update(
            normalize_module_path(entry)
            for entry in _package_json_entries(root, directory, resolver)
        )

    for directory in INDEX_DIRECTORIES:
        candidates.update(
            normalize_module_path(posixpath.join(directory, name))
            for name in INDEX_FILE_NAMES
        )

    return sorted(candidates & analyzed)


def _forwarded_names(edge: ReExportEdge, exposed: set[str]) -> set[str]:
    """Names of ``edge.target`` made visible by a module exposing ``exposed``."""
    if edge.names is None:
        if ALL_MEMBERS in exposed:
            return {ALL_MEMBERS}
        return set(exposed)
    forwarded: set[str] = set()
    for source_name, exported_name in edge.names:
        if ALL_MEMBERS in exposed or exported_name in exposed:
            forwarded.add(source_name)
    return forwarded


def propagate_exposure(
    entry_points: Iterable[str], modules: Mapping[str, ModuleExports]
) -> dict[str, set[str]]:
    """Propagate exposure from entry modules along re-export edges.

    Returns:
        Exposed names per module. ``ALL_MEMBERS`` in a set means every
        exported member of that module is exposed. Modules absent from the
        mapping expose nothing.
    """
    exposure: dict[str, set[str]] = defaultdict(set)
    pending: deque[str] = deque()
    for entry in entry_points:
        exposure[entry].add(ALL_MEMBERS)
        pending.append(entry)

    while pending:
        path = pending.popleft()
        module = modules.get(path)
        if module is None:
            continue
        exposed = exposure[path]
        for edge in module.reexports:
            target_exposure = exposure[edge.target]
            if ALL_MEMBERS in target_exposure:
                continue
            gained = _forwarded_names(edge, exposed) - target_exposure
            if gained:
                target_exposure |= gained
                pending.append(edge.target)

    return dict(exposure)


def is_exposed(member: ApiMember, exposed: set[str]) -> bool:
    if ALL_MEMBERS in exposed or member.name in exposed:
        return True
    return member.is_default and "default" in exposed


def find_encapsulation_issues(
    public: list[ApiMember],
    internal: list[ApiMember],
    barrel_files: set[str],
    *,
    max_exposed_members: int = 15,
) -> list[EncapsulationIssue]:
    """Flag implementation details, unstable members and overexposed folders."""
    issues: list[EncapsulationIssue] = []

    for member in public:
        if has_implementation_marker(member.name, member.exposed_by):
            issues.append(
                EncapsulationIssue(
                    type="public-implementation-detail",
                    member=member,
                    reason=(
                        f'Member "{member.name}" appears to be an implementation '
                        "detail but is exposed in the public API"
                    ),
                )
            )
        if has_unstable_marker(member.name, member.exposed_by, member.description):
            issues.append(
                EncapsulationIssue(
                    type="unstable-api",
                    member=member,
                    reason=(
                        f'Member "{member.name}" appears to be experimental or '
                        "unstable but is exposed in the public API"
                    ),
                )
            )

    public_by_folder: dict[str, list[ApiMember]] = defaultdict(list)
    internal_counts: dict[str, int] = defaultdict(int)
    for member in public:
        public_by_folder[module_directory(member.exposed_by)].append(member)
    for member in internal:
        internal_counts[module_directory(member.exposed_by)] += 1
    barrel_folders = {module_directory(path) for path in barrel_files}

    for folder in sorted(public_by_folder):
        members = public_by_folder[folder]
        if (
            len(members) > max_exposed_members
            and len(members) > internal_counts[folder]
            and folder not in barrel_folders
        ):
            issues.append(
                EncapsulationIssue(
                    type="excessive-exposure",
                    member=members[0],
                    reason=(
                        f'Folder "{folder}" exposes {len(members)} public members '
                        f"({internal_counts[folder]} internal) but has no barrel "
                        "module curating its API"
                    ),
                )
            )

    return issues


def _member_sort_key(member: ApiMember) -> tuple[str, int, int, str]:
    return (
        member.exposed_by,
        member.location.line,
        member.location.column,
        member.name,
    )


def analyze_api_surface(
    files: list[Path],
    root: Path,
    *,
    resolver: DependencyResolver,
    entry_points: list[str] | None = None,
    max_exposed_members: int = 15,
    warnings: list[str] | None = None,
) -> ApiSurfaceResult:
    """Classify the exported members of ``files`` into public and internal.

    Args:
        files: Absolute paths of the analyzed files
        root: Repository root the paths are relative to
        resolver: Resolver used to follow re-export specifiers
        entry_points: Entry modules relative to the root; detected when empty
        max_exposed_members: Public members a folder may expose without a
            barrel module
        warnings: Receives a message for every file that had to be skipped

    Returns:
        The API surface, with members sorted by file and position.
    """
    modules: dict[str, ModuleExports] = {}
    for file_path in files:
        # Export analysis covers Python and scripts; other sources only add edges.
        if file_path.suffix.lower() not in EXPORT_SUFFIXES:
            continue
        try:
            exports = collect_module_exports(file_path, root, resolver)
        except ExtractionError as exc:
            message = f"Skipping API surface of {file_path}: {exc}"
            logger.warning(message)
            if warnings is not None:
                warnings.append(message)
            continue
        modules[exports.path] = exports

    analyzed = set(modules)
    if entry_points:
        entries = sorted(
            {normalize_module_path(entry) for entry in entry_points} & analyzed
        )
        missing = sorted({normalize_module_path(e) for e in entry_points} - analyzed)
        for entry in missing:
            logger.warning("Configured entry point is not an analyzed file: %s", entry)
    else:
        entries = detect_entry_points(root, analyzed, resolver)
    logger.info("API surface entry points: %s", ", ".join(entries) or "none")

    exposure = propagate_exposure(entries, modules)

    exported: list[ApiMember] = []
    public: list[ApiMember] = []
    internal: list[ApiMember] = []
    for path in sorted(modules):
        exposed = exposure.get(path, set())
        for member in modules[path].members:
            if not member.is_exported:
                continue
            exported.append(member)
            (public if is_exposed(member, exposed) else internal).append(member)

    exported.sort(key=_member_sort_key)
    public.sort(key=_member_sort_key)
    internal.sort(key=_member_sort_key)

    barrel_files = {path for path, module in modules.items() if module.is_barrel}
    issues = find_encapsulation_issues(
        public, internal, barrel_files, max_exposed_members=max_exposed_members
    )

    return ApiSurfaceResult(
        module_count=len(modules),
        entry_points=entries,
        exported_members=exported,
        public_api_surface=public,
        internal_api_surface=internal,
        encapsulation_issues=issues,
    )


class ApiSurfaceGenerator:
    """Generator for the public/internal API surface of a repository."""

    @property
    def name(self) -> str:
        """Generator name for logging and identification."""
        return "api_surface"

    def generate(
        self,
        files: list[Path],
        root: Path,
        **kwargs: Any,
    ) -> tuple[ApiSurfaceResult, list[str]]:
        """Analyze the API surface; returns the result and skip warnings."""
        resolver: DependencyResolver = kwargs["resolver"]
        warnings: list[str] = []
        result = analyze_api_surface(
            files,
            root,
            resolver=resolver,
            entry_points=kwargs.get("entry_points"),
            max_exposed_members=kwargs.get("max_exposed_members", 15),
            warnings=warnings,
        )
        return result, warnings


__all__ = [
    "ALL_MEMBERS",
    "ApiSurfaceGenerator",
    "ModuleExports",
    "ReExportEdge",
    "analyze_api_surface",
    "collect_module_exports",
    "detect_entry_points",
    "find_encapsulation_issues",
    "propagate_exposure",
]
