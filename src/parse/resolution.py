"""Resolution of import references to normalized module identifiers."""

from __future__ import annotations

import logging
import posixpath
import re
from pathlib import Path
from typing import TYPE_CHECKING

import orjson

from analysis.models.dependencies import ModuleDependency
from parse.ast_imports import PythonImport
from parse.js_imports import strip_comments
from utils import normalize_module_path

if TYPE_CHECKING:
    from parse.source_imports import SourceImports, SourceReference

logger = logging.getLogger(__name__)

SCRIPT_RESOLUTION_SUFFIXES = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")
TSCONFIG_FILENAME = "tsconfig.json"
GO_MOD_FILENAME = "go.mod"

QUALIFIED_SUFFIXES: dict[str, tuple[str, ...]] = {
    "java": (".java",),
    "kotlin": (".kt",),
    "scala": (".scala",),
    "csharp": (".cs",),
    "php": (".php",),
}
# Dotted JVM names are grouped by their first two segments (``org.junit``).
JVM_LANGUAGES = frozenset({"java", "kotlin", "scala"})
RUST_ROOT_FILES = frozenset({"lib.rs", "main.rs", "mod.rs"})
HEADER_DIRECTORIES = ("include",)
RUBY_LOAD_DIRECTORIES = ("lib",)

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_GO_MODULE = re.compile(r"^\s*module\s+(\S+)", re.MULTILINE)


def _escapes_root(path_str: str) -> bool:
    return path_str == ".." or path_str.startswith("../")


def package_name(specifier: str) -> str:
    """Return the package a bare specifier belongs to.

    Examples:
        >>> package_name("lodash/fp")
        'lodash'
        >>> package_name("@scope/pkg/sub")
        '@scope/pkg'
        >>> package_name("node:fs/promises")
        'fs'
    """
    if specifier.startswith("node:"):
        specifier = specifier[len("node:") :]
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        return "/".join(parts[:2])
    return parts[0]


def load_tsconfig_paths(root: Path) -> tuple[str | None, dict[str, list[str]]]:
    """Read ``baseUrl`` and ``paths`` from the root tsconfig.json.

    Returns:
        ``(base_url, paths)`` with ``base_url`` relative to the root, or
        ``(None, {})`` when there is no usable tsconfig.
    """
    config_path = root / TSCONFIG_FILENAME
    if not config_path.is_file():
        return None, {}

    try:
        text = strip_comments(config_path.read_text(encoding="utf-8"))
        data = orjson.loads(_TRAILING_COMMA.sub(r"\1", text))
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        logger.warning("Ignoring unreadable %s: %s", config_path, exc)
        return None, {}

    options = data.get("compilerOptions") if isinstance(data, dict) else None
    if not isinstance(options, dict):
        return None, {}

    base_url = options.get("baseUrl")
    base = normalize_module_path(base_url) if isinstance(base_url, str) else None
    raw_paths = options.get("paths")
    paths: dict[str, list[str]] = {}
    if isinstance(raw_paths, dict):
        for pattern, targets in raw_paths.items():
            if isinstance(targets, list):
                paths[pattern] = [t for t in targets if isinstance(t, str)]
    return base, paths


def load_go_module(root: Path) -> str | None:
    """Return the module path declared by the root go.mod, if any."""
    mod_path = root / GO_MOD_FILENAME
    if not mod_path.is_file():
        return None
    try:
        text = mod_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", mod_path, exc)
        return None
    match = _GO_MODULE.search(text)
    return match.group(1) if match else None


def go_package_name(import_path: str) -> str:
    """Group a Go import path by repository or standard-library root.

    Examples:
        >>> go_package_name("github.com/spf13/cobra/doc")
        'github.com/spf13/cobra'
        >>> go_package_name("net/http")
        'net'
    """
    parts = import_path.split("/")
    if "." in parts[0]:
        return "/".join(parts[:3])
    return parts[0]


def qualified_package_name(parts: list[str], language: str) -> str:
    """Group a dotted or namespaced name by its vendor prefix.

    Examples:
        >>> qualified_package_name(["org", "junit", "Test"], "java")
        'org.junit'
        >>> qualified_package_name(["System", "Linq"], "csharp")
        'System'
    """
    if language in JVM_LANGUAGES and len(parts) > 2:
        return ".".join(parts[:2])
    return parts[0]


class DependencyResolver:
    """Resolve extracted references relative to a repository root.

    The resolver only reads the filesystem to check candidate files, so a
    single instance can be shared by concurrent extraction workers.
    """

    def __init__(
        self,
        root: Path,
        *,
        resolve_aliases: bool = True,
        source_roots: list[str] | None = None,
        aliases: dict[str, str] | None = None,
    ) -> None:
        self.root = root
        self.resolve_aliases = resolve_aliases
        self.source_roots = [
            normalize_module_path(entry) for entry in (source_roots or ["."])
        ]
        self.aliases = dict(sorted((aliases or {}).items(), key=lambda i: -len(i[0])))
        self.base_url: str | None = None
        self.ts_paths: dict[str, list[str]] = {}
        self.go_module: str | None = None
        if resolve_aliases:
            self.base_url, self.ts_paths = load_tsconfig_paths(root)
            self.go_module = load_go_module(root)

    def _is_file(self, rel_path: str) -> bool:
        # Over-long or otherwise invalid names raise instead of returning False.
        try:
            return (self.root / rel_path).is_file()
        except (OSError, ValueError):
            return False

    def _is_dir(self, rel_path: str) -> bool:
        try:
            return (self.root / rel_path).is_dir()
        except (OSError, ValueError):
            return False

    @staticmethod
    def _join(*parts: str) -> str:
        return normalize_module_path(posixpath.join(*parts))

    # Python ---------------------------------------------------------------

    def _python_module_file(self, base: str) -> str | None:
        """Return ``base.py`` or ``base/__init__.py`` when either exists."""
        for candidate in (f"{base}.py", f"{base}/__init__.py"):
            candidate = normalize_module_path(candidate)
            if self._is_file(candidate):
                return candidate
        return None

    def _resolve_python_relative(
        self, importing_path: str, imp: PythonImport
    ) -> list[ModuleDependency]:
        base_dir = posixpath.dirname(importing_path) or "."
        for _ in range(imp.level - 1):
            base_dir = self._join(base_dir, "..")
        if _escapes_root(base_dir):
            logger.debug(
                "Relative import beyond the root in %s: %s", importing_path, imp
            )
            return []

        raw = "." * imp.level + imp.module
        if imp.module:
            module_base = self._join(base_dir, imp.module.replace(".", "/"))
            targets = [self._python_module_file(module_base) or f"{module_base}.py"]
        else:
            module_base = base_dir
            targets = []

        # ``from . import x`` and ``from .pkg import sub`` may name submodules.
        for name, _alias in imp.names:
            if name == "*":
                continue
            submodule = self._python_module_file(self._join(module_base, name))
            if submodule is not None:
                targets.append(submodule)

        if not targets:
            targets.append(self._join(module_base, "__init__.py"))

        return [ModuleDependency(target=target, raw=raw) for target in targets]

    def _resolve_python_absolute(self, module: str) -> str | None:
        parts = module.split(".")
        for source_root in self.source_roots:
            for end in range(len(parts), 0, -1):
                base = self._join(source_root, *parts[:end])
                found = self._python_module_file(base)
                if found is not None:
                    return found
        return None

    def resolve_python(
        self, importing_path: str, imp: PythonImport
    ) -> list[ModuleDependency]:
        """Resolve one Python import made by ``importing_path``."""
        if imp.level > 0:
            return self._resolve_python_relative(importing_path, imp)

        if not imp.module or imp.module == "__future__":
            return []

        if self.resolve_aliases:
            candidates = [imp.module]
            if imp.is_from_import:
                candidates = [
                    f"{imp.module}.{name}" for name, _alias in imp.names if name != "*"
                ] + candidates
            resolved: list[ModuleDependency] = []
            for candidate in candidates:
                found = self._resolve_python_absolute(candidate)
                if found is not None:
                    resolved.append(ModuleDependency(target=found, raw=imp.module))
            if resolved:
                return resolved

        return [
            ModuleDependency(
                target=imp.module.split(".")[0], is_external=True, raw=imp.module
            )
        ]

    # Scripts --------------------------------------------------------------

    def find_script_file(self, base: str) -> str | None:
        if self._is_file(base):
            return base
        for suffix in SCRIPT_RESOLUTION_SUFFIXES:
            if self._is_file(f"{base}{suffix}"):
                return f"{base}{suffix}"
        for suffix in SCRIPT_RESOLUTION_SUFFIXES:
            index = self._join(base, f"index{suffix}")
            if self._is_file(index):
                return index
        return None

    def _alias_candidates(self, specifier: str) -> list[str]:
        candidates: list[str] = []
        for prefix, target in self.aliases.items():
            if specifier.startswith(prefix):
                candidates.append(self._join(target, specifier[len(prefix) :]))

        base = self.base_url or "."
        for pattern, targets in self.ts_paths.items():
            if "*" in pattern:
                head, _, tail = pattern.partition("*")
                if not (
                    specifier.startswith(head)
                    and specifier.endswith(tail)
                    and len(specifier) >= len(head) + len(tail)
                ):
                    continue
                wildcard = specifier[len(head) : len(specifier) - len(tail)]
                candidates.extend(
                    self._join(base, target.replace("*", wildcard, 1))
                    for target in targets
                )
            elif pattern == specifier:
                candidates.extend(self._join(base, target) for target in targets)

        if self.base_url is not None:
            candidates.append(self._join(self.base_url, specifier))
        return [c for c in candidates if not _escapes_root(c)]

    def resolve_script(
        self, importing_path: str, specifier: str
    ) -> ModuleDependency | None:
        """Resolve one script module specifier made by ``importing_path``."""
        if specifier.startswith((".", "/")):
            if specifier.startswith("/"):
                target = normalize_module_path(specifier.lstrip("/"))
            else:
                base_dir = posixpath.dirname(importing_path) or "."
                target = self._join(base_dir, specifier)
            if _escapes_root(target):
                logger.debug(
                    "Import %r in %s resolves outside the repository",
                    specifier,
                    importing_path,
                )
                return None
            resolved = self.find_script_file(target)
            if resolved is None:
                logger.debug(
                    "Could not confirm %r imported by %s (resolved to %s)",
                    specifier,
                    importing_path,
                    target,
                )
                resolved = target
            return ModuleDependency(target=resolved, raw=specifier)

        if self.resolve_aliases:
            for candidate in self._alias_candidates(specifier):
                resolved = self.find_script_file(candidate)
                if resolved is not None:
                    return ModuleDependency(target=resolved, raw=specifier)

        return ModuleDependency(
            target=package_name(specifier), is_external=True, raw=specifier
        )

    # Other languages ------------------------------------------------------

    def _first_file(
        self, bases: list[str], stems: list[str], suffixes: tuple[str, ...]
    ) -> str | None:
        for base in bases:
            for stem in stems:
                for suffix in suffixes:
                    candidate = self._join(base, f"{stem}{suffix}")
                    if not _escapes_root(candidate) and self._is_file(candidate):
                        return candidate
        return None

    @staticmethod
    def _declared_root(importing_path: str, package: str | None) -> str | None:
        """Directory the package declaration of ``importing_path`` is rooted at."""
        if not package:
            return None
        directory = posixpath.dirname(importing_path)
        package_dir = package.replace(".", "/")
        if directory == package_dir:
            return "."
        if directory.endswith(f"/{package_dir}"):
            return directory[: -len(package_dir) - 1]
        return None

    def _resolve_qualified(
        self, importing_path: str, imports: SourceImports, name: str
    ) -> list[ModuleDependency]:
        parts = name.split(".")
        language = imports.language
        if self.resolve_aliases:
            bases = list(self.source_roots)
            declared = self._declared_root(importing_path, imports.package)
            if declared is not None and declared not in bases:
                bases.insert(0, declared)

            stems = ["/".join(parts[:end]) for end in range(len(parts), 0, -1)]
            if language == "php" and len(parts) > 1:
                # PSR-4 maps the vendor namespace onto a source root.
                stems += ["/".join(parts[1:end]) for end in range(len(parts), 1, -1)]
            found = self._first_file(bases, stems, QUALIFIED_SUFFIXES[language])
            if found is not None:
                return [ModuleDependency(target=found, raw=name)]

            # A package of this project without a file of its own.
            if imports.package is not None:
                own = imports.package.split(".")
                prefix = min(2, len(own)) if language in JVM_LANGUAGES else 1
                if parts[:prefix] == own[:prefix]:
                    return []
            if any(self._is_dir(self._join(base, *parts)) for base in bases):
                return []

        return [
            ModuleDependency(
                target=qualified_package_name(parts, language),
                is_external=True,
                raw=name,
            )
        ]

    def _resolve_include(
        self, importing_path: str, name: str, *, fallback_dirs: tuple[str, ...] = ()
    ) -> str | None:
        base_dir = posixpath.dirname(importing_path) or "."
        candidate = self._join(base_dir, name)
        if not _escapes_root(candidate) and self._is_file(candidate):
            return candidate
        return self._first_file([*self.source_roots, *fallback_dirs], [name], ("",))

    def _resolve_go_package(self, import_path: str) -> list[ModuleDependency]:
        module = self.go_module
        if module is not None and (
            import_path == module or import_path.startswith(f"{module}/")
        ):
            package_dir = import_path[len(module) + 1 :] or "."
            try:
                names = sorted(
                    path.name
                    for path in (self.root / package_dir).iterdir()
                    if path.suffix == ".go"
                    and not path.name.endswith("_test.go")
                    and path.is_file()
                )
            except OSError:
                return []
            return [
                ModuleDependency(target=self._join(package_dir, name), raw=import_path)
                for name in names
            ]
        return [
            ModuleDependency(
                target=go_package_name(import_path), is_external=True, raw=import_path
            )
        ]

    @staticmethod
    def _rust_module_dir(importing_path: str) -> str:
        """Directory holding the child modules of ``importing_path``."""
        directory = posixpath.dirname(importing_path) or "."
        name = posixpath.basename(importing_path)
        if name in RUST_ROOT_FILES:
            return directory
        return normalize_module_path(
            posixpath.join(directory, posixpath.splitext(name)[0])
        )

    def _rust_crate_root(self, importing_path: str) -> str | None:
        directory = posixpath.dirname(importing_path) or "."
        while True:
            if any(
                self._is_file(self._join(directory, name))
                for name in ("lib.rs", "main.rs")
            ):
                return directory
            if directory == ".":
                return None
            directory = posixpath.dirname(directory) or "."

    def _rust_module_file(self, base: str, segments: list[str]) -> str | None:
        for end in range(len(segments), 0, -1):
            stem = self._join(base, *segments[:end])
            for candidate in (f"{stem}.rs", f"{stem}/mod.rs"):
                if self._is_file(candidate):
                    return candidate
        return None

    def _resolve_rust_use(
        self, importing_path: str, path: str
    ) -> list[ModuleDependency]:
        segments = path.split("::")
        module_dir = self._rust_module_dir(importing_path)
        head = segments[0]

        if head == "crate":
            crate_root = self._rust_crate_root(importing_path)
            if crate_root is None:
                return []
            base, rest = crate_root, segments[1:]
        elif head in ("self", "super"):
            base, rest = module_dir, segments
            while rest and rest[0] in ("self", "super"):
                if rest[0] == "super":
                    base = posixpath.dirname(base) or "."
                rest = rest[1:]
        elif self._rust_module_file(module_dir, [head]) is not None:
            base, rest = module_dir, segments
        else:
            return [ModuleDependency(target=head, is_external=True, raw=path)]

        if _escapes_root(base) or not rest:
            return []
        found = self._rust_module_file(base, rest)
        return [ModuleDependency(target=found, raw=path)] if found else []

    def resolve_reference(
        self, importing_path: str, imports: SourceImports, reference: SourceReference
    ) -> list[ModuleDependency]:
        """Resolve one reference of a textually scanned source file."""
        kind = reference.kind
        name = reference.name

        if kind == "qualified":
            return self._resolve_qualified(importing_path, imports, name)

        if kind == "package":
            return self._resolve_go_package(name)

        if kind == "use":
            return self._resolve_rust_use(importing_path, name)

        if kind == "mod":
            module_dir = self._rust_module_dir(importing_path)
            target = self._rust_module_file(module_dir, [name])
            return [
                ModuleDependency(
                    target=target or self._join(module_dir, f"{name}.rs"), raw=name
                )
            ]

        if kind == "include":
            target = self._resolve_include(importing_path, name)
            if target is None:
                target = self._join(posixpath.dirname(importing_path) or ".", name)
                if _escapes_root(target):
                    return []
            return [ModuleDependency(target=target, raw=name)]

        if kind == "relative":
            stem = name if name.endswith(".rb") else f"{name}.rb"
            target = self._join(posixpath.dirname(importing_path) or ".", stem)
            if _escapes_root(target):
                return []
            return [ModuleDependency(target=target, raw=name)]

        if kind == "header":
            found = self._first_file(
                [*self.source_roots, *HEADER_DIRECTORIES], [name], ("",)
            )
            if found is not None:
                return [ModuleDependency(target=found, raw=name)]
            package = posixpath.splitext(name.split("/")[0])[0]
            return [ModuleDependency(target=package, is_external=True, raw=name)]

        if kind == "require":
            stem = name[: -len(".rb")] if name.endswith(".rb") else name
            found = self._first_file(
                [*self.source_roots, *RUBY_LOAD_DIRECTORIES], [stem], (".rb",)
            )
            if found is not None:
                return [ModuleDependency(target=found, raw=name)]
            return [
                ModuleDependency(target=stem.split("/")[0], is_external=True, raw=name)
            ]

        return [ModuleDependency(target=name, is_external=True, raw=name)]


__all__ = [
    "DependencyResolver",
    "go_package_name",
    "load_go_module",
    "load_tsconfig_paths",
    "package_name",
    "qualified_package_name",
]
