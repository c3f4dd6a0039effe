"""Textual import extraction for compiled and scripting languages.

Java, Kotlin, Scala, C#, Go, Rust, C/C++, PHP, Ruby and Swift sources are
scanned with line-anchored patterns after block comments are blanked out.
Each match becomes a ``SourceReference`` whose ``kind`` tells the resolver
how to map it to a repository file or an external package.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from parse.errors import ExtractionError, read_source
from parse.js_imports import line_of, strip_comments

if TYPE_CHECKING:
    from pathlib import Path

Language = Literal[
    "java", "kotlin", "scala", "csharp", "go", "rust", "c", "php", "ruby", "swift"
]

# qualified: dotted or namespaced name mapped onto directories
# include: path relative to the importing file, then to source roots
# header: ``<...>`` include, external unless found under a source root
# require: Ruby load path entry
# relative: Ruby ``require_relative`` path
# package: Go import path
# use / mod: Rust module path and child module declaration
# external: always a third-party module
ReferenceKind = Literal[
    "qualified",
    "include",
    "header",
    "require",
    "relative",
    "package",
    "use",
    "mod",
    "external",
]

LANGUAGE_BY_SUFFIX: dict[str, Language] = {
    ".java": "java",
    ".kt": "kotlin",
    ".scala": "scala",
    ".cs": "csharp",
    ".go": "go",
    ".rs": "rust",
    ".c": "c",
    ".h": "c",
    ".cc": "c",
    ".cpp": "c",
    ".hpp": "c",
    ".php": "php",
    ".rb": "ruby",
    ".swift": "swift",
}

_JVM_IMPORT = re.compile(r"^[ \t]*import\s+(?:static\s+)?([\w.]+)", re.MULTILINE)
_JVM_PACKAGE = re.compile(r"^[ \t]*package\s+([\w.]+)", re.MULTILINE)
_CSHARP_USING = re.compile(
    r"^[ \t]*(?:global\s+)?using\s+(?!static\b)([\w.]+)\s*;", re.MULTILINE
)
_CSHARP_NAMESPACE = re.compile(r"^[ \t]*namespace\s+([\w.]+)", re.MULTILINE)
_GO_SINGLE = re.compile(r'^[ \t]*import\s+(?:[\w.]+\s+)?"([^"\n]+)"', re.MULTILINE)
_GO_BLOCK = re.compile(r"^[ \t]*import\s*\(([^)]*)\)", re.MULTILINE)
_GO_BLOCK_SPEC = re.compile(r'^[ \t]*(?:[\w.]+\s+)?"([^"\n]+)"', re.MULTILINE)
_RUST_VISIBILITY = r"(?:pub(?:\([^)]*\))?\s+)?"
_RUST_USE = re.compile(r"^[ \t]*" + _RUST_VISIBILITY + r"use\s+([^;]+);", re.MULTILINE)
_RUST_MOD = re.compile(r"^[ \t]*" + _RUST_VISIBILITY + r"mod\s+(\w+)\s*;", re.MULTILINE)
_RUST_EXTERN_CRATE = re.compile(r"^[ \t]*extern\s+crate\s+(\w+)", re.MULTILINE)
_C_INCLUDE = re.compile(
    r'^[ \t]*#[ \t]*include[ \t]*([<"])([^>"\n]+)[>"]', re.MULTILINE
)
_PHP_INCLUDE = re.compile(
    r"""\b(?:include|require)(?:_once)?\s*\(?\s*(['"])([^'"\n]+)\1"""
)
_PHP_USE = re.compile(
    r"^[ \t]*use\s+(?:function\s+|const\s+)?\\?([\w\\]+)", re.MULTILINE
)
_PHP_NAMESPACE = re.compile(r"^[ \t]*namespace\s+([\w\\]+)", re.MULTILINE)
_RUBY_REQUIRE = re.compile(
    r"""^[ \t]*require(_relative)?\s*\(?\s*(['"])([^'"\n]+)\2""", re.MULTILINE
)
_SWIFT_IMPORT = re.compile(
    r"^[ \t]*(?:@\w+\s+)*import\s+"
    r"(?:(?:typealias|struct|class|enum|protocol|let|var|func)\s+)?(\w+)",
    re.MULTILINE,
)


@dataclass(frozen=True)
class SourceReference:
    line: int
    kind: ReferenceKind
    name: str


@dataclass(frozen=True)
class SourceImports:
    """References of one file plus its declared package or namespace."""

    language: Language
    package: str | None = None
    references: tuple[SourceReference, ...] = field(default_factory=tuple)


def _declared(pattern: re.Pattern[str], code: str) -> str | None:
    match = pattern.search(code)
    return match.group(1).replace("\\", ".") if match else None


def _references(
    code: str, pattern: re.Pattern[str], kind: ReferenceKind, group: int = 1
) -> list[SourceReference]:
    return [
        SourceReference(
            line=line_of(code, match.start(group)),
            kind=kind,
            name=match.group(group).strip(),
        )
        for match in pattern.finditer(code)
    ]


def _qualified_name(raw: str) -> str:
    """``a.b.{C, D}``, ``a.b.*`` and ``a.b._`` name the package ``a.b``."""
    parts = [part for part in raw.split(".") if part and part not in ("*", "_")]
    return ".".join(parts)


def _go_references(code: str) -> list[SourceReference]:
    references = _references(code, _GO_SINGLE, "package")
    for block in _GO_BLOCK.finditer(code):
        offset = block.start(1)
        for spec in _GO_BLOCK_SPEC.finditer(block.group(1)):
            references.append(
                SourceReference(
                    line=line_of(code, offset + spec.start(1)),
                    kind="package",
                    name=spec.group(1),
                )
            )
    return references


def _rust_use_path(raw: str) -> str:
    """Keep the module path of a ``use`` tree: ``a::{b, c}`` -> ``a``."""
    path = re.split(r"\s+as\s+", raw.split("{", 1)[0])[0]
    segments = [s.strip() for s in path.split("::") if s.strip() and s.strip() != "*"]
    return "::".join(segments)


def collect_source_imports(source: str, language: Language) -> SourceImports:
    """Collect the references of one source text, in source order."""
    code = source if language == "ruby" else strip_comments(source)
    package: str | None = None
    references: list[SourceReference] = []

    if language in ("java", "kotlin", "scala"):
        package = _declared(_JVM_PACKAGE, code)
        references = [
            SourceReference(
                line=ref.line, kind="qualified", name=_qualified_name(ref.name)
            )
            for ref in _references(code, _JVM_IMPORT, "qualified")
        ]
    elif language == "csharp":
        package = _declared(_CSHARP_NAMESPACE, code)
        references = _references(code, _CSHARP_USING, "qualified")
    elif language == "go":
        references = _go_references(code)
    elif language == "rust":
        references = [
            SourceReference(line=ref.line, kind="use", name=_rust_use_path(ref.name))
            for ref in _references(code, _RUST_USE, "use")
        ]
        references += _references(code, _RUST_MOD, "mod")
        references += _references(code, _RUST_EXTERN_CRATE, "external")
    elif language == "c":
        for match in _C_INCLUDE.finditer(code):
            references.append(
                SourceReference(
                    line=line_of(code, match.start(2)),
                    kind="include" if match.group(1) == '"' else "header",
                    name=match.group(2).strip(),
                )
            )
    elif language == "php":
        package = _declared(_PHP_NAMESPACE, code)
        references = _references(code, _PHP_INCLUDE, "include", group=2)
        references += [
            SourceReference(
                line=ref.line,
                kind="qualified",
                name=_qualified_name(ref.name.replace("\\", ".")),
            )
            for ref in _references(code, _PHP_USE, "qualified")
        ]
    elif language == "ruby":
        for match in _RUBY_REQUIRE.finditer(code):
            references.append(
                SourceReference(
                    line=line_of(code, match.start(3)),
                    kind="relative" if match.group(1) else "require",
                    name=match.group(3).strip(),
                )
            )
    else:
        references = _references(code, _SWIFT_IMPORT, "external")

    references = [ref for ref in references if ref.name]
    references.sort(key=lambda ref: ref.line)
    return SourceImports(
        language=language, package=package, references=tuple(references)
    )


def extract_source_imports(file_path: Path) -> SourceImports:
    """Extract the import references of a non-Python, non-script source file.

    Raises:
        ExtractionError: If the file cannot be read or its suffix is not a
            supported language.
    """
    language = LANGUAGE_BY_SUFFIX.get(file_path.suffix.lower())
    if language is None:
        msg = f"No import extractor for {file_path}"
        raise ExtractionError(msg)
    return collect_source_imports(read_source(file_path), language)


__all__ = [
    "LANGUAGE_BY_SUFFIX",
    "Language",
    "ReferenceKind",
    "SourceImports",
    "SourceReference",
    "collect_source_imports",
    "extract_source_imports",
]
