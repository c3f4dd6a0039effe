"""Textual import extraction for JavaScript and TypeScript sources."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from parse.errors import read_source

if TYPE_CHECKING:
    from pathlib import Path

ScriptImportKind = Literal["import", "side_effect", "export_from", "require", "dynamic"]

_QUOTED = r"""(['"])(?P<spec>[^'"\n]+)\1"""

_IMPORT_PATTERNS: tuple[tuple[ScriptImportKind, re.Pattern[str]], ...] = (
    (
        "import",
        re.compile(r"""\bimport\s+(?:type\s+)?[^;'"`()]*?\bfrom\s*""" + _QUOTED),
    ),
    ("side_effect", re.compile(r"""\bimport\s*""" + _QUOTED)),
    (
        "export_from",
        re.compile(r"""\bexport\s+(?:type\s+)?[^;'"`()]*?\bfrom\s*""" + _QUOTED),
    ),
    ("require", re.compile(r"""\brequire\s*\(\s*""" + _QUOTED + r"""\s*\)""")),
    ("dynamic", re.compile(r"""\bimport\s*\(\s*""" + _QUOTED + r"""\s*\)""")),
)


@dataclass(frozen=True)
class ScriptImport:
    line: int
    specifier: str
    kind: ScriptImportKind


def strip_comments(source: str) -> str:
    """Blank out ``//`` and ``/* */`` comments, keeping string literals.

    Comment characters are replaced by spaces and newlines are kept, so
    offsets and line numbers of the result match the original source.
    """
    out: list[str] = []
    i = 0
    length = len(source)
    quote: str | None = None

    while i < length:
        char = source[i]
        if quote is not None:
            out.append(char)
            if char == "\\" and i + 1 < length:
                out.append(source[i + 1])
                i += 2
                continue
            # Quote and apostrophe literals cannot span lines; templates can.
            if char == quote or (char == "\n" and quote != "`"):
                quote = None
            i += 1
            continue

        if char in "'\"`":
            quote = char
            out.append(char)
            i += 1
            continue

        nxt = source[i + 1] if i + 1 < length else ""
        if char == "/" and nxt == "/":
            end = source.find("\n", i)
            end = length if end == -1 else end
            out.append(" " * (end - i))
            i = end
            continue
        if char == "/" and nxt == "*":
            end = source.find("*/", i + 2)
            end = length if end == -1 else end + 2
            out.extend("\n" if c == "\n" else " " for c in source[i:end])
            i = end
            continue

        out.append(char)
        i += 1

    return "".join(out)


def line_of(source: str, offset: int) -> int:
    """Return the 1-based line number of a character offset."""
    return source.count("\n", 0, offset) + 1


def column_of(source: str, offset: int) -> int:
    """Return the 1-based column of a character offset."""
    return offset - (source.rfind("\n", 0, offset) + 1) + 1


def collect_script_imports(source: str) -> list[ScriptImport]:
    """Collect module specifiers referenced by a script source."""
    code = strip_comments(source)
    found: dict[int, ScriptImport] = {}

    for kind, pattern in _IMPORT_PATTERNS:
        for match in pattern.finditer(code):
            spec_start = match.start("spec")
            found.setdefault(
                spec_start,
                ScriptImport(
                    line=line_of(code, spec_start),
                    specifier=match.group("spec").strip(),
                    kind=kind,
                ),
            )

    return [found[offset] for offset in sorted(found)]


def extract_script_imports(file_path: Path) -> list[ScriptImport]:
    """Extract import, re-export, require and dynamic import specifiers.

    Raises:
        ExtractionError: If the file cannot be read or decoded.
    """
    return collect_script_imports(read_source(file_path))


__all__ = [
    "ScriptImport",
    "ScriptImportKind",
    "collect_script_imports",
    "column_of",
    "extract_script_imports",
    "line_of",
    "strip_comments",
]
