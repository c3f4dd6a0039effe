"""Textual export extraction for JavaScript and TypeScript sources."""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass

from analysis.models.api_surface import ApiMember, ApiMemberKind, SourceLocation
from parse.js_imports import column_of, line_of, strip_comments

_IDENT = r"[A-Za-z_$][\w$]*"

_DECLARATION = re.compile(
    r"\bexport\s+(?P<default>default\s+)?(?:declare\s+)?(?:abstract\s+)?"
    r"(?:async\s+)?(?P<kind>class|interface|const\s+enum|enum|function\s*\*?"
    r"|const|let|var|type|namespace|module)\s+"
    r"(?P<name>(?!extends\b)" + _IDENT + r")"
)
_ANONYMOUS_DEFAULT = re.compile(
    r"\bexport\s+default\s+(?:abstract\s+)?(?:async\s+)?"
    r"(?P<kind>class|function)\b\s*\*?\s*(?:[({]|extends\b)"
)
_DEFAULT_EXPRESSION = re.compile(
    r"\bexport\s+default\s+(?!(?:abstract|class|function|interface|enum)\b)"
    r"(?!async\s+(?:function|class)\b)"
    r"(?P<async>async\b\s*)?"
    r"(?P<name>" + _IDENT + r"(?![\w$])(?!\s*=>))?"
)
_ARROW_START = re.compile(
    r"\s*(?:\([^)]*\)|" + _IDENT + r")\s*(?::[^=;]*)?=>"
)
_NAMED_LIST = re.compile(
    r"\bexport\s+(?:type\s+)?\{(?P<body>[^}]*)\}(?!\s*from\b)"
)
_REEXPORT_STAR = re.compile(
    r"""\bexport\s+(?:type\s+)?\*\s*(?:as\s+(?P<alias>""" + _IDENT + r""")\s+)?"""
    r"""from\s*(['"])(?P<spec>[^'"\n]+)\2"""
)
_REEXPORT_NAMED = re.compile(
    r"""\bexport\s+(?:type\s+)?\{(?P<body>[^}]*)\}\s*from\s*(['"])(?P<spec>[^'"\n]+)\2"""
)
_LOCAL_DECLARATION = re.compile(
    r"\b(?P<kind>class|interface|enum|function|const|let|var|type|namespace)\s+"
    r"(?P<name>" + _IDENT + r")"
)
_JSDOC = re.compile(r"/\*\*(?P<body>.*?)\*/", re.DOTALL)
_EXPORT_FROM_COUNT = re.compile(
    r"\bexport\s+(?:type\s+)?(?:\*|\{[^}]+\})\s*(?:as\s+\w+\s+)?from\b"
)

_KIND_MAP: dict[str, ApiMemberKind] = {
    "class": "class",
    "interface": "interface",
    "enum": "enum",
    "function": "function",
    "const": "constant",
    "let": "variable",
    "var": "variable",
    "type": "type",
    "namespace": "namespace",
    "module": "namespace",
}


@dataclass(frozen=True)
class ReExport:
    """A re-export statement; ``names`` is None for ``export *``."""

    specifier: str
    names: tuple[tuple[str, str], ...] | None
    line: int


def map_member_kind(keyword: str) -> ApiMemberKind:
    """Map a declaration keyword to an API member kind.

    Examples:
        >>> map_member_kind("const enum")
        'enum'
        >>> map_member_kind("function *")
        'function'
    """
    keyword = " ".join(keyword.split())
    if keyword.endswith("enum"):
        return "enum"
    return _KIND_MAP.get(keyword.split()[0].rstrip("*"), "variable")


def _parse_specifier_list(body: str) -> list[tuple[str, str]]:
    """Parse ``a, b as c, type d`` into ``(local, exported)`` pairs."""
    pairs: list[tuple[str, str]] = []
    for raw in body.split(","):
        item = " ".join(raw.split())
        if item.startswith("type "):
            item = item[len("type ") :]
        if not item:
            continue
        local, _, exported = item.partition(" as ")
        local = local.strip()
        pairs.append((local, exported.strip() or local))
    return pairs


def _clean_jsdoc(body: str) -> str | None:
    lines = [line.strip().lstrip("*").strip() for line in body.splitlines()]
    text = " ".join(line for line in lines if line)
    return text or None


class _DocIndex:
    """Lookup of the JSDoc block directly preceding an offset."""

    def __init__(self, source: str) -> None:
        self._source = source
        blocks = [(m.end(), m.group("body")) for m in _JSDOC.finditer(source)]
        self._ends = [end for end, _ in blocks]
        self._bodies = [body for _, body in blocks]

    def before(self, offset: int) -> str | None:
        position = bisect.bisect_right(self._ends, offset) - 1
        if position < 0:
            return None
        end = self._ends[position]
        if self._source[end:offset].strip():
            return None
        return _clean_jsdoc(self._bodies[position])


def _location(code: str, offset: int) -> SourceLocation:
    return SourceLocation(line=line_of(code, offset), column=column_of(code, offset))


def extract_script_members(source: str, relative_path: str) -> list[ApiMember]:
    """Extract exported members declared by a script source.

    Re-exports from other modules are not members of this file; see
    ``extract_script_reexports``.
    """
    code = strip_comments(source)
    docs = _DocIndex(source)
    local_kinds: dict[str, ApiMemberKind] = {}
    for match in _LOCAL_DECLARATION.finditer(code):
        local_kinds.setdefault(match.group("name"), map_member_kind(match.group("kind")))

    members: dict[int, ApiMember] = {}

    for match in _DECLARATION.finditer(code):
        members[match.start()] = ApiMember(
            name=match.group("name"),
            kind=map_member_kind(match.group("kind")),
            is_exported=True,
            is_default=bool(match.group("default")),
            exposed_by=relative_path,
            location=_location(code, match.start()),
            description=docs.before(match.start()),
        )

    for match in _ANONYMOUS_DEFAULT.finditer(code):
        members.setdefault(
            match.start(),
            ApiMember(
                name="default",
                kind=map_member_kind(match.group("kind")),
                is_exported=True,
                is_default=True,
                exposed_by=relative_path,
                location=_location(code, match.start()),
                description=docs.before(match.start()),
            ),
        )

    for match in _DEFAULT_EXPRESSION.finditer(code):
        name = match.group("name") or "default"
        if match.group("name"):
            kind = local_kinds.get(name, "variable")
        elif match.group("async") or _ARROW_START.match(code, match.end()):
            kind = "function"
        else:
            kind = "variable"
        members.setdefault(
            match.start(),
            ApiMember(
                name=name,
                kind=kind,
                is_exported=True,
                is_default=True,
                exposed_by=relative_path,
                location=_location(code, match.start()),
                description=docs.before(match.start()),
            ),
        )

    for match in _NAMED_LIST.finditer(code):
        body = match.group("body")
        cursor = 0
        for local, exported in _parse_specifier_list(body):
            found = body.find(local, cursor)
            cursor = found + len(local) if found >= 0 else cursor
            offset = match.start("body") + max(found, 0)
            members.setdefault(
                offset,
                ApiMember(
                    name=exported,
                    kind=local_kinds.get(local, "variable"),
                    is_exported=True,
                    is_default=exported == "default",
                    exposed_by=relative_path,
                    location=_location(code, offset),
                ),
            )

    return [members[offset] for offset in sorted(members)]


def extract_script_reexports(source: str) -> list[ReExport]:
    """Collect ``export * from`` and ``export { a as b } from`` statements."""
    code = strip_comments(source)
    reexports: list[ReExport] = []

    for match in _REEXPORT_STAR.finditer(code):
        alias = match.group("alias")
        reexports.append(
            ReExport(
                specifier=match.group("spec"),
                names=(("*", alias),) if alias else None,
                line=line_of(code, match.start()),
            )
        )

    for match in _REEXPORT_NAMED.finditer(code):
        reexports.append(
            ReExport(
                specifier=match.group("spec"),
                names=tuple(_parse_specifier_list(match.group("body"))),
                line=line_of(code, match.start()),
            )
        )

    reexports.sort(key=lambda r: r.line)
    return reexports


def has_barrel_pattern(source: str) -> bool:
    """Return True when a module mostly re-exports other modules."""
    code = strip_comments(source)
    export_from_count = len(_EXPORT_FROM_COUNT.findall(code))
    implementation_lines = [
        line
        for line in code.splitlines()
        if line.strip()
        and not line.strip().startswith(("import", "export", "}", "*"))
    ]
    return export_from_count > 2 or (
        export_from_count > 0 and len(implementation_lines) < 5
    )


__all__ = [
    "ReExport",
    "extract_script_members",
    "extract_script_reexports",
    "has_barrel_pattern",
    "map_member_kind",
]
