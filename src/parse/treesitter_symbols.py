"""Tree-sitter based API member extraction for Python sources."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING

from tree_sitter import Language, Node, Parser
from tree_sitter_python import language as get_python_language

from analysis.models.api_surface import ApiMember, ApiMemberKind, SourceLocation

if TYPE_CHECKING:
    from collections.abc import Collection

_PARSER: Parser | None = None

ENUM_BASES = frozenset({"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"})
INTERFACE_BASES = frozenset({"Protocol", "ABC"})
TYPE_BASES = frozenset({"TypedDict", "NamedTuple"})
_STRING_PREFIX_CHARS = "rRbBuUfF"


def _get_parser() -> Parser:
    """Initialize and return the Tree-sitter parser with Python language."""
    global _PARSER
    if _PARSER is None:
        lang = Language(get_python_language())
        _PARSER = Parser(lang)

    return _PARSER


def _text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf8")


def _string_literal_value(node: Node) -> str:
    raw = _text(node).lstrip(_STRING_PREFIX_CHARS)
    for quote in ('"""', "'''", '"', "'"):
        if raw.startswith(quote) and raw.endswith(quote) and len(raw) >= 2 * len(quote):
            return raw[len(quote) : -len(quote)]
    return raw


def _docstring(node: Node) -> str | None:
    """Return the cleaned docstring of a function or class definition."""
    body = node.child_by_field_name("body")
    if body is None:
        return None

    for child in body.children:
        if child.type == "expression_statement":
            if child.child_count > 0 and child.children[0].type == "string":
                text = inspect.cleandoc(_string_literal_value(child.children[0]))
                return " ".join(text.split()) or None
            break
        if child.is_named and child.type not in ("comment",):
            break

    return None


def _extract_base_classes(node: Node) -> list[str]:
    """Return the trailing names of a class's bases (``abc.ABC`` -> ``ABC``)."""
    superclasses = node.child_by_field_name("superclasses")
    if superclasses is None:
        return []

    bases: list[str] = []
    for child in superclasses.children:
        if child.type in ("identifier", "attribute"):
            bases.append(_text(child).rsplit(".", 1)[-1])
        elif child.type == "subscript":
            # e.g. Generic[T] or Protocol[T]
            bases.append(_text(child.child_by_field_name("value")).rsplit(".", 1)[-1])
        elif child.type == "keyword_argument":
            # metaclass=ABCMeta marks an abstract interface
            if _text(child.child_by_field_name("name")) == "metaclass":
                value = _text(child.child_by_field_name("value")).rsplit(".", 1)[-1]
                if value == "ABCMeta":
                    bases.append("ABC")
    return bases


def _class_kind(node: Node) -> ApiMemberKind:
    bases = set(_extract_base_classes(node))
    if bases & ENUM_BASES:
        return "enum"
    if bases & INTERFACE_BASES:
        return "interface"
    if bases & TYPE_BASES:
        return "type"
    return "class"


def _assignment_kind(name: str, assignment: Node) -> ApiMemberKind:
    annotation = _text(assignment.child_by_field_name("type"))
    if annotation.rsplit(".", 1)[-1] == "TypeAlias":
        return "type"
    if name.isupper():
        return "constant"
    return "variable"


def _is_exported(name: str, dunder_all: Collection[str] | None) -> bool:
    if dunder_all is not None:
        return name in dunder_all
    return not name.startswith("_")


def _member(
    node: Node,
    name: str,
    kind: ApiMemberKind,
    relative_path: str,
    dunder_all: Collection[str] | None,
    description: str | None = None,
) -> ApiMember:
    return ApiMember(
        name=name,
        kind=kind,
        is_exported=_is_exported(name, dunder_all),
        exposed_by=relative_path,
        location=SourceLocation(
            line=node.start_point[0] + 1, column=node.start_point[1] + 1
        ),
        description=description,
    )


def _members_from_statement(
    node: Node,
    relative_path: str,
    dunder_all: Collection[str] | None,
) -> list[ApiMember]:
    """Collect members declared by one module-level statement."""
    if node.type == "decorated_definition":
        definition = node.child_by_field_name("definition")
        return (
            _members_from_statement(definition, relative_path, dunder_all)
            if definition is not None
            else []
        )

    if node.type in ("class_definition", "function_definition"):
        name = _text(node.child_by_field_name("name"))
        if not name:
            return []
        kind: ApiMemberKind = (
            _class_kind(node) if node.type == "class_definition" else "function"
        )
        return [
            _member(node, name, kind, relative_path, dunder_all, _docstring(node))
        ]

    if node.type == "type_alias_statement":
        named = [child for child in node.children if child.is_named]
        if not named:
            return []
        name = _text(named[0]).split("[", 1)[0].strip()
        return [_member(node, name, "type", relative_path, dunder_all)] if name else []

    if node.type == "expression_statement":
        members: list[ApiMember] = []
        for child in node.children:
            if child.type != "assignment":
                continue
            left = child.child_by_field_name("left")
            if left is None or left.type != "identifier":
                continue
            name = _text(left)
            if name == "__all__":
                continue
            members.append(
                _member(
                    left,
                    name,
                    _assignment_kind(name, child),
                    relative_path,
                    dunder_all,
                )
            )
        return members

    return []


def extract_api_members_treesitter(
    source_bytes: bytes,
    relative_path: str,
    dunder_all: Collection[str] | None = None,
) -> list[ApiMember]:
    """Extract module-level API members from Python source using Tree-sitter.

    Args:
        source_bytes: Raw file contents
        relative_path: Path relative to repo root (for output)
        dunder_all: The module's ``__all__`` when it declares one; members
            are then exported only when listed

    Returns:
        Members in source order. Names bound only by imports are not members
        of the importing file.
    """
    parser = _get_parser()
    tree = parser.parse(source_bytes)

    members: list[ApiMember] = []
    for child in tree.root_node.children:
        members.extend(_members_from_statement(child, relative_path, dunder_all))
    return members


__all__ = ["extract_api_members_treesitter"]
