"""AST-based import analysis for Python sources."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import TYPE_CHECKING

from parse.errors import ExtractionError, read_source

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True)
class PythonImport:
    """One imported module reference.

    ``level`` is 0 for absolute imports and the number of leading dots for
    relative ones. ``names`` holds the imported names of a from-import as
    ``(name, alias)`` pairs and is empty for plain ``import x``.
    """

    line: int
    module: str
    level: int = 0
    names: tuple[tuple[str, str], ...] = ()
    top_level: bool = False

    @property
    def is_from_import(self) -> bool:
        return bool(self.names)

    @property
    def is_star(self) -> bool:
        return any(name == "*" for name, _alias in self.names)


def _process_import_node(node: ast.Import, *, top_level: bool) -> list[PythonImport]:
    """Process a standard import node (import x)."""
    return [
        PythonImport(line=node.lineno, module=name.name, top_level=top_level)
        for name in node.names
    ]


def _process_import_from_node(
    node: ast.ImportFrom, *, top_level: bool
) -> PythonImport:
    """Process a from-import node (from x import y)."""
    return PythonImport(
        line=node.lineno,
        module=node.module or "",
        level=node.level,
        names=tuple((name.name, name.asname or name.name) for name in node.names),
        top_level=top_level,
    )


def parse_python_source(source: str, filename: str) -> ast.Module:
    try:
        return ast.parse(source, filename)
    except (SyntaxError, ValueError) as exc:
        msg = f"Cannot parse {filename}: {exc}"
        raise ExtractionError(msg) from exc


def collect_imports(tree: ast.Module) -> list[PythonImport]:
    """Collect every import statement of a parsed module in source order."""
    top_level_nodes = {id(node) for node in tree.body}
    imports: list[PythonImport] = []

    for node in ast.walk(tree):
        top_level = id(node) in top_level_nodes
        if isinstance(node, ast.Import):
            imports.extend(_process_import_node(node, top_level=top_level))
        elif isinstance(node, ast.ImportFrom):
            imports.append(_process_import_from_node(node, top_level=top_level))

    imports.sort(key=lambda imp: imp.line)
    return imports


def extract_imports(file_path: Path) -> list[PythonImport]:
    """Extract import statements from a Python file using AST.

    Args:
        file_path: Path to the Python file to analyze

    Returns:
        Imports in source order, including those nested in functions or
        conditional blocks.

    Raises:
        ExtractionError: If the file cannot be read, decoded or parsed.
    """
    source = read_source(file_path)
    return collect_imports(parse_python_source(source, str(file_path)))


def collect_dunder_all(tree: ast.Module) -> list[str] | None:
    """Return the literal ``__all__`` of a module, or None when absent.

    Only list and tuple literals (including ``+=`` extensions) are understood.
    """
    names: list[str] | None = None
    for node in tree.body:
        value: ast.expr | None = None
        if isinstance(node, ast.Assign) and any(
            isinstance(target, ast.Name) and target.id == "__all__"
            for target in node.targets
        ):
            value = node.value
            names = []
        elif (
            isinstance(node, ast.AnnAssign)
            and isinstance(node.target, ast.Name)
            and node.target.id == "__all__"
        ):
            value = node.value
            names = []
        elif (
            isinstance(node, ast.AugAssign)
            and isinstance(node.target, ast.Name)
            and node.target.id == "__all__"
        ):
            value = node.value
            if names is None:
                names = []

        if value is None or names is None:
            continue
        if isinstance(value, (ast.List, ast.Tuple)):
            names.extend(
                element.value
                for element in value.elts
                if isinstance(element, ast.Constant) and isinstance(element.value, str)
            )
    return names


__all__ = [
    "PythonImport",
    "collect_dunder_all",
    "collect_imports",
    "extract_imports",
    "parse_python_source",
]
