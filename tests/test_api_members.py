from __future__ import annotations

from parse.js_exports import (
    ReExport,
    extract_script_members,
    extract_script_reexports,
    has_barrel_pattern,
)
from parse.treesitter_symbols import extract_api_members_treesitter

PYTHON_SOURCE = b'''"""Module docstring."""
from abc import ABC
from enum import Enum
from typing import Protocol, TypeAlias

MAX_RETRIES = 3
registry = {}
Payload: TypeAlias = dict


class Color(Enum):
    RED = 1


class Store(Protocol):
    """Storage interface.

    Second paragraph.
    """


class Base(ABC):
    pass


@decorator
def build(x):
    """Build   a thing."""
    return x


def _private():
    pass
'''


def test_python_members_kinds_and_docs() -> None:
    members = extract_api_members_treesitter(PYTHON_SOURCE, "pkg/mod.py")

    assert [(m.name, m.kind) for m in members] == [
        ("MAX_RETRIES", "constant"),
        ("registry", "variable"),
        ("Payload", "type"),
        ("Color", "enum"),
        ("Store", "interface"),
        ("Base", "interface"),
        ("build", "function"),
        ("_private", "function"),
    ]
    by_name = {m.name: m for m in members}
    assert by_name["Store"].description == "Storage interface. Second paragraph."
    assert by_name["build"].description == "Build a thing."
    assert by_name["MAX_RETRIES"].location.line == 6
    assert by_name["MAX_RETRIES"].location.column == 1
    assert by_name["build"].exposed_by == "pkg/mod.py"
    assert by_name["_private"].is_exported is False
    assert by_name["build"].is_exported is True


def test_python_dunder_all_limits_exports() -> None:
    members = extract_api_members_treesitter(
        b"def a():\n    pass\n\ndef b():\n    pass\n", "m.py", dunder_all=["b"]
    )

    assert {m.name: m.is_exported for m in members} == {"a": False, "b": True}


SCRIPT_SOURCE = """
import { dep } from "./dep";

/** Create a widget. @beta */
export function createWidget() {}
export const VERSION = "1";
export class Widget {}
export interface WidgetProps {}
export type WidgetId = string;
export enum Size { Small, Large }
export default class extends Widget {}
const internalHelper = () => dep;
export { internalHelper, internalHelper as helperAlias };
"""


def test_script_members() -> None:
    members = extract_script_members(SCRIPT_SOURCE, "web/widget.ts")

    assert [(m.name, m.kind, m.is_default) for m in members] == [
        ("createWidget", "function", False),
        ("VERSION", "constant", False),
        ("Widget", "class", False),
        ("WidgetProps", "interface", False),
        ("WidgetId", "type", False),
        ("Size", "enum", False),
        ("default", "class", True),
        ("internalHelper", "constant", False),
        ("helperAlias", "constant", False),
    ]
    assert members[0].description == "Create a widget. @beta"
    assert members[0].location.line == 5
    assert all(m.is_exported for m in members)


def test_default_expression_export() -> None:
    members = extract_script_members(
        "function App() {}\nexport default App;\n", "web/app.tsx"
    )

    assert [(m.name, m.kind, m.is_default) for m in members] == [
        ("App", "function", True)
    ]


def test_anonymous_default_functions() -> None:
    for source in (
        "export default async () => {};\n",
        "export default async function* () {}\n",
        "export default x => x;\n",
        "export default (a: number): number => a;\n",
    ):
        members = extract_script_members(source, "web/handler.ts")

        assert [(m.name, m.kind, m.is_default) for m in members] == [
            ("default", "function", True)
        ], source


def test_default_object_expression_is_a_variable() -> None:
    members = extract_script_members("export default { port: 80 };\n", "web/config.ts")

    assert [(m.name, m.kind, m.is_default) for m in members] == [
        ("default", "variable", True)
    ]


def test_script_reexports() -> None:
    source = (
        'export * from "./a";\n'
        'export * as ns from "./b";\n'
        'export { x, y as z } from "./c";\n'
    )

    assert extract_script_reexports(source) == [
        ReExport(specifier="./a", names=None, line=1),
        ReExport(specifier="./b", names=(("*", "ns"),), line=2),
        ReExport(specifier="./c", names=(("x", "x"), ("y", "z")), line=3),
    ]


def test_barrel_pattern() -> None:
    assert has_barrel_pattern('export * from "./a";\nexport { b } from "./b";\n')
    assert not has_barrel_pattern("export const a = 1;\nexport function b() {}\n")
    implementation = "\n".join(f"const v{i} = {i};" for i in range(6))
    assert not has_barrel_pattern(f'export * from "./a";\n{implementation}\n')
