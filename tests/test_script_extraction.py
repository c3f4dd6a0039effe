from __future__ import annotations

from typing import TYPE_CHECKING

from parse.extract import extract_dependencies
from parse.js_imports import collect_script_imports, strip_comments
from parse.resolution import DependencyResolver, package_name

if TYPE_CHECKING:
    from pathlib import Path


def _write(root: Path, rel_path: str, content: str = "") -> Path:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_collect_every_import_form() -> None:
    source = """
import React from "react";
import { a, b } from './a';
import type { T } from "./types";
import "./styles.css";
export * from "./reexported";
export { c as d } from "./c";
const fs = require("fs");
const lazy = await import("./lazy");
"""

    imports = collect_script_imports(source)

    assert [(imp.specifier, imp.kind) for imp in imports] == [
        ("react", "import"),
        ("./a", "import"),
        ("./types", "import"),
        ("./styles.css", "side_effect"),
        ("./reexported", "export_from"),
        ("./c", "export_from"),
        ("fs", "require"),
        ("./lazy", "dynamic"),
    ]
    assert imports[0].line == 2


def test_commented_imports_are_ignored() -> None:
    source = """
// import { gone } from "./gone";
/* import { alsoGone } from "./also-gone"; */
const url = "http://example.com"; // keeps strings intact
import { kept } from "./kept";
"""

    assert [imp.specifier for imp in collect_script_imports(source)] == ["./kept"]


def test_jsx_apostrophe_does_not_hide_comments() -> None:
    source = "const A = () => <p>Don't</p>;\n// import old from './old'\n"

    assert collect_script_imports(source) == []


def test_template_literals_may_span_lines() -> None:
    source = (
        "const text = `first\n// still text\n`;\n"
        "// import gone from './gone'\n"
        'import { kept } from "./kept";\n'
    )

    stripped = strip_comments(source)

    assert "// still text" in stripped
    assert [imp.specifier for imp in collect_script_imports(source)] == ["./kept"]


def test_strip_comments_preserves_offsets() -> None:
    source = "a /* one\ntwo */ b // tail\nc"

    stripped = strip_comments(source)

    assert len(stripped) == len(source)
    assert stripped.count("\n") == source.count("\n")
    assert stripped.split() == ["a", "b", "c"]


def test_package_name() -> None:
    assert package_name("lodash/fp") == "lodash"
    assert package_name("@scope/pkg/deep") == "@scope/pkg"
    assert package_name("node:path") == "path"


def test_relative_specifiers_resolve_to_files(tmp_path: Path) -> None:
    _write(tmp_path, "src/app.ts", 'import { x } from "./lib";\nimport y from "./ui";\n')
    _write(tmp_path, "src/lib.ts")
    _write(tmp_path, "src/ui/index.tsx")

    deps = extract_dependencies(
        tmp_path / "src/app.ts", tmp_path, DependencyResolver(tmp_path)
    )

    assert [dep.target for dep in deps] == ["src/lib.ts", "src/ui/index.tsx"]
    assert not any(dep.is_external for dep in deps)


def test_bare_specifiers_are_external(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "app.js",
        'const React = require("react");\nimport merge from "lodash/merge";\n',
    )

    deps = extract_dependencies(tmp_path / "app.js", tmp_path, DependencyResolver(tmp_path))

    assert [(dep.target, dep.is_external) for dep in deps] == [
        ("react", True),
        ("lodash", True),
    ]


def test_configured_aliases_resolve_inside_repo(tmp_path: Path) -> None:
    _write(tmp_path, "src/app.ts", 'import { x } from "@/lib/util";\n')
    _write(tmp_path, "src/lib/util.ts")

    resolver = DependencyResolver(tmp_path, aliases={"@/": "src/"})
    deps = extract_dependencies(tmp_path / "src/app.ts", tmp_path, resolver)

    assert [(dep.target, dep.is_external) for dep in deps] == [
        ("src/lib/util.ts", False)
    ]


def test_tsconfig_paths_resolve_inside_repo(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "tsconfig.json",
        """{
  // comments and trailing commas are allowed
  "compilerOptions": {
    "baseUrl": ".",
    "paths": {"~components/*": ["src/components/*"],},
  },
}
""",
    )
    _write(tmp_path, "src/app.ts", 'import Button from "~components/button";\n')
    _write(tmp_path, "src/components/button.tsx")

    deps = extract_dependencies(tmp_path / "src/app.ts", tmp_path, DependencyResolver(tmp_path))

    assert [dep.target for dep in deps] == ["src/components/button.tsx"]


def test_each_statement_yields_one_dependency(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "a.ts",
        'import { x } from "./b";\nexport { y } from "./b";\n',
    )
    _write(tmp_path, "b.ts")

    deps = extract_dependencies(tmp_path / "a.ts", tmp_path, DependencyResolver(tmp_path))

    assert [dep.target for dep in deps] == ["b.ts", "b.ts"]


def test_specifiers_escaping_the_root_are_dropped(tmp_path: Path) -> None:
    _write(tmp_path, "a.ts", 'import { x } from "../outside";\n')

    deps = extract_dependencies(tmp_path / "a.ts", tmp_path, DependencyResolver(tmp_path))

    assert deps == []
