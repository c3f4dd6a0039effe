from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from parse.ast_imports import (
    PythonImport,
    collect_dunder_all,
    collect_imports,
    extract_imports,
    parse_python_source,
)
from parse.errors import ExtractionError
from parse.extract import extract_dependencies
from parse.resolution import DependencyResolver

if TYPE_CHECKING:
    from pathlib import Path


def _write(root: Path, rel_path: str, content: str = "") -> Path:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _targets(root: Path, rel_path: str, **resolver_kwargs: object) -> list[str]:
    resolver = DependencyResolver(root, **resolver_kwargs)  # type: ignore[arg-type]
    return [
        dep.target if not dep.is_external else f"external:{dep.target}"
        for dep in extract_dependencies(root / rel_path, root, resolver)
    ]


def test_collect_imports_marks_top_level() -> None:
    tree = parse_python_source(
        "import os\n"
        "from .core import Greeter as G, run\n"
        "def f():\n"
        "    from ..lib import *\n",
        "mod.py",
    )

    imports = collect_imports(tree)

    assert imports == [
        PythonImport(line=1, module="os", top_level=True),
        PythonImport(
            line=2,
            module="core",
            level=1,
            names=(("Greeter", "G"), ("run", "run")),
            top_level=True,
        ),
        PythonImport(line=4, module="lib", level=2, names=(("*", "*"),)),
    ]
    assert imports[2].is_star
    assert not imports[0].is_from_import


def test_syntax_error_raises_extraction_error(tmp_path: Path) -> None:
    path = _write(tmp_path, "broken.py", "def broken(:\n")

    with pytest.raises(ExtractionError, match="Cannot parse"):
        extract_imports(path)


def test_undecodable_file_raises_extraction_error(tmp_path: Path) -> None:
    path = tmp_path / "binary.py"
    path.write_bytes(b"\xff\xfe\x00import os")

    with pytest.raises(ExtractionError, match="Cannot read"):
        extract_imports(path)


def test_dunder_all_literals() -> None:
    tree = parse_python_source(
        '__all__ = ["a", "b"]\n__all__ += ("c",)\n', "mod.py"
    )

    assert collect_dunder_all(tree) == ["a", "b", "c"]
    assert collect_dunder_all(parse_python_source("x = 1\n", "mod.py")) is None


def test_absolute_imports_resolve_inside_repo(tmp_path: Path) -> None:
    _write(tmp_path, "pkg/__init__.py")
    _write(tmp_path, "pkg/core.py")
    _write(
        tmp_path,
        "app.py",
        "import os\nimport requests.adapters\nfrom pkg.core import thing\n",
    )

    assert _targets(tmp_path, "app.py") == [
        "external:os",
        "external:requests",
        "pkg/core.py",
    ]


def test_src_layout_is_a_source_root(tmp_path: Path) -> None:
    _write(tmp_path, "src/pkg/__init__.py")
    _write(tmp_path, "src/pkg/core.py")
    _write(tmp_path, "src/pkg/app.py", "from pkg import core\n")

    targets = _targets(tmp_path, "src/pkg/app.py", source_roots=[".", "src"])

    assert targets == ["src/pkg/core.py", "src/pkg/__init__.py"]


def test_alias_resolution_disabled_marks_everything_external(tmp_path: Path) -> None:
    _write(tmp_path, "pkg/__init__.py")
    _write(tmp_path, "pkg/core.py")
    _write(tmp_path, "app.py", "from pkg.core import thing\n")

    assert _targets(tmp_path, "app.py", resolve_aliases=False) == ["external:pkg"]


def test_relative_imports(tmp_path: Path) -> None:
    _write(tmp_path, "pkg/__init__.py")
    _write(tmp_path, "pkg/core.py")
    _write(tmp_path, "pkg/sub/__init__.py")
    _write(tmp_path, "pkg/sub/leaf.py", "from .. import core\nfrom ..sub import leaf\n")

    assert _targets(tmp_path, "pkg/sub/leaf.py") == [
        "pkg/core.py",
        "pkg/sub/__init__.py",
        "pkg/sub/leaf.py",
    ]


def test_relative_import_beyond_root_is_ignored(tmp_path: Path) -> None:
    _write(tmp_path, "app.py", "from ... import nothing\n")

    assert _targets(tmp_path, "app.py") == []


def test_future_imports_are_ignored(tmp_path: Path) -> None:
    _write(tmp_path, "app.py", "from __future__ import annotations\n")

    assert _targets(tmp_path, "app.py") == []


def test_unsupported_suffix_raises(tmp_path: Path) -> None:
    _write(tmp_path, "notes.txt", "import os\n")

    with pytest.raises(ExtractionError, match="Unsupported source type"):
        _targets(tmp_path, "notes.txt")
