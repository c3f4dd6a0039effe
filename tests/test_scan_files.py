from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from scan.files import NotFoundError, _build_gitignore_matcher, find_source_files

if TYPE_CHECKING:
    from pathlib import Path


def _touch(root: Path, rel_path: str, content: str = "") -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _relative(root: Path, **kwargs: object) -> list[str]:
    return [
        path.relative_to(root.resolve()).as_posix()
        for path in find_source_files(root, **kwargs)  # type: ignore[arg-type]
    ]


def test_missing_root_raises_not_found(tmp_path: Path) -> None:
    with pytest.raises(NotFoundError, match="does not exist"):
        find_source_files(tmp_path / "missing")


def test_file_root_raises_not_found(tmp_path: Path) -> None:
    _touch(tmp_path, "single.py")

    with pytest.raises(NotFoundError, match="not a directory"):
        find_source_files(tmp_path / "single.py")


def test_not_found_is_a_file_not_found_error() -> None:
    assert issubclass(NotFoundError, FileNotFoundError)


def test_supported_sources_sorted(tmp_path: Path) -> None:
    for rel_path in ("b.py", "a.ts", "src/c.jsx", "README.md", "data.json"):
        _touch(tmp_path, rel_path)

    assert _relative(tmp_path) == ["a.ts", "b.py", "src/c.jsx"]


def test_other_language_sources_are_selected(tmp_path: Path) -> None:
    for rel_path in (
        "cmd/main.go",
        "cmd/main_test.go",
        "src/lib.rs",
        "app/Main.java",
        "lib/tool.rb",
        "spec/tool_spec.rb",
        "native/io.h",
        "native/io.cpp",
        "web/index.php",
        "Sources/App.swift",
        "Build.cs",
        "notes.txt",
    ):
        _touch(tmp_path, rel_path)

    assert _relative(tmp_path) == [
        "Build.cs",
        "Sources/App.swift",
        "app/Main.java",
        "cmd/main.go",
        "lib/tool.rb",
        "native/io.cpp",
        "native/io.h",
        "src/lib.rs",
        "web/index.php",
    ]


def test_default_exclusions_and_hidden_files(tmp_path: Path) -> None:
    for rel_path in (
        "app.py",
        "node_modules/lib/index.js",
        "dist/bundle.js",
        ".venv/site.py",
        "pkg.egg-info/setup.py",
        ".hidden/secret.py",
        ".config.js",
    ):
        _touch(tmp_path, rel_path)

    assert _relative(tmp_path) == ["app.py"]
    assert _relative(tmp_path, include_hidden=True) == [
        ".config.js",
        ".hidden/secret.py",
        "app.py",
    ]


def test_test_files_follow_flag(tmp_path: Path) -> None:
    for rel_path in (
        "app.py",
        "tests/test_app.py",
        "test_utils.py",
        "web/button.test.ts",
        "web/button.ts",
    ):
        _touch(tmp_path, rel_path)

    assert _relative(tmp_path) == ["app.py", "web/button.ts"]
    assert _relative(tmp_path, exclude_tests=False) == [
        "app.py",
        "test_utils.py",
        "tests/test_app.py",
        "web/button.test.ts",
        "web/button.ts",
    ]


def test_include_and_exclude_globs(tmp_path: Path) -> None:
    for rel_path in ("main.py", "pkg/core.py", "pkg/gen/schema.py", "web/app.ts"):
        _touch(tmp_path, rel_path)

    assert _relative(tmp_path, include_patterns=["**/*.py"]) == [
        "main.py",
        "pkg/core.py",
        "pkg/gen/schema.py",
    ]
    assert _relative(tmp_path, exclude_patterns=["pkg/gen/*"]) == [
        "main.py",
        "pkg/core.py",
        "web/app.ts",
    ]


def test_gitignore_is_respected(tmp_path: Path) -> None:
    _touch(tmp_path, ".gitignore", "*_pb2.py\n")
    _touch(tmp_path, "app.py")
    _touch(tmp_path, "schema_pb2.py")

    assert _relative(tmp_path) == ["app.py"]
    assert _relative(tmp_path, respect_gitignore=False) == [
        "app.py",
        "schema_pb2.py",
    ]


def test_large_files_are_skipped_with_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    _touch(tmp_path, "small.py", "x = 1\n")
    _touch(tmp_path, "large.py", "x = 1\n" * 100)

    with caplog.at_level("WARNING", logger="scan.files"):
        assert _relative(tmp_path, max_file_size=50) == ["small.py"]

    assert "Skipping large file" in caplog.text


def test_empty_directory_yields_nothing(tmp_path: Path) -> None:
    assert find_source_files(tmp_path) == []


@pytest.mark.skipif(
    os.name == "nt",
    reason="Symlink semantics vary on Windows test runners.",
)
def test_symlinked_directories_outside_the_root_are_skipped(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _touch(repo_root, "pkg/module.py")
    _touch(repo_root, "web/app.ts", 'import { leak } from "../linked/leak";\n')

    external_root = tmp_path / "external"
    _touch(external_root, "leak.ts", "export const leak = 1;\n")
    _touch(external_root, "leak.py")
    (repo_root / "linked").symlink_to(external_root, target_is_directory=True)

    assert _relative(repo_root) == ["pkg/module.py", "web/app.ts"]


@pytest.mark.skipif(
    os.name == "nt",
    reason="Symlink semantics vary on Windows test runners.",
)
def test_symlinked_source_file_is_skipped(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _touch(repo_root, "main.go", "package main\n")
    _touch(tmp_path, "shared/util.go", "package shared\n")
    (repo_root / "util.go").symlink_to(tmp_path / "shared" / "util.go")

    assert _relative(repo_root) == ["main.go"]


@pytest.mark.skipif(
    os.name == "nt",
    reason="Symlink semantics vary on Windows test runners.",
)
def test_nested_gitignore_ignores_symlinked_rules(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _touch(repo_root, "web/app.ts")
    _touch(repo_root, ".gitignore", "*.map\n")
    _touch(tmp_path, "external/outside.gitignore", "web/app.ts\n")
    (repo_root / "web" / ".gitignore").symlink_to(
        tmp_path / "external" / "outside.gitignore"
    )

    matcher = _build_gitignore_matcher(repo_root, nested_gitignore=True)

    assert matcher is not None
    assert matcher(str(repo_root / "web" / "app.ts")) is False
    assert _relative(repo_root, nested_gitignore=True) == ["web/app.ts"]
