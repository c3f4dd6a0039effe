from __future__ import annotations

import shutil
from pathlib import Path

import orjson
import pytest

from cli import main


def _write_minimal_repo(root: Path) -> None:
    (root / "pkg").mkdir(parents=True, exist_ok=True)
    (root / "pkg" / "__init__.py").write_text("", encoding="utf-8")
    (root / "pkg" / "module.py").write_text(
        '"""Minimal module."""\n\nfrom pkg import helpers\n',
        encoding="utf-8",
    )
    (root / "pkg" / "helpers.py").write_text("VALUE = 1\n", encoding="utf-8")


def _copy_mini_repo_fixture(root: Path) -> None:
    fixture_repo = Path(__file__).parent / "fixtures" / "mini_repo"
    shutil.copytree(fixture_repo, root)


def test_cli_analyze_prints_summary(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write_minimal_repo(repo_root)

    exit_code = main(["analyze", str(repo_root)])

    assert exit_code == 0
    summary = orjson.loads(capsys.readouterr().out)
    assert summary["module_count"] == 3
    assert summary["dependency_count"] == 2
    assert summary["circular_dependency_count"] == 0


def test_cli_analyze_out_dir_from_fixture(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _copy_mini_repo_fixture(repo_root)

    out_dir = tmp_path / "report"
    exit_code = main(
        [
            "analyze",
            str(repo_root),
            "--format",
            "mermaid",
            "--api-surface",
            "--out-dir",
            str(out_dir),
        ]
    )

    assert exit_code == 0
    assert sorted(path.name for path in out_dir.iterdir()) == [
        "architecture.json",
        "graph.mmd",
        "summary.json",
    ]
    architecture = orjson.loads((out_dir / "architecture.json").read_bytes())
    assert architecture["module_count"] == 8
    assert architecture["api_surface"]["entry_points"] == [
        "pkg_a/__init__.py",
        "web/index.ts",
    ]
    graph_text = (out_dir / "graph.mmd").read_text(encoding="utf-8")
    assert graph_text.startswith("flowchart TD\n")
    assert "linkStyle" in graph_text


def test_cli_analyze_dot_and_directory_depth(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _copy_mini_repo_fixture(repo_root)

    out_dir = tmp_path / "report"
    exit_code = main(
        [
            "analyze",
            str(repo_root),
            "--format",
            "dot",
            "--depth",
            "directory",
            "--out-dir",
            str(out_dir),
        ]
    )

    assert exit_code == 0
    graph_text = (out_dir / "graph.dot").read_text(encoding="utf-8")
    assert graph_text.startswith("digraph dependencies {")


def test_cli_unsupported_format_warns_once(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    caplog: pytest.LogCaptureFixture,
) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write_minimal_repo(repo_root)

    exit_code = main(["analyze", str(repo_root), "--format", "svg"])

    assert exit_code == 0
    assert caplog.text.count("Visualization generation failed") == 1
    assert "warning:" not in capsys.readouterr().err


def test_cli_missing_root_exits_2(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(["analyze", str(tmp_path / "missing")])

    assert exit_code == 2
    assert "error: Repository path does not exist" in capsys.readouterr().err


def test_cli_invalid_config_exits_2(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write_minimal_repo(repo_root)
    (repo_root / "archmap.toml").write_text("bogus = 1\n", encoding="utf-8")

    exit_code = main(["analyze", str(repo_root)])

    assert exit_code == 2
    assert "Invalid config" in capsys.readouterr().err


def test_cli_verify_passes(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _copy_mini_repo_fixture(repo_root)

    assert main(["verify", str(repo_root)]) == 0


def test_cli_verify_default_root(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write_minimal_repo(repo_root)

    monkeypatch.chdir(repo_root)

    assert main(["verify"]) == 0


def test_cli_verify_missing_root_exits_2(tmp_path: Path) -> None:
    assert main(["verify", str(tmp_path / "missing")]) == 2
