from __future__ import annotations

from typing import TYPE_CHECKING

from analysis.utils import _write_json, _write_text

if TYPE_CHECKING:
    from pathlib import Path

    from analysis.models.dependencies import (
        ArchitectureAnalysisResult,
        ArchitectureSummary,
    )

ARCHITECTURE_JSON = "architecture.json"
SUMMARY_JSON = "summary.json"
RAW_GRAPH_FILENAMES = {"mermaid": "graph.mmd", "dot": "graph.dot"}


def write_analysis(
    result: ArchitectureAnalysisResult,
    summary: ArchitectureSummary,
    out_dir: Path,
) -> list[Path]:
    """Write an analysis result to ``out_dir``.

    Args:
        result: Full analysis result
        summary: Summary of the same run
        out_dir: Output directory, created when missing

    Returns:
        Paths of the written files. A text graph file is written only for
        the mermaid and dot formats.
    """
    out_dir.mkdir(parents=True, exist_ok=True)

    written = [out_dir / ARCHITECTURE_JSON, out_dir / SUMMARY_JSON]
    _write_json(written[0], result)
    _write_json(written[1], summary)

    visualization = result.visualization
    if visualization is not None and visualization.raw_graph is not None:
        filename = RAW_GRAPH_FILENAMES.get(visualization.format)
        if filename is not None:
            graph_path = out_dir / filename
            _write_text(graph_path, visualization.raw_graph)
            written.append(graph_path)

    return written


__all__ = ["ARCHITECTURE_JSON", "SUMMARY_JSON", "write_analysis"]
