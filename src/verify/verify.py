"""Idempotence verification for archmap analyses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from analysis import analyze_architecture
from analysis.utils import dumps_json

if TYPE_CHECKING:
    from pathlib import Path

    from analysis.models.dependencies import ArchitectureAnalysisResult
    from rules.config import AnalyzerConfig


@dataclass(frozen=True)
class DeterminismResult:
    ok: bool
    mismatches: tuple[str, ...] = field(default_factory=tuple)


def _cycle_set(result: ArchitectureAnalysisResult) -> set[tuple[str, ...]]:
    return {tuple(cycle.path) for cycle in result.circular_dependencies}


def compare_results(
    first: ArchitectureAnalysisResult, second: ArchitectureAnalysisResult
) -> list[str]:
    """Return the names of the fields on which two runs disagree."""
    mismatches: list[str] = []
    if first.module_count != second.module_count:
        mismatches.append(
            f"module_count: {first.module_count} != {second.module_count}"
        )
    if first.dependency_count != second.dependency_count:
        mismatches.append(
            f"dependency_count: {first.dependency_count} != {second.dependency_count}"
        )
    if _cycle_set(first) != _cycle_set(second):
        mismatches.append("circular_dependencies")
    if first.coupling_metrics != second.coupling_metrics:
        mismatches.append("coupling_metrics")
    if dumps_json(first.visualization) != dumps_json(second.visualization):
        mismatches.append("visualization")
    return mismatches


def verify_determinism(
    *, root: Path, config: AnalyzerConfig | None = None
) -> DeterminismResult:
    """Verify that analyzing an unchanged tree twice gives equal results.

    Args:
        root: Repository root to analyze.
        config: Analysis configuration shared by both runs.

    Returns:
        DeterminismResult with ok status and the mismatching fields.

    Raises:
        NotFoundError: If root does not exist or is not a directory.
    """
    first, _ = analyze_architecture(root, config)
    second, _ = analyze_architecture(root, config)

    mismatches = compare_results(first, second)
    return DeterminismResult(ok=not mismatches, mismatches=tuple(mismatches))
