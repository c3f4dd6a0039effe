"""Architecture analysis entry points."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from analysis.models.dependencies import (
        ArchitectureAnalysisResult,
        ArchitectureSummary,
    )
    from rules.config import AnalyzerConfig


def analyze_architecture(
    root: Path,
    config: AnalyzerConfig | None = None,
) -> tuple[ArchitectureAnalysisResult, ArchitectureSummary]:
    """Run an analysis to completion via lazy import to avoid package import cycles."""
    from analysis.engine import ArchitectureAnalyzer

    return asyncio.run(ArchitectureAnalyzer(root, config).analyze())


__all__ = ["analyze_architecture"]
