"""Dependency models for module relationships.

This module contains the records produced by dependency extraction and the
graph-level results: cycles, coupling metrics and the analysis summary.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from analysis.models.api_surface import ApiSurfaceResult  # noqa: TC001
from analysis.models.visualization import VisualizationData  # noqa: TC001


class ModuleDependency(BaseModel):
    """A single normalized dependency target extracted from a source file."""

    model_config = ConfigDict(frozen=True)

    target: str
    is_external: bool = False
    raw: str = ""

    @field_validator("target")
    @classmethod
    def validate_target(cls, v: str) -> str:
        if not v:
            msg = "dependency target must not be empty"
            raise ValueError(msg)
        if "\\" in v:
            msg = f"dependency target must use forward slashes: {v!r}"
            raise ValueError(msg)
        if v.startswith(("/", "./")):
            msg = f"dependency target must be root-relative: {v!r}"
            raise ValueError(msg)
        if v == ".." or v.startswith("../"):
            msg = f"dependency target escapes the repository root: {v!r}"
            raise ValueError(msg)
        return v


class CircularDependency(BaseModel):
    """A closed dependency chain; the last module depends on the first."""

    path: list[str]


class ModuleCoupling(BaseModel):
    """Coupling metrics for a single module."""

    module: str
    afferent_coupling: int = Field(ge=0, description="Incoming dependencies")
    efferent_coupling: int = Field(ge=0, description="Outgoing dependencies")
    instability: float = Field(ge=0.0, le=1.0)


class ArchitectureAnalysisResult(BaseModel):
    """Full result of an architecture analysis run."""

    module_count: int
    dependency_count: int
    circular_dependencies: list[CircularDependency] = Field(default_factory=list)
    coupling_metrics: list[ModuleCoupling] = Field(default_factory=list)
    visualization: VisualizationData | None = None
    api_surface: ApiSurfaceResult | None = None
    warnings: list[str] = Field(default_factory=list)


class ArchitectureSummary(BaseModel):
    """Lightweight summary of an analysis run for dashboards."""

    module_count: int = 0
    dependency_count: int = 0
    circular_dependency_count: int = 0
    average_instability: float = 0.0
    max_afferent_coupling: int = 0
    max_efferent_coupling: int = 0


__all__ = [
    "ArchitectureAnalysisResult",
    "ArchitectureSummary",
    "CircularDependency",
    "ModuleCoupling",
    "ModuleDependency",
]
