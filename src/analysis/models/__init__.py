"""Model namespace for archmap analysis records."""

from analysis.models.api_surface import (
    ApiMember,
    ApiSurfaceResult,
    EncapsulationIssue,
    SourceLocation,
)
from analysis.models.dependencies import (
    ArchitectureAnalysisResult,
    ArchitectureSummary,
    CircularDependency,
    ModuleCoupling,
    ModuleDependency,
)
from analysis.models.visualization import (
    DependencyLink,
    DependencyNode,
    NodeMetrics,
    VisualizationData,
)

__all__ = [
    "ApiMember",
    "ApiSurfaceResult",
    "ArchitectureAnalysisResult",
    "ArchitectureSummary",
    "CircularDependency",
    "DependencyLink",
    "DependencyNode",
    "EncapsulationIssue",
    "ModuleCoupling",
    "ModuleDependency",
    "NodeMetrics",
    "SourceLocation",
    "VisualizationData",
]
