"""Generators that render analysis results."""

from analysis.generators.api_surface import ApiSurfaceGenerator
from analysis.generators.visualization import VisualizationGenerator

__all__ = [
    "ApiSurfaceGenerator",
    "VisualizationGenerator",
]
