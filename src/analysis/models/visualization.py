"""Visualization payload models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

NodeType = Literal["file", "directory", "external"]


class NodeMetrics(BaseModel):
    afferent_coupling: int
    efferent_coupling: int
    instability: float


class DependencyNode(BaseModel):
    """A graph node prepared for rendering."""

    id: str
    label: str
    type: NodeType
    group: str
    size: float = Field(description="Grows with total coupling")
    metrics: NodeMetrics | None = None


class DependencyLink(BaseModel):
    """A graph edge prepared for rendering."""

    source: str
    target: str
    is_circular: bool = False
    weight: int = 1


class VisualizationData(BaseModel):
    """Rendered dependency graph in one of the supported formats."""

    format: str
    nodes: list[DependencyNode] = Field(default_factory=list)
    links: list[DependencyLink] = Field(default_factory=list)
    raw_graph: str | None = Field(
        default=None,
        description="Diagram source for the mermaid and dot formats",
    )


__all__ = [
    "DependencyLink",
    "DependencyNode",
    "NodeMetrics",
    "NodeType",
    "VisualizationData",
]
