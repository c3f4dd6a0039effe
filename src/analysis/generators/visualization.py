"""Dependency graph visualization generator."""

from __future__ import annotations

import math
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from analysis.models.visualization import (
    DependencyLink,
    DependencyNode,
    NodeMetrics,
    NodeType,
    VisualizationData,
)
from rules.config import SUPPORTED_VISUALIZATION_FORMATS
from utils import is_external, top_level_group

if TYPE_CHECKING:
    from analysis.models.dependencies import ModuleCoupling
    from graph.algos import DependencyGraph

UNSTABLE_FILL = "#ff9966"
STABLE_FILL = "#f0f0f0"


class UnsupportedFormatError(ValueError):
    """Raised for a visualization format the renderer does not know."""


def _circular_links(cycles: list[list[str]]) -> set[tuple[str, str]]:
    links: set[tuple[str, str]] = set()
    for cycle in cycles:
        for index, source in enumerate(cycle):
            links.add((source, cycle[(index + 1) % len(cycle)]))
    return links


def _node_type(module: str, depth_directory: bool) -> NodeType:
    if is_external(module):
        return "external"
    return "directory" if depth_directory else "file"


def _is_unstable(node: DependencyNode, threshold: float) -> bool:
    return node.metrics is not None and node.metrics.instability > threshold


def build_nodes_and_links(
    graph: DependencyGraph,
    coupling_metrics: list[ModuleCoupling],
    cycles: list[list[str]],
    *,
    directory_nodes: bool = False,
) -> tuple[list[DependencyNode], list[DependencyLink]]:
    """Build the generic node/link structure shared by every format."""
    metrics_by_module = {metric.module: metric for metric in coupling_metrics}
    circular = _circular_links(cycles)

    nodes: list[DependencyNode] = []
    for module in sorted(graph.adjacency):
        metric = metrics_by_module.get(module)
        afferent = metric.afferent_coupling if metric else 0
        efferent = metric.efferent_coupling if metric else 0
        nodes.append(
            DependencyNode(
                id=module,
                label=module,
                type=_node_type(module, directory_nodes),
                group=top_level_group(module),
                size=1 + math.sqrt(afferent + efferent),
                metrics=(
                    NodeMetrics(
                        afferent_coupling=metric.afferent_coupling,
                        efferent_coupling=metric.efferent_coupling,
                        instability=metric.instability,
                    )
                    if metric
                    else None
                ),
            )
        )

    links = [
        DependencyLink(
            source=source,
            target=target,
            is_circular=(source, target) in circular,
            weight=graph.weight(source, target),
        )
        for source, target in graph.edges()
    ]
    return nodes, links


def _mermaid_label(label: str) -> str:
    return label.replace('"', "#quot;")


def render_mermaid(
    nodes: list[DependencyNode],
    links: list[DependencyLink],
    *,
    instability_threshold: float = 0.7,
) -> str:
    """Render a Mermaid flowchart.

    Node identifiers are generated (``n0``, ``n1``...) because module paths
    are not valid Mermaid identifiers; the path is kept as the label.
    """
    ids = {node.id: f"n{index}" for index, node in enumerate(nodes)}
    lines = ["flowchart TD"]

    for node in nodes:
        style = ":::unstable" if _is_unstable(node, instability_threshold) else ""
        lines.append(f'  {ids[node.id]}["{_mermaid_label(node.label)}"]{style}')

    circular_indexes: list[str] = []
    for index, link in enumerate(links):
        lines.append(f"  {ids[link.source]} --> {ids[link.target]}")
        if link.is_circular:
            circular_indexes.append(str(index))

    lines.append("")
    lines.append("  classDef unstable fill:#f96,stroke:#333,stroke-width:2px")
    if circular_indexes:
        lines.append(
            f"  linkStyle {','.join(circular_indexes)} stroke:#f00,stroke-width:2px"
        )

    return "\n".join(lines) + "\n"


def _dot_quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _dot_node(node: DependencyNode, instability_threshold: float) -> str:
    fill = UNSTABLE_FILL if _is_unstable(node, instability_threshold) else STABLE_FILL
    dimension = f"{node.size / 5:.2f}"
    return (
        f"{_dot_quote(node.id)} [label={_dot_quote(node.label)}, "
        f'fillcolor="{fill}", width={dimension}, height={dimension}];'
    )


def render_dot(
    nodes: list[DependencyNode],
    links: list[DependencyLink],
    *,
    instability_threshold: float = 0.7,
) -> str:
    """Render a GraphViz digraph with one cluster per group."""
    lines = [
        "digraph dependencies {",
        "  rankdir=TD;",
        "  node [shape=box, style=filled];",
        "",
    ]

    groups: dict[str, list[DependencyNode]] = defaultdict(list)
    for node in nodes:
        groups[node.group].append(node)

    for group in sorted(groups):
        lines.append(f"  subgraph {_dot_quote('cluster_' + group)} {{")
        lines.append(f"    label={_dot_quote(group)};")
        lines.extend(
            f"    {_dot_node(node, instability_threshold)}" for node in groups[group]
        )
        lines.append("  }")
        lines.append("")

    for link in links:
        style = ' [color="red", penwidth=2.0]' if link.is_circular else ""
        lines.append(f"  {_dot_quote(link.source)} -> {_dot_quote(link.target)}{style};")

    lines.append("}")
    return "\n".join(lines) + "\n"


def generate_visualization(
    graph: DependencyGraph,
    coupling_metrics: list[ModuleCoupling],
    cycles: list[list[str]],
    visualization_format: str = "d3",
    *,
    instability_threshold: float = 0.7,
    directory_nodes: bool = False,
) -> VisualizationData:
    """Render the dependency graph in the requested format.

    Raises:
        UnsupportedFormatError: If the format is not d3, mermaid or dot.
    """
    if visualization_format not in SUPPORTED_VISUALIZATION_FORMATS:
        msg = (
            f"Unsupported visualization format {visualization_format!r}; "
            f"expected one of {', '.join(SUPPORTED_VISUALIZATION_FORMATS)}"
        )
        raise UnsupportedFormatError(msg)

    nodes, links = build_nodes_and_links(
        graph, coupling_metrics, cycles, directory_nodes=directory_nodes
    )

    raw_graph: str | None = None
    if visualization_format == "mermaid":
        raw_graph = render_mermaid(
            nodes, links, instability_threshold=instability_threshold
        )
    elif visualization_format == "dot":
        raw_graph = render_dot(nodes, links, instability_threshold=instability_threshold)

    return VisualizationData(
        format=visualization_format, nodes=nodes, links=links, raw_graph=raw_graph
    )


class VisualizationGenerator:
    """Generator for dependency graph visualizations."""

    @property
    def name(self) -> str:
        """Generator name for logging and identification."""
        return "visualization"

    def generate(
        self,
        graph: DependencyGraph,
        coupling_metrics: list[ModuleCoupling],
        cycles: list[list[str]],
        **kwargs: Any,
    ) -> VisualizationData:
        """Render ``graph`` in ``visualization_format`` (default d3)."""
        return generate_visualization(
            graph,
            coupling_metrics,
            cycles,
            kwargs.get("visualization_format", "d3"),
            instability_threshold=kwargs.get("instability_threshold", 0.7),
            directory_nodes=kwargs.get("directory_nodes", False),
        )


__all__ = [
    "UnsupportedFormatError",
    "VisualizationGenerator",
    "build_nodes_and_links",
    "generate_visualization",
    "render_dot",
    "render_mermaid",
]
