from __future__ import annotations

import pytest

from analysis.generators.visualization import (
    UnsupportedFormatError,
    VisualizationGenerator,
    generate_visualization,
)
from analysis.models.dependencies import ModuleDependency
from graph.algos import DependencyGraph, build_dependency_graph, find_cycles
from graph.coupling import calculate_coupling_metrics


def _graph() -> DependencyGraph:
    edges = {
        "a.py": ["b.py"],
        "b.py": ["a.py"],
        "c.py": ["a.py"],
        "pkg/d.py": ["a.py"],
    }
    dependency_map = {
        source: [ModuleDependency(target=target) for target in targets]
        for source, targets in edges.items()
    }
    return build_dependency_graph(dependency_map)


def _render(visualization_format: str):
    graph = _graph()
    return generate_visualization(
        graph,
        calculate_coupling_metrics(graph),
        find_cycles(graph),
        visualization_format,
    )


def test_d3_nodes_carry_size_group_and_metrics() -> None:
    data = _render("d3")

    assert data.format == "d3"
    assert data.raw_graph is None
    nodes = {node.id: node for node in data.nodes}
    assert list(nodes) == ["a.py", "b.py", "c.py", "pkg/d.py"]
    assert nodes["a.py"].size == pytest.approx(3.0)
    assert nodes["a.py"].group == "root"
    assert nodes["pkg/d.py"].group == "pkg"
    assert nodes["a.py"].type == "file"
    assert nodes["c.py"].metrics is not None
    assert nodes["c.py"].metrics.instability == 1.0


def test_links_mark_circular_edges() -> None:
    data = _render("d3")

    circular = {(link.source, link.target) for link in data.links if link.is_circular}
    assert circular == {("a.py", "b.py"), ("b.py", "a.py")}
    assert all(link.weight == 1 for link in data.links)


def test_mermaid_flowchart_styles_unstable_nodes_and_cycles() -> None:
    raw = _render("mermaid").raw_graph

    assert raw is not None
    lines = raw.splitlines()
    assert lines[0] == "flowchart TD"
    assert '  n0["a.py"]' in lines
    assert '  n2["c.py"]:::unstable' in lines
    assert '  n3["pkg/d.py"]:::unstable' in lines
    assert "  n0 --> n1" in lines
    assert "  classDef unstable fill:#f96,stroke:#333,stroke-width:2px" in lines
    assert "  linkStyle 0,1 stroke:#f00,stroke-width:2px" in lines


def test_mermaid_without_cycles_has_no_link_style() -> None:
    graph = build_dependency_graph({"a.py": [ModuleDependency(target="b.py")]})
    data = generate_visualization(
        graph, calculate_coupling_metrics(graph), find_cycles(graph), "mermaid"
    )

    assert data.raw_graph is not None
    assert "linkStyle" not in data.raw_graph


def test_dot_clusters_groups_and_highlights_cycles() -> None:
    raw = _render("dot").raw_graph

    assert raw is not None
    assert raw.startswith("digraph dependencies {\n")
    assert 'subgraph "cluster_pkg" {' in raw
    assert 'subgraph "cluster_root" {' in raw
    assert raw.index('"cluster_pkg"') < raw.index('"cluster_root"')
    assert '"c.py" [label="c.py", fillcolor="#ff9966"' in raw
    assert '"a.py" [label="a.py", fillcolor="#f0f0f0", width=0.60, height=0.60];' in raw
    assert '"a.py" -> "b.py" [color="red", penwidth=2.0];' in raw
    assert '"c.py" -> "a.py";' in raw
    assert raw.rstrip().endswith("}")


def test_unsupported_format_raises() -> None:
    with pytest.raises(UnsupportedFormatError, match="svg"):
        _render("svg")


def test_generator_defaults_to_d3() -> None:
    graph = _graph()
    generator = VisualizationGenerator()

    data = generator.generate(graph, calculate_coupling_metrics(graph), [])

    assert generator.name == "visualization"
    assert data.format == "d3"
    assert not any(link.is_circular for link in data.links)
