from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from analysis.models.dependencies import ModuleCoupling, ModuleDependency
from graph.algos import build_dependency_graph
from graph.coupling import (
    CouplingSummary,
    calculate_coupling_metrics,
    instability,
    summarize_coupling,
)

if TYPE_CHECKING:
    from graph.algos import DependencyGraph


def _graph(edges: dict[str, list[str]]) -> DependencyGraph:
    return build_dependency_graph(
        {
            source: [ModuleDependency(target=target) for target in targets]
            for source, targets in edges.items()
        }
    )


def _by_module(graph: DependencyGraph) -> dict[str, ModuleCoupling]:
    return {metric.module: metric for metric in calculate_coupling_metrics(graph)}


def test_module_with_only_incoming_edges_is_stable() -> None:
    edges: dict[str, list[str]] = {f"user_{i}.py": ["core.py"] for i in range(10)}
    edges["core.py"] = []

    core = _by_module(_graph(edges))["core.py"]

    assert core.afferent_coupling == 10
    assert core.efferent_coupling == 0
    assert core.instability == 0.0


def test_module_with_only_outgoing_edges_is_unstable() -> None:
    edges: dict[str, list[str]] = {f"dep_{i}.py": [] for i in range(5)}
    edges["app.py"] = [f"dep_{i}.py" for i in range(5)]

    app = _by_module(_graph(edges))["app.py"]

    assert app.afferent_coupling == 0
    assert app.efferent_coupling == 5
    assert app.instability == 1.0


def test_isolated_module_reports_zero() -> None:
    lonely = _by_module(_graph({"lonely.py": []}))["lonely.py"]

    assert (lonely.afferent_coupling, lonely.efferent_coupling) == (0, 0)
    assert lonely.instability == 0.0


def test_instability_zero_denominator() -> None:
    assert instability(0, 0) == 0.0
    assert instability(1, 3) == pytest.approx(0.75)


def test_metrics_sorted_by_instability_then_module() -> None:
    graph = _graph(
        {"b.py": ["c.py"], "a.py": ["c.py"], "c.py": ["d.py"], "d.py": []}
    )

    metrics = calculate_coupling_metrics(graph)

    assert [m.module for m in metrics] == ["a.py", "b.py", "c.py", "d.py"]
    assert [m.instability for m in metrics] == pytest.approx([1.0, 1.0, 1 / 3, 0.0])
    for metric in metrics:
        assert 0.0 <= metric.instability <= 1.0


def test_summary_aggregates_metrics() -> None:
    graph = _graph({"a.py": ["b.py", "c.py"], "b.py": ["c.py"], "c.py": []})

    summary = summarize_coupling(calculate_coupling_metrics(graph))

    assert summary.max_afferent_coupling == 2
    assert summary.max_efferent_coupling == 2
    assert summary.average_instability == pytest.approx((1.0 + 0.5 + 0.0) / 3)


def test_summary_of_nothing_is_zero() -> None:
    assert summarize_coupling([]) == CouplingSummary()
