"""Coupling metrics for dependency graphs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from analysis.models.dependencies import ModuleCoupling

if TYPE_CHECKING:
    from graph.algos import DependencyGraph


@dataclass(frozen=True)
class CouplingSummary:
    average_instability: float = 0.0
    max_afferent_coupling: int = 0
    max_efferent_coupling: int = 0


def compute_fan_stats(graph: DependencyGraph) -> tuple[dict[str, int], dict[str, int]]:
    """Count distinct dependents (fan-in) and dependencies (fan-out) per node."""
    fan_in: dict[str, int] = dict.fromkeys(graph.adjacency, 0)
    fan_out: dict[str, int] = {}

    for source, targets in graph.adjacency.items():
        fan_out[source] = len(targets)
        for target in targets:
            fan_in[target] = fan_in.get(target, 0) + 1

    return fan_in, fan_out


def instability(afferent: int, efferent: int) -> float:
    """Return efferent / (afferent + efferent), or 0 for an unconnected module."""
    total = afferent + efferent
    if total == 0:
        return 0.0
    return efferent / total


def calculate_coupling_metrics(graph: DependencyGraph) -> list[ModuleCoupling]:
    """Compute afferent/efferent coupling and instability for every module.

    Returns:
        One record per graph node, most unstable first (ties by module).
    """
    fan_in, fan_out = compute_fan_stats(graph)

    metrics = [
        ModuleCoupling(
            module=module,
            afferent_coupling=fan_in.get(module, 0),
            efferent_coupling=fan_out.get(module, 0),
            instability=instability(fan_in.get(module, 0), fan_out.get(module, 0)),
        )
        for module in graph.adjacency
    ]
    metrics.sort(key=lambda m: (-m.instability, m.module))
    return metrics


def summarize_coupling(metrics: list[ModuleCoupling]) -> CouplingSummary:
    """Aggregate coupling records in a single pass; all zero when empty."""
    if not metrics:
        return CouplingSummary()

    total_instability = 0.0
    max_afferent = 0
    max_efferent = 0
    for metric in metrics:
        total_instability += metric.instability
        max_afferent = max(max_afferent, metric.afferent_coupling)
        max_efferent = max(max_efferent, metric.efferent_coupling)

    return CouplingSummary(
        average_instability=total_instability / len(metrics),
        max_afferent_coupling=max_afferent,
        max_efferent_coupling=max_efferent,
    )


__all__ = [
    "CouplingSummary",
    "calculate_coupling_metrics",
    "compute_fan_stats",
    "instability",
    "summarize_coupling",
]
