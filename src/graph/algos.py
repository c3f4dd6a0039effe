"""Graph algorithms for archmap."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from utils import external_marker, is_external, module_directory

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from analysis.models.dependencies import ModuleDependency


@dataclass(frozen=True)
class DependencyGraph:
    """Immutable adjacency structure keyed by module identifier.

    ``adjacency`` holds every node, including nodes without outgoing edges.
    ``edge_weights`` counts the extracted references merged into each edge.
    """

    adjacency: Mapping[str, frozenset[str]]
    edge_weights: Mapping[tuple[str, str], int] = field(default_factory=dict)
    external: frozenset[str] = frozenset()

    @property
    def node_count(self) -> int:
        return len(self.adjacency)

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.adjacency.values())

    def successors(self, node: str) -> frozenset[str]:
        return self.adjacency.get(node, frozenset())

    def edges(self) -> Iterator[tuple[str, str]]:
        """Yield edges sorted by source, then target."""
        for source in sorted(self.adjacency):
            for target in sorted(self.adjacency[source]):
                yield source, target

    def weight(self, source: str, target: str) -> int:
        return self.edge_weights.get((source, target), 1)


def build_dependency_graph(
    dependency_map: Mapping[str, list[ModuleDependency]],
    *,
    depth: Literal["file", "directory"] = "file",
    include_external: bool = False,
) -> DependencyGraph:
    """Build a dependency graph from per-file dependency data.

    Args:
        dependency_map: Mapping of analyzed file (relative path) to its
            extracted dependencies
        depth: ``"directory"`` collapses every module to its directory
        include_external: Keep third-party packages as ``external:`` nodes

    Returns:
        The graph. Internal targets that were not analyzed are dropped and
        self edges never appear.
    """
    analyzed = set(dependency_map)

    def collapse(module_id: str) -> str:
        return module_directory(module_id) if depth == "directory" else module_id

    adjacency: dict[str, set[str]] = {collapse(path): set() for path in analyzed}
    weights: dict[tuple[str, str], int] = defaultdict(int)
    external_nodes: set[str] = set()

    for file_path, dependencies in dependency_map.items():
        source = collapse(file_path)
        for dep in dependencies:
            if dep.is_external:
                if not include_external:
                    continue
                target = external_marker(dep.target)
                external_nodes.add(target)
                adjacency.setdefault(target, set())
            elif dep.target in analyzed:
                target = collapse(dep.target)
            else:
                continue

            if target == source:
                continue
            adjacency[source].add(target)
            weights[(source, target)] += 1

    return DependencyGraph(
        adjacency={node: frozenset(targets) for node, targets in adjacency.items()},
        edge_weights=dict(weights),
        external=frozenset(external_nodes),
    )


def find_strongly_connected_components(graph: DependencyGraph) -> list[list[str]]:
    """Find strongly connected components with an iterative Tarjan search.

    Returns:
        Components with more than one node, each sorted, in sorted order.
    """
    index = 0
    indices: dict[str, int] = {}
    low_link: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    components: list[list[str]] = []

    for start in sorted(graph.adjacency):
        if start in indices:
            continue

        work: list[tuple[str, Iterator[str]]] = []
        indices[start] = low_link[start] = index
        index += 1
        stack.append(start)
        on_stack.add(start)
        work.append((start, iter(sorted(graph.successors(start)))))

        while work:
            node, neighbors = work[-1]
            advanced = False
            for neighbor in neighbors:
                if neighbor not in indices:
                    indices[neighbor] = low_link[neighbor] = index
                    index += 1
                    stack.append(neighbor)
                    on_stack.add(neighbor)
                    work.append((neighbor, iter(sorted(graph.successors(neighbor)))))
                    advanced = True
                    break
                if neighbor in on_stack:
                    low_link[node] = min(low_link[node], indices[neighbor])
            if advanced:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                low_link[parent] = min(low_link[parent], low_link[node])

            if low_link[node] == indices[node]:
                component: list[str] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                if len(component) > 1:
                    components.append(sorted(component))

    components.sort()
    return components


def canonical_cycle(cycle: list[str]) -> tuple[str, ...]:
    """Rotate a cycle so it starts at its smallest module identifier.

    Examples:
        >>> canonical_cycle(["b", "c", "a"])
        ('a', 'b', 'c')
    """
    start = cycle.index(min(cycle))
    return tuple(cycle[start:] + cycle[:start])


def find_cycles(graph: DependencyGraph) -> list[list[str]]:
    """Find circular dependencies with an iterative depth-first search.

    Every back edge found while walking a strongly connected component
    yields the path segment from the revisited node to the current node.
    Each node is entered at most once, and rotations of the same cycle are
    reported once.

    Args:
        graph: Dependency graph without self edges

    Returns:
        Cycles as ordered module lists (the last module depends on the
        first), each starting at its smallest identifier, sorted.
    """
    seen: set[tuple[str, ...]] = set()

    for component in find_strongly_connected_components(graph):
        members = set(component)
        visited: set[str] = set()

        for start in component:
            if start in visited:
                continue

            path: list[str] = [start]
            position: dict[str, int] = {start: 0}
            visited.add(start)
            work: list[Iterator[str]] = [
                iter(sorted(graph.successors(start) & members))
            ]

            while work:
                advanced = False
                for neighbor in work[-1]:
                    if neighbor in position:
                        seen.add(canonical_cycle(path[position[neighbor] :]))
                    elif neighbor not in visited:
                        visited.add(neighbor)
                        position[neighbor] = len(path)
                        path.append(neighbor)
                        work.append(iter(sorted(graph.successors(neighbor) & members)))
                        advanced = True
                        break
                if not advanced:
                    work.pop()
                    del position[path.pop()]

    return [list(cycle) for cycle in sorted(seen)]


__all__ = [
    "DependencyGraph",
    "build_dependency_graph",
    "canonical_cycle",
    "find_cycles",
    "find_strongly_connected_components",
]
