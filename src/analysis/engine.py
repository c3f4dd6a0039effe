"""Architecture analysis orchestration.

The engine selects source files, extracts their dependencies in concurrent
batches, builds the dependency graph once and runs cycle detection, coupling
analysis, visualization and (optionally) API surface analysis over it.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import TYPE_CHECKING

from analysis.generators.api_surface import ApiSurfaceGenerator
from analysis.generators.visualization import VisualizationGenerator
from analysis.models.dependencies import (
    ArchitectureAnalysisResult,
    ArchitectureSummary,
    CircularDependency,
)
from graph.algos import build_dependency_graph, find_cycles
from graph.coupling import calculate_coupling_metrics, summarize_coupling
from parse.errors import ExtractionError
from parse.extract import extract_dependencies
from parse.resolution import DependencyResolver
from rules.config import AnalyzerConfig
from scan.files import find_source_files
from utils import to_relative_posix

if TYPE_CHECKING:
    from pathlib import Path

    from analysis.models.api_surface import ApiSurfaceResult
    from analysis.models.dependencies import ModuleCoupling, ModuleDependency
    from analysis.models.visualization import VisualizationData
    from graph.algos import DependencyGraph

    DependencyMap = dict[str, list[ModuleDependency]]

logger = logging.getLogger(__name__)

MAX_DEFAULT_WORKERS = 4


def default_worker_count() -> int:
    """One worker per spare CPU, between 1 and ``MAX_DEFAULT_WORKERS``."""
    cpus = os.cpu_count() or 1
    return max(1, min(cpus - 1, MAX_DEFAULT_WORKERS))


def _batches(files: list[Path], size: int) -> list[list[Path]]:
    return [files[start : start + size] for start in range(0, len(files), size)]


class ArchitectureAnalyzer:
    """Run one architecture analysis over a repository root.

    Every call to ``analyze`` starts from scratch; nothing is cached between
    runs, so repeated runs over an unchanged tree produce equal results.
    """

    def __init__(self, root: Path, config: AnalyzerConfig | None = None) -> None:
        self.root = root
        self.config = config or AnalyzerConfig()
        self.worker_count = self.config.max_workers or default_worker_count()

    def _make_resolver(self, root: Path) -> DependencyResolver:
        return DependencyResolver(
            root,
            resolve_aliases=self.config.resolve_aliases,
            source_roots=self.config.source_roots,
            aliases=self.config.aliases,
        )

    def _find_files(self) -> list[Path]:
        config = self.config
        return find_source_files(
            self.root,
            include_patterns=config.include or None,
            exclude_patterns=config.exclude or None,
            include_hidden=config.include_hidden,
            exclude_tests=config.exclude_tests,
            respect_gitignore=config.respect_gitignore,
            nested_gitignore=config.nested_gitignore,
            max_file_size=config.max_file_size,
        )

    @staticmethod
    def _extract_files(
        file_paths: list[Path], root: Path, resolver: DependencyResolver
    ) -> tuple[DependencyMap, list[str]]:
        """Extract files into a task-local map; failures become warnings."""
        dependencies: DependencyMap = {}
        warnings: list[str] = []
        for file_path in file_paths:
            relative_path = to_relative_posix(file_path, root)
            try:
                dependencies[relative_path] = extract_dependencies(
                    file_path, root, resolver
                )
            except ExtractionError as exc:
                message = f"Skipping {relative_path}: {exc}"
                logger.warning(message)
                warnings.append(message)
            except Exception as exc:
                message = (
                    f"Skipping {relative_path}: unexpected {type(exc).__name__}: {exc}"
                )
                logger.warning(message)
                warnings.append(message)
        return dependencies, warnings

    async def _extract_all(
        self, files: list[Path], root: Path, resolver: DependencyResolver
    ) -> tuple[DependencyMap, list[str]]:
        """Extract dependencies in batches of ``worker_count`` concurrent files."""
        dependency_map: DependencyMap = {}
        warnings: list[str] = []
        batches = _batches(files, self.worker_count)
        processed = 0

        for index, batch in enumerate(batches, start=1):
            results = await asyncio.gather(
                *(
                    asyncio.to_thread(self._extract_files, [file_path], root, resolver)
                    for file_path in batch
                )
            )
            for batch_dependencies, batch_warnings in results:
                dependency_map.update(batch_dependencies)
                warnings.extend(batch_warnings)
            processed += len(batch)

            if index % self.config.progress_interval == 0 or index == len(batches):
                logger.info(
                    "Processed %d/%d files (%d%%)",
                    processed,
                    len(files),
                    round(processed * 100 / len(files)),
                )

        return dependency_map, warnings

    def _render(
        self,
        graph: DependencyGraph,
        coupling_metrics: list[ModuleCoupling],
        cycles: list[list[str]],
        warnings: list[str],
    ) -> VisualizationData | None:
        if not self.config.generate_visualization:
            return None
        generator = VisualizationGenerator()
        try:
            return generator.generate(
                graph,
                coupling_metrics,
                cycles,
                visualization_format=self.config.visualization_format,
                instability_threshold=self.config.instability_threshold,
                directory_nodes=self.config.analysis_depth == "directory",
            )
        except Exception as exc:
            message = f"Visualization generation failed: {exc}"
            logger.warning(message)
            warnings.append(message)
            return None

    async def _api_surface(
        self, files: list[Path], root: Path, resolver: DependencyResolver
    ) -> tuple[ApiSurfaceResult | None, list[str]]:
        generator = ApiSurfaceGenerator()
        try:
            return await asyncio.to_thread(
                generator.generate,
                files,
                root,
                resolver=resolver,
                entry_points=self.config.entry_points,
                max_exposed_members=self.config.max_exposed_members,
            )
        except Exception as exc:
            message = f"API surface analysis failed: {exc}"
            logger.warning(message)
            return None, [message]

    async def analyze(self) -> tuple[ArchitectureAnalysisResult, ArchitectureSummary]:
        """Analyze the repository.

        Returns:
            The full analysis result and its summary.

        Raises:
            NotFoundError: If the root does not exist or is not a directory.
        """
        files = self._find_files()
        root = self.root.resolve()

        if not files:
            logger.info("No source files found in %s", root)
            empty = ArchitectureAnalysisResult(module_count=0, dependency_count=0)
            return empty, ArchitectureSummary()

        resolver = self._make_resolver(root)
        logger.info(
            "Analyzing %d files with %d workers", len(files), self.worker_count
        )

        api_task: asyncio.Task[tuple[ApiSurfaceResult | None, list[str]]] | None = None
        if self.config.analyze_api_surface:
            api_task = asyncio.create_task(self._api_surface(files, root, resolver))

        try:
            dependency_map, warnings = await self._extract_all(files, root, resolver)
        except BaseException:
            if api_task is not None:
                api_task.cancel()
            raise

        graph = build_dependency_graph(
            dependency_map,
            depth=self.config.analysis_depth,
            include_external=self.config.include_external,
        )
        cycles = find_cycles(graph)
        coupling_metrics = calculate_coupling_metrics(graph)
        logger.info(
            "Built graph with %d modules, %d dependencies and %d cycles",
            graph.node_count,
            graph.edge_count,
            len(cycles),
        )

        visualization = self._render(graph, coupling_metrics, cycles, warnings)

        api_surface: ApiSurfaceResult | None = None
        if api_task is not None:
            api_surface, api_warnings = await api_task
            warnings.extend(api_warnings)

        result = ArchitectureAnalysisResult(
            module_count=graph.node_count,
            dependency_count=graph.edge_count,
            circular_dependencies=[CircularDependency(path=cycle) for cycle in cycles],
            coupling_metrics=coupling_metrics,
            visualization=visualization,
            api_surface=api_surface,
            warnings=warnings,
        )

        coupling_summary = summarize_coupling(coupling_metrics)
        summary = ArchitectureSummary(
            module_count=result.module_count,
            dependency_count=result.dependency_count,
            circular_dependency_count=len(cycles),
            average_instability=coupling_summary.average_instability,
            max_afferent_coupling=coupling_summary.max_afferent_coupling,
            max_efferent_coupling=coupling_summary.max_efferent_coupling,
        )
        return result, summary


__all__ = ["ArchitectureAnalyzer", "default_worker_count"]
