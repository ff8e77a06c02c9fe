"""Analysis pipeline - orchestrates discovery, scoring, graph building and mapping."""

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from .analyzers import DependencyGraphBuilder, ImportExportParser, SignificanceScorer, relationships_from_graph
from .config import Settings
from .mapper import RepositoryMap, RepositoryMapper, write_text
from .models import DependencyGraphResult, ScoredFile, WalkResult
from .sources import CodebaseSource

GRAPH_FILE = "dependency-graph.json"


@dataclass
class AnalysisResult:
    walk: WalkResult
    scored_files: list[ScoredFile]
    graph: DependencyGraphResult
    repository_map: RepositoryMap

    def to_dict(self) -> dict:
        return {
            "repository_map": self.repository_map.to_dict(),
            "dependency_graph": self.graph.to_dict(),
        }

    def to_text(self, format: str = "json") -> str:
        if format == "markdown":
            return self.repository_map.to_markdown()
        return json.dumps(self.to_dict(), indent=2)


@dataclass
class RepositoryAnalyzer:
    settings: Settings = field(default_factory=Settings)
    cancel_event: asyncio.Event | None = None

    async def analyze(self, root: str | Path) -> AnalysisResult:
        settings = self.settings

        source = CodebaseSource(
            root,
            max_files=settings.max_files,
            include=settings.include_patterns,
            exclude=settings.exclude_patterns,
            concurrency=settings.concurrency,
            max_file_size=settings.max_file_size,
            cancel_event=self.cancel_event,
        )
        walk = await source.scan()

        # First pass: connectivity is unknown until the graph exists
        scorer = SignificanceScorer(settings.scoring)
        scored = await scorer.score_files(walk.files)

        graph = await DependencyGraphBuilder(
            walk.root_path,
            min_cluster_size=settings.min_cluster_size,
            damping_factor=settings.damping_factor,
            max_iterations=settings.max_iterations,
            tolerance=settings.tolerance,
            parser=ImportExportParser(),
            concurrency=settings.concurrency,
        ).build(scored)

        # Second pass: fold graph connectivity back into every score
        scorer.set_relationships(relationships_from_graph(graph))
        rescored = {f.absolute_path: scorer.rescore_connectivity(f) for f in scored}
        for node in graph.nodes:
            node.file = rescored[node.id]
        final = sorted(rescored.values(), key=lambda f: f.score, reverse=True)

        repository_map = RepositoryMapper(walk.root_path, settings).map(walk, final)
        logger.info("Analyzed {} files ({} graph edges)", len(final), graph.statistics.edge_count)

        return AnalysisResult(walk=walk, scored_files=final, graph=graph, repository_map=repository_map)

    def write_output(self, result: AnalysisResult, output_dir: str | Path | None = None) -> Path:
        """Write the repository map, its summary and the dependency graph."""
        mapper = RepositoryMapper(result.walk.root_path, self.settings)
        target = mapper.write_output(result.repository_map, output_dir)
        write_text(target / GRAPH_FILE, result.graph.to_text("json"))
        return target


async def analyze_repository(root: str | Path, settings: Settings | None = None) -> AnalysisResult:
    return await RepositoryAnalyzer(settings or Settings()).analyze(root)
