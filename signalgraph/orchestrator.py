"""Pipeline orchestration for one analysis run: scan, build, analyse, report."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .analysis.unused import UnusedDetector, UnusedSignal, filter_by_confidence as filter_unused
from .clustering.hierarchical import ClusteringStats, HierarchicalClusterer, HierarchicalClusters
from .config import SignalGraphConfig, load_config
from .graph.builder import SignalGraphBuilder
from .graph.serializer import GraphSerializationError, GraphSerializer, graph_to_dict
from .logging import get_logger
from .models import SignalGraph
from .refactoring.suggestions import (
    RefactoringEngine,
    RefactorSuggestion,
    filter_by_confidence as filter_suggestions,
)
from .scanner import ProjectScanner, ScanError, ScanStats


@dataclass
class AnalysisReport:
    """Everything one run produced, as plain data."""

    root: Path
    graph: SignalGraph
    clusters: Optional[HierarchicalClusters] = None
    unused: List[UnusedSignal] = field(default_factory=list)
    suggestions: List[RefactorSuggestion] = field(default_factory=list)
    undefined_signals: List[str] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": str(self.root),
            "graph": graph_to_dict(self.graph),
            "clusters": to_jsonable(self.clusters),
            "unused": to_jsonable(self.unused),
            "suggestions": to_jsonable(self.suggestions),
            "undefined_signals": list(self.undefined_signals),
            "stats": to_jsonable(self.stats),
        }


def to_jsonable(value: Any) -> Any:
    """Convert dataclasses, enums, sets and int-keyed maps into JSON-ready values."""
    if is_dataclass(value) and not isinstance(value, type):
        return {item.name: to_jsonable(getattr(value, item.name)) for item in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(to_jsonable(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


class Orchestrator:
    """Coordinates the analysis pipeline for a Godot project."""

    def __init__(
        self,
        scanner: ProjectScanner | None = None,
        builder: SignalGraphBuilder | None = None,
        serializer: GraphSerializer | None = None,
        unused_detector: UnusedDetector | None = None,
        refactoring_engine: RefactoringEngine | None = None,
    ) -> None:
        self.scanner = scanner
        self.builder = builder or SignalGraphBuilder()
        self.serializer = serializer or GraphSerializer()
        self.unused_detector = unused_detector or UnusedDetector()
        self.refactoring_engine = refactoring_engine or RefactoringEngine()
        self.clustering_stats = ClusteringStats()
        self.scan_stats = ScanStats()
        self.logger = get_logger("orchestrator")

    def load_config(self, path: str) -> SignalGraphConfig:
        project_path = Path(path).expanduser().resolve()
        if not project_path.is_dir():
            raise ScanError(f"Project path is not a directory: {path}")
        return load_config(project_path)

    def build_graph(self, path: str, config: SignalGraphConfig | None = None) -> SignalGraph:
        """Return the project's signal graph, reusing a fresh cached graph when configured."""
        config = config or self.load_config(path)
        scanner = self._resolve_scanner(config)
        cache_path = config.cache.graph_path
        self.scan_stats = ScanStats()

        if cache_path is not None:
            cached = self._load_cached(scanner, str(config.root), cache_path)
            if cached is not None:
                return cached

        forest = scanner.scan(str(config.root))
        self.logger.debug("Scanner parsed %d scripts", len(forest))
        self.scan_stats = scanner.stats
        graph = self.builder.build(forest, workers=config.extraction.workers)
        # Unparsable scripts still belong to the discovered set the cache is checked against.
        graph.metadata.source_files = sorted(set(graph.metadata.source_files) | set(scanner.skipped))

        if cache_path is not None:
            try:
                self.serializer.save(graph, cache_path)
            except OSError as exc:
                self.logger.warning("Could not write graph cache %s: %s", cache_path, exc)
        return graph

    def cluster(self, graph: SignalGraph, config: SignalGraphConfig) -> HierarchicalClusters:
        settings = config.clustering
        clusterer = HierarchicalClusterer(
            min_sub_cluster_size=settings.min_sub_cluster_size,
            label_terms=settings.label_terms,
            label_sub_clusters=settings.label_sub_clusters,
        )
        clusters = clusterer.cluster(graph, depth=settings.depth)
        self.clustering_stats = clusterer.stats
        return clusters

    def find_unused(self, graph: SignalGraph, min_confidence: float | None = None) -> List[UnusedSignal]:
        return filter_unused(self.unused_detector.detect(graph), min_confidence)

    def suggest_refactorings(
        self, graph: SignalGraph, min_confidence: float | None = None
    ) -> List[RefactorSuggestion]:
        return filter_suggestions(self.refactoring_engine.generate(graph), min_confidence)

    def run(self, path: str, *, min_confidence: float | None = None) -> AnalysisReport:
        """Run every analysis over the project at ``path``."""
        config = self.load_config(path)
        self.logger.info("Starting analysis run for %s", config.root)
        graph = self.build_graph(path, config)

        clusters = self.cluster(graph, config)
        unused = self.find_unused(graph, min_confidence)
        suggestions = self.suggest_refactorings(graph, min_confidence)

        return AnalysisReport(
            root=config.root,
            graph=graph,
            clusters=clusters,
            unused=unused,
            suggestions=suggestions,
            undefined_signals=graph.undefined_signals(),
            stats={
                "scanner": self.scan_stats,
                "builder": self.builder.stats,
                "clustering": self.clustering_stats,
                "unused": self.unused_detector.stats,
                "refactoring": self.refactoring_engine.stats,
            },
        )

    def _resolve_scanner(self, config: SignalGraphConfig) -> ProjectScanner:
        if self.scanner is not None:
            return self.scanner
        return ProjectScanner(exclude_paths=config.exclude_paths)

    def _load_cached(self, scanner: ProjectScanner, root: str, cache_path: Path) -> Optional[SignalGraph]:
        scripts = scanner.discover(root)
        latest_mtime = max((script.stat().st_mtime for script in scripts), default=0.0)
        source_files = [script.as_posix() for script in scripts]
        if self.serializer.is_stale(cache_path, latest_mtime, source_files):
            self.logger.debug("Graph cache %s is stale", cache_path)
            return None
        try:
            graph = self.serializer.load(cache_path)
        except GraphSerializationError as exc:
            self.logger.warning("Ignoring unreadable graph cache %s: %s", cache_path, exc)
            return None
        if graph is not None:
            self.logger.info("Loaded cached signal graph from %s", cache_path)
        return graph


__all__ = ["AnalysisReport", "Orchestrator", "to_jsonable"]
