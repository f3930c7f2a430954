"""Aggregates per-file signal facts into a project-wide SignalGraph."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..logging import get_logger
from ..models import (
    SCHEMA_VERSION,
    ConnectionSite,
    EmissionSite,
    FileFacts,
    GraphMetadata,
    ParsedFile,
    SignalDefinition,
    SignalGraph,
)
from ..parsers.signal_extractor import SignalExtractor

logger = get_logger("graph")


@dataclass
class BuilderStats:
    """Counters for the most recent build."""

    files_processed: int = 0
    files_skipped: int = 0
    signals_discovered: int = 0
    emissions_found: int = 0
    connections_found: int = 0
    duration_ms: float = 0.0


class SignalGraphBuilder:
    """Builds a SignalGraph from an AST forest.

    A file whose extraction fails is logged and skipped; the rest of the
    forest is still merged. With ``workers > 1`` extraction is fanned out to
    a thread pool, but facts are merged in forest order so the graph is the
    same as a sequential build.
    """

    def __init__(self, extractor: Optional[SignalExtractor] = None) -> None:
        self.extractor = extractor or SignalExtractor()
        self.stats = BuilderStats()

    def build(self, forest: Sequence[ParsedFile], workers: int = 1) -> SignalGraph:
        start = time.perf_counter()
        self.stats = BuilderStats()

        if workers > 1 and len(forest) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(self._extract_one, forest))
        else:
            results = [self._extract_one(parsed) for parsed in forest]

        facts = [item for item in results if item is not None]
        self.stats.files_skipped = len(results) - len(facts)
        graph = self._merge(
            facts,
            file_count=len(forest),
            source_files=[parsed.file_path for parsed in forest],
        )
        self.stats.duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Built signal graph: %d files (%d skipped), %d signals, %d emissions, %d connections",
            self.stats.files_processed,
            self.stats.files_skipped,
            graph.metadata.signal_count,
            graph.metadata.emission_count,
            graph.metadata.connection_count,
        )
        return graph

    def build_from_facts(self, facts: Sequence[FileFacts], file_count: Optional[int] = None) -> SignalGraph:
        """Merge already-extracted facts; ``file_count`` defaults to ``len(facts)``."""
        start = time.perf_counter()
        self.stats = BuilderStats()
        graph = self._merge(
            facts,
            file_count=len(facts) if file_count is None else file_count,
            source_files=[item.file_path for item in facts],
        )
        self.stats.duration_ms = (time.perf_counter() - start) * 1000
        return graph

    def _extract_one(self, parsed: ParsedFile) -> Optional[FileFacts]:
        try:
            return self.extractor.extract_file(parsed)
        except Exception as exc:
            logger.warning("Failed to process file %s: %s", parsed.file_path, exc)
            return None

    def _merge(
        self, facts: Sequence[FileFacts], file_count: int, source_files: Sequence[str]
    ) -> SignalGraph:
        definitions: Dict[str, List[SignalDefinition]] = {}
        emissions: Dict[str, List[EmissionSite]] = {}
        connections: Dict[str, List[ConnectionSite]] = {}

        for file_facts in facts:
            for definition in file_facts.definitions:
                definitions.setdefault(definition.name, []).append(definition)
            for emission in file_facts.emissions:
                emissions.setdefault(emission.signal_name, []).append(emission)
            for connection in file_facts.connections:
                connections.setdefault(connection.signal_name, []).append(connection)
            self.stats.files_processed += 1
            self.stats.signals_discovered += len(file_facts.definitions)
            self.stats.emissions_found += len(file_facts.emissions)
            self.stats.connections_found += len(file_facts.connections)

        metadata = GraphMetadata(
            file_count=file_count,
            signal_count=len(definitions),
            emission_count=sum(len(sites) for sites in emissions.values()),
            connection_count=sum(len(sites) for sites in connections.values()),
            schema_version=SCHEMA_VERSION,
            timestamp=int(time.time() * 1000),
            source_files=sorted(set(source_files)),
        )
        return SignalGraph(
            definitions=definitions,
            emissions=emissions,
            connections=connections,
            metadata=metadata,
        )


def get_definitions(graph: SignalGraph, name: str) -> List[SignalDefinition]:
    return graph.definitions_for(name)


def get_emissions(graph: SignalGraph, name: str) -> List[EmissionSite]:
    return graph.emissions_for(name)


def get_connections(graph: SignalGraph, name: str) -> List[ConnectionSite]:
    return graph.connections_for(name)


def get_all_signal_names(graph: SignalGraph) -> List[str]:
    return graph.all_signal_names()


def find_undefined_signals(graph: SignalGraph) -> List[str]:
    return graph.undefined_signals()


def find_unemitted_signals(graph: SignalGraph) -> List[str]:
    return graph.unemitted_signals()


__all__ = [
    "BuilderStats",
    "SignalGraphBuilder",
    "find_undefined_signals",
    "find_unemitted_signals",
    "get_all_signal_names",
    "get_connections",
    "get_definitions",
    "get_emissions",
]
