"""Two-level clustering of a signal graph with TF-IDF labels."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Optional, Set, Tuple

from ..logging import get_logger
from ..models import SignalGraph
from .community import ClusterResult, GraphLink, GraphNode, detect_communities
from .tfidf import TFIDFLabeler

DEFAULT_MIN_SUB_CLUSTER_SIZE = 5

logger = get_logger("clustering.hierarchical")


@dataclass
class LabeledCluster:
    id: int
    label: str
    signals: Set[str] = field(default_factory=set)
    top_terms: List[Tuple[str, float]] = field(default_factory=list)


@dataclass
class TopLevelClusters:
    clusters: Dict[int, LabeledCluster] = field(default_factory=dict)
    modularity: float = 0.0


@dataclass
class SubClusterResult:
    parent_id: int
    clusters: Dict[int, Set[str]] = field(default_factory=dict)
    modularity: float = 0.0
    # Filled only when sub-cluster labelling is switched on.
    labels: Dict[int, str] = field(default_factory=dict)


@dataclass
class ClusteringMetadata:
    depth: int
    total_signals: int
    top_level_count: int
    timestamp: int


@dataclass
class HierarchicalClusters:
    top_level: TopLevelClusters
    metadata: ClusteringMetadata
    # None unless at least one parent cluster split into several sub-clusters.
    sub_clusters: Optional[Dict[int, SubClusterResult]] = None


@dataclass
class ClusteringStats:
    duration_ms: float = 0.0
    top_level_clusters: int = 0
    sub_clusters_total: int = 0
    avg_cluster_size: float = 0.0
    max_cluster_size: int = 0
    min_cluster_size: int = 0
    avg_modularity: float = 0.0
    failed_sub_clusters: int = 0


def build_nodes_and_links(graph: SignalGraph) -> Tuple[List[GraphNode], List[GraphLink]]:
    """Nodes are defined signals; two signals are linked when they share a context.

    Signals emitted from the same file are linked, and so are signals
    connected to the same ``(target, handler)`` pair. Links touching an
    undefined signal are dropped and each unordered pair appears once.
    """
    nodes = [GraphNode(id=name) for name in graph.definitions]

    by_file: Dict[str, List[str]] = {}
    for name, sites in graph.emissions.items():
        for site in sites:
            members = by_file.setdefault(site.file_path, [])
            if name not in members:
                members.append(name)

    by_handler: Dict[Tuple[str, str], List[str]] = {}
    for name, sites in graph.connections.items():
        for site in sites:
            members = by_handler.setdefault((site.target or "", site.handler), [])
            if name not in members:
                members.append(name)

    links: List[GraphLink] = []
    seen: Set[Tuple[str, str]] = set()
    for group in list(by_file.values()) + list(by_handler.values()):
        for source, target in combinations(group, 2):
            if source not in graph.definitions or target not in graph.definitions:
                continue
            key = (source, target) if source < target else (target, source)
            if key in seen:
                continue
            seen.add(key)
            links.append(GraphLink(source=source, target=target))
    return nodes, links


class HierarchicalClusterer:
    """Clusters a signal graph once at the top level and optionally once more inside large clusters."""

    def __init__(
        self,
        labeler: Optional[TFIDFLabeler] = None,
        min_sub_cluster_size: int = DEFAULT_MIN_SUB_CLUSTER_SIZE,
        label_terms: int = 3,
        label_sub_clusters: bool = False,
    ) -> None:
        self.labeler = labeler or TFIDFLabeler()
        self.min_sub_cluster_size = min_sub_cluster_size
        self.label_terms = label_terms
        self.label_sub_clusters = label_sub_clusters
        self.stats = ClusteringStats()

    def cluster(self, graph: SignalGraph, depth: int = 2) -> HierarchicalClusters:
        start = time.perf_counter()
        stats = ClusteringStats()

        nodes, links = build_nodes_and_links(graph)
        self.labeler.build_corpus(graph.definitions.keys())

        top = detect_communities(nodes, links)
        top_level = TopLevelClusters(modularity=top.modularity)
        for cluster_id, members in top.clusters.items():
            ordered = sorted(members)
            scored = self.labeler.generate_label_with_scores(ordered, self.label_terms)
            top_level.clusters[cluster_id] = LabeledCluster(
                id=cluster_id,
                label=scored.label,
                signals=set(members),
                top_terms=[(score.term, score.tfidf) for score in scored.top_terms],
            )

        sub_clusters: Optional[Dict[int, SubClusterResult]] = None
        if depth > 1:
            sub_clusters = {}
            for cluster_id, members in top.clusters.items():
                if len(members) < self.min_sub_cluster_size:
                    continue
                try:
                    result = self._sub_cluster(cluster_id, members, links)
                except Exception as exc:
                    logger.warning("Sub-clustering of cluster %d failed: %s", cluster_id, exc)
                    stats.failed_sub_clusters += 1
                    continue
                if result is not None:
                    sub_clusters[cluster_id] = result
            if not sub_clusters:
                sub_clusters = None

        clusters = HierarchicalClusters(
            top_level=top_level,
            metadata=ClusteringMetadata(
                depth=depth,
                total_signals=len(nodes),
                top_level_count=len(top_level.clusters),
                timestamp=int(time.time() * 1000),
            ),
            sub_clusters=sub_clusters,
        )

        self._fill_stats(stats, top, sub_clusters or {})
        stats.duration_ms = (time.perf_counter() - start) * 1000
        self.stats = stats
        logger.info(
            "Clustered %d signals into %d top-level clusters (modularity %.4f)",
            len(nodes),
            stats.top_level_clusters,
            top.modularity,
        )
        return clusters

    def _sub_cluster(
        self, parent_id: int, members: Set[str], links: List[GraphLink]
    ) -> Optional[SubClusterResult]:
        sub_nodes = [GraphNode(id=name) for name in sorted(members)]
        sub_links = [link for link in links if link.source in members and link.target in members]
        result = detect_communities(sub_nodes, sub_links)
        if len(result.clusters) <= 1:
            return None

        sub = SubClusterResult(
            parent_id=parent_id,
            clusters={cid: set(names) for cid, names in result.clusters.items()},
            modularity=result.modularity,
        )
        if self.label_sub_clusters:
            for cid, names in result.clusters.items():
                sub.labels[cid] = self.labeler.generate_label(sorted(names), self.label_terms)
        return sub

    @staticmethod
    def _fill_stats(
        stats: ClusteringStats, top: ClusterResult, sub_clusters: Dict[int, SubClusterResult]
    ) -> None:
        sizes = [len(members) for members in top.clusters.values()]
        stats.top_level_clusters = len(sizes)
        stats.sub_clusters_total = sum(len(sub.clusters) for sub in sub_clusters.values())
        if sizes:
            stats.avg_cluster_size = sum(sizes) / len(sizes)
            stats.max_cluster_size = max(sizes)
            stats.min_cluster_size = min(sizes)
        modularities = [top.modularity] + [sub.modularity for sub in sub_clusters.values()]
        stats.avg_modularity = sum(modularities) / len(modularities)


__all__ = [
    "ClusteringMetadata",
    "ClusteringStats",
    "HierarchicalClusterer",
    "HierarchicalClusters",
    "LabeledCluster",
    "SubClusterResult",
    "TopLevelClusters",
    "build_nodes_and_links",
]
