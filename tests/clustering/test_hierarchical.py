"""Tests for hierarchical clustering of signal graphs."""

from __future__ import annotations

from typing import Sequence

from signalgraph.clustering import hierarchical
from signalgraph.clustering.community import ClusterResult, GraphLink, GraphNode, detect_communities
from signalgraph.clustering.hierarchical import HierarchicalClusterer, build_nodes_and_links
from tests._fixtures.graph_builder import GraphFactory


def _twenty_signals(graph_factory: GraphFactory):
    names = [f"combat_event_{i:02d}" for i in range(20)]
    for name in names:
        graph_factory.define(name, "res://defs.gd")
    for name in names[:10]:
        graph_factory.emit(name, "res://combat.gd")
    return graph_factory.build(), names


def test_links_come_from_shared_emission_files_and_handlers(graph_factory: GraphFactory) -> None:
    graph = (
        graph_factory.define("a")
        .define("b")
        .define("c")
        .define("d")
        .emit("a", "res://one.gd")
        .emit("b", "res://one.gd")
        .emit("a", "res://one.gd", line=9)
        .emit("ghost", "res://one.gd")
        .connect("c", "_on_change", target="hud")
        .connect("d", "_on_change", target="hud")
        .connect("a", "_on_change", target="other")
        .build()
    )

    nodes, links = build_nodes_and_links(graph)

    assert [node.id for node in nodes] == ["a", "b", "c", "d"]
    assert links == [GraphLink(source="a", target="b"), GraphLink(source="c", target="d")]


def test_links_are_deduplicated_by_unordered_pair(graph_factory: GraphFactory) -> None:
    graph = (
        graph_factory.define("a")
        .define("b")
        .emit("b", "res://one.gd")
        .emit("a", "res://one.gd")
        .emit("a", "res://two.gd")
        .emit("b", "res://two.gd")
        .build()
    )

    _, links = build_nodes_and_links(graph)

    assert links == [GraphLink(source="b", target="a")]


def test_top_level_clusters_are_labelled(graph_factory: GraphFactory) -> None:
    graph, names = _twenty_signals(graph_factory)

    result = HierarchicalClusterer().cluster(graph, depth=1)

    assert result.sub_clusters is None
    assert result.metadata.depth == 1
    assert result.metadata.total_signals == 20
    assert result.metadata.top_level_count == len(result.top_level.clusters)
    sizes = sorted(len(cluster.signals) for cluster in result.top_level.clusters.values())
    assert sizes == [1] * 10 + [10]
    for cluster in result.top_level.clusters.values():
        if len(cluster.signals) == 1:
            assert cluster.label == next(iter(cluster.signals))
        else:
            assert cluster.signals == set(names[:10])
            assert cluster.label


def test_depth_two_omits_parents_that_do_not_split(graph_factory: GraphFactory) -> None:
    graph, _ = _twenty_signals(graph_factory)

    result = HierarchicalClusterer(min_sub_cluster_size=5).cluster(graph, depth=2)

    assert result.metadata.depth == 2
    assert result.sub_clusters is None


ALARMS = ["alarm_a", "alarm_b", "alarm_c", "alarm_d"]
BEACONS = ["beacon_lit", "beacon_off"]


def _alarm_and_beacon_graph(graph_factory: GraphFactory):
    """A dense alarm group with a beacon pair hanging off it, next to a large unrelated clique.

    Across the whole project the beacons belong with the alarms; inside
    that cluster alone they form their own community.
    """
    combat = [f"combat_hit_{i}" for i in range(8)]
    for name in combat + ALARMS + BEACONS:
        graph_factory.define(name, "res://defs.gd")
    for name in combat:
        graph_factory.emit(name, "res://combat.gd")
    for name in ALARMS:
        graph_factory.emit(name, "res://alarm.gd")
    for name in ["beacon_lit", "alarm_a", "alarm_b"]:
        graph_factory.emit(name, "res://beacon.gd")
    for name in BEACONS:
        graph_factory.emit(name, "res://relay.gd")
    return graph_factory.build()


def test_large_cluster_is_split_by_real_detection(graph_factory: GraphFactory) -> None:
    graph = _alarm_and_beacon_graph(graph_factory)

    result = HierarchicalClusterer().cluster(graph, depth=2)

    top_sizes = sorted(len(cluster.signals) for cluster in result.top_level.clusters.values())
    assert top_sizes == [6, 8]
    assert result.sub_clusters is not None
    [(parent_id, sub)] = list(result.sub_clusters.items())
    assert result.top_level.clusters[parent_id].signals == set(ALARMS + BEACONS)
    assert sub.clusters == {0: set(ALARMS), 1: set(BEACONS)}
    assert sub.modularity > 0


def _splitting_detector(calls: list[Sequence[GraphNode]]):
    """Real detection for the top level, a forced two-way split for sub-clusters."""

    def detect(nodes: Sequence[GraphNode], links: Sequence[GraphLink]) -> ClusterResult:
        calls.append(nodes)
        if len(calls) == 1:
            return detect_communities(nodes, links)
        ids = [node.id for node in nodes]
        half = len(ids) // 2
        clusters = {0: set(ids[:half]), 1: set(ids[half:])}
        mapping = {node_id: (0 if i < half else 1) for i, node_id in enumerate(ids)}
        return ClusterResult(clusters=clusters, node_to_cluster=mapping, modularity=0.25)

    return detect


def test_multi_way_sub_partition_is_kept_and_optionally_labelled(monkeypatch, graph_factory: GraphFactory) -> None:
    graph, names = _twenty_signals(graph_factory)
    calls: list[Sequence[GraphNode]] = []
    monkeypatch.setattr(hierarchical, "detect_communities", _splitting_detector(calls))

    clusterer = HierarchicalClusterer(label_sub_clusters=True)
    result = clusterer.cluster(graph, depth=2)

    assert len(calls) == 2
    assert [node.id for node in calls[1]] == sorted(names[:10])
    [(parent_id, sub)] = list(result.sub_clusters.items())
    assert sub.parent_id == parent_id
    assert sub.clusters[0] | sub.clusters[1] == set(names[:10])
    assert set(sub.labels) == {0, 1}
    assert clusterer.stats.sub_clusters_total == 2


def test_sub_cluster_labels_are_off_by_default(monkeypatch, graph_factory: GraphFactory) -> None:
    graph, _ = _twenty_signals(graph_factory)
    monkeypatch.setattr(hierarchical, "detect_communities", _splitting_detector([]))

    result = HierarchicalClusterer().cluster(graph, depth=2)

    [sub] = list(result.sub_clusters.values())
    assert sub.labels == {}


def test_failed_sub_clustering_skips_parent(monkeypatch, graph_factory: GraphFactory) -> None:
    graph, _ = _twenty_signals(graph_factory)
    calls: list[int] = []

    def flaky(nodes, links):
        calls.append(len(nodes))
        if len(calls) > 1:
            raise RuntimeError("sub-clustering exploded")
        return detect_communities(nodes, links)

    monkeypatch.setattr(hierarchical, "detect_communities", flaky)
    clusterer = HierarchicalClusterer()

    result = clusterer.cluster(graph, depth=2)

    assert result.sub_clusters is None
    assert clusterer.stats.failed_sub_clusters == 1
    assert result.metadata.top_level_count == 11


def test_stats_are_recomputed_per_call(graph_factory: GraphFactory) -> None:
    graph, _ = _twenty_signals(graph_factory)
    clusterer = HierarchicalClusterer()

    clusterer.cluster(graph, depth=1)
    first = clusterer.stats
    clusterer.cluster(GraphFactory().define("solo").build(), depth=1)

    assert first.top_level_clusters == 11
    assert first.max_cluster_size == 10
    assert first.min_cluster_size == 1
    assert clusterer.stats.top_level_clusters == 1
    assert clusterer.stats.max_cluster_size == 1


def test_empty_graph_produces_empty_hierarchy() -> None:
    result = HierarchicalClusterer().cluster(GraphFactory().build(), depth=2)

    assert result.top_level.clusters == {}
    assert result.sub_clusters is None
    assert result.metadata.total_signals == 0
